import logging

import pandas as pd

from data.utils import DimensionError, SchemaError


def to_probe_matrix(
    exprs: pd.DataFrame, probe_col: str = "probe", subject_col: str = "subject_id"
) -> pd.DataFrame:
    """Get a numeric probe x sample matrix from an expression table.

    Accepts either a sample x probe table with a `subject_col` column, as returned
    by `data.io.read_expression_table`, or a probe x sample table with a
    `probe_col` column, as returned by `data.io.read_expression_matrix`.

    Args:
        exprs: Expression table in any of the two orientations.
        probe_col: Name of the probe identifier column.
        subject_col: Name of the sample identifier column.

    Returns:
        pd.DataFrame: Numeric matrix with probes as index (named `probe_col`) and
            samples as columns.

    Raises:
        SchemaError: If neither identifier column is present, or if any intensity
            value is not numeric.
    """
    if subject_col in exprs.columns:
        matrix = exprs.set_index(subject_col).transpose()
    elif probe_col in exprs.columns:
        matrix = exprs.set_index(probe_col)
    else:
        raise SchemaError(
            f"Expression table must have either a '{subject_col}' or a "
            f"'{probe_col}' column."
        )

    try:
        matrix = matrix.apply(pd.to_numeric).astype(float)
    except (TypeError, ValueError) as e:
        raise SchemaError(f"Expression table has non-numeric values: {e}") from e

    return matrix.rename_axis(index=probe_col, columns=None)


def summarize_expression(
    exprs: pd.DataFrame, probe_col: str = "probe", subject_col: str = "subject_id"
) -> pd.DataFrame:
    """Summarize average expression and probe variability over an expression matrix.

    For every probe, the mean and the sample variance (denominator n - 1) of its
    intensities across all samples are computed. Missing values are ignored.

    Args:
        exprs: Expression table, either samples x probes with a `subject_col`
            column or probes x samples with a `probe_col` column.
        probe_col: Name of the probe identifier column.
        subject_col: Name of the sample identifier column.

    Returns:
        pd.DataFrame: One row per probe with `mean_exp`, `variance` and `probe_col`
            columns, in that order.

    Raises:
        SchemaError: If the table has no identifier column or non-numeric values.
        DimensionError: If any probe has fewer than two non-missing values.

    Example:
        >>> summarize_expression(read_expression_table("example_intensity_data.csv"))
           mean_exp  variance      probe
        0  7.203513  0.105212  1007_s_at
        ...
    """
    # 0. Get probe x sample matrix
    matrix = to_probe_matrix(exprs, probe_col=probe_col, subject_col=subject_col)

    # 1. Check that variance is defined for every probe
    n_obs = matrix.notna().sum(axis=1)
    too_few = n_obs[n_obs < 2]
    if not too_few.empty:
        raise DimensionError(
            f"{len(too_few)} probe(s) have fewer than 2 samples with values: "
            f"{', '.join(map(str, too_few.index[:10]))}"
        )

    # 2. Compute statistics
    summary_df = pd.DataFrame(
        {
            "mean_exp": matrix.mean(axis=1, skipna=True),
            "variance": matrix.var(axis=1, ddof=1, skipna=True),
        }
    )
    logging.info(
        f"Summarized {len(summary_df)} probes over {matrix.shape[1]} samples."
    )

    return summary_df.reset_index()[["mean_exp", "variance", probe_col]]
