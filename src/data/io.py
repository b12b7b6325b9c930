import logging
from pathlib import Path
from typing import Any, List, Union

import numpy as np
import pandas as pd

from data.utils import ParseError

NA_VALUES: List[str] = ["", "NA", "NaN", "nan", "null"]


def _read_probe_matrix(
    file_path: Union[str, Path], delimiter: str = " ", probe_col: str = "probe"
) -> pd.DataFrame:
    """Read a delimited probe-by-sample intensity matrix.

    The first row holds the sample identifiers, optionally preceded by the name of
    the probe identifier column. Every other row holds a probe identifier followed by
    one intensity value per sample.

    Args:
        file_path: Path to the delimited text file.
        delimiter: Single-character field delimiter.
        probe_col: Name given to the index holding the probe identifiers.

    Returns:
        pd.DataFrame: Numeric matrix with probes as index and samples as columns.

    Raises:
        ParseError: If the file cannot be read, has no data rows, rows of different
            lengths, duplicated identifiers or non-numeric values.
    """
    file_path = Path(file_path)

    # 0. Read raw lines
    try:
        text = file_path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Could not read expression file {file_path}: {e}") from e

    # Ignore trailing delimiters
    rows = [
        line.rstrip(delimiter).split(delimiter)
        for line in text.splitlines()
        if line.strip()
    ]
    if len(rows) < 2:
        raise ParseError(
            f"{file_path.name} must contain a header row and at least one probe row."
        )
    header, body = rows[0], rows[1:]

    # 1. Check that rows are consistent
    widths = sorted({len(row) for row in body})
    if len(widths) > 1:
        raise ParseError(
            f"{file_path.name} has rows of inconsistent length (found {widths} fields)."
        )
    n_fields = widths[0]
    if n_fields < 2:
        raise ParseError(f"{file_path.name} does not contain any sample column.")

    if len(header) == n_fields:
        sample_ids = header[1:]
    elif len(header) == n_fields - 1:
        sample_ids = header
    else:
        raise ParseError(
            f"Header of {file_path.name} has {len(header)} fields, but probe rows "
            f"have {n_fields}."
        )

    probe_ids = [row[0] for row in body]
    for ids, kind in ((sample_ids, "sample"), (probe_ids, "probe")):
        if any(not i.strip() for i in ids):
            raise ParseError(f"{file_path.name} contains empty {kind} identifiers.")
        duplicated = pd.Index(ids)[pd.Index(ids).duplicated()].unique().tolist()
        if duplicated:
            raise ParseError(
                f"{file_path.name} contains duplicated {kind} identifiers: "
                f"{', '.join(duplicated)}"
            )

    # 2. Build numeric matrix
    matrix = pd.DataFrame(
        [row[1:] for row in body],
        index=pd.Index(probe_ids, name=probe_col),
        columns=sample_ids,
    )
    matrix = matrix.mask(matrix.isin(NA_VALUES), np.nan)
    try:
        matrix = matrix.apply(pd.to_numeric).astype(float)
    except (TypeError, ValueError) as e:
        raise ParseError(f"{file_path.name} contains non-numeric values: {e}") from e

    logging.info(
        f"Read {matrix.shape[0]} probes and {matrix.shape[1]} samples "
        f"from {file_path.name}"
    )
    return matrix


def read_expression_table(
    file_path: Union[str, Path],
    delimiter: str = " ",
    subject_col: str = "subject_id",
) -> pd.DataFrame:
    """Read microarray expression data as a sample x probe table.

    The file on disk is a probe x sample matrix: the header row holds the sample
    (GEO accession) identifiers and the first column holds the probe identifiers.
    The matrix is transposed so that each row is a sample, and the sample
    identifiers are stored in a leading column.

    Args:
        file_path: Path to the delimited text file.
        delimiter: Single-character field delimiter, a space by default.
        subject_col: Name of the column holding the sample identifiers.

    Returns:
        pd.DataFrame: Table with one row per sample, `subject_col` as first column
            and one numeric column per probe, in file order.

    Raises:
        ParseError: If the file cannot be read or is malformed.

    Example:
        >>> expr_df = read_expression_table("example_intensity_data.csv")
        >>> expr_df.columns[:3].tolist()
        ['subject_id', '1007_s_at', '1053_at']
    """
    matrix = _read_probe_matrix(file_path, delimiter=delimiter)

    return (
        matrix.transpose()
        .rename_axis(index=subject_col, columns=None)
        .reset_index()
    )


def read_expression_matrix(
    file_path: Union[str, Path],
    delimiter: str = " ",
    probe_col: str = "probe",
) -> pd.DataFrame:
    """Read microarray expression data in its on-disk probe x sample orientation.

    Args:
        file_path: Path to the delimited text file.
        delimiter: Single-character field delimiter, a space by default.
        probe_col: Name of the column holding the probe identifiers.

    Returns:
        pd.DataFrame: Table with one row per probe, `probe_col` as first column and
            one numeric column per sample.

    Raises:
        ParseError: If the file cannot be read or is malformed.
    """
    return _read_probe_matrix(
        file_path, delimiter=delimiter, probe_col=probe_col
    ).reset_index()


def read_metadata(file_path: Union[str, Path], **kwargs: Any) -> pd.DataFrame:
    """Read a comma-separated sample metadata table.

    Args:
        file_path: Path to the metadata file.
        **kwargs: Additional keyword arguments passed to `pd.read_csv`.

    Returns:
        pd.DataFrame: Metadata table with one row per sample.

    Raises:
        ParseError: If the file cannot be read or parsed.
    """
    try:
        metadata = pd.read_csv(file_path, **kwargs)
    except (
        OSError,
        UnicodeDecodeError,
        pd.errors.EmptyDataError,
        pd.errors.ParserError,
    ) as e:
        raise ParseError(f"Could not read metadata file {file_path}: {e}") from e

    logging.info(
        f"Read metadata for {len(metadata)} samples "
        f"({len(metadata.columns)} columns) from {Path(file_path).name}"
    )
    return metadata
