import logging
from typing import Any

import numpy as np
import pandas as pd

from components.metadata_schema import DEFAULT_METADATA_SCHEMA, MetadataSchema
from data.utils import SchemaError, check_columns, filter_df


def rename_and_select(
    data: pd.DataFrame, schema: MetadataSchema = DEFAULT_METADATA_SCHEMA
) -> pd.DataFrame:
    """Rename clinical fields to their canonical names and keep a fixed column subset.

    By default, Age_at_diagnosis, SixSubtypesClassification and
    normalizationcombatbatch are renamed to Age, Subtype and Batch, and only the
    Sex, Age, TNM_Stage, Tumor_Location, geo_accession, KRAS_Mutation, Subtype and
    Batch columns are returned, in that order.

    Args:
        data: Metadata table with one row per sample.
        schema: Column layout describing the renaming and the selected columns.

    Returns:
        pd.DataFrame: New, renamed and subsetted metadata table. Values are untouched.

    Raises:
        SchemaError: If any required source column is missing, or if a renamed
            column would collide with an existing one.
    """
    # 0. Validate input columns
    check_columns(data, schema.source_columns)
    collisions = [
        new
        for old, new in schema.rename_map.items()
        if new != old and new in data.columns
    ]
    if collisions:
        raise SchemaError(
            f"Renaming would duplicate existing column(s): {', '.join(collisions)}"
        )

    # 1. Rename and subset
    return data.rename(columns=schema.rename_map).loc[
        :, list(schema.selected_columns)
    ].copy()


def _stage_label(raw_stage: Any, prefix: str) -> str:
    if pd.isna(raw_stage):
        code = "NA"
    elif isinstance(raw_stage, (float, np.floating)) and float(raw_stage).is_integer():
        code = str(int(raw_stage))
    else:
        code = str(raw_stage)
    return f"{prefix} {code}"


def stage_as_factor(
    data: pd.DataFrame, schema: MetadataSchema = DEFAULT_METADATA_SCHEMA
) -> pd.DataFrame:
    """Add a categorical "Stage" column with elements following a "stage x" format.

    `x` is the raw cancer stage code held in the TNM_Stage column, converted to
    string. Missing codes become "stage NA".

    Args:
        data: Metadata table with a raw stage column.
        schema: Column layout naming the raw and derived stage columns.

    Returns:
        pd.DataFrame: Copy of the input with the additional categorical column. The
            categories are the distinct stage labels found in the data.

    Raises:
        SchemaError: If the raw stage column is missing.
    """
    check_columns(data, [schema.tnm_stage_col])
    data = data.copy()

    n_missing = int(data[schema.tnm_stage_col].isna().sum())
    if n_missing:
        logging.warning(
            f"{n_missing} sample(s) have no {schema.tnm_stage_col} value, "
            f"labelled as '{schema.stage_prefix} NA'."
        )

    data[schema.stage_col] = pd.Categorical(
        [_stage_label(x, schema.stage_prefix) for x in data[schema.tnm_stage_col]]
    )
    return data


def _warn_missing_ages(ages: pd.Series, context: str) -> None:
    n_missing = int(ages.isna().sum())
    if n_missing:
        logging.warning(
            f"[{context}] Ignoring {n_missing} sample(s) with missing age values."
        )


def mean_age_by_sex(
    data: pd.DataFrame, sex: str, schema: MetadataSchema = DEFAULT_METADATA_SCHEMA
) -> float:
    """Calculate the mean age of samples from a given sex.

    Args:
        data: Metadata table with sex and age columns.
        sex: Sex value to select, matched exactly (e.g. "M" or "F").
        schema: Column layout naming the sex and age columns.

    Returns:
        float: Mean age of the selected samples, ignoring missing ages. NaN if no
            sample matches `sex` or none of them has an age.

    Raises:
        SchemaError: If the sex or age column is missing.

    Example:
        >>> mean_age_by_sex(metadata, "F")
        64.2
    """
    check_columns(data, [schema.sex_col, schema.age_col])
    ages = filter_df(data, {schema.sex_col: [sex]})[schema.age_col]

    if ages.empty:
        logging.warning(
            f"No samples with {schema.sex_col} == {sex!r}, mean age is undefined."
        )
        return np.nan

    _warn_missing_ages(ages, f"{schema.sex_col}={sex}")
    return float(ages.mean())


def age_by_stage(
    data: pd.DataFrame, schema: MetadataSchema = DEFAULT_METADATA_SCHEMA
) -> pd.DataFrame:
    """Calculate the average age of samples within each cancer stage.

    Stages are taken from the derived "Stage" column (see `stage_as_factor`).

    Args:
        data: Metadata table with derived stage and age columns.
        schema: Column layout naming the stage and age columns.

    Returns:
        pd.DataFrame: One row per observed stage, with the stage column and a
            `mean_age` column. Missing ages are ignored.

    Raises:
        SchemaError: If the stage or age column is missing.
    """
    check_columns(data, [schema.stage_col, schema.age_col])
    _warn_missing_ages(data[schema.age_col], "age_by_stage")

    return (
        data.groupby(schema.stage_col, observed=True, sort=False)[schema.age_col]
        .mean()
        .rename("mean_age")
        .reset_index()
    )


def expand_cross_tab(
    cross_tab: pd.DataFrame, schema: MetadataSchema = DEFAULT_METADATA_SCHEMA
) -> pd.DataFrame:
    """Expand a long-form stage x subtype count table to all combinations.

    Every combination of the distinct stage and subtype values present in
    `cross_tab` is materialized; combinations that were not observed get a count
    of zero.

    Args:
        cross_tab: Long-form table with stage, subtype and `n` columns.
        schema: Column layout naming the stage and subtype columns.

    Returns:
        pd.DataFrame: Dense long-form table with the same columns.

    Raises:
        SchemaError: If any of the stage, subtype or `n` columns is missing.
    """
    key_cols = [schema.stage_col, schema.subtype_col]
    check_columns(cross_tab, [*key_cols, "n"])

    # 1. Build full cross-product of observed categories
    full_keys = (
        cross_tab[[schema.stage_col]]
        .drop_duplicates()
        .merge(cross_tab[[schema.subtype_col]].drop_duplicates(), how="cross")
    )

    # 2. Outer join observed counts, filling missing combinations with zeros
    dense = full_keys.merge(cross_tab, how="left", on=key_cols)
    dense["n"] = dense["n"].fillna(0).astype(int)

    return dense.reset_index(drop=True)


def subtype_stage_cross_tab(
    data: pd.DataFrame,
    dense: bool = False,
    schema: MetadataSchema = DEFAULT_METADATA_SCHEMA,
) -> pd.DataFrame:
    """Count samples for each combination of cancer stage and subtype.

    Args:
        data: Metadata table with derived stage and subtype columns.
        dense: If True, combinations of stage and subtype that were not observed
            are included with a count of zero (see `expand_cross_tab`).
        schema: Column layout naming the stage and subtype columns.

    Returns:
        pd.DataFrame: Long-form table with stage, subtype and `n` columns. Samples
            without subtype are counted under a missing subtype, so counts always
            add up to the number of samples.

    Raises:
        SchemaError: If the stage or subtype column is missing.
    """
    check_columns(data, [schema.stage_col, schema.subtype_col])

    cross_tab = (
        data.groupby(
            [schema.stage_col, schema.subtype_col],
            observed=True,
            dropna=False,
            sort=False,
        )
        .size()
        .rename("n")
        .reset_index()
    )

    if dense:
        return expand_cross_tab(cross_tab, schema=schema)
    return cross_tab


def cross_tab_matrix(
    data: pd.DataFrame,
    missing_label: str = "NA",
    schema: MetadataSchema = DEFAULT_METADATA_SCHEMA,
) -> pd.DataFrame:
    """Build a stage x subtype contingency matrix.

    Args:
        data: Metadata table with derived stage and subtype columns.
        missing_label: Column label for samples without subtype. Must not be one
            of the subtypes present in the data.
        schema: Column layout naming the stage and subtype columns.

    Returns:
        pd.DataFrame: Matrix where rows are the cancer stages, columns are the
            subtypes and elements are the number of samples with that stage and
            subtype, zero if the pair was never observed. Samples without subtype
            are counted under the `missing_label` column.
    """
    cross_tab = subtype_stage_cross_tab(data, dense=True, schema=schema)
    cross_tab[schema.subtype_col] = (
        cross_tab[schema.subtype_col].astype(object).fillna(missing_label)
    )

    return (
        cross_tab.pivot(
            index=schema.stage_col, columns=schema.subtype_col, values="n"
        )
        .rename_axis(columns=None)
        .astype(int)
    )
