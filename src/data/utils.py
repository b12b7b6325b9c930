"""Utility functions for tabular study data manipulation.

This module provides the error types shared by the data loaders and the summary
pipelines, together with helpers for column-name normalization, schema checks and
row filtering of sample tables.
"""

from typing import Any, Dict, Iterable

import numpy as np
import pandas as pd


class StudyDataError(Exception):
    """Base exception for all failures raised while processing study tables."""

    pass


class ParseError(StudyDataError):
    """Exception raised when a source file cannot be read or is malformed.

    This covers unreadable or empty files, rows of inconsistent length, duplicated
    sample identifiers and intensity values that cannot be coerced to numbers.
    """

    pass


class SchemaError(StudyDataError):
    """Exception raised when a table lacks one or more required columns."""

    pass


class DimensionError(StudyDataError):
    """Exception raised when a table has too few samples for a statistic.

    Sample variance needs at least two observations per probe, otherwise its
    denominator would be zero or negative.
    """

    pass


def period_to_underscore(string: str) -> str:
    """Replace every period in a string with an underscore.

    Args:
        string: String to operate upon.

    Returns:
        str: Reformatted string. Each "." becomes its own "_", including repeated,
            leading and trailing periods.

    Example:
        >>> period_to_underscore("foo.bar")
        'foo_bar'
        >>> period_to_underscore("..a.")
        '__a_'
    """
    return string.replace(".", "_")


def clean_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of a DataFrame with periods in column names turned into underscores.

    Args:
        df: DataFrame whose column names should be normalized.

    Returns:
        pd.DataFrame: New DataFrame with the same data and normalized column names.
    """
    return df.rename(columns=lambda c: period_to_underscore(str(c)))


def check_columns(df: pd.DataFrame, columns: Iterable[str]) -> None:
    """Ensure that all given columns are present in a DataFrame.

    Args:
        df: DataFrame to check.
        columns: Names of the required columns.

    Raises:
        SchemaError: If any of the columns is missing. All missing columns are
            listed in the error message.
    """
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(
            f"Missing required column(s): {', '.join(map(str, missing))}. "
            f"Available columns: {', '.join(map(str, df.columns))}"
        )


def filter_df(
    df: pd.DataFrame, filter_values: Dict[str, Iterable[Any]]
) -> pd.DataFrame:
    """Filter DataFrame rows based on values in specified columns.

    Filters rows of a DataFrame by matching column values against specified targets.
    Matching is exact, so string values are compared case-sensitively.

    Args:
        df: DataFrame to be filtered
        filter_values: Dictionary mapping column names to allowable values,
            where only rows with matching values are kept

    Returns:
        pd.DataFrame: Filtered DataFrame containing only rows that match all criteria

    Raises:
        SchemaError: If any key in filter_values is not a column in the DataFrame

    Example:
        >>> filter_df(metadata, {'Sex': ['F'], 'TNM_Stage': ['2', '3']})
        # Returns female samples at stage 2 or 3
    """
    # 0. Ensure that all fields are valid
    check_columns(df, filter_values.keys())

    if not filter_values:
        return df.copy()

    # 1. Filter dataframe
    return df[
        np.logical_and.reduce(
            [
                df[column].isin(list(target_values)).to_numpy()
                for column, target_values in filter_values.items()
            ]
        )
    ].copy()
