import logging

import numpy as np
import pandas as pd
import pytest

from components.metadata_schema import MetadataSchema
from data.utils import SchemaError
from pipelines.metadata_summaries.utils import (
    age_by_stage,
    cross_tab_matrix,
    expand_cross_tab,
    mean_age_by_sex,
    rename_and_select,
    stage_as_factor,
    subtype_stage_cross_tab,
)


@pytest.fixture
def metadata(raw_metadata) -> pd.DataFrame:
    return stage_as_factor(rename_and_select(raw_metadata))


def test_rename_and_select(raw_metadata):
    selected = rename_and_select(raw_metadata)

    assert selected.columns.tolist() == [
        "Sex",
        "Age",
        "TNM_Stage",
        "Tumor_Location",
        "geo_accession",
        "KRAS_Mutation",
        "Subtype",
        "Batch",
    ]
    assert selected["Age"].tolist() == raw_metadata["Age_at_diagnosis"].tolist()
    assert selected["Subtype"].tolist() == raw_metadata[
        "SixSubtypesClassification"
    ].tolist()
    assert "Age_at_diagnosis" in raw_metadata.columns


def test_rename_and_select_missing_column(raw_metadata):
    with pytest.raises(SchemaError, match="normalizationcombatbatch"):
        rename_and_select(raw_metadata.drop(columns="normalizationcombatbatch"))


def test_rename_and_select_name_collision(raw_metadata):
    with pytest.raises(SchemaError):
        rename_and_select(raw_metadata.assign(Age=1))


def test_stage_as_factor(raw_metadata):
    staged = stage_as_factor(
        raw_metadata.assign(TNM_Stage=["II", "I", "II", "IV", "I", "III"])
    )

    assert staged["Stage"].tolist()[:2] == ["stage II", "stage I"]
    assert isinstance(staged["Stage"].dtype, pd.CategoricalDtype)
    assert staged["Stage"].nunique() == staged["TNM_Stage"].nunique() == 4
    assert "Stage" not in raw_metadata.columns


def test_stage_as_factor_numeric_and_missing_codes(raw_metadata, caplog):
    data = raw_metadata.assign(TNM_Stage=[2.0, np.nan, 3.0, 1.0, 2.0, 4.0])

    with caplog.at_level(logging.WARNING):
        staged = stage_as_factor(data)

    assert staged["Stage"].tolist() == [
        "stage 2",
        "stage NA",
        "stage 3",
        "stage 1",
        "stage 2",
        "stage 4",
    ]
    assert "1 sample(s)" in caplog.text


def test_stage_as_factor_missing_column(raw_metadata):
    with pytest.raises(SchemaError):
        stage_as_factor(raw_metadata.drop(columns="TNM_Stage"))


def test_mean_age_by_sex(metadata):
    assert mean_age_by_sex(metadata, "F") == pytest.approx((50 + 70 + 40) / 3)
    assert mean_age_by_sex(metadata, "M") == pytest.approx((60 + 80 + 65) / 3)


def test_mean_age_by_sex_empty_selection_is_nan(metadata, caplog):
    with caplog.at_level(logging.WARNING):
        assert np.isnan(mean_age_by_sex(metadata, "X"))
    assert "undefined" in caplog.text


def test_mean_age_by_sex_ignores_missing_ages(metadata):
    metadata = metadata.assign(Age=[np.nan, 60, 70, 80, 40, 65])

    assert mean_age_by_sex(metadata, "F") == pytest.approx((70 + 40) / 2)


def test_mean_age_by_sex_custom_schema(metadata):
    schema = MetadataSchema(sex_col="Gender")

    assert mean_age_by_sex(
        metadata.rename(columns={"Sex": "Gender"}), "F", schema=schema
    ) == pytest.approx((50 + 70 + 40) / 3)


def test_age_by_stage(metadata):
    mean_ages = age_by_stage(metadata).set_index("Stage")["mean_age"]

    assert mean_ages.to_dict() == pytest.approx(
        {"stage 2": (50 + 70 + 65) / 3, "stage 3": (60 + 40) / 2, "stage 4": 80}
    )


def test_age_by_stage_mean_identity(metadata):
    summary = age_by_stage(metadata).set_index("Stage")
    sizes = metadata.groupby("Stage", observed=True).size()

    assert (summary["mean_age"] * sizes).sum() == pytest.approx(metadata["Age"].sum())


def test_age_by_stage_missing_column(metadata):
    with pytest.raises(SchemaError):
        age_by_stage(metadata.drop(columns="Stage"))


def test_subtype_stage_cross_tab(metadata):
    cross_tab = subtype_stage_cross_tab(metadata)
    counts = cross_tab.set_index(["Stage", "Subtype"])["n"].to_dict()

    assert cross_tab.columns.tolist() == ["Stage", "Subtype", "n"]
    assert counts == {("stage 2", "C1"): 3, ("stage 3", "C2"): 2, ("stage 4", "C3"): 1}
    assert cross_tab["n"].sum() == len(metadata)


def test_subtype_stage_cross_tab_dense(metadata):
    cross_tab = subtype_stage_cross_tab(metadata, dense=True)
    counts = cross_tab.set_index(["Stage", "Subtype"])["n"]

    assert len(cross_tab) == 9
    assert counts[("stage 2", "C1")] == 3
    assert counts[("stage 2", "C3")] == 0
    assert counts[("stage 4", "C1")] == 0
    assert (cross_tab["n"] == 0).sum() == 6
    assert cross_tab["n"].sum() == len(metadata)


def test_subtype_stage_cross_tab_counts_missing_subtype(metadata):
    metadata = metadata.assign(Subtype=[np.nan, "C2", "C1", "C3", "C2", "C1"])

    cross_tab = subtype_stage_cross_tab(metadata)

    assert cross_tab["n"].sum() == len(metadata)
    assert cross_tab["Subtype"].isna().sum() == 1


def test_expand_cross_tab():
    cross_tab = pd.DataFrame(
        {"Stage": ["stage 1", "stage 2"], "Subtype": ["A", "B"], "n": [4, 1]}
    )

    dense = expand_cross_tab(cross_tab).set_index(["Stage", "Subtype"])["n"]

    assert dense.to_dict() == {
        ("stage 1", "A"): 4,
        ("stage 1", "B"): 0,
        ("stage 2", "A"): 0,
        ("stage 2", "B"): 1,
    }


def test_cross_tab_matrix(metadata):
    matrix = cross_tab_matrix(metadata)

    assert matrix.shape == (3, 3)
    assert matrix.loc["stage 2", "C1"] == 3
    assert matrix.loc["stage 3", "C1"] == 0
    assert matrix.to_numpy().sum() == len(metadata)


def test_cross_tab_matrix_labels_missing_subtype(metadata):
    metadata = metadata.assign(Subtype=[np.nan, "C2", "C1", "C3", "C2", "C1"])

    matrix = cross_tab_matrix(metadata, missing_label="unknown")

    assert sorted(matrix.columns) == ["C1", "C2", "C3", "unknown"]
    assert matrix.loc["stage 2", "unknown"] == 1
    assert matrix.loc["stage 2", "C1"] == 2
    assert matrix.loc["stage 3", "unknown"] == 0
    assert matrix.to_numpy().sum() == len(metadata)
