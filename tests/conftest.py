from pathlib import Path

import pandas as pd
import pytest


@pytest.fixture
def raw_metadata() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "geo_accession": ["GSM1", "GSM2", "GSM3", "GSM4", "GSM5", "GSM6"],
            "Sex": ["F", "M", "F", "M", "F", "M"],
            "Age_at_diagnosis": [50, 60, 70, 80, 40, 65],
            "TNM_Stage": [2, 3, 2, 4, 3, 2],
            "Tumor_Location": [
                "proximal",
                "distal",
                "distal",
                "proximal",
                "distal",
                "proximal",
            ],
            "KRAS_Mutation": ["WT", "M", "WT", "WT", "M", "M"],
            "SixSubtypesClassification": ["C1", "C2", "C1", "C3", "C2", "C1"],
            "normalizationcombatbatch": ["b1", "b1", "b2", "b2", "b1", "b2"],
            "Other.Field": ["x", "y", "x", "y", "x", "y"],
        }
    )


@pytest.fixture
def write_expression_file(tmp_path: Path):
    def _write(content: str, name: str = "intensity_data.csv") -> Path:
        file_path = tmp_path.joinpath(name)
        file_path.write_text(content)
        return file_path

    return _write


@pytest.fixture
def expression_file(write_expression_file) -> Path:
    return write_expression_file(
        "probe GSM1 GSM2 GSM3\n"
        "1007_s_at 2 4 6\n"
        "1053_at 1 1 1\n"
        "117_at 3.5 NA 5.5\n"
    )
