from typing import Dict, Tuple

from pydantic import Field
from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class MetadataSchema:
    """
    Column layout of a sample metadata table.

    Holds the names of all metadata fields used when reshaping and summarizing
    clinical annotations, so that studies with differently named fields can reuse
    the same routines.

    Args:
        rename_map: Mapping of raw column names to their canonical names.
        selected_columns: Canonical columns kept after renaming, in output order.
        sex_col: Column holding the sex of each sample.
        age_col: Column holding the age at diagnosis.
        tnm_stage_col: Column holding the raw stage code.
        stage_col: Name of the derived categorical stage column.
        stage_prefix: Literal prepended to every raw stage code.
        subtype_col: Column holding the molecular subtype.
        accession_col: Column holding the sample accession identifier, matching
            the `subject_id` column of expression tables.
    """

    rename_map: Dict[str, str] = Field(
        default_factory=lambda: {
            "Age_at_diagnosis": "Age",
            "SixSubtypesClassification": "Subtype",
            "normalizationcombatbatch": "Batch",
        }
    )
    selected_columns: Tuple[str, ...] = (
        "Sex",
        "Age",
        "TNM_Stage",
        "Tumor_Location",
        "geo_accession",
        "KRAS_Mutation",
        "Subtype",
        "Batch",
    )
    sex_col: str = "Sex"
    age_col: str = "Age"
    tnm_stage_col: str = "TNM_Stage"
    stage_col: str = "Stage"
    stage_prefix: str = "stage"
    subtype_col: str = "Subtype"
    accession_col: str = "geo_accession"

    def __post_init__(self) -> None:
        """
        Check that the selected columns are unique and include every renamed column.
        """
        duplicated = sorted(
            {c for c in self.selected_columns if self.selected_columns.count(c) > 1}
        )
        if duplicated:
            raise ValueError(f"Duplicated selected columns: {duplicated}")

        not_selected = [
            c for c in self.rename_map.values() if c not in self.selected_columns
        ]
        if not_selected:
            raise ValueError(f"Renamed columns not selected: {not_selected}")

    @property
    def source_columns(self) -> Tuple[str, ...]:
        """Raw column names required to build the selected columns."""
        inverse_map = {v: k for k, v in self.rename_map.items()}
        return tuple(inverse_map.get(c, c) for c in self.selected_columns)


DEFAULT_METADATA_SCHEMA = MetadataSchema()
