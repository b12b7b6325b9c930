"""Reusable components shared by the summary pipelines.

Modules:
    metadata_schema: Contains the MetadataSchema class describing the column layout
        of sample metadata tables.
"""
