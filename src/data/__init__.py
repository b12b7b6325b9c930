"""Data loading and manipulation utilities for study tables.

This package provides functions for processing microarray study data, including:
- File I/O for whitespace-delimited expression matrices and metadata tables
- Column-name normalization, schema checks and row filtering
- Error types shared by loaders and summary pipelines
"""
