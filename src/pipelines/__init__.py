"""Summary pipelines for microarray study data.

Modules:
    metadata_summaries: Reshaping of clinical metadata, derived stages, grouped
        average ages and stage x subtype cross-tabulations.
    expression_summaries: Per-probe mean and variance of expression matrices.
"""
