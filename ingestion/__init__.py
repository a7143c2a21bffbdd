"""
ETL pipeline components for event-log ingestion.

This package turns simulation documents (MongoDB) into relational rows:

Modules:
    runner: ETLRunner, sequences all stages for one designPoint
    views: ViewRefresher, recomputes materialized aggregates after writes

Subpackages:
    extractors: CursorExtractor, lazy filtered/projected document streams
    transformers: Row projections for event tables and entity enrichment
    loaders: INSERT statement builder, scoped sinks and the batch loader
    pipelines: MappingPipeline (batched lookups) and StreamPipeline (row at a time)

Architecture:
    1. Extract - Cursor over documents matching one designPoint
    2. Transform - Declared dot-paths projected onto a fixed column order
    3. Load - Positional INSERT statements executed through a Sink

    Lookup tables are small and written in batches, one connection per batch.
    Event tables may be arbitrarily large and are written one row per
    statement through a long-lived (or periodically recycled) connection.

Usage:
    from ingestion.runner import ETLRunner

    runner = ETLRunner(source_db, source_config, SinkFactory.from_config(sink_config),
                       sink_config.sql_dialect, job)
    result = runner.run()

Error Handling:
    A document that cannot be projected is dropped and counted; everything
    else aborts the run. See core.exceptions for the hierarchy.
"""

__all__ = [
    "runner",
    "views",
]
