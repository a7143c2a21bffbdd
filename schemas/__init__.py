"""
Pydantic schemas for configuration records and run results.

Schemas:
    config: SourceConfig, SinkConfig and JobConfig with validation
    results: StageResult and RunResult counters

Usage:
    from schemas.config import JobConfig, SinkConfig
    from schemas.results import RunResult

Example:
    job = JobConfig(scope="dp-07", batch_size=250)
    assert job.connection_policy == ConnectionPolicy.HOLD

Validation:
    Invalid values raise core.exceptions.ConfigurationError directly, so a
    bad batch size or dialect is rejected before any connection is opened.
"""

__all__ = [
    "config",
    "results",
]
