"""
Pydantic schemas for stage and run results
"""

from typing import List, Optional
from pydantic import BaseModel, Field
from models.base import StageStatus


class StageResult(BaseModel):
    """Counters for one ETL stage"""
    stage: str
    status: StageStatus = StageStatus.SUCCESS
    records_expected: Optional[int] = None  # advisory, captured before iteration
    records_extracted: int = 0
    records_loaded: int = 0
    records_failed: int = 0
    statements_executed: int = 0

    @property
    def partial(self) -> bool:
        return self.records_failed > 0


class RunResult(BaseModel):
    """Outcome of one orchestrated run for a single scope"""
    scope: str
    completed: bool = False
    stages: List[StageResult] = Field(default_factory=list)
    views_refreshed: List[str] = Field(default_factory=list)

    def stage(self, name: str) -> Optional[StageResult]:
        for result in self.stages:
            if result.stage == name:
                return result
        return None

    @property
    def records_loaded(self) -> int:
        return sum(s.records_loaded for s in self.stages)

    @property
    def records_failed(self) -> int:
        return sum(s.records_failed for s in self.stages)
