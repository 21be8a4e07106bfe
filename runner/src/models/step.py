"""
Step execution models.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum

class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"

class CommandOutput(BaseModel):
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

class StepResult(BaseModel):
    stage: str = ""
    name: str
    status: StepStatus
    output: Optional[CommandOutput] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration(self) -> Optional[float]:
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

def summarize(results: List[StepResult]) -> str:
    """One line per step, e.g. ``Deploy / Start services: succeeded``."""
    return "\n".join(
        f"{r.stage} / {r.name}: {r.status.value}" for r in results
    )
