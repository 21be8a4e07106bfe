from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum

from runner.src.models.step import StepResult

class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

EXIT_CODES = {
    RunStatus.SUCCEEDED: 0,
    RunStatus.FAILED: 1,
    RunStatus.CANCELLED: 130,
}

class RunResult(BaseModel):
    run_id: str
    pipeline: str
    status: RunStatus = RunStatus.PENDING
    steps: List[StepResult] = []
    error: Optional[str] = None
    handler_errors: List[str] = []
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def exit_code(self) -> int:
        return EXIT_CODES.get(self.status, 1)

    def step(self, name: str) -> Optional[StepResult]:
        """Last recorded result for the step called ``name``."""
        for result in reversed(self.steps):
            if result.name == name:
                return result
        return None
