"""
Stages - ordered, fail-fast groups of steps.
"""

import logging
from typing import Callable, List, Optional, Sequence

from runner.src.core.context import ExecutionContext
from runner.src.core.errors import CommandError, RunCancelled, StageError
from runner.src.core.step import Guard, Step, utcnow
from runner.src.models.step import CommandOutput, StepResult, StepStatus

logger = logging.getLogger(__name__)

ResultCallback = Callable[[StepResult], None]

# Step name reported when a stage guard itself fails
GUARD = "<guard>"

class Stage:
    def __init__(self, name: str, steps: Sequence[Step], when: Optional[Guard] = None):
        self.name = name
        self.steps = list(steps)
        self.when = when

    def run(
        self,
        ctx: ExecutionContext,
        on_result: Optional[ResultCallback] = None,
        check_cancel: bool = True,
    ) -> List[StepResult]:
        """
        Run steps in order, stopping at the first failure.
        Raises StageError wrapping the failing step's exception.
        """
        results: List[StepResult] = []

        def record(result: StepResult):
            result.stage = self.name
            results.append(result)
            if on_result is not None:
                on_result(result)

        try:
            skip = self.when is not None and not self.when(ctx)
        except Exception as e:
            logger.error(f"Guard of stage '{self.name}' failed: {e}")
            raise StageError(self.name, GUARD, e, results) from e

        if skip:
            logger.info(f"Skipping stage '{self.name}'")
            now = utcnow()
            for step in self.steps:
                record(StepResult(
                    name=step.name,
                    status=StepStatus.SKIPPED,
                    started_at=now,
                    finished_at=now,
                ))
            return results

        for step in self.steps:
            if check_cancel and ctx.cancelled:
                raise RunCancelled(f"Cancelled before step '{step.name}'")

            started_at = utcnow()
            try:
                result = step.run(ctx)
            except RunCancelled:
                raise
            except Exception as e:
                logger.error(f"Step '{step.name}' in stage '{self.name}' failed: {e}")
                output = None
                if isinstance(e, CommandError):
                    output = CommandOutput(exit_code=e.exit_code, stdout=e.stdout, stderr=e.stderr)
                record(StepResult(
                    name=step.name,
                    status=StepStatus.FAILED,
                    output=output,
                    error=str(e),
                    started_at=started_at,
                    finished_at=utcnow(),
                ))
                raise StageError(self.name, step.name, e, results) from e

            record(result)

        return results

    def __repr__(self) -> str:
        return f"Stage({self.name!r}, steps={len(self.steps)})"
