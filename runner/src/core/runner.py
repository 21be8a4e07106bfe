"""
Pipeline runner - executes stages in order, then the post handlers.
"""

import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from runner.src.core.context import ExecutionContext
from runner.src.core.errors import RunCancelled, StageError
from runner.src.core.parameters import resolve_parameters
from runner.src.core.pipeline import Pipeline, PostCondition
from runner.src.core.step import utcnow
from runner.src.models.run import RunResult, RunStatus
from runner.src.models.step import StepResult
from runner.src.services.secrets import masked_logging
from runner.src.services.status_reporter import StatusReporter

logger = logging.getLogger(__name__)

def mask_result(ctx: ExecutionContext, step: StepResult) -> StepResult:
    """Copy of ``step`` with secret values hidden in its output and error."""
    update = {}
    if step.error:
        update["error"] = ctx.mask(step.error)
    if step.output is not None:
        update["output"] = step.output.model_copy(update={
            "stdout": ctx.mask(step.output.stdout),
            "stderr": ctx.mask(step.output.stderr),
        })
    return step.model_copy(update=update)

class Runner:
    """
    Runs one Pipeline to completion.

    Exactly one of the ``success``/``failure`` handlers runs, then ``always``
    runs. A cancelled run skips straight to ``always``. Handler failures are
    logged and recorded on the result, never raised.
    """

    def __init__(
        self,
        pipeline: Pipeline,
        workspace: Union[str, Path] = ".",
        reporter: Optional[StatusReporter] = None,
        run_id: Optional[str] = None,
    ):
        self.pipeline = pipeline
        self.workspace = Path(workspace)
        self.reporter = reporter or StatusReporter()
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self._cancel = threading.Event()
        self.context: Optional[ExecutionContext] = None

    def cancel(self):
        """Request cancellation; safe to call from a signal handler."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def run(self, overrides: Optional[Mapping[str, Any]] = None) -> RunResult:
        pipeline = self.pipeline

        # Parameter errors surface before the run starts
        params = resolve_parameters(pipeline.parameters, overrides)

        ctx = ExecutionContext(
            run_id=self.run_id,
            params=params,
            workspace=self.workspace,
            cancel_event=self._cancel,
        )
        ctx.set("BUILD_ID", self.run_id)
        self.context = ctx

        result = RunResult(run_id=self.run_id, pipeline=pipeline.name)
        self._set_status(result, RunStatus.RUNNING)
        result.started_at = utcnow()

        logger.info(
            f"Starting pipeline '{pipeline.name}' (run {self.run_id}) "
            f"with {len(pipeline.stages)} stages"
        )

        with masked_logging(ctx.mask):
            try:
                self._run_stages(ctx, result)
            finally:
                try:
                    self._run_outcome_handler(ctx, result)
                finally:
                    self._run_handler(PostCondition.ALWAYS, ctx, result)

        result.finished_at = utcnow()
        logger.info(f"Pipeline '{pipeline.name}' (run {self.run_id}) finished with status: {result.status.value}")
        return result

    def _run_stages(self, ctx: ExecutionContext, result: RunResult):
        try:
            for stage in self.pipeline.stages:
                logger.info(f"Entering stage '{stage.name}'")
                stage.run(ctx, on_result=lambda r: self._record(ctx, result, r))
        except StageError as e:
            result.error = ctx.mask(str(e))
            if self.cancelled:
                logger.warning(f"Run {self.run_id} cancelled during stage '{e.stage}'")
                self._set_status(result, RunStatus.CANCELLED)
            else:
                logger.error(f"Pipeline failed: {e}")
                self._set_status(result, RunStatus.FAILED)
            return
        except RunCancelled as e:
            logger.warning(f"Run {self.run_id} cancelled: {e}")
            result.error = ctx.mask(str(e))
            self._set_status(result, RunStatus.CANCELLED)
            return
        except BaseException as e:
            # KeyboardInterrupt and the like: still a terminal state before cleanup
            result.error = ctx.mask(f"{type(e).__name__}: {e}")
            self._set_status(result, RunStatus.FAILED)
            raise

        self._set_status(result, RunStatus.SUCCEEDED)

    def _run_outcome_handler(self, ctx: ExecutionContext, result: RunResult):
        if result.status == RunStatus.SUCCEEDED:
            self._run_handler(PostCondition.SUCCESS, ctx, result)
        elif result.status == RunStatus.FAILED:
            self._run_handler(PostCondition.FAILURE, ctx, result)

    def _run_handler(self, condition: PostCondition, ctx: ExecutionContext, result: RunResult):
        stage = self.pipeline.handler(condition)
        if stage is None:
            return

        logger.info(f"Running post handler '{condition.value}'")
        try:
            stage.run(ctx, on_result=lambda r: self._record(ctx, result, r), check_cancel=False)
        except Exception as e:
            logger.error(f"Post handler '{condition.value}' failed: {e}")
            result.handler_errors.append(ctx.mask(f"{condition.value}: {e}"))

    def _record(self, ctx: ExecutionContext, result: RunResult, step: StepResult):
        step = mask_result(ctx, step)
        result.steps.append(step)
        self.reporter.update_step_status(self.run_id, step)

    def _set_status(self, result: RunResult, status: RunStatus):
        self.pipeline.transition(status)
        result.status = status
        self.reporter.update_run_status(self.run_id, status)
