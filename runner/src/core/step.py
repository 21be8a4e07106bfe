"""
Pipeline steps - a single named unit of work with an optional guard.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Union

from runner.src.core.context import ExecutionContext
from runner.src.core.errors import CommandError
from runner.src.core.polling import poll_until
from runner.src.models.step import CommandOutput, StepResult, StepStatus

logger = logging.getLogger(__name__)

Guard = Callable[[ExecutionContext], bool]
Action = Callable[[ExecutionContext], Optional[CommandOutput]]
CommandSpec = Union[Sequence[str], Callable[[ExecutionContext], Sequence[str]]]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Step:
    """
    Runs ``action`` unless the ``when`` guard says otherwise.
    The action signals failure by raising.
    """

    def __init__(self, name: str, action: Optional[Action] = None, when: Optional[Guard] = None):
        self.name = name
        self.action = action
        self.when = when

    def should_run(self, ctx: ExecutionContext) -> bool:
        return self.when is None or bool(self.when(ctx))

    def execute(self, ctx: ExecutionContext) -> Optional[CommandOutput]:
        if self.action is None:
            return None
        return self.action(ctx)

    def run(self, ctx: ExecutionContext) -> StepResult:
        started_at = utcnow()

        if not self.should_run(ctx):
            logger.info(f"Skipping step '{self.name}'")
            return StepResult(
                name=self.name,
                status=StepStatus.SKIPPED,
                started_at=started_at,
                finished_at=started_at,
            )

        logger.info(f"Running step '{self.name}'")
        output = self.execute(ctx)

        return StepResult(
            name=self.name,
            status=StepStatus.SUCCEEDED,
            output=output,
            started_at=started_at,
            finished_at=utcnow(),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

class CommandStep(Step):
    """Runs one external command through a CommandExecutor."""

    def __init__(
        self,
        name: str,
        command: CommandSpec,
        executor,
        when: Optional[Guard] = None,
        timeout: Optional[int] = None,
        ignore_errors: bool = False,
    ):
        super().__init__(name, when=when)
        self.command = command
        self.executor = executor
        self.timeout = timeout
        self.ignore_errors = ignore_errors

    def build_command(self, ctx: ExecutionContext) -> List[str]:
        if callable(self.command):
            return list(self.command(ctx))
        return [ctx.render(arg) for arg in self.command]

    def execute(self, ctx: ExecutionContext) -> CommandOutput:
        command = self.build_command(ctx)

        try:
            output = self.executor.execute(
                command,
                cwd=ctx.workspace,
                env=ctx.as_env(),
                timeout=self.timeout,
            )
        except CommandError as e:
            if not self.ignore_errors:
                raise
            logger.warning(f"Ignoring failure of step '{self.name}': {e}")
            return CommandOutput(exit_code=e.exit_code, stdout=e.stdout, stderr=e.stderr)

        if not output.ok:
            if self.ignore_errors:
                logger.warning(f"Step '{self.name}' exited with {output.exit_code}, continuing")
                return output
            raise CommandError(command, output.exit_code, output.stdout, output.stderr)

        return output

class PollingStep(Step):
    """Repeats ``check`` until it passes or the deadline elapses."""

    def __init__(
        self,
        name: str,
        check: Callable[[ExecutionContext], bool],
        deadline: float,
        interval: float,
        initial_delay: float = 0.0,
        when: Optional[Guard] = None,
        description: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(name, when=when)
        self.check = check
        self.deadline = deadline
        self.interval = interval
        self.initial_delay = initial_delay
        self.description = description or name
        self.clock = clock
        self.sleep = sleep

    def execute(self, ctx: ExecutionContext) -> CommandOutput:
        attempts = poll_until(
            lambda: self.check(ctx),
            deadline=self.deadline,
            interval=self.interval,
            initial_delay=self.initial_delay,
            description=self.description,
            clock=self.clock,
            sleep=self.sleep,
            cancelled=lambda: ctx.cancelled,
        )
        return CommandOutput(exit_code=0, stdout=f"ready after {attempts} attempt(s)")
