"""
Pipeline error types.
"""

from typing import List, Optional, Sequence


class PipelineError(Exception):
    """Base class for every error raised by the runner."""


class PipelineConfigError(PipelineError):
    """Raised when a pipeline definition or one of its inputs is invalid."""


class CommandError(PipelineError):
    """An external command exited non-zero, could not be started, or timed out."""

    def __init__(
        self,
        command: Sequence[str],
        exit_code: Optional[int],
        stdout: str = "",
        stderr: str = "",
    ):
        self.command = list(command)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        msg = f"Command '{' '.join(self.command)}' "
        msg += f"exited with code {exit_code}" if exit_code is not None else "did not complete"
        last_line = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        if last_line:
            msg += f": {last_line}"
        super().__init__(msg)


class MissingParameterError(PipelineError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Parameter '{name}' has no value and no default")


class UnknownParameterError(PipelineError):
    def __init__(self, names: Sequence[str]):
        self.names = list(names)
        super().__init__(f"Unknown parameter(s): {', '.join(self.names)}")


class InvalidParameterError(PipelineError):
    def __init__(self, name: str, value: object, expected: str):
        self.name = name
        self.value = value
        self.expected = expected
        super().__init__(f"Parameter '{name}' expects a {expected}, got {value!r}")


class PollingTimeoutError(PipelineError, TimeoutError):
    """Bounded polling reached its deadline before the check succeeded."""

    def __init__(self, description: str, deadline: float, attempts: int):
        self.description = description
        self.deadline = deadline
        self.attempts = attempts
        super().__init__(
            f"Timed out after {deadline}s waiting for {description} ({attempts} attempts)"
        )


class StageError(PipelineError):
    """The first failing step of a stage.

    ``cause`` is the step's original exception and ``results`` holds the
    results recorded by the stage up to and including the failed step.
    """

    def __init__(self, stage: str, step: str, cause: BaseException, results: Optional[List] = None):
        self.stage = stage
        self.step = step
        self.cause = cause
        self.results = results or []
        super().__init__(f"Stage '{stage}' failed at step '{step}': {cause}")


class InvalidTransitionError(PipelineError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Invalid transition from {current.value} to {target.value}")


class RunCancelled(PipelineError):
    """The run was cancelled by the operator."""
