from runner.src.models.step import (
    StepStatus,
    CommandOutput,
    StepResult,
)
from runner.src.models.run import (
    RunStatus,
    RunResult,
)
from runner.src.models.parameter import (
    ParameterType,
    ParameterSpec,
)

__all__ = [
    "StepStatus",
    "CommandOutput",
    "StepResult",
    "RunStatus",
    "RunResult",
    "ParameterType",
    "ParameterSpec",
]
