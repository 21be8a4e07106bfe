from runner.src.core.errors import (
    PipelineError,
    PipelineConfigError,
    CommandError,
    MissingParameterError,
    UnknownParameterError,
    InvalidParameterError,
    PollingTimeoutError,
    StageError,
    InvalidTransitionError,
    RunCancelled,
)
from runner.src.core.context import ExecutionContext
from runner.src.core.parameters import resolve_parameters, parse_overrides
from runner.src.core.polling import poll_until
from runner.src.core.step import Step, CommandStep, PollingStep
from runner.src.core.stage import Stage
from runner.src.core.pipeline import Pipeline, PostCondition
from runner.src.core.runner import Runner

__all__ = [
    "PipelineError",
    "PipelineConfigError",
    "CommandError",
    "MissingParameterError",
    "UnknownParameterError",
    "InvalidParameterError",
    "PollingTimeoutError",
    "StageError",
    "InvalidTransitionError",
    "RunCancelled",
    "ExecutionContext",
    "resolve_parameters",
    "parse_overrides",
    "poll_until",
    "Step",
    "CommandStep",
    "PollingStep",
    "Stage",
    "Pipeline",
    "PostCondition",
    "Runner",
]
