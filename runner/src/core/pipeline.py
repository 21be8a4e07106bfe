"""
Pipeline definition and its run-status state machine.
"""

from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Sequence, Set

from runner.src.core.errors import InvalidTransitionError, PipelineConfigError
from runner.src.core.stage import Stage
from runner.src.models.parameter import ParameterSpec
from runner.src.models.run import RunStatus

class PostCondition(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ALWAYS = "always"

VALID_TRANSITIONS: Dict[RunStatus, Set[RunStatus]] = {
    RunStatus.PENDING: {RunStatus.RUNNING},
    RunStatus.RUNNING: {RunStatus.SUCCEEDED, RunStatus.FAILED, RunStatus.CANCELLED},
    RunStatus.SUCCEEDED: set(),  # terminal
    RunStatus.FAILED: set(),
    RunStatus.CANCELLED: set(),
}

def validate_transition(current: RunStatus, target: RunStatus) -> bool:
    return target in VALID_TRANSITIONS[current]

class Pipeline:
    """
    Ordered stages plus post handlers. A Pipeline instance is run once and
    then discarded.
    """

    def __init__(
        self,
        name: str,
        stages: Sequence[Stage],
        parameters: Iterable[ParameterSpec] = (),
        post: Optional[Mapping[PostCondition, Stage]] = None,
    ):
        self.name = name
        self.stages = list(stages)
        self.parameters = list(parameters)
        self.post: Dict[PostCondition, Stage] = {
            PostCondition(k): v for k, v in (post or {}).items()
        }
        self.status = RunStatus.PENDING

        seen = set()
        for spec in self.parameters:
            if spec.name in seen:
                raise PipelineConfigError(f"Duplicate parameter '{spec.name}'")
            seen.add(spec.name)

    def handler(self, condition: PostCondition) -> Optional[Stage]:
        return self.post.get(condition)

    def transition(self, target: RunStatus) -> None:
        if not validate_transition(self.status, target):
            raise InvalidTransitionError(self.status, target)
        self.status = target

    @property
    def finished(self) -> bool:
        return not VALID_TRANSITIONS[self.status]

    def __repr__(self) -> str:
        return f"Pipeline({self.name!r}, stages={[s.name for s in self.stages]})"
