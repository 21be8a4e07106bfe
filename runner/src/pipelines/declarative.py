"""
Build a Pipeline from a validated YAML pipeline definition.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from runner.src.core.guards import all_of, file_exists, param_is
from runner.src.core.parameters import coerce_value
from runner.src.core.pipeline import Pipeline, PostCondition
from runner.src.core.stage import Stage
from runner.src.core.step import CommandStep, PollingStep, Step
from runner.src.models.parameter import ParameterSpec
from runner.src.services.health import HttpHealthCheck
from runner.src.services.pipeline_parser import load_pipeline_file

def build_pipeline(
    definition: Dict[str, Any],
    executor,
    http_client=None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Pipeline:
    """``definition`` is the output of ``parse_pipeline_config``."""
    parameters = [ParameterSpec(**p) for p in definition["parameters"]]
    specs = {p.name: p for p in parameters}

    def guard(when: Optional[Dict[str, Any]]):
        if when is None:
            return None
        guards = []
        if "param" in when:
            expected = when["equals"]
            spec = specs.get(when["param"])
            if spec is not None:
                expected = coerce_value(spec, expected)
            guards.append(param_is(when["param"], expected))
        if "file_exists" in when:
            guards.append(file_exists(when["file_exists"]))
        return guards[0] if len(guards) == 1 else all_of(*guards)

    def step(config: Dict[str, Any]) -> Step:
        if "run" in config:
            return CommandStep(
                config["name"],
                config["run"],
                executor,
                when=guard(config["when"]),
                timeout=config["timeout"],
                ignore_errors=config["ignore_errors"],
            )

        wait_for = config["wait_for"]

        def check(ctx):
            url = ctx.render(wait_for["url"])
            return HttpHealthCheck(url, timeout=wait_for["timeout"], client=http_client).check()

        return PollingStep(
            config["name"],
            check,
            deadline=wait_for["deadline"],
            interval=wait_for["interval"],
            initial_delay=wait_for["initial_delay"],
            when=guard(config["when"]),
            description=wait_for["url"],
            clock=clock,
            sleep=sleep,
        )

    stages: List[Stage] = [
        Stage(s["name"], [step(c) for c in s["steps"]], when=guard(s["when"]))
        for s in definition["stages"]
    ]

    post = {
        PostCondition(condition): Stage(f"post:{condition}", [step(c) for c in steps])
        for condition, steps in definition["post"].items()
    }

    return Pipeline(definition["name"], stages, parameters=parameters, post=post)

def load_pipeline(path: str, executor, **kwargs) -> Pipeline:
    return build_pipeline(load_pipeline_file(path), executor, **kwargs)
