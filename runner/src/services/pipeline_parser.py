"""
Pipeline YAML parser and validator.
"""

import shlex
import yaml
from typing import List, Dict, Any, Optional

from runner.src.core.errors import PipelineConfigError

PARAMETER_TYPES = ("boolean", "string")
POST_CONDITIONS = ("success", "failure", "always")

def parse_pipeline_config(yaml_content: str) -> Dict[str, Any]:
    """Parse pipeline YAML configuration from string."""
    try:
        config = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise PipelineConfigError(f"Invalid YAML: {e}")

    return validate_config(config)

def parse_pipeline_dict(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate pipeline configuration from dict."""
    return validate_config(config)

def load_pipeline_file(path: str) -> Dict[str, Any]:
    """Read and validate a pipeline file."""
    try:
        with open(path, "r") as f:
            content = f.read()
    except OSError as e:
        raise PipelineConfigError(f"Cannot read pipeline file {path}: {e}")
    return parse_pipeline_config(content)

def validate_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Validate pipeline configuration structure."""
    if not config:
        raise PipelineConfigError("Empty pipeline configuration")

    if not isinstance(config, dict):
        raise PipelineConfigError("Pipeline configuration must be a dictionary")

    name = config.get("name", "Unnamed Pipeline")
    if not isinstance(name, str):
        raise PipelineConfigError("Pipeline 'name' must be a string")

    if "stages" not in config:
        raise PipelineConfigError("Pipeline must have 'stages' defined")

    stages = config["stages"]
    if not isinstance(stages, list):
        raise PipelineConfigError("Pipeline 'stages' must be a list")

    if len(stages) == 0:
        raise PipelineConfigError("Pipeline must have at least one stage")

    parameters = validate_parameters(config.get("parameters", []))

    return {
        "name": name,
        "parameters": parameters,
        "stages": [validate_stage(stage, i) for i, stage in enumerate(stages)],
        "post": validate_post(config.get("post", {})),
    }

def validate_parameters(parameters: Any) -> List[Dict[str, Any]]:
    if not isinstance(parameters, list):
        raise PipelineConfigError("Pipeline 'parameters' must be a list")

    validated = []
    seen = set()
    for i, param in enumerate(parameters):
        if not isinstance(param, dict):
            raise PipelineConfigError(f"Parameter {i} must be a dictionary")
        if "name" not in param or not isinstance(param["name"], str):
            raise PipelineConfigError(f"Parameter {i} missing 'name'")
        if param["name"] in seen:
            raise PipelineConfigError(f"Duplicate parameter '{param['name']}'")
        seen.add(param["name"])

        param_type = param.get("type", "string")
        if param_type not in PARAMETER_TYPES:
            raise PipelineConfigError(
                f"Parameter '{param['name']}' type must be one of {', '.join(PARAMETER_TYPES)}"
            )

        default = param.get("default")
        if default is not None and not isinstance(default, (bool, str, int, float)):
            raise PipelineConfigError(f"Parameter '{param['name']}' default must be a scalar")
        if default is not None and not isinstance(default, bool):
            default = str(default)

        validated.append({
            "name": param["name"],
            "type": param_type,
            "default": default,
            "description": str(param.get("description", "")),
        })

    return validated

def validate_stage(stage: Dict[str, Any], index: int) -> Dict[str, Any]:
    """Validate a single pipeline stage."""
    if not isinstance(stage, dict):
        raise PipelineConfigError(f"Stage {index} must be a dictionary")

    if "name" not in stage:
        raise PipelineConfigError(f"Stage {index} missing 'name'")

    if not isinstance(stage["name"], str):
        raise PipelineConfigError(f"Stage {index} 'name' must be a string")

    if "steps" not in stage:
        raise PipelineConfigError(f"Stage '{stage['name']}' missing 'steps'")

    steps = stage["steps"]
    if not isinstance(steps, list) or len(steps) == 0:
        raise PipelineConfigError(f"Stage '{stage['name']}' 'steps' must be a non-empty list")

    return {
        "name": stage["name"],
        "when": validate_when(stage.get("when"), f"Stage '{stage['name']}'"),
        "steps": [validate_step(step, i, stage["name"]) for i, step in enumerate(steps)],
    }

def validate_post(post: Any) -> Dict[str, List[Dict[str, Any]]]:
    if not isinstance(post, dict):
        raise PipelineConfigError("Pipeline 'post' must be a dictionary")

    validated = {}
    for condition, steps in post.items():
        if condition not in POST_CONDITIONS:
            raise PipelineConfigError(
                f"Unknown post condition '{condition}', expected one of {', '.join(POST_CONDITIONS)}"
            )
        if not isinstance(steps, list):
            raise PipelineConfigError(f"Post '{condition}' must be a list of steps")
        validated[condition] = [
            validate_step(step, i, f"post {condition}") for i, step in enumerate(steps)
        ]

    return validated

def validate_step(step: Dict[str, Any], index: int, stage_name: str = "") -> Dict[str, Any]:
    """Validate a single pipeline step."""
    where = f"Step {index} of {stage_name}" if stage_name else f"Step {index}"

    if not isinstance(step, dict):
        raise PipelineConfigError(f"{where} must be a dictionary")

    # Required fields
    if "name" not in step:
        raise PipelineConfigError(f"{where} missing 'name'")

    if not isinstance(step["name"], str):
        raise PipelineConfigError(f"{where} 'name' must be a string")

    has_run = "run" in step
    has_wait = "wait_for" in step
    if has_run == has_wait:
        raise PipelineConfigError(f"{where} needs exactly one of 'run' or 'wait_for'")

    validated = {
        "name": step["name"],
        "when": validate_when(step.get("when"), where),
        "ignore_errors": step.get("ignore_errors", False),
        "timeout": step.get("timeout"),
    }

    if not isinstance(validated["ignore_errors"], bool):
        raise PipelineConfigError(f"{where} 'ignore_errors' must be a boolean")

    timeout = validated["timeout"]
    if timeout is not None and (not isinstance(timeout, int) or isinstance(timeout, bool)):
        raise PipelineConfigError(f"{where} 'timeout' must be an integer")

    if has_run:
        validated["run"] = validate_command(step["run"], where)
    else:
        validated["wait_for"] = validate_wait_for(step["wait_for"], where)

    return validated

def validate_command(command: Any, where: str) -> List[str]:
    if isinstance(command, str):
        try:
            command = shlex.split(command)
        except ValueError as e:
            raise PipelineConfigError(f"{where} 'run' is not a valid command: {e}")

    if not isinstance(command, list) or len(command) == 0:
        raise PipelineConfigError(f"{where} 'run' must be a non-empty list or string")

    for j, arg in enumerate(command):
        if not isinstance(arg, (str, int, float)) or isinstance(arg, bool):
            raise PipelineConfigError(f"{where} argument {j} must be a string")

    return [str(arg) for arg in command]

def validate_wait_for(wait_for: Any, where: str) -> Dict[str, Any]:
    if not isinstance(wait_for, dict):
        raise PipelineConfigError(f"{where} 'wait_for' must be a dictionary")

    if "url" not in wait_for or not isinstance(wait_for["url"], str):
        raise PipelineConfigError(f"{where} 'wait_for' missing 'url'")

    validated = {"url": wait_for["url"]}
    for key, default in (("deadline", 60), ("interval", 2), ("initial_delay", 0), ("timeout", 5)):
        value = wait_for.get(key, default)
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
            raise PipelineConfigError(f"{where} 'wait_for.{key}' must be a non-negative number")
        validated[key] = value

    if validated["deadline"] <= 0 or validated["interval"] <= 0:
        raise PipelineConfigError(f"{where} 'wait_for' deadline and interval must be positive")

    return validated

def validate_when(when: Any, where: str) -> Optional[Dict[str, Any]]:
    """Validate a guard: ``{param, equals}`` and/or ``{file_exists}``."""
    if when is None:
        return None

    if not isinstance(when, dict):
        raise PipelineConfigError(f"{where} 'when' must be a dictionary")

    unknown = set(when) - {"param", "equals", "file_exists"}
    if unknown:
        raise PipelineConfigError(f"{where} 'when' has unknown keys: {', '.join(sorted(unknown))}")

    if "equals" in when and "param" not in when:
        raise PipelineConfigError(f"{where} 'when.equals' requires 'when.param'")

    if "param" not in when and "file_exists" not in when:
        raise PipelineConfigError(f"{where} 'when' needs 'param' or 'file_exists'")

    validated = {}
    if "param" in when:
        validated["param"] = str(when["param"])
        validated["equals"] = when.get("equals", True)
    if "file_exists" in when:
        validated["file_exists"] = str(when["file_exists"])

    return validated
