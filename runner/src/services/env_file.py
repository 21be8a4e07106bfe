"""
Generated environment file consumed by docker compose.
"""

import logging
import os
import re
from pathlib import Path
from typing import Mapping, Union

from runner.src.core.errors import PipelineConfigError

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

def render_env_file(values: Mapping[str, str]) -> str:
    """One ``KEY=VALUE`` pair per line, in insertion order."""
    lines = []
    for key, value in values.items():
        if not KEY_PATTERN.match(key):
            raise PipelineConfigError(f"Invalid environment variable name: {key!r}")
        value = "" if value is None else str(value)
        if "\n" in value or "\r" in value:
            raise PipelineConfigError(f"Value of {key} must not contain newlines")
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n" if lines else ""

def write_env_file(path: Union[str, Path], values: Mapping[str, str]) -> Path:
    """Rewrite the env file from scratch. Readable by the owner only."""
    path = Path(path)
    content = render_env_file(values)

    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(content)
    os.chmod(path, 0o600)

    logger.info(f"Wrote {len(values)} variables to {path}")
    return path
