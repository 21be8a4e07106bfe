"""
Per-run execution context shared by every step of a single pipeline run.
"""

import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from runner.src.core.errors import InvalidParameterError, MissingParameterError

MASK = "****"

# Only the braced form is a placeholder; $HOME or $1 pass through untouched
PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)

class ExecutionContext:
    """
    Mutable key-value environment owned by the runner for one run.

    ``params`` is the immutable resolved parameter mapping. ``values`` starts
    as a string rendering of the parameters and collects values computed
    while the run progresses (commit id, image tag, ...). Secrets are kept
    apart so they can be masked in logs.
    """

    def __init__(
        self,
        run_id: str,
        params: Mapping[str, Any],
        workspace: Union[str, Path] = ".",
        cancel_event: Optional[threading.Event] = None,
    ):
        self.run_id = run_id
        self.params = params
        self.workspace = Path(workspace)
        self.cancel_event = cancel_event or threading.Event()
        self.values: Dict[str, str] = {k: stringify(v) for k, v in params.items()}
        self._secrets: Dict[str, str] = {}

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = stringify(value)

    def require(self, key: str) -> str:
        if key in self.values:
            return self.values[key]
        if key in self._secrets:
            return self._secrets[key]
        raise MissingParameterError(key)

    def param(self, name: str) -> Any:
        """Typed value of a resolved parameter."""
        if name not in self.params:
            raise MissingParameterError(name)
        return self.params[name]

    def flag(self, name: str) -> bool:
        value = self.param(name)
        if not isinstance(value, bool):
            raise InvalidParameterError(name, value, "boolean")
        return value

    def render(self, template: str) -> str:
        """Substitute ``${NAME}`` references from values and secrets."""
        values = {**self.values, **self._secrets}

        def replace(match):
            name = match.group(1)
            if name not in values:
                raise MissingParameterError(name)
            return values[name]

        return PLACEHOLDER.sub(replace, template)

    def add_secret(self, key: str, value: str) -> None:
        self._secrets[key] = value

    def secret(self, key: str) -> str:
        if key not in self._secrets:
            raise MissingParameterError(key)
        return self._secrets[key]

    @property
    def secret_values(self) -> List[str]:
        return [v for v in self._secrets.values() if v]

    def mask(self, text: str) -> str:
        # Longest first so a secret containing another is fully hidden
        for value in sorted(self.secret_values, key=len, reverse=True):
            text = text.replace(value, MASK)
        return text

    def as_env(self) -> Dict[str, str]:
        """Values plus secrets, for child process environments."""
        env = dict(self.values)
        env.update(self._secrets)
        return env
