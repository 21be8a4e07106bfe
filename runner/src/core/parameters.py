"""
Resolve pipeline parameters against caller-supplied overrides.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from runner.src.core.errors import (
    InvalidParameterError,
    PipelineConfigError,
    UnknownParameterError,
)
from runner.src.models.parameter import ParameterSpec, ParameterType

_BOOL = TypeAdapter(bool)

def coerce_value(spec: ParameterSpec, value: Any) -> Any:
    """Convert a raw value (usually a CLI string) to the parameter's type."""
    if spec.type == ParameterType.BOOLEAN:
        try:
            return _BOOL.validate_python(value)
        except ValidationError:
            raise InvalidParameterError(spec.name, value, spec.type.value) from None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)

def resolve_parameters(
    specs: Iterable[ParameterSpec],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Mapping[str, Any]:
    """
    Resolve each declared parameter: override first, then default.
    Parameters with neither are left out; referencing them later raises
    MissingParameterError.
    """
    specs = list(specs)
    overrides = dict(overrides or {})

    known = {spec.name for spec in specs}
    unknown = sorted(name for name in overrides if name not in known)
    if unknown:
        raise UnknownParameterError(unknown)

    resolved: Dict[str, Any] = {}
    for spec in specs:
        if spec.name in overrides:
            resolved[spec.name] = coerce_value(spec, overrides[spec.name])
        elif spec.default is not None:
            resolved[spec.name] = coerce_value(spec, spec.default)

    return MappingProxyType(resolved)

def parse_overrides(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse ``NAME=VALUE`` strings from the command line."""
    overrides: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            raise PipelineConfigError(f"Invalid parameter '{pair}', expected NAME=VALUE")
        overrides[name] = value
    return overrides
