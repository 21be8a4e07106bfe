from pydantic import BaseModel
from typing import Optional, Union
from enum import Enum

class ParameterType(str, Enum):
    BOOLEAN = "boolean"
    STRING = "string"

class ParameterSpec(BaseModel):
    """A pipeline input. ``default=None`` means the parameter has no default."""

    name: str
    type: ParameterType = ParameterType.STRING
    default: Optional[Union[bool, str]] = None
    description: str = ""

    model_config = {"frozen": True}
