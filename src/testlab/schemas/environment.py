# schemas/environment.py

from typing import List, Literal
from pydantic import BaseModel, Field


class EnvironmentVariable(BaseModel):
    key: str
    value: str = ""
    type: Literal["default", "secret"] = "default"
    enabled: bool = True


class Environment(BaseModel):
    """Named, ordered set of variables. The one named "global" is the base tier."""

    id: str
    name: str = ""
    values: List[EnvironmentVariable] = Field(default_factory=list)
