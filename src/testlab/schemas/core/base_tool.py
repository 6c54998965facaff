# schemas/core/base_tool.py

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ToolInput(BaseModel):
    """Base of every executor input model."""

    model_config = ConfigDict(extra="forbid")


class ToolOutput(BaseModel):
    """Base of every executor output model.

    ``success=False`` with ``error_message`` describes a failure the executor
    handled itself (transport error, invalid flow, failed run).
    """

    success: bool = Field(default=True, description="Whether the execution succeeded")
    error_message: Optional[str] = Field(
        default=None, description="What went wrong when ``success`` is false"
    )
    execution_time: Optional[float] = Field(
        default=None, description="Wall time of ``execute`` in seconds"
    )
