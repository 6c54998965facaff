# schemas/tools/flow_runner.py

from typing import List, Optional
from pydantic import BaseModel, Field

from ..core.base_tool import ToolInput, ToolOutput
from ..auth import Auth
from ..collection import Collection
from ..environment import Environment
from ..flow import Flow, FlowRunResult
from ..validation import ValidationRule


class FlowRunContext(BaseModel):
    """Entities a flow needs to resolve and run its nodes."""

    collections: List[Collection] = Field(default_factory=list)
    environments: List[Environment] = Field(default_factory=list)
    environment_id: Optional[str] = None
    auths: List[Auth] = Field(default_factory=list)
    default_auth_id: Optional[str] = None
    global_rules: List[ValidationRule] = Field(default_factory=list)


class FlowRunnerInput(ToolInput):
    flow: Flow
    context: FlowRunContext = Field(default_factory=FlowRunContext)


class FlowRunnerOutput(ToolOutput):
    result: FlowRunResult
