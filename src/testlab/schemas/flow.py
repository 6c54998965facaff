# schemas/flow.py

from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from .tools.rest_api_caller import ResponseRecord
from .validation import ValidationResult

ConnectorCondition = Literal[
    "success", "failure", "validation_pass", "validation_fail", "any"
]

FlowNodeStatus = Literal["idle", "running", "success", "failed", "skipped"]

FlowRunStatus = Literal["idle", "running", "success", "failed", "cancelled"]


class FlowNode(BaseModel):
    id: str
    alias: str = Field(..., description="Name used by downstream {{alias.$body...}} refs")
    request_id: str = Field(..., description="Reference of the request template")
    name: str = ""


class FlowConnector(BaseModel):
    id: str
    source_node_id: str
    target_node_id: str
    condition: ConnectorCondition = "success"


class Flow(BaseModel):
    """Small DAG of request nodes joined by conditional connectors."""

    id: str
    name: str = ""
    nodes: List[FlowNode] = Field(default_factory=list)
    connectors: List[FlowConnector] = Field(default_factory=list)
    default_auth_id: Optional[str] = None
    default_env_id: Optional[str] = None


class FlowNodeResult(BaseModel):
    node_id: str
    request_id: str
    alias: str
    status: FlowNodeStatus = "idle"
    response: Optional[ResponseRecord] = None
    validation_result: Optional[ValidationResult] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class FlowRunProgress(BaseModel):
    total: int = 0
    completed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


class FlowRunResult(BaseModel):
    flow_id: str
    status: FlowRunStatus = "idle"
    node_results: Dict[str, FlowNodeResult] = Field(default_factory=dict)
    active_connector_ids: List[str] = Field(default_factory=list)
    skipped_connector_ids: List[str] = Field(default_factory=list)
    progress: FlowRunProgress = Field(default_factory=FlowRunProgress)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
