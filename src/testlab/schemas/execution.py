# schemas/execution.py

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from .flow import FlowRunResult
from .run_result import TestStatus, ValidationStatus
from .test_suite import TestCaseData
from .tools.rest_api_caller import ResponseRecord
from .validation import RequestValidation, ValidationResult


class Invocation(BaseModel):
    """One concrete unit of work dispatched to the HTTP or flow executor."""

    sequence: int = Field(..., description="Position in the flattened run")
    item_id: str
    item_type: Literal["request", "flow"]
    reference_id: str
    test_case_id: Optional[str] = None
    test_case_name: Optional[str] = None
    override_data: Optional[TestCaseData] = None
    effective_validation: Optional[RequestValidation] = Field(
        default=None, description="Validation applied to the response (request items)"
    )


class InvocationResult(BaseModel):
    invocation: Invocation
    status: TestStatus
    validation_status: ValidationStatus = ValidationStatus.IDLE
    response: Optional[ResponseRecord] = None
    validation_result: Optional[ValidationResult] = None
    flow_result: Optional[FlowRunResult] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_failure(self) -> bool:
        return (
            self.status == TestStatus.FAILED
            or self.validation_status == ValidationStatus.FAIL
        )


class PlannedItem(BaseModel):
    """Layout of one enabled item, used to pre-populate result placement."""

    item_id: str
    item_type: Literal["request", "flow"]
    test_case_ids: List[str] = Field(default_factory=list)
    test_case_names: List[str] = Field(default_factory=list)
    skipped: bool = Field(
        default=False, description="Every test case disabled; item is not run"
    )


class RunStarted(BaseModel):
    kind: Literal["run_started"] = "run_started"
    suite_id: str
    items: List[PlannedItem] = Field(default_factory=list)
    total: int = 0
    at: datetime


class InvocationStarted(BaseModel):
    kind: Literal["invocation_started"] = "invocation_started"
    invocation: Invocation
    at: datetime


class InvocationRecorded(BaseModel):
    kind: Literal["invocation_recorded"] = "invocation_recorded"
    result: InvocationResult


class RunFinished(BaseModel):
    kind: Literal["run_finished"] = "run_finished"
    status: Literal["success", "failed", "cancelled"]
    error: Optional[str] = None
    at: datetime


RunEvent = Annotated[
    Union[RunStarted, InvocationStarted, InvocationRecorded, RunFinished],
    Field(discriminator="kind"),
]
