# schemas/run_result.py

from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, Literal, Optional, Union
from pydantic import BaseModel, Field

from .flow import FlowRunResult
from .tools.rest_api_caller import ResponseRecord
from .validation import ValidationResult


class SuiteRunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TestStatus(str, Enum):
    """Status of one item, test case or flow node."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (TestStatus.SUCCESS, TestStatus.FAILED, TestStatus.SKIPPED)


class ValidationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    PASS = "pass"
    FAIL = "fail"


class TestCaseResult(BaseModel):
    test_case_id: str
    test_case_name: str = ""
    status: TestStatus = TestStatus.IDLE
    validation_status: ValidationStatus = ValidationStatus.IDLE
    response: Optional[ResponseRecord] = None
    validation_result: Optional[ValidationResult] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class TestItemResultBase(BaseModel):
    item_id: str
    status: TestStatus = TestStatus.IDLE
    validation_status: ValidationStatus = ValidationStatus.IDLE
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class RequestTestItemResult(TestItemResultBase):
    type: Literal["request"] = "request"
    response: Optional[ResponseRecord] = None
    validation_result: Optional[ValidationResult] = None
    test_case_results: Dict[str, TestCaseResult] = Field(default_factory=dict)


class FlowTestItemResult(TestItemResultBase):
    type: Literal["flow"] = "flow"
    flow_result: Optional[FlowRunResult] = None


TestItemResult = Annotated[
    Union[RequestTestItemResult, FlowTestItemResult], Field(discriminator="type")
]


class RunProgress(BaseModel):
    total: int = 0
    completed: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0


class TestSuiteRunResult(BaseModel):
    suite_id: str
    status: SuiteRunStatus = SuiteRunStatus.IDLE
    item_results: Dict[str, TestItemResult] = Field(
        default_factory=dict, description="Keyed by item id, in suite order"
    )
    progress: RunProgress = Field(default_factory=RunProgress)
    average_time: float = Field(default=0.0, description="Mean response time in ms")
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
