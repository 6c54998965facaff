# schemas/tools/test_suite_runner.py

from typing import List, Optional
from pydantic import Field

from ..core.base_tool import ToolInput, ToolOutput
from ..auth import Auth
from ..collection import Collection
from ..environment import Environment
from ..flow import Flow
from ..run_result import TestSuiteRunResult
from ..test_suite import TestSuite
from ..validation import ValidationRule


class TestSuiteRunnerInput(ToolInput):
    suite: TestSuite = Field(..., description="Suite to execute")
    collections: List[Collection] = Field(default_factory=list)
    flows: List[Flow] = Field(default_factory=list)
    environments: List[Environment] = Field(default_factory=list)
    auths: List[Auth] = Field(default_factory=list)
    environment_id: Optional[str] = Field(
        default=None, description="Active environment; defaults to the suite's"
    )
    auth_id: Optional[str] = Field(
        default=None, description="Default auth profile; defaults to the suite's"
    )
    global_rules: List[ValidationRule] = Field(
        default_factory=list, description="Rules referenced by id from validations"
    )


class TestSuiteRunnerOutput(ToolOutput):
    result: TestSuiteRunResult
