# app/api/dto/__init__.py

from .test_suite_dto import (
    RunSuiteRequest,
    TestSuiteListResponse,
    TestSuiteRunResponse,
    TestSuiteSummaryResponse,
)

__all__ = [
    "RunSuiteRequest",
    "TestSuiteListResponse",
    "TestSuiteRunResponse",
    "TestSuiteSummaryResponse",
]
