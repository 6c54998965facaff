# tools/__init__.py

from .rest_api_caller import RestApiCallerTool
from .flow_runner import FlowRunnerTool
from .test_suite_runner import TestSuiteRunnerTool

__all__ = [
    "RestApiCallerTool",
    "FlowRunnerTool",
    "TestSuiteRunnerTool",
]
