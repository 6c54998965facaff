# engine/result_aggregator.py

"""Run-state reducer.

``apply_event(state, event)`` is a pure transition; ``ResultAggregator`` holds
the current state and is the only writer of it. Results are keyed by item and
test-case id, so placement follows suite order whatever the completion order.
"""

from typing import Iterable, List, Optional

from ..schemas.execution import (
    InvocationRecorded,
    InvocationStarted,
    RunEvent,
    RunFinished,
    RunStarted,
)
from ..schemas.flow import FlowRunResult
from ..schemas.run_result import (
    FlowTestItemResult,
    RequestTestItemResult,
    RunProgress,
    SuiteRunStatus,
    TestCaseResult,
    TestStatus,
    TestSuiteRunResult,
    ValidationStatus,
)
from ..schemas.tools.rest_api_caller import ResponseRecord


def aggregate_status(statuses: Iterable[TestStatus]) -> TestStatus:
    statuses = list(statuses)
    if not statuses:
        return TestStatus.IDLE
    if any(s == TestStatus.FAILED for s in statuses):
        return TestStatus.FAILED
    if all(s == TestStatus.SKIPPED for s in statuses):
        return TestStatus.SKIPPED
    if all(s.is_terminal for s in statuses):
        return TestStatus.SUCCESS
    if all(s == TestStatus.IDLE for s in statuses):
        return TestStatus.IDLE
    return TestStatus.RUNNING


def aggregate_validation(statuses: Iterable[ValidationStatus]) -> ValidationStatus:
    statuses = list(statuses)
    if any(s == ValidationStatus.FAIL for s in statuses):
        return ValidationStatus.FAIL
    if any(s == ValidationStatus.PENDING for s in statuses):
        return ValidationStatus.PENDING
    if any(s == ValidationStatus.PASS for s in statuses):
        return ValidationStatus.PASS
    return ValidationStatus.IDLE


def flow_validation_status(flow_result: Optional[FlowRunResult]) -> ValidationStatus:
    if flow_result is None:
        return ValidationStatus.IDLE
    validations = [
        n.validation_result
        for n in flow_result.node_results.values()
        if n.validation_result is not None and n.validation_result.enabled
    ]
    if not validations:
        return ValidationStatus.IDLE
    if all(v.all_passed for v in validations):
        return ValidationStatus.PASS
    return ValidationStatus.FAIL


def _timed_responses(state: TestSuiteRunResult) -> List[ResponseRecord]:
    responses: List[ResponseRecord] = []
    for item in state.item_results.values():
        if isinstance(item, RequestTestItemResult):
            if item.test_case_results:
                responses.extend(
                    c.response for c in item.test_case_results.values() if c.response
                )
            elif item.response is not None:
                responses.append(item.response)
    return responses


def _average_time(state: TestSuiteRunResult) -> float:
    responses = _timed_responses(state)
    if not responses:
        return 0.0
    return round(sum(r.elapsed_time for r in responses) / len(responses), 2)


def _count(progress: RunProgress, status: TestStatus, validation: ValidationStatus) -> None:
    if status.is_terminal:
        progress.completed += 1
    if status == TestStatus.SUCCESS and validation != ValidationStatus.FAIL:
        progress.passed += 1
    if status == TestStatus.FAILED or validation == ValidationStatus.FAIL:
        progress.failed += 1
    if status == TestStatus.SKIPPED:
        progress.skipped += 1


def _on_run_started(event: RunStarted) -> TestSuiteRunResult:
    state = TestSuiteRunResult(
        suite_id=event.suite_id,
        status=SuiteRunStatus.RUNNING,
        progress=RunProgress(total=event.total),
        started_at=event.at,
    )
    for planned in event.items:
        if planned.item_type == "flow":
            item = FlowTestItemResult(item_id=planned.item_id)
        else:
            item = RequestTestItemResult(
                item_id=planned.item_id,
                test_case_results={
                    case_id: TestCaseResult(test_case_id=case_id, test_case_name=name)
                    for case_id, name in zip(
                        planned.test_case_ids, planned.test_case_names
                    )
                },
            )
        if planned.skipped:
            item.status = TestStatus.SKIPPED
            item.started_at = item.completed_at = event.at
            _count(state.progress, TestStatus.SKIPPED, ValidationStatus.IDLE)
        state.item_results[planned.item_id] = item
    return state


def _on_invocation_started(
    state: TestSuiteRunResult, event: InvocationStarted
) -> TestSuiteRunResult:
    invocation = event.invocation
    item = state.item_results.get(invocation.item_id)
    if item is None:
        return state

    if isinstance(item, RequestTestItemResult) and invocation.test_case_id:
        case = item.test_case_results.setdefault(
            invocation.test_case_id,
            TestCaseResult(
                test_case_id=invocation.test_case_id,
                test_case_name=invocation.test_case_name or "",
            ),
        )
        case.status = TestStatus.RUNNING
        case.validation_status = ValidationStatus.PENDING
        case.started_at = event.at
        _refresh_item_from_cases(item)
    else:
        item.status = TestStatus.RUNNING
        item.validation_status = ValidationStatus.PENDING
    if item.started_at is None:
        item.started_at = event.at
    return state


def _refresh_item_from_cases(item: RequestTestItemResult) -> None:
    cases = list(item.test_case_results.values())
    item.status = aggregate_status(c.status for c in cases)
    item.validation_status = aggregate_validation(c.validation_status for c in cases)


def _on_invocation_recorded(
    state: TestSuiteRunResult, event: InvocationRecorded
) -> TestSuiteRunResult:
    result = event.result
    invocation = result.invocation
    item = state.item_results.get(invocation.item_id)
    if item is None:
        return state

    validation_status = result.validation_status
    if isinstance(item, FlowTestItemResult):
        validation_status = flow_validation_status(result.flow_result)
        item.flow_result = result.flow_result
        item.status = result.status
        item.validation_status = validation_status
        item.error = result.error
    elif invocation.test_case_id:
        item.test_case_results[invocation.test_case_id] = TestCaseResult(
            test_case_id=invocation.test_case_id,
            test_case_name=invocation.test_case_name or "",
            status=result.status,
            validation_status=validation_status,
            response=result.response,
            validation_result=result.validation_result,
            error=result.error,
            started_at=result.started_at,
            completed_at=result.completed_at,
        )
        _refresh_item_from_cases(item)
        # item-level detail mirrors the case that landed last
        if result.status != TestStatus.SKIPPED:
            item.response = result.response
            item.validation_result = result.validation_result
            item.error = result.error
    else:
        item.status = result.status
        item.validation_status = validation_status
        item.response = result.response
        item.validation_result = result.validation_result
        item.error = result.error

    if item.status.is_terminal:
        item.completed_at = result.completed_at
    if item.started_at is None:
        item.started_at = result.started_at

    _count(state.progress, result.status, validation_status)
    state.average_time = _average_time(state)
    return state


def _on_run_finished(state: TestSuiteRunResult, event: RunFinished) -> TestSuiteRunResult:
    state.status = SuiteRunStatus(event.status)
    state.error = event.error
    state.completed_at = event.at
    return state


def apply_event(state: Optional[TestSuiteRunResult], event: RunEvent) -> TestSuiteRunResult:
    """Return the state after ``event``; the input state is never mutated."""
    if isinstance(event, RunStarted):
        return _on_run_started(event)
    if state is None:
        raise ValueError(f"'{event.kind}' received before 'run_started'")

    next_state = state.model_copy(deep=True)
    if isinstance(event, InvocationStarted):
        return _on_invocation_started(next_state, event)
    if isinstance(event, InvocationRecorded):
        return _on_invocation_recorded(next_state, event)
    if isinstance(event, RunFinished):
        return _on_run_finished(next_state, event)
    raise ValueError(f"Unknown run event: {event!r}")


def idle_state(suite_id: str) -> TestSuiteRunResult:
    return TestSuiteRunResult(suite_id=suite_id)


class ResultAggregator:
    """Holds the run state; every mutation goes through ``record``."""

    def __init__(self, suite_id: str):
        self.state: TestSuiteRunResult = idle_state(suite_id)

    def record(self, event: RunEvent) -> TestSuiteRunResult:
        self.state = apply_event(self.state, event)
        return self.state

    def reset(self) -> TestSuiteRunResult:
        self.state = idle_state(self.state.suite_id)
        return self.state
