# tools/test_suite_runner.py

import inspect
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Union

from ..config.constants import ERROR_MESSAGES
from ..core import BaseTool
from ..domain.ports.flow_executor import FlowExecutorInterface
from ..domain.ports.http_executor import HttpExecutorInterface
from ..engine import collection_lookup
from ..engine.batch_scheduler import BatchScheduler, CancellationToken
from ..engine.request_pipeline import RequestPipeline
from ..engine.result_aggregator import ResultAggregator, flow_validation_status
from ..engine.test_case_expander import SuitePlan, expand_suite
from ..schemas.auth import Auth
from ..schemas.collection import Collection
from ..schemas.environment import Environment
from ..schemas.execution import (
    Invocation,
    InvocationRecorded,
    InvocationResult,
    InvocationStarted,
    RunEvent,
    RunFinished,
    RunStarted,
)
from ..schemas.flow import Flow
from ..schemas.run_result import TestStatus, TestSuiteRunResult
from ..schemas.test_suite import RequestTestItem, TestSuite
from ..schemas.tools.flow_runner import FlowRunContext
from ..schemas.tools.test_suite_runner import TestSuiteRunnerInput, TestSuiteRunnerOutput
from ..schemas.validation import RequestValidation, ValidationRule

ProgressCallback = Callable[[TestSuiteRunResult], Union[None, Awaitable[None]]]

_FLOW_STATUS = {
    "success": TestStatus.SUCCESS,
    "failed": TestStatus.FAILED,
    "cancelled": TestStatus.SKIPPED,
}


class _RunContext:
    """Entities shared by every invocation of one run."""

    def __init__(
        self,
        suite: TestSuite,
        collections: Sequence[Collection],
        flows: Sequence[Flow],
        environments: Sequence[Environment],
        auths: Sequence[Auth],
        environment_id: Optional[str],
        auth_id: Optional[str],
        global_rules: Sequence[ValidationRule],
    ):
        self.suite = suite
        self.collections = list(collections)
        self.flows = list(flows)
        self.environments = list(environments)
        self.auths = list(auths)
        self.environment_id = environment_id or suite.default_env_id
        self.default_auth_id = auth_id or suite.default_auth_id
        self.global_rules = list(global_rules)
        self.rules_by_id = {r.id: r for r in global_rules}
        self.items = {item.id: item for item in suite.items}


class TestSuiteRunnerTool(BaseTool):
    """
    Runs a test suite: expands items into invocations, dispatches them in
    batches and folds every outcome into a single run state.

    One instance drives one run at a time. ``state`` can be read while the
    run is in progress; ``cancel()`` stops it at the next batch boundary.
    """

    def __init__(
        self,
        http_executor: HttpExecutorInterface,
        flow_executor: Optional[FlowExecutorInterface] = None,
        *,
        name: str = "test_suite_runner",
        description: str = "Executes test suites of saved requests and flows",
        config: Optional[dict] = None,
        verbose: bool = False,
    ):
        super().__init__(
            name=name,
            description=description,
            input_schema=TestSuiteRunnerInput,
            output_schema=TestSuiteRunnerOutput,
            config=config,
            verbose=verbose,
        )
        self.http_executor = http_executor
        self.flow_executor = flow_executor
        self.pipeline = RequestPipeline(http_executor, logger=self.logger)
        self._aggregator: Optional[ResultAggregator] = None
        self._token: Optional[CancellationToken] = None
        self._on_progress: Optional[ProgressCallback] = None

    @property
    def state(self) -> Optional[TestSuiteRunResult]:
        return self._aggregator.state if self._aggregator is not None else None

    @property
    def is_running(self) -> bool:
        return self._token is not None

    def cancel(self) -> None:
        if self._token is not None:
            self.logger.info("Cancellation requested")
            self._token.cancel()

    def reset(self) -> None:
        if self._aggregator is not None:
            self._aggregator.reset()

    async def _execute(self, inp: TestSuiteRunnerInput) -> TestSuiteRunnerOutput:
        result = await self.run_suite(
            inp.suite,
            collections=inp.collections,
            flows=inp.flows,
            environments=inp.environments,
            auths=inp.auths,
            environment_id=inp.environment_id,
            auth_id=inp.auth_id,
            global_rules=inp.global_rules,
        )
        return TestSuiteRunnerOutput(
            success=result.status.value == "success",
            error_message=result.error,
            result=result,
        )

    async def run_suite(
        self,
        suite: TestSuite,
        collections: Sequence[Collection] = (),
        flows: Sequence[Flow] = (),
        environments: Sequence[Environment] = (),
        auths: Sequence[Auth] = (),
        environment_id: Optional[str] = None,
        auth_id: Optional[str] = None,
        global_rules: Sequence[ValidationRule] = (),
        on_progress: Optional[ProgressCallback] = None,
    ) -> TestSuiteRunResult:
        ctx = _RunContext(
            suite,
            collections,
            flows,
            environments,
            auths,
            environment_id,
            auth_id,
            global_rules,
        )
        self._aggregator = ResultAggregator(suite.id)
        self._token = CancellationToken()
        self._on_progress = on_progress

        try:
            plan = self._plan(ctx)
            self.logger.info(
                f"Running test suite '{suite.name}' ({len(plan.invocations)} invocations, "
                f"batch size {suite.settings.concurrent_calls})"
            )
            await self._emit(
                RunStarted(
                    suite_id=suite.id,
                    items=plan.items,
                    total=len(plan.invocations) + len(plan.skipped_item_ids),
                    at=datetime.now(timezone.utc),
                )
            )

            if not plan.invocations:
                self.logger.warning(f"Test suite '{suite.name}' has nothing to run")
                await self._finish("failed", ERROR_MESSAGES["no_enabled_items"])
                return self.state

            scheduler = BatchScheduler(suite.settings, self._token, logger=self.logger)

            async def execute(invocation: Invocation) -> InvocationResult:
                return await self._execute_invocation(invocation, ctx)

            async def on_started(invocation: Invocation) -> None:
                await self._emit(
                    InvocationStarted(invocation=invocation, at=datetime.now(timezone.utc))
                )

            async def on_result(result: InvocationResult) -> None:
                await self._emit(InvocationRecorded(result=result))

            outcome = await scheduler.run(plan.invocations, execute, on_started, on_result)

            if outcome.cancelled:
                await self._finish("cancelled", ERROR_MESSAGES["cancelled"])
            elif outcome.any_failure:
                await self._finish("failed", ERROR_MESSAGES["tests_failed"])
            else:
                await self._finish("success", None)

            state = self.state
            self.logger.info(
                f"Test suite '{suite.name}' finished: {state.status.value} "
                f"(passed {state.progress.passed}, failed {state.progress.failed}, "
                f"skipped {state.progress.skipped}, avg {state.average_time}ms)"
            )
            return state
        finally:
            self._token = None
            self._on_progress = None

    def _plan(self, ctx: _RunContext) -> SuitePlan:
        fallbacks: Dict[str, Optional[RequestValidation]] = {}
        for item in ctx.suite.items:
            if isinstance(item, RequestTestItem):
                template = collection_lookup.find_request(ctx.collections, item.reference_id)
                if template is not None:
                    fallbacks[item.id] = template.validation
        return expand_suite(ctx.suite.items, fallbacks)

    async def _finish(self, status: str, error: Optional[str]) -> None:
        await self._emit(
            RunFinished(status=status, error=error, at=datetime.now(timezone.utc))
        )

    async def _emit(self, event: RunEvent) -> None:
        state = self._aggregator.record(event)
        if self._on_progress is not None:
            notified: Any = self._on_progress(state)
            if inspect.isawaitable(notified):
                await notified

    async def _execute_invocation(
        self, invocation: Invocation, ctx: _RunContext
    ) -> InvocationResult:
        if invocation.item_type == "flow":
            return await self._execute_flow(invocation, ctx)

        self.logger.debug(
            f"Invocation {invocation.sequence}: {invocation.reference_id}"
            + (f" [{invocation.test_case_name}]" if invocation.test_case_id else "")
        )
        template = collection_lookup.find_request(ctx.collections, invocation.reference_id)
        if template is None:
            now = datetime.now(timezone.utc)
            return InvocationResult(
                invocation=invocation,
                status=TestStatus.FAILED,
                error=ERROR_MESSAGES["request_not_found"].format(
                    reference_id=invocation.reference_id
                ),
                started_at=now,
                completed_at=now,
            )

        item = ctx.items.get(invocation.item_id)
        outcome = await self.pipeline.run(
            template,
            overrides=invocation.override_data,
            environments=ctx.environments,
            environment_id=ctx.environment_id,
            auths=ctx.auths,
            item_auth_id=getattr(item, "auth_id", None),
            default_auth_id=ctx.default_auth_id,
            validation=invocation.effective_validation,
            global_rules_by_id=ctx.rules_by_id,
        )
        return InvocationResult(
            invocation=invocation,
            status=outcome.status,
            validation_status=outcome.validation_status,
            response=outcome.response,
            validation_result=outcome.validation_result,
            error=outcome.error,
            started_at=outcome.started_at,
            completed_at=outcome.completed_at,
        )

    async def _execute_flow(
        self, invocation: Invocation, ctx: _RunContext
    ) -> InvocationResult:
        started_at = datetime.now(timezone.utc)
        flow = collection_lookup.find_flow(ctx.flows, invocation.reference_id)
        if flow is None or self.flow_executor is None:
            return InvocationResult(
                invocation=invocation,
                status=TestStatus.FAILED,
                error=ERROR_MESSAGES["flow_not_found"].format(
                    reference_id=invocation.reference_id
                ),
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
            )

        self.logger.debug(f"Invocation {invocation.sequence}: flow {flow.id}")
        flow_result = await self.flow_executor.run(
            flow,
            FlowRunContext(
                collections=ctx.collections,
                environments=ctx.environments,
                environment_id=ctx.environment_id,
                auths=ctx.auths,
                default_auth_id=ctx.default_auth_id,
                global_rules=ctx.global_rules,
            ),
            self._token,
        )
        return InvocationResult(
            invocation=invocation,
            status=_FLOW_STATUS.get(flow_result.status, TestStatus.FAILED),
            validation_status=flow_validation_status(flow_result),
            flow_result=flow_result,
            error=flow_result.error,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )

    async def cleanup(self) -> None:
        self.cancel()
        await super().cleanup()
