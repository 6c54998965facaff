# engine/batch_scheduler.py

"""Batch execution policy: width, inter-batch delay, stop-on-failure, cancel.

Cancellation is cooperative. The token is checked before each batch is
dispatched and it cuts an inter-batch delay short; in-flight invocations are
never aborted.
"""

import asyncio
import math
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence

from pydantic import BaseModel

from ..common.logger import LoggerFactory, LoggerInterface, LoggerType
from ..config.constants import ERROR_MESSAGES
from ..schemas.execution import Invocation, InvocationResult
from ..schemas.run_result import TestStatus
from ..schemas.test_suite import TestSuiteSettings

ExecuteFn = Callable[[Invocation], Awaitable[InvocationResult]]
StartedFn = Callable[[Invocation], Awaitable[None]]
ResultFn = Callable[[InvocationResult], Awaitable[None]]


class CancellationToken:
    """Shared flag checked at batch boundaries."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``; True when cancellation ended the wait early."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False


class SchedulerOutcome(BaseModel):
    batches_total: int = 0
    batches_dispatched: int = 0
    cancelled: bool = False
    stopped_on_failure: bool = False
    any_failure: bool = False


def partition(invocations: Sequence[Invocation], size: int) -> List[List[Invocation]]:
    """Consecutive batches of ``size`` (minimum 1), order preserved."""
    size = max(1, size)
    return [list(invocations[i : i + size]) for i in range(0, len(invocations), size)]


def batch_count(invocation_count: int, size: int) -> int:
    return math.ceil(invocation_count / max(1, size))


def skipped_result(invocation: Invocation) -> InvocationResult:
    now = datetime.now(timezone.utc)
    return InvocationResult(
        invocation=invocation,
        status=TestStatus.SKIPPED,
        started_at=now,
        completed_at=now,
    )


class BatchScheduler:
    def __init__(
        self,
        settings: TestSuiteSettings,
        token: Optional[CancellationToken] = None,
        logger: Optional[LoggerInterface] = None,
    ):
        self.settings = settings
        self.token = token or CancellationToken()
        self.logger = logger or LoggerFactory.get_logger(
            name="engine.batch_scheduler", logger_type=LoggerType.STANDARD
        )

    async def _guarded(
        self, execute: ExecuteFn, invocation: Invocation, on_result: ResultFn
    ) -> InvocationResult:
        started_at = datetime.now(timezone.utc)
        try:
            result = await execute(invocation)
        except Exception as e:
            self.logger.exception(
                f"Invocation {invocation.sequence} ({invocation.item_id}) crashed"
            )
            result = InvocationResult(
                invocation=invocation,
                status=TestStatus.FAILED,
                error=ERROR_MESSAGES["unexpected"].format(error=e),
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
            )
        await on_result(result)
        return result

    async def _skip_all(
        self, batches: Sequence[List[Invocation]], on_result: ResultFn
    ) -> None:
        for batch in batches:
            for invocation in batch:
                await on_result(skipped_result(invocation))

    async def run(
        self,
        invocations: Sequence[Invocation],
        execute: ExecuteFn,
        on_started: StartedFn,
        on_result: ResultFn,
    ) -> SchedulerOutcome:
        batches = partition(invocations, self.settings.concurrent_calls)
        outcome = SchedulerOutcome(batches_total=len(batches))
        delay_seconds = self.settings.delay_between_calls / 1000

        for index, batch in enumerate(batches):
            if self.token.cancelled:
                self.logger.info(f"Cancelled before batch {index + 1}/{len(batches)}")
                outcome.cancelled = True
                await self._skip_all(batches[index:], on_result)
                break

            self.logger.debug(
                f"Dispatching batch {index + 1}/{len(batches)} ({len(batch)} invocations)"
            )
            for invocation in batch:
                await on_started(invocation)
            results = await asyncio.gather(
                *(self._guarded(execute, inv, on_result) for inv in batch)
            )
            outcome.batches_dispatched += 1

            batch_failed = any(r.is_failure for r in results)
            outcome.any_failure = outcome.any_failure or batch_failed
            is_last = index == len(batches) - 1

            if batch_failed and self.settings.stop_on_failure and not is_last:
                self.logger.info(
                    f"Stopping after batch {index + 1}: failure with stop_on_failure set"
                )
                outcome.stopped_on_failure = True
                await self._skip_all(batches[index + 1 :], on_result)
                break

            if delay_seconds > 0 and not is_last:
                await self.token.sleep(delay_seconds)

        if self.token.cancelled and outcome.batches_dispatched < len(batches):
            outcome.cancelled = True
        return outcome
