# domain/ports/flow_executor.py

from abc import ABC, abstractmethod
from typing import Optional

from ...engine.batch_scheduler import CancellationToken
from ...schemas.flow import Flow, FlowRunResult
from ...schemas.tools.flow_runner import FlowRunContext


class FlowExecutorInterface(ABC):
    """Runs a whole flow and reports per-node results."""

    @abstractmethod
    async def run(
        self,
        flow: Flow,
        context: FlowRunContext,
        token: Optional[CancellationToken] = None,
    ) -> FlowRunResult:
        pass
