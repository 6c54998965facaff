# tools/flow_runner.py

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from ..config.constants import ERROR_MESSAGES
from ..core import BaseTool
from ..domain.ports.flow_executor import FlowExecutorInterface
from ..domain.ports.http_executor import HttpExecutorInterface
from ..engine import collection_lookup, flow_graph
from ..engine.batch_scheduler import CancellationToken
from ..engine.request_pipeline import RequestPipeline
from ..engine.validation_engine import default_validation
from ..schemas.flow import (
    Flow,
    FlowConnector,
    FlowNode,
    FlowNodeResult,
    FlowRunProgress,
    FlowRunResult,
)
from ..schemas.tools.flow_runner import FlowRunContext, FlowRunnerInput, FlowRunnerOutput
from ..schemas.validation import ValidationRule

_TERMINAL = ("success", "failed", "skipped")


class FlowRunnerTool(BaseTool, FlowExecutorInterface):
    """
    Runs a flow generation by generation. A node runs once all of its
    sources have finished and at least one incoming connector's condition
    holds; the flow stops after the first generation with a failed node.
    """

    def __init__(
        self,
        http_executor: HttpExecutorInterface,
        *,
        name: str = "flow_runner",
        description: str = "Executes multi-step request flows",
        config: Optional[dict] = None,
        verbose: bool = False,
    ):
        super().__init__(
            name=name,
            description=description,
            input_schema=FlowRunnerInput,
            output_schema=FlowRunnerOutput,
            config=config,
            verbose=verbose,
        )
        self.pipeline = RequestPipeline(http_executor, logger=self.logger)

    async def _execute(self, inp: FlowRunnerInput) -> FlowRunnerOutput:
        result = await self.run(inp.flow, inp.context)
        return FlowRunnerOutput(
            success=result.status == "success",
            error_message=result.error,
            result=result,
        )

    async def run(
        self,
        flow: Flow,
        context: FlowRunContext,
        token: Optional[CancellationToken] = None,
    ) -> FlowRunResult:
        started_at = datetime.now(timezone.utc)
        node_results: Dict[str, FlowNodeResult] = {
            n.id: FlowNodeResult(node_id=n.id, request_id=n.request_id, alias=n.alias)
            for n in flow.nodes
        }

        errors = flow_graph.validate_flow(flow)
        if errors:
            self.logger.warning(f"Flow '{flow.id}' is invalid: {'; '.join(errors)}")
            return FlowRunResult(
                flow_id=flow.id,
                status="failed",
                node_results=node_results,
                progress=FlowRunProgress(total=len(flow.nodes)),
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
                error="; ".join(errors),
            )

        self.logger.info(f"Running flow '{flow.name or flow.id}' ({len(flow.nodes)} nodes)")
        nodes = {n.id: n for n in flow.nodes}
        incoming: Dict[str, List[FlowConnector]] = {n.id: [] for n in flow.nodes}
        for connector in flow.connectors:
            incoming[connector.target_node_id].append(connector)

        rules_by_id = {r.id: r for r in context.global_rules}
        flow_context = flow_graph.FlowContext()
        active_ids: List[str] = []
        skipped_ids: List[str] = []
        cancelled = False

        for generation in flow_graph.execution_generations(flow):
            if token is not None and token.cancelled:
                cancelled = True
                break

            runnable: List[FlowNode] = []
            for node_id in generation:
                connectors = incoming[node_id]
                if not connectors:
                    runnable.append(nodes[node_id])
                    continue
                met = [
                    c
                    for c in connectors
                    if node_results[c.source_node_id].status in _TERMINAL
                    and flow_graph.is_condition_satisfied(
                        c.condition, node_results[c.source_node_id]
                    )
                ]
                active_ids.extend(c.id for c in met)
                skipped_ids.extend(c.id for c in connectors if c not in met)
                if met:
                    runnable.append(nodes[node_id])
                else:
                    node_results[node_id].status = "skipped"

            outcomes = await asyncio.gather(
                *(
                    self._run_node(flow, node, node_results, flow_context, context, rules_by_id)
                    for node in runnable
                )
            )
            for node, outcome in zip(runnable, outcomes):
                node_results[node.id] = outcome
                if outcome.response is not None:
                    flow_context.add(node.alias, outcome.response)

            if any(o.status == "failed" for o in outcomes):
                break

        for result in node_results.values():
            if result.status not in _TERMINAL:
                result.status = "skipped"

        return self._build_result(
            flow, node_results, active_ids, skipped_ids, started_at, cancelled
        )

    async def _run_node(
        self,
        flow: Flow,
        node: FlowNode,
        node_results: Mapping[str, FlowNodeResult],
        flow_context: flow_graph.FlowContext,
        context: FlowRunContext,
        rules_by_id: Mapping[str, ValidationRule],
    ) -> FlowNodeResult:
        started_at = datetime.now(timezone.utc)
        template = collection_lookup.find_request(context.collections, node.request_id)
        if template is None:
            return FlowNodeResult(
                node_id=node.id,
                request_id=node.request_id,
                alias=node.alias,
                status="failed",
                error=ERROR_MESSAGES["request_not_found"].format(
                    reference_id=node.request_id
                ),
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
            )

        upstream_aliases = {
            node_results[node_id].alias
            for node_id in flow_graph.upstream_node_ids(flow, node.id)
        }
        try:
            outcome = await self.pipeline.run(
                template,
                environments=context.environments,
                environment_id=context.environment_id or flow.default_env_id,
                auths=context.auths,
                default_auth_id=context.default_auth_id or flow.default_auth_id,
                validation=template.validation or default_validation(),
                global_rules_by_id=rules_by_id,
                fallback=flow_context.resolver(upstream_aliases),
            )
        except Exception as e:
            self.logger.exception(f"Flow node '{node.alias}' crashed")
            return FlowNodeResult(
                node_id=node.id,
                request_id=node.request_id,
                alias=node.alias,
                status="failed",
                error=ERROR_MESSAGES["unexpected"].format(error=e),
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
            )

        return FlowNodeResult(
            node_id=node.id,
            request_id=node.request_id,
            alias=node.alias,
            status=outcome.status.value,
            response=outcome.response,
            validation_result=outcome.validation_result,
            error=outcome.error,
            started_at=outcome.started_at,
            completed_at=outcome.completed_at,
        )

    def _build_result(
        self,
        flow: Flow,
        node_results: Dict[str, FlowNodeResult],
        active_ids: List[str],
        skipped_ids: List[str],
        started_at: datetime,
        cancelled: bool,
    ) -> FlowRunResult:
        statuses = [r.status for r in node_results.values()]
        succeeded = statuses.count("success")
        failed = statuses.count("failed")
        skipped = statuses.count("skipped")

        if failed:
            status, error = "failed", f"{failed} node(s) failed"
        elif cancelled:
            status, error = "cancelled", "Flow was cancelled"
        else:
            status, error = "success", None

        self.logger.info(
            f"Flow '{flow.name or flow.id}' finished: {status} "
            f"({succeeded} succeeded, {failed} failed, {skipped} skipped)"
        )
        return FlowRunResult(
            flow_id=flow.id,
            status=status,
            node_results=node_results,
            active_connector_ids=active_ids,
            skipped_connector_ids=skipped_ids,
            progress=FlowRunProgress(
                total=len(flow.nodes),
                completed=succeeded + failed + skipped,
                succeeded=succeeded,
                failed=failed,
                skipped=skipped,
            ),
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            error=error,
        )
