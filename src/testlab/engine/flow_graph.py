# engine/flow_graph.py

"""Flow graph helpers: validation, execution order, connector conditions and
``{{alias.$body.path}}`` references to upstream node responses."""

from typing import Dict, List, Mapping, Optional, Set

import networkx as nx

from ..config.constants import FLOW_SUCCESS_STATUS_CODES

from ..schemas.flow import ConnectorCondition, Flow, FlowNodeResult
from ..schemas.tools.rest_api_caller import ResponseRecord
from .validation_engine import evaluate_json_path, stringify_value


def build_graph(flow: Flow) -> nx.DiGraph:
    graph = nx.DiGraph()
    for node in flow.nodes:
        graph.add_node(node.id)
    for connector in flow.connectors:
        graph.add_edge(connector.source_node_id, connector.target_node_id)
    return graph


def validate_flow(flow: Flow) -> List[str]:
    """Structural problems of ``flow``; empty when it can run."""
    errors: List[str] = []
    if not flow.nodes:
        return ["Flow has no nodes"]

    node_ids = {n.id for n in flow.nodes}
    seen_aliases: Set[str] = set()
    for node in flow.nodes:
        alias = node.alias.strip().lower()
        if not alias:
            errors.append(f"Node '{node.id}' has no alias")
        elif alias in seen_aliases:
            errors.append(f"Duplicate alias '{node.alias}'")
        seen_aliases.add(alias)

    seen_edges: Set[tuple] = set()
    for connector in flow.connectors:
        edge = (connector.source_node_id, connector.target_node_id)
        if connector.source_node_id == connector.target_node_id:
            errors.append(f"Connector '{connector.id}' connects a node to itself")
        if connector.source_node_id not in node_ids:
            errors.append(
                f"Connector '{connector.id}' references missing node "
                f"'{connector.source_node_id}'"
            )
        if connector.target_node_id not in node_ids:
            errors.append(
                f"Connector '{connector.id}' references missing node "
                f"'{connector.target_node_id}'"
            )
        if edge in seen_edges:
            errors.append(f"Duplicate connector between {edge[0]} and {edge[1]}")
        seen_edges.add(edge)

    if not errors and not nx.is_directed_acyclic_graph(build_graph(flow)):
        cycle = nx.find_cycle(build_graph(flow))
        path = " -> ".join(edge[0] for edge in cycle)
        errors.append(f"Flow contains a cycle: {path}")
    return errors


def execution_generations(flow: Flow) -> List[List[str]]:
    """Node ids grouped so every node comes after all of its sources.

    Ties within a generation keep the order nodes are declared in.
    """
    position = {n.id: i for i, n in enumerate(flow.nodes)}
    return [
        sorted(generation, key=position.__getitem__)
        for generation in nx.topological_generations(build_graph(flow))
    ]


def upstream_node_ids(flow: Flow, node_id: str) -> Set[str]:
    return nx.ancestors(build_graph(flow), node_id)


def is_condition_satisfied(
    condition: ConnectorCondition, source: FlowNodeResult
) -> bool:
    response = source.response
    if condition == "any":
        return True
    if condition == "success":
        return (
            source.status == "success"
            and response is not None
            and response.status in FLOW_SUCCESS_STATUS_CODES
        )
    if condition == "failure":
        return source.status == "failed" or (
            response is not None and response.status not in FLOW_SUCCESS_STATUS_CODES
        )
    validation = source.validation_result
    if condition == "validation_pass":
        return validation is not None and validation.enabled and validation.all_passed
    if condition == "validation_fail":
        return validation is not None and validation.enabled and not validation.all_passed
    return False


class FlowContext:
    """Responses of completed nodes, addressable by alias."""

    def __init__(self) -> None:
        self._responses: Dict[str, ResponseRecord] = {}

    def add(self, alias: str, response: ResponseRecord) -> None:
        self._responses[alias.lower()] = response

    def resolver(self, visible_aliases: Set[str]):
        """Variable fallback limited to the given (upstream) aliases."""
        visible = {a.lower() for a in visible_aliases}

        def _lookup(name: str) -> Optional[str]:
            alias, sep, path = name.partition(".")
            if not sep or alias.lower() not in visible:
                return None
            response = self._responses.get(alias.lower())
            if response is None:
                return None
            return resolve_response_path(response, path)

        return _lookup


def resolve_response_path(response: ResponseRecord, path: str) -> Optional[str]:
    """Resolve ``$body.a.b``, ``$headers.name``, ``$status`` or ``$statusText``."""
    prop, _, rest = path.partition(".")
    if prop == "$status":
        return str(response.status)
    if prop == "$statusText":
        return response.status_text
    if prop == "$headers":
        return _header(response.headers, rest)
    if prop == "$body":
        return _body_value(response, rest)
    return None


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    return next((v for k, v in headers.items() if k.lower() == name.lower()), None)


def _body_value(response: ResponseRecord, path: str) -> Optional[str]:
    if response.is_encoded:
        return None
    if not path:
        return response.body
    try:
        value, found = evaluate_json_path(response.body, path, ignore_key_case=True)
    except ValueError:
        return None
    # a present null leaves the placeholder unresolved
    if not found or value is None:
        return None
    return stringify_value(value)
