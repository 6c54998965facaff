# engine/variables.py

"""Tiered variable resolution and ``{{name}}`` substitution.

Tiers, lowest to highest precedence:

1. the environment named ``global`` (case-insensitive), enabled entries only
2. the active environment, enabled entries only
3. test-case variables
"""

import re
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..config.constants import GLOBAL_ENVIRONMENT_NAME
from ..schemas.environment import Environment

PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")

# Last-chance lookup for names missing from the table (e.g. flow references)
Fallback = Callable[[str], Optional[str]]


def _enabled_values(environment: Environment) -> Dict[str, str]:
    return {v.key: v.value for v in environment.values if v.enabled and v.key}


def resolve(
    environments: Sequence[Environment],
    active_env_id: Optional[str] = None,
    case_variables: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Merge the variable tiers into one lookup table."""
    table: Dict[str, str] = {}

    global_env = next(
        (e for e in environments if e.name.strip().lower() == GLOBAL_ENVIRONMENT_NAME),
        None,
    )
    if global_env is not None:
        table.update(_enabled_values(global_env))

    if active_env_id:
        active = next((e for e in environments if e.id == active_env_id), None)
        if active is not None and active is not global_env:
            table.update(_enabled_values(active))

    if case_variables:
        table.update({k: str(v) for k, v in case_variables.items()})

    return table


def lookup(table: Mapping[str, str], name: str) -> Optional[str]:
    """Exact-case hit first, then a case-insensitive match."""
    if name in table:
        return table[name]
    lowered = name.lower()
    for key, value in table.items():
        if key.lower() == lowered:
            return value
    return None


def substitute(
    text: str,
    table: Mapping[str, str],
    fallback: Optional[Fallback] = None,
) -> Tuple[str, Set[str]]:
    """Replace every ``{{name}}``; unknown names stay literal and are reported.

    Never raises, so callers can collect the unresolved names of every
    field of a request before deciding to fail it.
    """
    unresolved: Set[str] = set()

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1).strip()
        value = lookup(table, name)
        if value is None and fallback is not None:
            value = fallback(name)
        if value is None:
            unresolved.add(name)
            return match.group(0)
        return value

    if not text:
        return text, unresolved
    return PLACEHOLDER_RE.sub(_replace, text), unresolved


def extract_variables(text: str) -> List[str]:
    """List placeholder names in order of first appearance."""
    seen: List[str] = []
    for match in PLACEHOLDER_RE.finditer(text or ""):
        name = match.group(1).strip()
        if name not in seen:
            seen.append(name)
    return seen
