# engine/validation_engine.py

"""Rule interpreter evaluating a RequestValidation against a response.

Every rule is evaluated on its own; a malformed rule (bad regex, non-numeric
bound, non-JSON body for a path operator) fails that rule only. The result is
a pure function of its inputs.
"""

import base64
import binascii
import json
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..config.constants import (
    DEFAULT_VALIDATION_RULE_ID,
    DEFAULT_VALIDATION_RULE_NAME,
    ERROR_MESSAGES,
    SUCCESS_STATUS_CODES,
)
from ..schemas.tools.rest_api_caller import ResponseRecord
from ..schemas.validation import (
    BodyValidationRule,
    HeaderValidationRule,
    RequestValidation,
    StatusValidationRule,
    TimeValidationRule,
    ValidationResult,
    ValidationRule,
    ValidationRuleRef,
    ValidationRuleResult,
)
from .variables import substitute


def default_validation() -> RequestValidation:
    """Built-in validation: status is 2xx."""
    return RequestValidation(
        enabled=True,
        rules=[
            ValidationRuleRef(
                rule=StatusValidationRule(
                    id=DEFAULT_VALIDATION_RULE_ID,
                    name=DEFAULT_VALIDATION_RULE_NAME,
                    operator="is_success",
                )
            )
        ],
    )


def _humanize(operator: str) -> str:
    return operator.replace("_", " ")


def _resolve(value: Any, env_vars: Mapping[str, str]) -> str:
    if value is None:
        return ""
    text, _ = substitute(str(value), env_vars)
    return text


def _number(value: Any, env_vars: Mapping[str, str]) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    text = _resolve(value, env_vars).strip()
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Expected a number, got '{text}'")


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def stringify_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return _fmt(value) if isinstance(value, float) else str(value)


def _compare_numbers(
    actual: float,
    operator: str,
    value: Optional[float],
    value_max: Optional[float] = None,
    values: Optional[List[float]] = None,
) -> bool:
    if operator == "equals":
        return actual == value
    if operator == "not_equals":
        return actual != value
    if operator == "less_than":
        return actual < value
    if operator == "less_than_or_equal":
        return actual <= value
    if operator == "greater_than":
        return actual > value
    if operator == "greater_than_or_equal":
        return actual >= value
    if operator == "between":
        return value_max is not None and value <= actual <= value_max
    if operator == "in":
        return values is not None and actual in values
    if operator == "not_in":
        return values is not None and actual not in values
    raise ValueError(f"Unsupported operator '{operator}'")


def _compare_strings(
    actual: str,
    operator: str,
    expected: str,
    case_sensitive: bool,
    values: Optional[List[str]] = None,
) -> bool:
    if operator == "matches_regex":
        flags = 0 if case_sensitive else re.IGNORECASE
        return re.search(expected, actual, flags) is not None

    a = actual if case_sensitive else actual.lower()
    e = expected if case_sensitive else expected.lower()
    if operator in ("in", "not_in"):
        if values is None:
            return False
        candidates = values if case_sensitive else [v.lower() for v in values]
        return (a in candidates) == (operator == "in")
    if operator == "equals":
        return a == e
    if operator == "not_equals":
        return a != e
    if operator == "contains":
        return e in a
    if operator == "not_contains":
        return e not in a
    if operator == "starts_with":
        return a.startswith(e)
    if operator == "ends_with":
        return a.endswith(e)
    raise ValueError(f"Unsupported operator '{operator}'")


def _evaluate_status(
    rule: StatusValidationRule, response: ResponseRecord, env_vars: Mapping[str, str]
) -> ValidationRuleResult:
    actual = response.status
    op = rule.operator

    if op == "is_success":
        passed = actual in SUCCESS_STATUS_CODES
        expected = "2xx"
    elif op == "is_not_success":
        passed = actual not in SUCCESS_STATUS_CODES
        expected = "not 2xx"
    elif op in ("in", "not_in"):
        values = [_number(v, env_vars) for v in rule.values or []]
        passed = _compare_numbers(actual, op, None, values=values)
        expected = "[" + ", ".join(_fmt(v) for v in values) + "]"
    elif op == "between":
        low = _number(rule.value, env_vars)
        high = _number(rule.value_max, env_vars) if rule.value_max is not None else None
        passed = _compare_numbers(actual, op, low, value_max=high)
        expected = f"{_fmt(low)} - {_fmt(high) if high is not None else '?'}"
    else:
        value = _number(rule.value, env_vars)
        passed = _compare_numbers(actual, op, value)
        expected = _fmt(value)

    message = (
        f"Status {_humanize(op)} {expected}"
        if passed
        else f"Expected status {_humanize(op)} {expected}, got {actual}"
    )
    return ValidationRuleResult(
        rule_id=rule.id,
        rule_name=rule.name,
        category="status",
        passed=passed,
        message=message,
        expected=expected,
        actual=str(actual),
    )


def _evaluate_header(
    rule: HeaderValidationRule, response: ResponseRecord, env_vars: Mapping[str, str]
) -> ValidationRuleResult:
    name = _resolve(rule.header_name, env_vars)
    expected = _resolve(rule.value, env_vars)
    actual = next(
        (v for k, v in response.headers.items() if k.lower() == name.lower()), None
    )
    op = rule.operator

    if op == "exists":
        passed = actual is not None
        message = f"Header '{name}' exists" if passed else f"Header '{name}' does not exist"
        expected = "exists"
    elif op == "not_exists":
        passed = actual is None
        message = (
            f"Header '{name}' does not exist"
            if passed
            else f"Header '{name}' exists but should not"
        )
        expected = "not exists"
    elif actual is None:
        passed = False
        message = f"Header '{name}' does not exist"
    else:
        values = [_resolve(v, env_vars) for v in rule.values] if rule.values else None
        try:
            passed = _compare_strings(actual, op, expected, rule.case_sensitive, values)
        except re.error as e:
            return _failed(rule, f"Invalid regex '{expected}': {e}", expected, actual)
        if op in ("in", "not_in"):
            expected = "[" + ", ".join(values or []) + "]"
        message = (
            f"Header '{name}' {_humanize(op)} '{expected}'"
            if passed
            else f"Expected header '{name}' {_humanize(op)} '{expected}', got '{actual}'"
        )

    return ValidationRuleResult(
        rule_id=rule.id,
        rule_name=rule.name,
        category="header",
        passed=passed,
        message=message,
        expected=expected,
        actual=actual if actual is not None else "undefined",
    )


def _decoded_body(response: ResponseRecord) -> str:
    body = response.body or ""
    if response.is_encoded and body:
        try:
            return base64.b64decode(body).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            return body
    return body


def _path_segments(path: str) -> List[str]:
    expression = path.strip()
    if expression.startswith("$"):
        expression = expression[1:]
    return [
        part.strip("'\"")
        for part in re.split(r"[.\[\]]", expression)
        if part.strip("'\"")
    ]


def evaluate_json_path(
    body: str, path: str, ignore_key_case: bool = False
) -> Tuple[Any, bool]:
    """Return ``(value, found)`` for a ``$.a.b[0]`` style path.

    Segments are plain keys or list indexes, so keys such as ``user-id`` or
    ``2024`` need no quoting. A key present with a ``null`` value is found.
    With ``ignore_key_case`` an exact key still wins over a case-insensitive
    match. Raises ValueError when the body is not JSON.
    """
    current = json.loads(body)
    for segment in _path_segments(path):
        if isinstance(current, dict) and ignore_key_case and segment not in current:
            segment = next((k for k in current if k.lower() == segment.lower()), segment)
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif (
            isinstance(current, list)
            and segment.isdigit()
            and int(segment) < len(current)
        ):
            current = current[int(segment)]
        else:
            return None, False
    return current, True


def _evaluate_body(
    rule: BodyValidationRule, response: ResponseRecord, env_vars: Mapping[str, str]
) -> ValidationRuleResult:
    body = _decoded_body(response)
    expected = _resolve(rule.value, env_vars)
    op = rule.operator
    actual = body if len(body) <= 100 else body[:100] + "..."

    if op == "is_json":
        try:
            json.loads(body)
            passed, message = True, "Response body is valid JSON"
        except ValueError:
            passed, message = False, "Response body is not valid JSON"
        expected = expected or op

    elif op == "is_xml":
        passed = body.strip().startswith("<")
        message = "Response body appears to be XML" if passed else "Response body is not XML"
        expected = expected or op

    elif op == "is_html":
        passed = re.search(r"<html|<!DOCTYPE html", body, re.IGNORECASE) is not None
        message = (
            "Response body appears to be HTML" if passed else "Response body is not HTML"
        )
        expected = expected or op

    elif op.startswith("json_path_"):
        path = _resolve(rule.json_path, env_vars)
        try:
            value, found = evaluate_json_path(body, path)
        except ValueError as e:
            return _failed(rule, f"Response body is not valid JSON: {e}", expected, actual)

        if not found:
            passed = False
            actual = "undefined"
            message = f"JSON path '{path}' does not exist"
        elif op == "json_path_exists":
            passed = True
            actual = stringify_value(value)
            message = f"JSON path '{path}' exists"
        else:
            actual = stringify_value(value)
            string_op = "equals" if op == "json_path_equals" else "contains"
            passed = _compare_strings(actual, string_op, expected, rule.case_sensitive)
            verb = "equal" if string_op == "equals" else "contain"
            message = (
                f"JSON path '{path}' {string_op} '{expected}'"
                if passed
                else f"Expected JSON path '{path}' to {verb} '{expected}', got '{actual}'"
            )
        if op == "json_path_exists":
            expected = expected or "exists"

    else:
        try:
            passed = _compare_strings(body, op, expected, rule.case_sensitive)
        except re.error as e:
            return _failed(rule, f"Invalid regex '{expected}': {e}", expected, actual)
        message = (
            f"Body {_humanize(op)} '{expected}'"
            if passed
            else f"Expected body {_humanize(op)} '{expected}'"
        )

    return ValidationRuleResult(
        rule_id=rule.id,
        rule_name=rule.name,
        category="body",
        passed=passed,
        message=message,
        expected=expected,
        actual=actual,
    )


def _evaluate_time(
    rule: TimeValidationRule, response: ResponseRecord, env_vars: Mapping[str, str]
) -> ValidationRuleResult:
    actual = response.elapsed_time
    op = rule.operator
    value = _number(rule.value, env_vars)

    if op == "between":
        high = _number(rule.value_max, env_vars) if rule.value_max is not None else None
        passed = _compare_numbers(actual, op, value, value_max=high)
        expected = f"{_fmt(value)}ms - {_fmt(high) if high is not None else '?'}ms"
    else:
        passed = _compare_numbers(actual, op, value)
        expected = f"{_fmt(value)}ms"

    actual_str = f"{round(actual)}ms"
    message = (
        f"Response time {actual_str} {_humanize(op)} {expected}"
        if passed
        else f"Expected response time {_humanize(op)} {expected}, got {actual_str}"
    )
    return ValidationRuleResult(
        rule_id=rule.id,
        rule_name=rule.name,
        category="time",
        passed=passed,
        message=message,
        expected=expected,
        actual=actual_str,
    )


def _failed(
    rule: ValidationRule, message: str, expected: Optional[str], actual: Optional[str]
) -> ValidationRuleResult:
    return ValidationRuleResult(
        rule_id=rule.id,
        rule_name=rule.name,
        category=rule.category,
        passed=False,
        message=message,
        expected=expected,
        actual=actual,
    )


_EVALUATORS: Dict[str, Callable[..., ValidationRuleResult]] = {
    "status": _evaluate_status,
    "header": _evaluate_header,
    "body": _evaluate_body,
    "time": _evaluate_time,
}


def evaluate_rule(
    rule: ValidationRule, response: ResponseRecord, env_vars: Mapping[str, str]
) -> ValidationRuleResult:
    try:
        return _EVALUATORS[rule.category](rule, response, env_vars)
    except ValueError as e:
        return _failed(rule, f"Validation error: {e}", None, None)


def evaluate(
    validation: Optional[RequestValidation],
    response: ResponseRecord,
    global_rules_by_id: Optional[Mapping[str, ValidationRule]] = None,
    env_vars: Optional[Mapping[str, str]] = None,
) -> ValidationResult:
    """Evaluate every rule of ``validation`` against ``response``.

    A disabled (or missing) rule set short-circuits to an empty, passing
    result. Disabled rules are reported as passing and do not count towards
    the totals.
    """
    if validation is None or not validation.enabled:
        return ValidationResult(enabled=False)

    global_rules_by_id = global_rules_by_id or {}
    env_vars = env_vars or {}
    results: List[ValidationRuleResult] = []
    evaluated: List[ValidationRuleResult] = []

    for ref in validation.rules:
        rule = ref.rule if ref.rule is not None else global_rules_by_id.get(ref.rule_id)
        if rule is None:
            result = ValidationRuleResult(
                rule_id=ref.rule_id or "",
                passed=False,
                message=ERROR_MESSAGES["global_rule_not_found"].format(
                    rule_id=ref.rule_id
                ),
            )
            results.append(result)
            evaluated.append(result)
            continue

        if not rule.enabled:
            results.append(
                ValidationRuleResult(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    category=rule.category,
                    passed=True,
                    message="Rule is disabled",
                )
            )
            continue

        result = evaluate_rule(rule, response, env_vars)
        results.append(result)
        evaluated.append(result)

    passed = sum(1 for r in evaluated if r.passed)
    return ValidationResult(
        enabled=True,
        total_rules=len(evaluated),
        passed_rules=passed,
        failed_rules=len(evaluated) - passed,
        all_passed=passed == len(evaluated),
        results=results,
    )
