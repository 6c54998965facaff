# engine/request_builder.py

from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from pydantic import BaseModel, Field

from ..config.constants import (
    BINARY_CONTENT_TYPE,
    DEFAULT_RAW_CONTENT_TYPE,
    DEFAULT_SCHEME,
    ERROR_MESSAGES,
    RAW_LANGUAGE_CONTENT_TYPES,
    URLENCODED_CONTENT_TYPE,
)
from ..schemas.auth import Auth
from ..schemas.collection import (
    BodyFile,
    BodyFormData,
    BodyRaw,
    BodyUrlEncoded,
    CollectionRequest,
    KeyValueRow,
)
from ..schemas.test_suite import TestCaseData
from ..schemas.tools.rest_api_caller import PreparedRequest
from .variables import Fallback, substitute


class BuildResult(BaseModel):
    request: Optional[PreparedRequest] = None
    error: Optional[str] = None
    unresolved_names: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.request is not None


class _Substituter:
    """Collects unresolved names across every field of one request."""

    def __init__(self, table: Mapping[str, str], fallback: Optional[Fallback]):
        self.table = table
        self.fallback = fallback
        self.unresolved: Set[str] = set()

    def __call__(self, text: str) -> str:
        result, missing = substitute(text, self.table, self.fallback)
        self.unresolved |= missing
        return result


def _enabled(rows: Optional[Sequence[KeyValueRow]]) -> List[KeyValueRow]:
    return [r for r in rows or [] if not r.disabled and r.key]


def merge_headers(
    base: Sequence[KeyValueRow], overrides: Sequence[KeyValueRow]
) -> List[Tuple[str, str]]:
    """Case-insensitive merge; an override keeps the base header's spelling."""
    merged: Dict[str, Tuple[str, str]] = {}
    for row in list(_enabled(base)) + list(_enabled(overrides)):
        lowered = row.key.lower()
        key = merged[lowered][0] if lowered in merged else row.key
        merged[lowered] = (key, row.value)
    return list(merged.values())


def merge_params(
    base: Sequence[Tuple[str, str]], overrides: Sequence[Tuple[str, str]]
) -> List[Tuple[str, str]]:
    """Merge by exact key: an override replaces every same-key entry in place."""
    merged = list(base)
    for key, value in overrides:
        positions = [i for i, (k, _) in enumerate(merged) if k == key]
        if positions:
            merged[positions[0]] = (key, value)
            for i in reversed(positions[1:]):
                del merged[i]
        else:
            merged.append((key, value))
    return merged


def apply_default_scheme(url: str) -> str:
    # "host:8080/x" has no scheme even though urlsplit reports "host"
    if "://" in url.split("?", 1)[0]:
        return url
    return f"{DEFAULT_SCHEME}{url}"


def split_query(url: str) -> Tuple[str, List[Tuple[str, str]]]:
    parts = urlsplit(url)
    if not parts.query:
        return url, []
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    bare = urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
    return bare, pairs


def resolve_target_url(
    template: CollectionRequest,
    table: Mapping[str, str],
    fallback: Optional[Fallback] = None,
) -> str:
    """Resolved URL used for auth domain matching, before the request is built."""
    url, _ = substitute(template.url, table, fallback)
    return apply_default_scheme(url.strip())


def _has_header(headers: Mapping[str, str], name: str) -> bool:
    return any(k.lower() == name.lower() for k in headers)


def build(
    template: CollectionRequest,
    overrides: Optional[TestCaseData],
    resolved_vars: Mapping[str, str],
    resolved_auth: Optional[Auth] = None,
    fallback: Optional[Fallback] = None,
) -> BuildResult:
    """Assemble a fully resolved request from a template and case overrides.

    Returns an error result naming every unresolved placeholder instead of a
    request when any ``{{name}}`` is left after substitution.
    """
    overrides = overrides or TestCaseData()
    sub = _Substituter(resolved_vars, fallback)

    header_pairs = merge_headers(template.header, overrides.headers or [])

    url = sub(template.url).strip()
    url, url_template_params = split_query(url)
    url = apply_default_scheme(url)

    base_params = [(r.key, r.value) for r in _enabled(template.query)]
    case_params = [(r.key, r.value) for r in _enabled(overrides.params)]
    params = merge_params(merge_params(url_template_params, base_params), case_params)

    headers: Dict[str, str] = {}
    for key, value in header_pairs:
        headers[sub(key)] = sub(value)
    resolved_params = [(sub(k), sub(v)) for k, v in params]

    request = PreparedRequest(
        method=(template.method or "GET").upper(),
        url=url,
        params=resolved_params,
        auth=resolved_auth,
        env_vars=dict(resolved_vars),
    )

    body = template.body
    if overrides.body is not None:
        language = body.language if isinstance(body, BodyRaw) else None
        body = BodyRaw(raw=overrides.body, language=language or "json")

    content_type: Optional[str] = None
    if isinstance(body, BodyRaw):
        request.body_mode = "raw"
        request.body = sub(body.raw)
        content_type = RAW_LANGUAGE_CONTENT_TYPES.get(
            (body.language or "").lower(), DEFAULT_RAW_CONTENT_TYPE
        )
    elif isinstance(body, BodyUrlEncoded):
        request.body_mode = "urlencoded"
        request.form = [(sub(f.key), sub(f.value)) for f in _enabled(body.urlencoded)]
        content_type = URLENCODED_CONTENT_TYPE
    elif isinstance(body, BodyFormData):
        request.body_mode = "formdata"
        for field in _enabled(body.formdata):
            target = request.form_files if field.field_type == "file" else request.form
            target.append((sub(field.key), sub(field.value)))
    elif isinstance(body, BodyFile):
        request.body_mode = "file"
        request.file_path = sub(body.file.path)
        content_type = body.file.content_type or BINARY_CONTENT_TYPE

    if content_type and not _has_header(headers, "content-type"):
        headers["Content-Type"] = content_type
    request.headers = headers

    if sub.unresolved:
        names = sorted(sub.unresolved)
        return BuildResult(
            error=ERROR_MESSAGES["unresolved"].format(names=", ".join(names)),
            unresolved_names=names,
        )
    return BuildResult(request=request)
