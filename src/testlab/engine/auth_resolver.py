# engine/auth_resolver.py

from datetime import datetime, timezone
from typing import Optional, Sequence
from urllib.parse import urlsplit

from ..schemas.auth import Auth


def host_of(url: str) -> Optional[str]:
    """Hostname of ``url`` (scheme optional), or None when it cannot be parsed."""
    if not url:
        return None
    candidate = url if "://" in url else f"https://{url}"
    try:
        host = urlsplit(candidate).hostname
    except ValueError:
        return None
    return host.lower() if host else None


def matches_domain(host: str, domain_filter: str) -> bool:
    pattern = domain_filter.strip().lower()
    if not pattern:
        return False
    if pattern.startswith("*."):
        # subdomains only
        return host.endswith(pattern[1:])
    if pattern.startswith("."):
        base = pattern[1:]
        return host == base or host.endswith(pattern)
    return host == pattern


def is_url_in_domains(url: str, domain_filters: Sequence[str]) -> bool:
    if not domain_filters:
        return True
    host = host_of(url)
    if host is None:
        return False
    return any(matches_domain(host, f) for f in domain_filters)


def is_expired(auth: Auth, now: Optional[datetime] = None) -> bool:
    if auth.expiry_date is None:
        return False
    expiry = auth.expiry_date
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry <= (now or datetime.now(timezone.utc))


def select(
    request_auth_id: Optional[str],
    default_auth_id: Optional[str],
    case_auth_id: Optional[str],
    all_auths: Sequence[Auth],
    target_url: str,
    now: Optional[datetime] = None,
) -> Optional[Auth]:
    """Pick the credential for one request, or None when none applies.

    Priority is test case, then item, then suite default. The chosen profile
    must be enabled, unexpired and match the target host; otherwise no auth is
    applied.
    """
    auth_id = case_auth_id or request_auth_id or default_auth_id
    if not auth_id:
        return None

    auth = next((a for a in all_auths if a.id == auth_id), None)
    if auth is None or not auth.enabled:
        return None
    if is_expired(auth, now):
        return None
    if not is_url_in_domains(target_url, auth.domain_filters):
        return None
    return auth
