# tools/rest_api_caller.py

import base64
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..config.constants import DEFAULT_HTTP_TIMEOUT, TEXT_CONTENT_TYPE_MARKERS
from ..core import BaseTool
from ..domain.ports.http_executor import HttpExecutorInterface
from ..schemas.auth import ApiKeyAuth, BasicAuth, DigestAuth, OAuth2RefreshAuth
from ..schemas.tools.rest_api_caller import (
    PreparedRequest,
    ResponseRecord,
    RestApiCallerInput,
    RestApiCallerOutput,
)


class AuthApplyError(Exception):
    """Credential could not be turned into request material."""


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _is_text(content_type: str) -> bool:
    lowered = content_type.lower()
    return any(marker in lowered for marker in TEXT_CONTENT_TYPE_MARKERS)


class RestApiCallerTool(BaseTool, HttpExecutorInterface):
    """
    A BaseTool that performs asynchronous REST calls via HTTPX.
    Transport failures come back as ``success=False``; nothing is raised.
    """

    def __init__(
        self,
        *,
        name: str = "rest_api_caller",
        description: str = "Calls RESTful endpoints using httpx.AsyncClient",
        config: Optional[dict] = None,
        verbose: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            name=name,
            description=description,
            input_schema=RestApiCallerInput,
            output_schema=RestApiCallerOutput,
            config=config,
            verbose=verbose,
        )
        self._timeout = float(self.config.get("timeout", DEFAULT_HTTP_TIMEOUT))
        self._verify = bool(self.config.get("verify_ssl", True))
        self._follow_redirects = bool(self.config.get("follow_redirects", True))
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        # auth id -> (access token, expiry)
        self._token_cache: Dict[str, Tuple[str, Optional[datetime]]] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify,
                follow_redirects=self._follow_redirects,
                transport=self._transport,
            )
        return self._client

    async def send(self, request: PreparedRequest) -> RestApiCallerOutput:
        return await self.execute(RestApiCallerInput(request=request))

    async def _execute(self, inp: RestApiCallerInput) -> RestApiCallerOutput:
        req = inp.request
        self.logger.info(f"Making {req.method} request to {req.url}")

        try:
            kwargs = await self._build_kwargs(req)
        except OSError as e:
            self.logger.error(f"Cannot read request body file: {e}")
            return RestApiCallerOutput(
                success=False, error_message=f"Cannot read body file: {e}"
            )
        except AuthApplyError as e:
            self.logger.error(str(e))
            return RestApiCallerOutput(success=False, error_message=str(e))

        start = time.perf_counter()
        try:
            response = await self._get_client().request(**kwargs)
        except httpx.TimeoutException:
            self.logger.error(f"Request timed out after {self._timeout}s")
            return RestApiCallerOutput(
                success=False,
                error_message=f"Request timed out after {self._timeout}s",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.error(f"Request error: {e}")
            return RestApiCallerOutput(
                success=False, error_message=f"Request error: {e}"
            )
        elapsed_ms = (time.perf_counter() - start) * 1000

        self.logger.info(
            f"Request completed: {response.status_code} in {elapsed_ms:.1f}ms"
        )
        return RestApiCallerOutput(response=self._to_record(response, elapsed_ms))

    async def _build_kwargs(self, req: PreparedRequest) -> Dict[str, Any]:
        headers = dict(req.headers)
        params: List[Tuple[str, str]] = list(req.params)
        kwargs: Dict[str, Any] = {"method": req.method, "url": req.url}

        auth = req.auth
        if isinstance(auth, ApiKeyAuth):
            value = _b64(auth.value) if auth.base64_encode else auth.value
            if auth.prefix:
                value = f"{auth.prefix.rstrip()} {value}"
            if auth.send_in == "query":
                params.append((auth.key, value))
            else:
                headers[auth.key] = value
        elif isinstance(auth, BasicAuth):
            kwargs["auth"] = httpx.BasicAuth(auth.username, auth.password)
        elif isinstance(auth, DigestAuth):
            kwargs["auth"] = httpx.DigestAuth(auth.username, auth.password)
        elif isinstance(auth, OAuth2RefreshAuth):
            token = await self._oauth2_token(auth)
            headers["Authorization"] = f"Bearer {token}"

        if req.body_mode == "raw" and req.body is not None:
            kwargs["content"] = req.body.encode("utf-8")
        elif req.body_mode == "urlencoded":
            data: Dict[str, List[str]] = {}
            for key, value in req.form:
                data.setdefault(key, []).append(value)
            kwargs["data"] = data
        elif req.body_mode == "formdata":
            files: List[Tuple[str, Tuple[Optional[str], Any]]] = [
                (key, (None, value)) for key, value in req.form
            ]
            for key, path in req.form_files:
                file_path = Path(path)
                files.append((key, (file_path.name, file_path.read_bytes())))
            kwargs["files"] = files
        elif req.body_mode == "file" and req.file_path:
            kwargs["content"] = Path(req.file_path).read_bytes()

        kwargs["headers"] = headers
        kwargs["params"] = params
        return kwargs

    async def _oauth2_token(self, auth: OAuth2RefreshAuth) -> str:
        now = datetime.now(timezone.utc)

        cached = self._token_cache.get(auth.id)
        if cached is not None and (cached[1] is None or cached[1] > now):
            return cached[0]

        if auth.access_token:
            expires_at = auth.token_expires_at
            if expires_at is not None and expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at is None or expires_at > now:
                return auth.access_token

        form = {
            "grant_type": "refresh_token",
            "refresh_token": auth.refresh_token,
            "client_id": auth.client_id,
        }
        if auth.client_secret:
            form["client_secret"] = auth.client_secret
        if auth.scope:
            form["scope"] = auth.scope

        self.logger.debug(f"Refreshing OAuth2 token for auth '{auth.id}'")
        try:
            response = await self._get_client().post(auth.token_url, data=form)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise AuthApplyError(f"OAuth2 token refresh failed: {e}")

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthApplyError("OAuth2 token refresh failed: no access_token in response")

        expires_in = payload.get("expires_in")
        expires_at = (
            now + timedelta(seconds=float(expires_in))
            if isinstance(expires_in, (int, float))
            else None
        )
        self._token_cache[auth.id] = (token, expires_at)
        return token

    @staticmethod
    def _to_record(response: httpx.Response, elapsed_ms: float) -> ResponseRecord:
        raw = response.content or b""
        content_type = response.headers.get("content-type", "")

        body: str
        is_encoded = False
        if not raw:
            body = ""
        elif _is_text(content_type):
            body = response.text
        else:
            try:
                body = raw.decode("utf-8")
            except UnicodeDecodeError:
                body = base64.b64encode(raw).decode("ascii")
                is_encoded = True
            else:
                if content_type:
                    # declared binary: keep the exact bytes
                    body = base64.b64encode(raw).decode("ascii")
                    is_encoded = True

        return ResponseRecord(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            body=body,
            elapsed_time=round(elapsed_ms, 2),
            size=len(raw),
            is_encoded=is_encoded,
        )

    async def cleanup(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self.logger.debug("RestApiCallerTool cleanup completed")
