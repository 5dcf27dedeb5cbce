"""
Backend Client

Thin JSON-over-HTTP wrapper around httpx for the `/api/v1` REST backend.
Normalizes every failure into the client error taxonomy:
- transport failures -> BackendUnavailableError
- deadline exceeded  -> BackendTimeoutError
- non-2xx responses  -> BackendRejectedError (message from `error`/`message`)
"""
import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from ..config import API_BASE_URL, HTTP_TIMEOUT
from ..errors import (
    BackendRejectedError,
    BackendTimeoutError,
    BackendUnavailableError,
)

logger = logging.getLogger(__name__)


def extract_error_message(data: Any, status_code: int) -> str:
    """Message from a structured error body, else a generic one."""
    server_message = extract_server_message(data)
    return server_message or f"Request failed ({status_code})"


def extract_server_message(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    for key in ("error", "message"):
        value = data.get(key)
        if value:
            return value if isinstance(value, str) else str(value)
    return None


class BackendClient:
    """
    Async client for the reference-data backend.

    The underlying httpx.AsyncClient can be injected (tests pass a MockTransport
    or an ASGI transport); otherwise one is created lazily and owned here.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = (base_url if base_url is not None else API_BASE_URL).strip().rstrip("/")
        self.timeout = timeout if timeout is not None else HTTP_TIMEOUT
        self.default_headers = {"Content-Type": "application/json", **(headers or {})}
        self._client = client
        self._owns_client = client is None

    def build_url(self, path: str) -> str:
        normalized_path = path if path.startswith("/") else f"/{path}"
        full_url = f"{self.base_url}{normalized_path}" if self.base_url else normalized_path
        return full_url.rstrip("/") if len(full_url) > 1 else full_url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        deadline_s: Optional[float] = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None if not JSON).

        Args:
            method: HTTP method
            path: Path under the base URL (e.g., '/api/v1/approvals')
            json: Request body; omitted entirely when None
            params: Query parameters
            headers: Extra headers for this request
            deadline_s: Cancel the request after this many seconds

        Raises:
            BackendTimeoutError, BackendUnavailableError, BackendRejectedError
        """
        url = self.build_url(path)
        merged_headers = {**self.default_headers, **(headers or {})}
        client = self._get_client()
        start = time.perf_counter()

        send = client.request(method, url, json=json, params=params, headers=merged_headers)
        try:
            if deadline_s is not None:
                response = await asyncio.wait_for(send, timeout=deadline_s)
            else:
                response = await send
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"{method} {path} timed out after {(time.perf_counter() - start) * 1000:.0f}ms")
            raise BackendTimeoutError(f"{method} {path} timeout - backend unreachable") from e
        except httpx.RequestError as e:
            logger.warning(f"{method} {path} network error: {e}")
            raise BackendUnavailableError(f"{method} {path} network error - backend server down ({e})") from e

        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        try:
            data = response.json()
        except ValueError:
            data = None

        logger.info(
            f"{method} {path} -> {response.status_code}",
            extra={"method": method, "route": path, "status": response.status_code, "latency_ms": latency_ms},
        )

        if response.is_error:
            raise BackendRejectedError(
                extract_error_message(data, response.status_code),
                status_code=response.status_code,
                payload=data if data is not None else response.text,
                server_message=extract_server_message(data),
            )
        return data

    async def probe(self, path: str) -> bool:
        """
        Reachability check: any HTTP answer counts as reachable.

        Uses the client's default timeout only.
        """
        try:
            response = await self._get_client().get(self.build_url(path), headers=self.default_headers)
        except httpx.RequestError as e:
            logger.warning(f"Backend health check failed for {path}: {e}")
            return False
        logger.debug(f"Backend health check {path} -> {response.status_code}")
        return True

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
