"""
Transport protocol for Soroban JSON-RPC calls.

Defines the seam where concrete HTTP implementations plug in. The client
depends on this protocol, not on httpx directly, so tests can swap in a
fake that returns canned responses.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)

Every HttpxTransport request carries the client identification headers
``X-Client-Name`` and ``X-Client-Version``. No retries, no pooling: a
fresh AsyncClient is opened per call.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from soroban_rpc.errors import RpcClientError, RpcErrorCode

logger = logging.getLogger(__name__)

CLIENT_NAME = "soroban-rpc-client"
DEFAULT_CLIENT_VERSION = "devel"


def client_headers(version: str | None = None) -> dict[str, str]:
    """The fixed identification headers sent with every request."""
    return {
        "X-Client-Name": CLIENT_NAME,
        "X-Client-Version": version or DEFAULT_CLIENT_VERSION,
    }


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON-RPC POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Args:
            url: The JSON-RPC endpoint URL.
            payload: The JSON-RPC request body (jsonrpc, id, method, params).

        Returns:
            Parsed JSON response object.

        Raises:
            RpcClientError: On transport-level failures. Implementations
                should use a code from the transport family.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Args:
        timeout: Request timeout in seconds.
        headers: Extra headers merged over the identification headers.
        version: Value for ``X-Client-Version``. Defaults to "devel".
    """

    def __init__(
        self,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        version: str | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {
            "Content-Type": "application/json",
            **client_headers(version),
            **(headers or {}),
        }

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        method = payload.get("method")
        logger.debug("POST %s method=%s", url, method)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload, headers=self._headers)
        except httpx.TimeoutException as e:
            raise RpcClientError(
                f"request timed out after {self._timeout}s",
                error_code=RpcErrorCode.TRANSPORT,
                details={"url": url, "method": method, "timeout_s": self._timeout},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RpcClientError(
                f"transport error: {e}",
                error_code=RpcErrorCode.TRANSPORT,
                details={"url": url, "method": method, "error": str(e)},
            ) from e

        if response.status_code >= 400:
            raise RpcClientError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                error_code=RpcErrorCode.HTTP_ERROR,
                details={
                    "url": url,
                    "method": method,
                    "status_code": response.status_code,
                    "reason": response.reason_phrase,
                },
            )

        try:
            result = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RpcClientError(
                "response was not valid JSON",
                error_code=RpcErrorCode.INVALID_JSON,
                details={
                    "url": url,
                    "method": method,
                    "body_preview": response.content[:200].decode("utf-8", errors="replace"),
                },
            ) from e

        if not isinstance(result, dict):
            raise RpcClientError(
                "response JSON was not an object",
                error_code=RpcErrorCode.INVALID_JSON,
                details={"url": url, "method": method, "type": type(result).__name__},
            )

        return result
