"""
Error taxonomy for the Soroban RPC client.

One exception type, many codes. Callers branch on ``error_code`` rather
than on a class hierarchy, so new codes never break existing handlers.

Codes:
    - XDR: a domain object could not be encoded to / decoded from XDR.
    - TRANSPORT, HTTP_ERROR, INVALID_JSON, JSON_RPC, DECODE: the call
      failed on the wire or its payload did not match the expected shape.
    - SUBMISSION_FAILED: the node rejected the transaction or reported
      an ``error`` status while polling.
    - UNEXPECTED_STATUS: the node returned a status outside
      {pending, success, error}. The literal value is kept in ``status``.
    - SUBMISSION_TIMEOUT: polling exceeded the configured ceiling.
    - SIMULATION_FAILED: simulateTransaction succeeded as a call but the
      payload carries a domain error string.
    - CANCELLED: the caller's cancel event was set while polling.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class RpcErrorCode(StrEnum):
    """Machine-readable failure categories."""

    XDR = "XDR"
    TRANSPORT = "TRANSPORT"
    HTTP_ERROR = "HTTP_ERROR"
    INVALID_JSON = "INVALID_JSON"
    JSON_RPC = "JSON_RPC"
    DECODE = "DECODE"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    UNEXPECTED_STATUS = "UNEXPECTED_STATUS"
    SUBMISSION_TIMEOUT = "SUBMISSION_TIMEOUT"
    SIMULATION_FAILED = "SIMULATION_FAILED"
    CANCELLED = "CANCELLED"


# Codes that mean "the call itself failed or came back malformed".
TRANSPORT_ERROR_CODES: frozenset[RpcErrorCode] = frozenset(
    {
        RpcErrorCode.TRANSPORT,
        RpcErrorCode.HTTP_ERROR,
        RpcErrorCode.INVALID_JSON,
        RpcErrorCode.JSON_RPC,
        RpcErrorCode.DECODE,
    }
)


class RpcClientError(Exception):
    """Raised by every client operation on failure.

    Args:
        message: Human-readable summary.
        error_code: Failure category.
        detail: Optional server-provided detail (e.g. the simulation
            error string).
        details: Structured diagnostics (url, method, status code, ...).
        status: Literal transaction status, set for UNEXPECTED_STATUS.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: RpcErrorCode,
        detail: str | None = None,
        details: dict[str, Any] | None = None,
        status: str | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.detail = detail
        self.details = details or {}
        self.status = status

    @property
    def is_transport_error(self) -> bool:
        """True for network, HTTP, JSON and shape-mismatch failures."""
        return self.error_code in TRANSPORT_ERROR_CODES

    def __repr__(self) -> str:
        return f"RpcClientError({self.error_code}, {str(self)!r})"


def submission_failed(cause: str | None = None) -> RpcClientError:
    return RpcClientError(
        "transaction submission failed",
        error_code=RpcErrorCode.SUBMISSION_FAILED,
        detail=cause,
    )


def unexpected_status(status: str) -> RpcClientError:
    return RpcClientError(
        f"unexpected transaction status: {status}",
        error_code=RpcErrorCode.UNEXPECTED_STATUS,
        status=status,
    )


def submission_timeout(elapsed_s: float, timeout_s: float) -> RpcClientError:
    return RpcClientError(
        "transaction submission timeout",
        error_code=RpcErrorCode.SUBMISSION_TIMEOUT,
        details={"elapsed_s": elapsed_s, "timeout_s": timeout_s},
    )


def simulation_failed(error: str) -> RpcClientError:
    return RpcClientError(
        f"transaction simulation failed: {error}",
        error_code=RpcErrorCode.SIMULATION_FAILED,
        detail=error,
    )
