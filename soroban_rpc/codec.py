"""
XDR codec boundary.

The client never builds XDR itself. It accepts any object that can
serialize itself to base64 XDR (``to_xdr()``, the convention used by
stellar-sdk envelopes and ledger keys) or raw XDR bytes, and hands the
base64 string to the wire.

Failures here are always ``RpcErrorCode.XDR`` and are never retried.
"""

from __future__ import annotations

import base64
import binascii
from typing import Protocol, runtime_checkable

from soroban_rpc.errors import RpcClientError, RpcErrorCode


@runtime_checkable
class XdrSerializable(Protocol):
    """Anything that renders itself as base64 XDR."""

    def to_xdr(self) -> str:
        ...


def _xdr_error(message: str) -> RpcClientError:
    return RpcClientError(f"xdr processing error: {message}", error_code=RpcErrorCode.XDR)


def to_xdr_base64(value: XdrSerializable | bytes | bytearray) -> str:
    """Encode a domain object (or raw XDR bytes) to its base64 wire form.

    Raises:
        RpcClientError: XDR, if the object cannot be encoded or encodes
            to something that is not base64.
    """
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")

    if not isinstance(value, XdrSerializable):
        raise _xdr_error(f"{type(value).__name__} has no to_xdr()")

    try:
        encoded = value.to_xdr()
    except Exception as exc:
        raise _xdr_error(str(exc)) from exc

    if isinstance(encoded, (bytes, bytearray)):
        return base64.b64encode(bytes(encoded)).decode("ascii")
    if not isinstance(encoded, str):
        raise _xdr_error(f"to_xdr() returned {type(encoded).__name__}")

    # Reject anything that would not decode on the node side.
    from_xdr_base64(encoded)
    return encoded


def from_xdr_base64(text: str) -> bytes:
    """Decode a base64 XDR string from a response into raw bytes."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise _xdr_error(f"invalid base64: {exc}") from exc
