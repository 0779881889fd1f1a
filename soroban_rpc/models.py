"""
Response model for the Soroban JSON-RPC methods.

Every record is a frozen dataclass built fresh per call from the
decoded JSON result. Shapes are checked with jsonschema before any field
is read, so a server that drifts from the wire contract surfaces as a
single ``RpcErrorCode.DECODE`` error instead of a KeyError deep inside
the client.

Wire keys are camelCase; attribute names are snake_case. ``to_dict()``
returns the wire shape and omits optional keys that are unset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import jsonschema  # type: ignore[import-untyped]

from soroban_rpc.errors import RpcClientError, RpcErrorCode

# =========================================================================
# Schemas
# =========================================================================

_STR = {"type": "string"}
_XDR_OBJECT = {
    "type": "object",
    "required": ["xdr"],
    "properties": {"xdr": _STR},
}

GET_ACCOUNT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "sequence"],
    "properties": {"id": _STR, "sequence": _STR},
}

SEND_TRANSACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "status"],
    "properties": {"id": _STR, "status": _STR},
}

GET_TRANSACTION_STATUS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "status"],
    "properties": {
        "id": _STR,
        "status": _STR,
        "envelopeXdr": _STR,
        "resultXdr": _STR,
        "resultMetaXdr": _STR,
        "results": {"type": "array", "items": _XDR_OBJECT},
    },
}

LEDGER_ENTRY_SCHEMA: dict[str, Any] = _XDR_OBJECT

SIMULATE_TRANSACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["footprint", "cost"],
    "properties": {
        "footprint": _STR,
        "cost": {
            "type": "object",
            "required": ["cpuInsns", "memBytes"],
            "properties": {"cpuInsns": _STR, "memBytes": _STR},
        },
        "error": {"type": ["string", "null"]},
    },
}

EVENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": [
        "type",
        "ledger",
        "ledgerClosedAt",
        "id",
        "pagingToken",
        "contractId",
        "topic",
        "value",
    ],
    "properties": {
        "type": _STR,
        "ledger": _STR,
        "ledgerClosedAt": _STR,
        "id": _STR,
        "pagingToken": _STR,
        "contractId": _STR,
        "topic": {"type": "array", "items": _STR},
        "value": _XDR_OBJECT,
    },
}

GET_EVENTS_SCHEMA: dict[str, Any] = {
    "type": ["array", "null"],
    "items": EVENT_SCHEMA,
}


def validate_shape(instance: Any, schema: dict[str, Any], name: str) -> None:
    """Validate a decoded result against its schema.

    Raises:
        RpcClientError: DECODE, naming the record and the failing path.
    """
    try:
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError as exc:
        path = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise RpcClientError(
            f"json decoding error: {name}: {exc.message}",
            error_code=RpcErrorCode.DECODE,
            details={"record": name, "path": path},
        ) from exc


# =========================================================================
# Records
# =========================================================================


@dataclass(frozen=True)
class GetAccountResponse:
    """Account info. ``sequence`` stays a decimal string as on the wire."""

    id: str
    sequence: str

    @classmethod
    def from_dict(cls, data: Any) -> GetAccountResponse:
        validate_shape(data, GET_ACCOUNT_SCHEMA, "getAccount")
        return cls(id=data["id"], sequence=data["sequence"])

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "sequence": self.sequence}


@dataclass(frozen=True)
class SendTransactionResponse:
    """Submission acknowledgment.

    ``status`` here is only an acknowledgment. The authoritative status
    and the result entries come from getTransactionStatus.
    """

    id: str
    status: str

    @classmethod
    def from_dict(cls, data: Any) -> SendTransactionResponse:
        validate_shape(data, SEND_TRANSACTION_SCHEMA, "sendTransaction")
        return cls(id=data["id"], status=data["status"])

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "status": self.status}


@dataclass(frozen=True)
class TransactionStatusResult:
    """One opaque base64 XDR result entry."""

    xdr: str

    def to_dict(self) -> dict[str, Any]:
        return {"xdr": self.xdr}


@dataclass(frozen=True)
class GetTransactionStatusResponse:
    """Per-transaction status as reported by the node.

    Attributes:
        id: Transaction id assigned at submission.
        status: "pending", "success", "error", or any other string the
            node chooses to send. Not coerced.
        envelope_xdr: Base64 envelope, when the node includes it.
        result_xdr: Base64 result, when the node includes it.
        result_meta_xdr: Base64 result meta, when the node includes it.
        results: Result entries, in node order. Empty unless success.
    """

    id: str
    status: str
    envelope_xdr: str | None = None
    result_xdr: str | None = None
    result_meta_xdr: str | None = None
    results: tuple[TransactionStatusResult, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Any) -> GetTransactionStatusResponse:
        validate_shape(data, GET_TRANSACTION_STATUS_SCHEMA, "getTransactionStatus")
        return cls(
            id=data["id"],
            status=data["status"],
            envelope_xdr=data.get("envelopeXdr"),
            result_xdr=data.get("resultXdr"),
            result_meta_xdr=data.get("resultMetaXdr"),
            results=tuple(
                TransactionStatusResult(xdr=r["xdr"]) for r in data.get("results") or []
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "status": self.status}
        if self.envelope_xdr is not None:
            out["envelopeXdr"] = self.envelope_xdr
        if self.result_xdr is not None:
            out["resultXdr"] = self.result_xdr
        if self.result_meta_xdr is not None:
            out["resultMetaXdr"] = self.result_meta_xdr
        if self.results:
            out["results"] = [r.to_dict() for r in self.results]
        return out


@dataclass(frozen=True)
class GetLedgerEntryResponse:
    """A single ledger entry as base64 XDR."""

    xdr: str

    @classmethod
    def from_dict(cls, data: Any) -> GetLedgerEntryResponse:
        validate_shape(data, LEDGER_ENTRY_SCHEMA, "getLedgerEntry")
        return cls(xdr=data["xdr"])

    def to_dict(self) -> dict[str, Any]:
        return {"xdr": self.xdr}


@dataclass(frozen=True)
class GetContractDataResponse:
    """Contract data entry. Same wire shape as a ledger entry."""

    xdr: str

    @classmethod
    def from_dict(cls, data: Any) -> GetContractDataResponse:
        validate_shape(data, LEDGER_ENTRY_SCHEMA, "getContractData")
        return cls(xdr=data["xdr"])

    def to_dict(self) -> dict[str, Any]:
        return {"xdr": self.xdr}


@dataclass(frozen=True)
class Cost:
    """Simulated resource cost, decimal strings."""

    cpu_insns: str
    mem_bytes: str

    def to_dict(self) -> dict[str, Any]:
        return {"cpuInsns": self.cpu_insns, "memBytes": self.mem_bytes}


@dataclass(frozen=True)
class SimulateTransactionResponse:
    """Dry-run result.

    A non-empty ``error`` means the simulation itself failed; the client
    turns that into SIMULATION_FAILED before the caller ever sees it.
    """

    footprint: str
    cost: Cost
    error: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> SimulateTransactionResponse:
        validate_shape(data, SIMULATE_TRANSACTION_SCHEMA, "simulateTransaction")
        cost = data["cost"]
        return cls(
            footprint=data["footprint"],
            cost=Cost(cpu_insns=cost["cpuInsns"], mem_bytes=cost["memBytes"]),
            error=data.get("error"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"footprint": self.footprint, "cost": self.cost.to_dict()}
        if self.error is not None:
            out["error"] = self.error
        return out


# =========================================================================
# Events
# =========================================================================


class EventType(StrEnum):
    """Event kind filter for getEvents."""

    ALL = "all"
    CONTRACT = "contract"
    SYSTEM = "system"

    def wire_value(self) -> str | None:
        """Filter value as sent to the node. ``all`` is the absent key."""
        if self is EventType.ALL:
            return None
        return self.value


@dataclass(frozen=True)
class EventValue:
    xdr: str


@dataclass(frozen=True)
class Event:
    """One contract event record."""

    event_type: str
    ledger: str
    ledger_closed_at: str
    id: str
    paging_token: str
    contract_id: str
    topic: tuple[str, ...]
    value: EventValue

    @classmethod
    def from_dict(cls, data: Any) -> Event:
        validate_shape(data, EVENT_SCHEMA, "event")
        return cls(
            event_type=data["type"],
            ledger=data["ledger"],
            ledger_closed_at=data["ledgerClosedAt"],
            id=data["id"],
            paging_token=data["pagingToken"],
            contract_id=data["contractId"],
            topic=tuple(data["topic"]),
            value=EventValue(xdr=data["value"]["xdr"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "ledger": self.ledger,
            "ledgerClosedAt": self.ledger_closed_at,
            "id": self.id,
            "pagingToken": self.paging_token,
            "contractId": self.contract_id,
            "topic": list(self.topic),
            "value": {"xdr": self.value.xdr},
        }


def parse_events(data: Any) -> list[Event] | None:
    """Decode a getEvents result. ``null`` means the node reported none."""
    validate_shape(data, GET_EVENTS_SCHEMA, "getEvents")
    if data is None:
        return None
    return [Event.from_dict(item) for item in data]
