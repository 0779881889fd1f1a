"""
Parameter builder for the getEvents method.

getEvents is the one method in this protocol called with a keyed
parameter object rather than positional params:

    {
        "startLedger": "100",             # decimal string
        "endLedger": "200",               # decimal string
        "filters": [                      # always exactly one group
            {"type": "contract",          # omitted for EventType.ALL
             "topics": [...],             # always present, may be []
             "contractIds": [...]},       # always present, may be []
        ],
        "pagination": {"limit": 10},      # {} when no limit
    }

Cursor pagination is not supported.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from soroban_rpc.models import EventType

# Ledger sequence numbers are unsigned 32-bit on the node.
MAX_LEDGER_SEQ = 2**32 - 1


def _validate_ledger(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got: {value!r}")
    if not 0 <= value <= MAX_LEDGER_SEQ:
        raise ValueError(f"{name} must be in [0, {MAX_LEDGER_SEQ}], got: {value}")


def build_filter(
    event_type: EventType | None,
    contract_ids: Iterable[str],
    topics: Iterable[str],
) -> dict[str, Any]:
    """Build one filter group. ``None`` and ``EventType.ALL`` both omit ``type``."""
    group: dict[str, Any] = {}
    if event_type is not None:
        wire_type = EventType(event_type).wire_value()
        if wire_type is not None:
            group["type"] = wire_type
    group["topics"] = list(topics)
    group["contractIds"] = list(contract_ids)
    return group


def build_pagination(limit: int | None) -> dict[str, Any]:
    pagination: dict[str, Any] = {}
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValueError(f"limit must be a non-negative int, got: {limit!r}")
        pagination["limit"] = limit
    return pagination


def build_get_events_params(
    start_ledger: int,
    end_ledger: int,
    event_type: EventType | None,
    contract_ids: Iterable[str],
    topics: Iterable[str],
    limit: int | None = None,
) -> dict[str, Any]:
    """Assemble the keyed parameter object for getEvents.

    Args:
        start_ledger: First ledger of the range.
        end_ledger: Last ledger of the range.
        event_type: Kind filter. None or ALL means every kind.
        contract_ids: Contract ids to match. Empty is a real filter value.
        topics: Topics to match. Empty is a real filter value.
        limit: Maximum number of events, or None for the node default.

    Returns:
        Parameter dict with keys in wire order.

    Raises:
        ValueError: If a ledger is not an unsigned 32-bit int, or limit
            is negative.
    """
    _validate_ledger("start_ledger", start_ledger)
    _validate_ledger("end_ledger", end_ledger)

    return {
        "startLedger": str(start_ledger),
        "endLedger": str(end_ledger),
        "filters": [build_filter(event_type, contract_ids, topics)],
        "pagination": build_pagination(limit),
    }
