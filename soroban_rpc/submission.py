"""
Submission state machine: submit a transaction, then poll until terminal.

Two explicit steps, never collapsed:

    1. ``sendTransaction`` acknowledgment. Only an ``error`` status (or a
       failed call) short-circuits here. A ``success`` acknowledgment
       does not carry result entries, so polling still happens.
    2. ``getTransactionStatus`` polling, keyed by the id from step 1:

        success  -> print status line, return result entries
        error    -> SUBMISSION_FAILED
        pending  -> check elapsed time, sleep, poll again
        other    -> UNEXPECTED_STATUS carrying the literal string

The elapsed-time check runs once per iteration, after a ``pending``
observation. A single slow poll can overrun the ceiling before the check
fires; the loop does not arm a separate timer.

Clock and sleep are injectable so tests can drive the loop without
waiting. The default sleep is ``asyncio.sleep``, so other tasks keep
running while a transaction is polled.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Callable, Protocol, TextIO, runtime_checkable

from soroban_rpc.codec import XdrSerializable, to_xdr_base64
from soroban_rpc.errors import (
    RpcClientError,
    RpcErrorCode,
    submission_failed,
    submission_timeout,
    unexpected_status,
)
from soroban_rpc.models import (
    GetTransactionStatusResponse,
    SendTransactionResponse,
    TransactionStatusResult,
)

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_INTERVAL_S = 1.0


@dataclass(frozen=True)
class PollPolicy:
    """Polling ceiling and interval, in seconds.

    Defaults match the reference policy: give up after 10s of pending,
    poll once per second.

    The ceiling is compared as fractional seconds (``elapsed > timeout_s``).
    The soroban CLI compares whole elapsed seconds, so with the same
    numbers it keeps polling until 11s and issues one more poll than
    this loop does.
    """

    timeout_s: float = DEFAULT_TIMEOUT_S
    interval_s: float = DEFAULT_INTERVAL_S

    def __post_init__(self) -> None:
        if self.timeout_s < 0:
            raise ValueError(f"timeout_s must be >= 0, got: {self.timeout_s}")
        if self.interval_s < 0:
            raise ValueError(f"interval_s must be >= 0, got: {self.interval_s}")


@runtime_checkable
class TransactionBackend(Protocol):
    """The two calls the state machine needs. ``Client`` implements both."""

    async def submit_transaction(self, tx_xdr: str) -> SendTransactionResponse:
        ...

    async def get_transaction_status(self, tx_id: str) -> GetTransactionStatusResponse:
        ...


SleepFn = Callable[[float], Awaitable[None]]


async def acknowledge(backend: TransactionBackend, tx_xdr: str) -> SendTransactionResponse:
    """Step 1: send the transaction, fail fast on a failed call or ``error``."""
    try:
        ack = await backend.submit_transaction(tx_xdr)
    except RpcClientError as exc:
        raise submission_failed(str(exc)) from exc

    logger.debug("sendTransaction id=%s status=%s", ack.id, ack.status)
    if ack.status == STATUS_ERROR:
        raise submission_failed("sendTransaction returned status=error")
    return ack


async def poll_until_terminal(
    backend: TransactionBackend,
    tx_id: str,
    *,
    policy: PollPolicy | None = None,
    clock_fn: Callable[[], float] | None = None,
    sleep_fn: SleepFn | None = None,
    output: TextIO | None = None,
    print_status: bool = True,
    cancel: asyncio.Event | None = None,
) -> tuple[TransactionStatusResult, ...]:
    """Step 2: poll getTransactionStatus until success, error or timeout.

    Args:
        backend: Source of status responses.
        tx_id: Id returned by the acknowledgment. The only poll key.
        policy: Timeout and interval. Defaults to PollPolicy().
        clock_fn: Monotonic seconds. Default: time.monotonic.
        sleep_fn: Awaitable sleep. Default: asyncio.sleep.
        output: Stream for the terminal status line. Default: sys.stderr.
        print_status: Set False to suppress the status line.
        cancel: Optional event; when set, the next iteration stops
            with CANCELLED instead of polling.

    Returns:
        The success response's result entries, in node order.

    Raises:
        RpcClientError: SUBMISSION_FAILED, UNEXPECTED_STATUS,
            SUBMISSION_TIMEOUT, CANCELLED, or any transport error from
            the status call (propagated unchanged).
    """
    policy = policy or PollPolicy()
    clock_fn = clock_fn or time.monotonic
    sleep_fn = sleep_fn or asyncio.sleep

    start = clock_fn()
    while True:
        if cancel is not None and cancel.is_set():
            raise RpcClientError(
                "transaction polling cancelled",
                error_code=RpcErrorCode.CANCELLED,
                details={"id": tx_id},
            )

        response = await backend.get_transaction_status(tx_id)
        status = response.status
        logger.debug("getTransactionStatus id=%s status=%s", tx_id, status)

        if status == STATUS_SUCCESS:
            if print_status:
                print(status, file=output or sys.stderr)
            return response.results
        if status == STATUS_ERROR:
            raise submission_failed(f"transaction {tx_id} reported status=error")
        if status != STATUS_PENDING:
            raise unexpected_status(status)

        elapsed = clock_fn() - start
        if elapsed > policy.timeout_s:
            raise submission_timeout(elapsed, policy.timeout_s)
        await sleep_fn(policy.interval_s)


async def submit_and_poll(
    backend: TransactionBackend,
    envelope: XdrSerializable | bytes,
    *,
    policy: PollPolicy | None = None,
    clock_fn: Callable[[], float] | None = None,
    sleep_fn: SleepFn | None = None,
    output: TextIO | None = None,
    print_status: bool = True,
    cancel: asyncio.Event | None = None,
) -> tuple[TransactionStatusResult, ...]:
    """Encode, acknowledge, then poll. Produces exactly one outcome.

    Encoding failures raise XDR before anything is sent.
    """
    tx_xdr = to_xdr_base64(envelope)
    ack = await acknowledge(backend, tx_xdr)
    return await poll_until_terminal(
        backend,
        ack.id,
        policy=policy,
        clock_fn=clock_fn,
        sleep_fn=sleep_fn,
        output=output,
        print_status=print_status,
        cancel=cancel,
    )
