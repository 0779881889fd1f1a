"""
Soroban JSON-RPC client.

Wraps the six node methods the CLI needs:

    getAccount, sendTransaction (+ getTransactionStatus polling),
    simulateTransaction, getTransactionStatus, getLedgerEntry, getEvents

Binary payloads go through the XDR codec; responses are decoded into
frozen records from ``models``. Uses an injectable transport
(JsonRpcTransport) so tests can replace HTTP with canned responses.

The client holds no mutable state besides configuration, so one
instance can serve concurrent calls.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
from typing import Any, Callable, TextIO

from soroban_rpc import __version__
from soroban_rpc.codec import XdrSerializable, to_xdr_base64
from soroban_rpc.errors import RpcClientError, RpcErrorCode, simulation_failed
from soroban_rpc.events import build_get_events_params
from soroban_rpc.models import (
    Event,
    EventType,
    GetAccountResponse,
    GetContractDataResponse,
    GetLedgerEntryResponse,
    GetTransactionStatusResponse,
    SendTransactionResponse,
    SimulateTransactionResponse,
    TransactionStatusResult,
    parse_events,
)
from soroban_rpc.submission import PollPolicy, SleepFn, submit_and_poll
from soroban_rpc.transport import HttpxTransport, JsonRpcTransport

logger = logging.getLogger(__name__)

RPC_URL_ENV = "SOROBAN_RPC_URL"
DEFAULT_TIMEOUT_S = 30.0

# JSON-RPC request ids; uniqueness within the process is all that matters.
_REQUEST_IDS = itertools.count(1)


def _next_request_id() -> int:
    return next(_REQUEST_IDS)


class Client:
    """Soroban JSON-RPC client bound to one base URL.

    Args:
        base_url: JSON-RPC endpoint, e.g. "http://localhost:8000/soroban/rpc".
        transport: Injectable transport. Defaults to HttpxTransport with
            the client identification headers. An injected transport owns
            its own headers and timeout, so ``headers`` and ``timeout_s``
            must not be passed alongside it.
        poll_policy: Timeout/interval for send_transaction polling.
        headers: Extra headers for the default transport.
        timeout_s: Per-request timeout for the default transport.
            Defaults to 30 seconds.
        output: Stream for the status line printed on success.
            Defaults to sys.stderr.
        print_status: Set False to silence the status line.
        clock_fn: Monotonic clock for polling. Inject for tests.
        sleep_fn: Awaitable sleep for polling. Inject for tests.
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: JsonRpcTransport | None = None,
        poll_policy: PollPolicy | None = None,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        output: TextIO | None = None,
        print_status: bool = True,
        clock_fn: Callable[[], float] | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        if transport is not None and (headers is not None or timeout_s is not None):
            raise ValueError("headers and timeout_s only apply to the default transport")
        self._url = base_url
        self._transport = transport or HttpxTransport(
            timeout=DEFAULT_TIMEOUT_S if timeout_s is None else timeout_s,
            headers=headers,
            version=__version__,
        )
        self._poll_policy = poll_policy or PollPolicy()
        self._output = output
        self._print_status = print_status
        self._clock_fn = clock_fn
        self._sleep_fn = sleep_fn

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    @property
    def poll_policy(self) -> PollPolicy:
        return self._poll_policy

    # -----------------------------------------------------------------
    # Wire
    # -----------------------------------------------------------------

    async def _request(self, method: str, params: list[Any] | dict[str, Any]) -> Any:
        """Issue one JSON-RPC call and return its ``result`` member."""
        payload = {
            "jsonrpc": "2.0",
            "id": _next_request_id(),
            "method": method,
            "params": params,
        }
        response = await self._transport.post_json(self._url, payload)

        error = response.get("error")
        if error is not None:
            if isinstance(error, dict):
                message = error.get("message") or "unknown error"
                code = error.get("code")
                data = error.get("data")
            else:
                message, code, data = str(error), None, None
            raise RpcClientError(
                f"jsonrpc error: {message}",
                error_code=RpcErrorCode.JSON_RPC,
                detail=message,
                details={"method": method, "code": code, "data": data},
            )

        if "result" not in response:
            raise RpcClientError(
                "json decoding error: response has neither result nor error",
                error_code=RpcErrorCode.DECODE,
                details={"method": method},
            )
        return response["result"]

    # -----------------------------------------------------------------
    # Simple getters
    # -----------------------------------------------------------------

    async def get_account(self, account_id: str) -> GetAccountResponse:
        """Fetch account id and sequence number."""
        result = await self._request("getAccount", [account_id])
        return GetAccountResponse.from_dict(result)

    async def get_transaction_status(self, tx_id: str) -> GetTransactionStatusResponse:
        """Query the status of a submitted transaction once. No polling."""
        result = await self._request("getTransactionStatus", [tx_id])
        return GetTransactionStatusResponse.from_dict(result)

    async def get_ledger_entry(
        self, key: XdrSerializable | bytes
    ) -> GetLedgerEntryResponse:
        """Fetch one ledger entry by its XDR ledger key."""
        base64_key = to_xdr_base64(key)
        result = await self._request("getLedgerEntry", [base64_key])
        return GetLedgerEntryResponse.from_dict(result)

    async def get_contract_data(
        self, key: XdrSerializable | bytes
    ) -> GetContractDataResponse:
        """getLedgerEntry for a contract-data ledger key."""
        base64_key = to_xdr_base64(key)
        result = await self._request("getLedgerEntry", [base64_key])
        return GetContractDataResponse.from_dict(result)

    # -----------------------------------------------------------------
    # Transactions
    # -----------------------------------------------------------------

    async def submit_transaction(self, tx_xdr: str) -> SendTransactionResponse:
        """Raw sendTransaction call: acknowledgment only, no polling.

        Most callers want ``send_transaction``.
        """
        result = await self._request("sendTransaction", [tx_xdr])
        return SendTransactionResponse.from_dict(result)

    async def send_transaction(
        self,
        envelope: XdrSerializable | bytes,
        *,
        cancel: asyncio.Event | None = None,
    ) -> tuple[TransactionStatusResult, ...]:
        """Submit a signed envelope and poll until it settles.

        Returns:
            Result entries of the successful transaction.

        Raises:
            RpcClientError: XDR, SUBMISSION_FAILED, UNEXPECTED_STATUS,
                SUBMISSION_TIMEOUT, CANCELLED, or a transport error from
                a status poll.
        """
        return await submit_and_poll(
            self,
            envelope,
            policy=self._poll_policy,
            clock_fn=self._clock_fn,
            sleep_fn=self._sleep_fn,
            output=self._output,
            print_status=self._print_status,
            cancel=cancel,
        )

    async def simulate_transaction(
        self, envelope: XdrSerializable | bytes
    ) -> SimulateTransactionResponse:
        """Dry-run a transaction for footprint and cost.

        Raises:
            RpcClientError: SIMULATION_FAILED when the call succeeded but
                the node reports a simulation error.
        """
        base64_tx = to_xdr_base64(envelope)
        result = await self._request("simulateTransaction", [base64_tx])
        response = SimulateTransactionResponse.from_dict(result)
        if response.error:
            raise simulation_failed(response.error)
        return response

    # -----------------------------------------------------------------
    # Events
    # -----------------------------------------------------------------

    async def get_events(
        self,
        start_ledger: int,
        end_ledger: int,
        event_type: EventType | None,
        contract_ids: list[str],
        topics: list[str],
        limit: int | None = None,
    ) -> list[Event] | None:
        """Query the contract event log.

        Returns:
            Decoded events, or None if the node reports none.
        """
        params = build_get_events_params(
            start_ledger, end_ledger, event_type, contract_ids, topics, limit
        )
        result = await self._request("getEvents", params)
        return parse_events(result)


def create_client(base_url: str | None = None, **kwargs: Any) -> Client:
    """Create a Client, falling back to ``$SOROBAN_RPC_URL``.

    Raises:
        ValueError: If no base URL is given and the variable is unset.
    """
    url = base_url or os.environ.get(RPC_URL_ENV)
    if not url:
        raise ValueError(f"base_url not given and {RPC_URL_ENV} is not set")
    return Client(url, **kwargs)
