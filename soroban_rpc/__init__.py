"""
Soroban JSON-RPC client.

Public API:

    Client:
        - ``Client``: get_account, send_transaction, simulate_transaction,
          get_transaction_status, get_ledger_entry, get_contract_data,
          get_events.
        - ``create_client()``: factory, reads ``$SOROBAN_RPC_URL``.

    Submission state machine:
        - ``submit_and_poll()``: acknowledge + poll to a terminal state.
        - ``PollPolicy``: timeout (10s) and interval (1s).
        - ``TransactionBackend``: protocol the state machine drives.

    Event queries:
        - ``build_get_events_params()``: keyed getEvents parameters.
        - ``EventType``: all | contract | system.

    Errors:
        - ``RpcClientError`` with ``RpcErrorCode``.

    Transport / codec:
        - ``JsonRpcTransport``, ``HttpxTransport``.
        - ``XdrSerializable``, ``to_xdr_base64``, ``from_xdr_base64``.
"""

__version__ = "0.1.0"

from soroban_rpc.client import Client, create_client
from soroban_rpc.codec import XdrSerializable, from_xdr_base64, to_xdr_base64
from soroban_rpc.errors import RpcClientError, RpcErrorCode
from soroban_rpc.events import build_get_events_params
from soroban_rpc.models import (
    Cost,
    Event,
    EventType,
    EventValue,
    GetAccountResponse,
    GetContractDataResponse,
    GetLedgerEntryResponse,
    GetTransactionStatusResponse,
    SendTransactionResponse,
    SimulateTransactionResponse,
    TransactionStatusResult,
)
from soroban_rpc.submission import PollPolicy, TransactionBackend, submit_and_poll
from soroban_rpc.transport import HttpxTransport, JsonRpcTransport

__all__ = [
    "Client",
    "Cost",
    "Event",
    "EventType",
    "EventValue",
    "GetAccountResponse",
    "GetContractDataResponse",
    "GetLedgerEntryResponse",
    "GetTransactionStatusResponse",
    "HttpxTransport",
    "JsonRpcTransport",
    "PollPolicy",
    "RpcClientError",
    "RpcErrorCode",
    "SendTransactionResponse",
    "SimulateTransactionResponse",
    "TransactionBackend",
    "TransactionStatusResult",
    "XdrSerializable",
    "build_get_events_params",
    "create_client",
    "from_xdr_base64",
    "submit_and_poll",
    "to_xdr_base64",
    "__version__",
]
