"""
Tests for Client: canned JSON-RPC responses, no network.

Uses a FakeTransport keyed by method name, exercising request building
and response decoding in client.py.

Test plan:
- Request envelope: jsonrpc 2.0, unique ids, positional params, base URL
- Getters: getAccount, getTransactionStatus, getLedgerEntry, contract data
- simulateTransaction: success, domain error -> SIMULATION_FAILED
- getEvents: keyed params (reference example), null result, decoded records
- send_transaction through the client with injected clock/sleep
- JSON-RPC error object -> JSON_RPC, missing result -> DECODE,
  malformed result -> DECODE
- Codec round trip through the transport boundary
- create_client() env fallback
"""

import base64
import io
from typing import Any

import pytest

from soroban_rpc.client import Client, create_client
from soroban_rpc.errors import RpcClientError, RpcErrorCode
from soroban_rpc.models import EventType, TransactionStatusResult
from soroban_rpc.submission import PollPolicy
from soroban_rpc.transport import HttpxTransport

URL = "http://localhost:8000/soroban/rpc"

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeTransport:
    """Returns canned JSON-RPC responses by method name.

    A list value is consumed one response per call; the last one repeats.
    """

    def __init__(self, responses: dict[str, Any]) -> None:
        self._responses = responses
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def methods(self) -> list[str]:
        return [payload["method"] for _, payload in self.calls]

    def params(self, method: str) -> list[Any]:
        return [p["params"] for _, p in self.calls if p["method"] == method]

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((url, payload))
        canned = self._responses[payload["method"]]
        if isinstance(canned, list):
            seen = len(self.params(payload["method"]))
            canned = canned[min(seen, len(canned)) - 1]
        return {"jsonrpc": "2.0", "id": payload["id"], **canned}


class FakeEnvelope:
    """Minimal XDR object: raw bytes in, base64 out, and back."""

    def __init__(self, raw: bytes) -> None:
        self.raw = raw

    def to_xdr(self) -> str:
        return base64.b64encode(self.raw).decode("ascii")

    @classmethod
    def from_xdr(cls, xdr: str) -> "FakeEnvelope":
        return cls(base64.b64decode(xdr))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FakeEnvelope) and other.raw == self.raw


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.now += seconds


def _ok(result: Any) -> dict[str, Any]:
    return {"result": result}


ACCOUNT = {"id": "GABC", "sequence": "4294967296"}
LEDGER_ENTRY = {"xdr": "AAAABgAAAAE="}
SIMULATION = {"footprint": "AAAAAgAAAAA=", "cost": {"cpuInsns": "1200", "memBytes": "640"}}
SIMULATION_ERROR = {**SIMULATION, "error": "HostError: contract trapped"}
EVENT = {
    "type": "contract",
    "ledger": "150",
    "ledgerClosedAt": "2022-11-16T16:10:41Z",
    "id": "0000000644245508096-0000000000",
    "pagingToken": "0000000644245508096-0000000000",
    "contractId": "C123",
    "topic": ["AAAADwAAAAh0cmFuc2Zlcg=="],
    "value": {"xdr": "AAAAAwAAAAE="},
}


def _client(transport: FakeTransport, **kwargs: Any) -> Client:
    kwargs.setdefault("output", io.StringIO())
    return Client(URL, transport=transport, **kwargs)


# ---------------------------------------------------------------------------
# Request envelope
# ---------------------------------------------------------------------------


class TestRequestEnvelope:
    @pytest.mark.asyncio
    async def test_jsonrpc_fields(self) -> None:
        transport = FakeTransport({"getAccount": _ok(ACCOUNT)})
        await _client(transport).get_account("GABC")

        url, payload = transport.calls[0]
        assert url == URL
        assert payload["jsonrpc"] == "2.0"
        assert payload["method"] == "getAccount"
        assert payload["params"] == ["GABC"]
        assert isinstance(payload["id"], int)

    @pytest.mark.asyncio
    async def test_ids_are_unique(self) -> None:
        transport = FakeTransport({"getAccount": _ok(ACCOUNT)})
        client = _client(transport)
        await client.get_account("GABC")
        await client.get_account("GABC")
        ids = [payload["id"] for _, payload in transport.calls]
        assert ids[0] != ids[1]

    def test_url_property(self) -> None:
        assert _client(FakeTransport({})).url == URL

    def test_default_transport_is_httpx(self) -> None:
        client = Client(URL)
        assert isinstance(client._transport, HttpxTransport)
        assert client.poll_policy == PollPolicy()

    def test_default_transport_timeout(self) -> None:
        assert Client(URL)._transport._timeout == 30.0
        assert Client(URL, timeout_s=5.0)._transport._timeout == 5.0

    @pytest.mark.parametrize(
        "kwargs", [{"headers": {"X-Trace": "abc"}}, {"timeout_s": 5.0}]
    )
    def test_transport_options_rejected_with_injected_transport(
        self, kwargs: dict[str, Any]
    ) -> None:
        with pytest.raises(ValueError, match="default transport"):
            Client(URL, transport=FakeTransport({}), **kwargs)


# ---------------------------------------------------------------------------
# Getters
# ---------------------------------------------------------------------------


class TestGetters:
    @pytest.mark.asyncio
    async def test_get_account(self) -> None:
        client = _client(FakeTransport({"getAccount": _ok(ACCOUNT)}))
        account = await client.get_account("GABC")
        assert account.id == "GABC"
        assert account.sequence == "4294967296"

    @pytest.mark.asyncio
    async def test_get_transaction_status_single_call(self) -> None:
        transport = FakeTransport(
            {"getTransactionStatus": _ok({"id": "t1", "status": "pending"})}
        )
        status = await _client(transport).get_transaction_status("t1")
        assert status.status == "pending"
        assert status.results == ()
        assert transport.methods() == ["getTransactionStatus"]
        assert transport.params("getTransactionStatus") == [["t1"]]

    @pytest.mark.asyncio
    async def test_get_ledger_entry_encodes_key(self) -> None:
        transport = FakeTransport({"getLedgerEntry": _ok(LEDGER_ENTRY)})
        entry = await _client(transport).get_ledger_entry(FakeEnvelope(b"\x00\x00\x00\x06"))
        assert entry.xdr == LEDGER_ENTRY["xdr"]
        assert transport.params("getLedgerEntry") == [["AAAABg=="]]

    @pytest.mark.asyncio
    async def test_get_ledger_entry_accepts_raw_bytes(self) -> None:
        transport = FakeTransport({"getLedgerEntry": _ok(LEDGER_ENTRY)})
        await _client(transport).get_ledger_entry(b"\x00\x00\x00\x06")
        assert transport.params("getLedgerEntry") == [["AAAABg=="]]

    @pytest.mark.asyncio
    async def test_get_contract_data_uses_ledger_entry_method(self) -> None:
        transport = FakeTransport({"getLedgerEntry": _ok(LEDGER_ENTRY)})
        data = await _client(transport).get_contract_data(b"\x01")
        assert data.xdr == LEDGER_ENTRY["xdr"]
        assert transport.methods() == ["getLedgerEntry"]

    @pytest.mark.asyncio
    async def test_bad_key_fails_before_sending(self) -> None:
        transport = FakeTransport({})
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).get_ledger_entry(object())  # type: ignore[arg-type]
        assert exc_info.value.error_code == RpcErrorCode.XDR
        assert transport.calls == []


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


class TestSimulate:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        transport = FakeTransport({"simulateTransaction": _ok(SIMULATION)})
        sim = await _client(transport).simulate_transaction(FakeEnvelope(b"tx"))
        assert sim.footprint == SIMULATION["footprint"]
        assert sim.cost.cpu_insns == "1200"
        assert sim.cost.mem_bytes == "640"
        assert sim.error is None
        assert transport.params("simulateTransaction") == [["dHg="]]

    @pytest.mark.asyncio
    async def test_domain_error_is_simulation_failed(self) -> None:
        transport = FakeTransport({"simulateTransaction": _ok(SIMULATION_ERROR)})
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).simulate_transaction(FakeEnvelope(b"tx"))
        err = exc_info.value
        assert err.error_code == RpcErrorCode.SIMULATION_FAILED
        assert err.detail == "HostError: contract trapped"
        assert not err.is_transport_error

    @pytest.mark.asyncio
    async def test_empty_error_string_is_success(self) -> None:
        transport = FakeTransport({"simulateTransaction": _ok({**SIMULATION, "error": ""})})
        sim = await _client(transport).simulate_transaction(FakeEnvelope(b"tx"))
        assert sim.cost.cpu_insns == "1200"

    @pytest.mark.asyncio
    async def test_transport_error_is_not_simulation_failed(self) -> None:
        transport = FakeTransport(
            {"simulateTransaction": {"error": {"code": -32602, "message": "invalid params"}}}
        )
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).simulate_transaction(FakeEnvelope(b"tx"))
        assert exc_info.value.error_code == RpcErrorCode.JSON_RPC
        assert exc_info.value.is_transport_error


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestGetEvents:
    @pytest.mark.asyncio
    async def test_reference_example_params(self) -> None:
        transport = FakeTransport({"getEvents": _ok([EVENT])})
        await _client(transport).get_events(100, 200, EventType.CONTRACT, ["C123"], [], 10)

        assert transport.params("getEvents") == [
            {
                "startLedger": "100",
                "endLedger": "200",
                "filters": [{"type": "contract", "contractIds": ["C123"], "topics": []}],
                "pagination": {"limit": 10},
            }
        ]

    @pytest.mark.asyncio
    async def test_all_omits_type(self) -> None:
        transport = FakeTransport({"getEvents": _ok([])})
        await _client(transport).get_events(1, 2, EventType.ALL, [], [])
        (params,) = transport.params("getEvents")
        assert "type" not in params["filters"][0]
        assert params["pagination"] == {}

    @pytest.mark.asyncio
    async def test_decodes_events(self) -> None:
        transport = FakeTransport({"getEvents": _ok([EVENT])})
        events = await _client(transport).get_events(100, 200, None, [], [])
        assert events is not None
        (event,) = events
        assert event.event_type == "contract"
        assert event.contract_id == "C123"
        assert event.ledger_closed_at == "2022-11-16T16:10:41Z"
        assert event.topic == ("AAAADwAAAAh0cmFuc2Zlcg==",)
        assert event.value.xdr == "AAAAAwAAAAE="

    @pytest.mark.asyncio
    async def test_null_result_is_none(self) -> None:
        transport = FakeTransport({"getEvents": _ok(None)})
        assert await _client(transport).get_events(1, 2, None, [], []) is None

    @pytest.mark.asyncio
    async def test_empty_list_is_empty(self) -> None:
        transport = FakeTransport({"getEvents": _ok([])})
        assert await _client(transport).get_events(1, 2, None, [], []) == []


# ---------------------------------------------------------------------------
# send_transaction through the client
# ---------------------------------------------------------------------------


class TestSendTransaction:
    @pytest.mark.asyncio
    async def test_submit_then_poll(self) -> None:
        transport = FakeTransport(
            {
                "sendTransaction": _ok({"id": "t1", "status": "pending"}),
                "getTransactionStatus": [
                    _ok({"id": "t1", "status": "pending"}),
                    _ok({"id": "t1", "status": "success", "results": [{"xdr": "AAAA"}]}),
                ],
            }
        )
        clock = FakeClock()
        out = io.StringIO()
        client = _client(transport, clock_fn=clock, sleep_fn=clock.sleep, output=out)

        results = await client.send_transaction(FakeEnvelope(b"signed"))

        assert results == (TransactionStatusResult(xdr="AAAA"),)
        assert transport.methods() == [
            "sendTransaction",
            "getTransactionStatus",
            "getTransactionStatus",
        ]
        assert transport.params("sendTransaction") == [["c2lnbmVk"]]
        assert transport.params("getTransactionStatus") == [["t1"], ["t1"]]
        assert out.getvalue() == "success\n"
        assert clock.now == 1.0

    @pytest.mark.asyncio
    async def test_jsonrpc_error_on_submit_is_submission_failed(self) -> None:
        transport = FakeTransport(
            {"sendTransaction": {"error": {"code": -32600, "message": "bad tx"}}}
        )
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).send_transaction(FakeEnvelope(b"signed"))
        assert exc_info.value.error_code == RpcErrorCode.SUBMISSION_FAILED
        assert transport.methods() == ["sendTransaction"]

    @pytest.mark.asyncio
    async def test_malformed_ack_is_submission_failed(self) -> None:
        transport = FakeTransport({"sendTransaction": _ok({"status": "pending"})})
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).send_transaction(FakeEnvelope(b"signed"))
        assert exc_info.value.error_code == RpcErrorCode.SUBMISSION_FAILED

    @pytest.mark.asyncio
    async def test_custom_policy_times_out(self) -> None:
        transport = FakeTransport(
            {
                "sendTransaction": _ok({"id": "t1", "status": "pending"}),
                "getTransactionStatus": _ok({"id": "t1", "status": "pending"}),
            }
        )
        clock = FakeClock()
        client = _client(
            transport,
            poll_policy=PollPolicy(timeout_s=3.0, interval_s=1.0),
            clock_fn=clock,
            sleep_fn=clock.sleep,
        )
        with pytest.raises(RpcClientError) as exc_info:
            await client.send_transaction(FakeEnvelope(b"signed"))
        assert exc_info.value.error_code == RpcErrorCode.SUBMISSION_TIMEOUT
        assert len(transport.params("getTransactionStatus")) == 5


# ---------------------------------------------------------------------------
# Response errors
# ---------------------------------------------------------------------------


class TestResponseErrors:
    @pytest.mark.asyncio
    async def test_jsonrpc_error_object(self) -> None:
        transport = FakeTransport(
            {"getAccount": {"error": {"code": -32601, "message": "method not found", "data": "x"}}}
        )
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).get_account("GABC")
        err = exc_info.value
        assert err.error_code == RpcErrorCode.JSON_RPC
        assert err.detail == "method not found"
        assert err.details["code"] == -32601
        assert err.details["data"] == "x"

    @pytest.mark.asyncio
    async def test_missing_result(self) -> None:
        transport = FakeTransport({"getAccount": {}})
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).get_account("GABC")
        assert exc_info.value.error_code == RpcErrorCode.DECODE

    @pytest.mark.asyncio
    async def test_shape_mismatch(self) -> None:
        transport = FakeTransport({"getAccount": _ok({"id": "GABC", "sequence": 7})})
        with pytest.raises(RpcClientError) as exc_info:
            await _client(transport).get_account("GABC")
        err = exc_info.value
        assert err.error_code == RpcErrorCode.DECODE
        assert err.details["path"] == "sequence"


# ---------------------------------------------------------------------------
# Codec round trip at the transport boundary
# ---------------------------------------------------------------------------


class TestCodecRoundTrip:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [b"", b"\x00\x00\x00\x02", bytes(range(256))])
    async def test_envelope_survives_the_wire(self, raw: bytes) -> None:
        transport = FakeTransport({"simulateTransaction": _ok(SIMULATION)})
        original = FakeEnvelope(raw)
        await _client(transport).simulate_transaction(original)

        ((sent,),) = transport.params("simulateTransaction")
        assert FakeEnvelope.from_xdr(sent) == original


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateClient:
    def test_explicit_url(self) -> None:
        assert create_client(URL).url == URL

    def test_env_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOROBAN_RPC_URL", "http://rpc.example:8000")
        assert create_client().url == "http://rpc.example:8000"

    def test_missing_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SOROBAN_RPC_URL", raising=False)
        with pytest.raises(ValueError, match="SOROBAN_RPC_URL"):
            create_client()

    def test_kwargs_forwarded(self) -> None:
        policy = PollPolicy(timeout_s=1.0)
        client = create_client(URL, transport=FakeTransport({}), poll_policy=policy)
        assert client.poll_policy is policy
