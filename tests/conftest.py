"""Shared fakes for the surveillance pipeline tests."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from insider_tracker.api.chain import FillEvent, PolygonRpcClient
from insider_tracker.api.gamma_api import Market
from insider_tracker.errors import ConnectivityError

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)
BLOCK_SECONDS = 2

WALLET = "0x" + "ab" * 20
OTHER_WALLET = "0x" + "cd" * 20

# Odd last digit, so the outcome heuristic reads YES
ASSET_ID = 71321045679252212594626385532706912750332728571942532289631379312455583992563


class FakeClock:
    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeChain:
    """In-memory block data source."""

    def __init__(self, height: int = 1000):
        self.height = height
        self.height_script: list[int] = []
        self.funded_at: dict[str, int] = {}
        self.tx_counts: dict[str, int] = {}
        self.events: list[FillEvent] = []
        self.fail_logs = False
        self.fail_tx_count = False
        self.fail_balance = False
        self.log_calls: list[tuple[int, int]] = []
        self.balance_calls: list[int] = []
        self.tx_count_calls: list[str] = []

    async def current_height(self) -> int:
        if self.height_script:
            self.height = self.height_script.pop(0)
        return self.height

    async def balance_at(self, address: str, height: int) -> int:
        self.balance_calls.append(height)
        if self.fail_balance:
            raise ConnectivityError("eth_getBalance timed out")
        funded = self.funded_at.get(address.lower())
        return 10**18 if funded is not None and height >= funded else 0

    async def transaction_count(self, address: str) -> int:
        self.tx_count_calls.append(address)
        if self.fail_tx_count:
            raise ConnectivityError("eth_getTransactionCount timed out")
        return self.tx_counts.get(address.lower(), 0)

    async def block_timestamp(self, height: int) -> datetime:
        return BASE_TIME + timedelta(seconds=BLOCK_SECONDS * height)

    async def logs_in_range(self, from_height: int, to_height: int) -> list[FillEvent]:
        self.log_calls.append((from_height, to_height))
        if self.fail_logs:
            raise ConnectivityError("eth_getLogs failed")
        return [e for e in self.events if from_height <= e.block_height <= to_height]


class FakeMarkets:
    def __init__(self, market: Market | None = None, fail: bool = False):
        self.market = market
        self.fail = fail
        self.calls: list[str] = []

    async def get_market(self, condition_id: str) -> Market | None:
        self.calls.append(condition_id)
        if self.fail:
            raise ConnectivityError("Gamma API unreachable")
        return self.market


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.alerts = []

    async def send_alert(self, alert) -> None:
        self.alerts.append(alert)
        if self.fail:
            raise RuntimeError("webhook down")


def make_fill(
    maker: str = WALLET,
    amount_usd: float = 50_000,
    asset_id: int = ASSET_ID,
    block_height: int = 1001,
    order_hash: str = "0x" + "11" * 32,
) -> FillEvent:
    return FillEvent(
        order_hash=order_hash,
        maker=maker,
        taker="0x" + "ef" * 20,
        maker_asset_id=asset_id,
        taker_asset_id=0,
        maker_amount_filled=int(round(amount_usd * 10**6)),
        taker_amount_filled=int(round(amount_usd * 2 * 10**6)),
        fee=0,
        block_height=block_height,
        transaction_hash="0x" + "22" * 32,
    )


def make_market(active: bool = True, closed: bool = False) -> Market:
    return Market(
        condition_id="0xcond",
        question="Will it happen by Friday?",
        slug="will-it-happen",
        active=active,
        closed=closed,
    )


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def rpc_client(results: dict, requests: list | None = None) -> PolygonRpcClient:
    """Client whose transport answers each JSON-RPC method from a dict."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if requests is not None:
            requests.append(body)
        result = results[body["method"]]
        if isinstance(result, httpx.Response):
            return result
        if isinstance(result, Exception):
            raise result
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **result})

    transport = httpx.MockTransport(handler)
    return PolygonRpcClient("https://rpc.test", client=httpx.AsyncClient(transport=transport))
