"""Tests for the Polygon JSON-RPC client and OrderFilled decoding."""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from web3 import Web3

from insider_tracker.api.chain import (
    ORDER_FILLED_TOPIC,
    decode_order_filled,
)
from insider_tracker.errors import ConnectivityError, DecodeError

from conftest import rpc_client

MAKER = "0x" + "ab" * 20
TAKER = "0x" + "cd" * 20


def pad_address(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


def encode_log(words=(123457, 0, 50_000 * 10**6, 100_000 * 10**6, 0), block=1001):
    return {
        "topics": [
            ORDER_FILLED_TOPIC,
            "0x" + "11" * 32,
            pad_address(MAKER),
            pad_address(TAKER),
        ],
        "data": "0x" + "".join(f"{w:064x}" for w in words),
        "blockNumber": hex(block),
        "transactionHash": "0x" + "22" * 32,
    }


def test_topic_is_keccak_of_signature():
    assert ORDER_FILLED_TOPIC.startswith("0x")
    assert len(ORDER_FILLED_TOPIC) == 66


def test_decode_order_filled():
    event = decode_order_filled(encode_log())

    assert event.maker == Web3.to_checksum_address(MAKER)
    assert event.taker == Web3.to_checksum_address(TAKER)
    assert event.maker_asset_id == 123457
    assert event.taker_asset_id == 0
    assert event.maker_amount_filled == 50_000 * 10**6
    assert event.taker_amount_filled == 100_000 * 10**6
    assert event.block_height == 1001
    assert event.order_hash == "0x" + "11" * 32
    assert event.transaction_hash == "0x" + "22" * 32


def test_decode_rejects_missing_topics():
    log = encode_log()
    log["topics"] = log["topics"][:3]
    with pytest.raises(DecodeError):
        decode_order_filled(log)


def test_decode_rejects_short_data():
    log = encode_log()
    log["data"] = log["data"][:200]
    with pytest.raises(DecodeError):
        decode_order_filled(log)


def test_decode_rejects_non_hex_data():
    log = encode_log()
    log["data"] = "0x" + "zz" * 160
    with pytest.raises(DecodeError):
        decode_order_filled(log)


def test_current_height():
    client = rpc_client({"eth_blockNumber": {"result": "0x3e8"}})
    assert asyncio.run(client.current_height()) == 1000


def test_balance_and_transaction_count_params():
    requests = []
    client = rpc_client(
        {
            "eth_getBalance": {"result": "0xde0b6b3a7640000"},
            "eth_getTransactionCount": {"result": "0x2"},
        },
        requests,
    )

    assert asyncio.run(client.balance_at(MAKER, 1000)) == 10**18
    assert asyncio.run(client.transaction_count(MAKER)) == 2
    assert requests[0]["params"] == [MAKER, "0x3e8"]
    assert requests[1]["params"] == [MAKER, "latest"]


def test_block_timestamp_is_utc():
    client = rpc_client({"eth_getBlockByNumber": {"result": {"timestamp": hex(1_767_225_600)}}})

    ts = asyncio.run(client.block_timestamp(1000))

    assert ts == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_missing_block_is_connectivity_error():
    client = rpc_client({"eth_getBlockByNumber": {"result": None}})
    with pytest.raises(ConnectivityError):
        asyncio.run(client.block_timestamp(1000))


def test_block_without_timestamp_is_connectivity_error():
    client = rpc_client({"eth_getBlockByNumber": {"result": {"number": "0x3e8"}}})
    with pytest.raises(ConnectivityError, match="malformed timestamp"):
        asyncio.run(client.block_timestamp(1000))


@pytest.mark.parametrize("result", [None, "not-hex", 42])
def test_malformed_quantity_result_is_connectivity_error(result):
    client = rpc_client({"eth_getBalance": {"result": result}})
    with pytest.raises(ConnectivityError, match="eth_getBalance returned malformed result"):
        asyncio.run(client.balance_at(MAKER, 1000))


def test_non_object_response_body_is_connectivity_error():
    client = rpc_client({"eth_blockNumber": httpx.Response(200, json=["0x10"])})
    with pytest.raises(ConnectivityError, match="malformed response"):
        asyncio.run(client.current_height())


def test_rpc_error_object_is_connectivity_error():
    client = rpc_client(
        {"eth_getLogs": {"error": {"code": -32005, "message": "block range too large"}}}
    )
    with pytest.raises(ConnectivityError, match="block range too large"):
        asyncio.run(client.logs_in_range(1, 10_000))


def test_http_error_is_connectivity_error():
    client = rpc_client({"eth_blockNumber": httpx.Response(503)})
    with pytest.raises(ConnectivityError):
        asyncio.run(client.current_height())


def test_transport_error_is_connectivity_error():
    client = rpc_client({"eth_blockNumber": httpx.ConnectError("connection refused")})
    with pytest.raises(ConnectivityError):
        asyncio.run(client.current_height())


def test_logs_in_range_filters_and_skips_bad_logs():
    requests = []
    bad = encode_log()
    bad["topics"] = bad["topics"][:2]
    client = rpc_client(
        {"eth_getLogs": {"result": [encode_log(block=1001), bad, encode_log(block=1005)]}},
        requests,
    )

    events = asyncio.run(client.logs_in_range(1001, 1050))

    assert [e.block_height for e in events] == [1001, 1005]
    log_filter = requests[0]["params"][0]
    assert log_filter["topics"] == [ORDER_FILLED_TOPIC]
    assert log_filter["fromBlock"] == hex(1001)
    assert log_filter["toBlock"] == hex(1050)
    assert log_filter["address"] == client.exchange_address
