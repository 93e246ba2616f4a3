"""JSON-RPC client for the Polygon node - block height, balances and exchange fill logs."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
from web3 import Web3

from ..errors import ConnectivityError, DecodeError

logger = logging.getLogger(__name__)

# Polymarket CTF Exchange on Polygon
CTF_EXCHANGE_ADDRESS = "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"

ORDER_FILLED_SIGNATURE = (
    "OrderFilled(bytes32,address,address,uint256,uint256,uint256,uint256,uint256)"
)
ORDER_FILLED_TOPIC = Web3.to_hex(Web3.keccak(text=ORDER_FILLED_SIGNATURE))

# Non-indexed OrderFilled fields, each one 32-byte word
_DATA_WORDS = 5
_WORD_HEX = 64


@dataclass(frozen=True)
class FillEvent:
    """An OrderFilled event emitted by the exchange contract."""

    order_hash: str
    maker: str  # checksummed address
    taker: str
    maker_asset_id: int  # ERC1155 token ID, 0 when the maker pays USDC
    taker_asset_id: int
    maker_amount_filled: int  # raw units
    taker_amount_filled: int
    fee: int
    block_height: int
    transaction_hash: str = ""


def _topic_address(topic: str) -> str:
    return Web3.to_checksum_address("0x" + topic[-40:])


def decode_order_filled(log: dict[str, Any]) -> FillEvent:
    """
    Decode a raw eth_getLogs entry into a FillEvent.

    Layout: topics = [signature, orderHash, maker, taker];
    data = makerAssetId, takerAssetId, makerAmountFilled,
    takerAmountFilled, fee.

    Raises:
        DecodeError: if the log is not a well-formed OrderFilled entry
    """
    topics = log.get("topics") or []
    if len(topics) < 4:
        raise DecodeError(f"expected 4 topics, got {len(topics)}")

    data = log.get("data") or ""
    data_hex = data[2:] if data.startswith("0x") else data
    if len(data_hex) < _DATA_WORDS * _WORD_HEX:
        raise DecodeError(f"data too short: {len(data_hex)} hex chars")

    try:
        words = [
            int(data_hex[i * _WORD_HEX : (i + 1) * _WORD_HEX], 16)
            for i in range(_DATA_WORDS)
        ]
        block = log.get("blockNumber", "0x0")
        block_height = int(block, 16) if isinstance(block, str) else int(block)

        return FillEvent(
            order_hash=topics[1],
            maker=_topic_address(topics[2]),
            taker=_topic_address(topics[3]),
            maker_asset_id=words[0],
            taker_asset_id=words[1],
            maker_amount_filled=words[2],
            taker_amount_filled=words[3],
            fee=words[4],
            block_height=block_height,
            transaction_hash=log.get("transactionHash", ""),
        )
    except (ValueError, TypeError) as e:
        raise DecodeError(f"malformed OrderFilled log: {e}") from e


class PolygonRpcClient:
    """Read-only JSON-RPC client for a Polygon node."""

    def __init__(
        self,
        rpc_url: str = "https://polygon-rpc.com",
        exchange_address: str = CTF_EXCHANGE_ADDRESS,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.rpc_url = rpc_url
        self.exchange_address = exchange_address
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request_id = 0

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def _call(self, method: str, params: list) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ConnectivityError(f"{method} failed: {e}") from e

        if not isinstance(data, dict):
            raise ConnectivityError(f"{method} returned a malformed response: {data!r}")
        if "error" in data:
            raise ConnectivityError(f"{method} returned error: {data['error']}")

        return data.get("result")

    async def _call_quantity(self, method: str, params: list) -> int:
        """Call a method whose result is a hex-encoded integer."""
        result = await self._call(method, params)
        try:
            return int(result, 16)
        except (TypeError, ValueError) as e:
            raise ConnectivityError(f"{method} returned malformed result: {result!r}") from e

    async def current_height(self) -> int:
        """Get the latest block number."""
        return await self._call_quantity("eth_blockNumber", [])

    async def balance_at(self, address: str, height: int) -> int:
        """Get the native balance (wei) of an address at a block height."""
        return await self._call_quantity("eth_getBalance", [address, hex(height)])

    async def transaction_count(self, address: str) -> int:
        """Get the number of transactions sent from an address."""
        return await self._call_quantity("eth_getTransactionCount", [address, "latest"])

    async def block_timestamp(self, height: int) -> datetime:
        """Get the timestamp of a block as an aware UTC datetime."""
        block = await self._call("eth_getBlockByNumber", [hex(height), False])
        if not block:
            raise ConnectivityError(f"block {height} not available from node")
        try:
            timestamp = int(block["timestamp"], 16)
        except (KeyError, TypeError, ValueError) as e:
            raise ConnectivityError(f"block {height} has malformed timestamp") from e
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    async def logs_in_range(self, from_height: int, to_height: int) -> list[FillEvent]:
        """
        Fetch OrderFilled events emitted by the exchange in a block range.

        The caller is responsible for keeping the range within the
        provider's limit. Logs that fail to decode are skipped.

        Args:
            from_height: First block (inclusive)
            to_height: Last block (inclusive)

        Returns:
            Decoded fill events in chain order
        """
        logs = await self._call(
            "eth_getLogs",
            [
                {
                    "address": self.exchange_address,
                    "topics": [ORDER_FILLED_TOPIC],
                    "fromBlock": hex(from_height),
                    "toBlock": hex(to_height),
                }
            ],
        )

        events = []
        for log in logs or []:
            try:
                events.append(decode_order_filled(log))
            except DecodeError as e:
                logger.warning(
                    f"Skipping undecodable log in tx {log.get('transactionHash')}: {e}"
                )
        return events
