"""Chain and Polymarket API clients."""

from .chain import (
    CTF_EXCHANGE_ADDRESS,
    ORDER_FILLED_TOPIC,
    FillEvent,
    PolygonRpcClient,
    decode_order_filled,
)
from .gamma_api import GammaApiClient, Market

__all__ = [
    "CTF_EXCHANGE_ADDRESS",
    "ORDER_FILLED_TOPIC",
    "FillEvent",
    "PolygonRpcClient",
    "decode_order_filled",
    "GammaApiClient",
    "Market",
]
