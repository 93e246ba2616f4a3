"""Trade amount scaling, dedup keys and best-effort asset id decoding.

The asset id helpers are approximations. CTF position ids are hashes of
(collateral, collection id) and do not literally contain the condition id
or outcome index, so both functions below are heuristics kept until the
real encoding is resolved through the CTF contracts.
"""

from datetime import date

from ..api.chain import FillEvent

# USDC on Polygon has 6 decimals
USDC_DECIMALS = 6

AMOUNT_BUCKET_USD = 100
ASSET_SUFFIX_DIGITS = 8
CONDITION_ID_LENGTH = 66


def trade_amount_usd(event: FillEvent) -> float:
    """Approximate USD size of a fill from the maker amount."""
    return event.maker_amount_filled / 10**USDC_DECIMALS


def dedup_key(event: FillEvent, amount: float, day: date) -> str:
    """
    Fingerprint a trade for alert suppression.

    Near-identical trades (same wallet, same $100 bucket, same asset,
    same UTC day) collapse to one key.
    """
    bucket = int(amount // AMOUNT_BUCKET_USD) * AMOUNT_BUCKET_USD
    asset_suffix = str(event.maker_asset_id)[-ASSET_SUFFIX_DIGITS:]
    return f"{event.maker.lower()}-{bucket}-{asset_suffix}-{day.isoformat()}"


def derive_condition_id(asset_id: int) -> str:
    """Approximate condition id for a token id (heuristic)."""
    return str(asset_id)[:CONDITION_ID_LENGTH]


def outcome_from_asset_id(asset_id: int) -> str:
    """Guess the outcome side from the token id parity: odd is YES, even is NO (heuristic)."""
    return "YES" if int(str(asset_id)[-1]) % 2 == 1 else "NO"
