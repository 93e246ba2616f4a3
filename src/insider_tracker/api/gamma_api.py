"""Client for Polymarket Gamma API - fetches market metadata."""

from dataclasses import dataclass

import httpx

from ..errors import ConnectivityError


@dataclass
class Market:
    """Represents a Polymarket market."""

    condition_id: str
    question: str
    slug: str
    active: bool
    closed: bool

    @property
    def is_tradeable(self) -> bool:
        """Whether the market is still open for trading."""
        return self.active and not self.closed

    @property
    def url(self) -> str:
        if self.slug:
            return f"https://polymarket.com/event/{self.slug}"
        return "https://polymarket.com"


class GammaApiClient:
    """Client for Polymarket Gamma API."""

    def __init__(
        self,
        base_url: str = "https://gamma-api.polymarket.com",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def get_market(self, condition_id: str) -> Market | None:
        """
        Fetch a single market by its condition ID.

        Markets are not cached: an active market can close between two
        lookups.

        Args:
            condition_id: The market's condition ID

        Returns:
            Market object or None if not found

        Raises:
            ConnectivityError: if the API is unreachable or returns a server error
        """
        try:
            response = await self._client.get(
                f"{self.base_url}/markets",
                params={"condition_id": condition_id, "limit": 1},
            )
        except httpx.HTTPError as e:
            raise ConnectivityError(f"Gamma API unreachable: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 500:
            raise ConnectivityError(f"Gamma API error: HTTP {response.status_code}")
        if response.is_error:
            return None

        data = response.json()
        if not data:
            return None

        market_data = data[0] if isinstance(data, list) else data

        return Market(
            condition_id=market_data.get("conditionId", condition_id),
            question=market_data.get("question") or market_data.get("title") or "Unknown Market",
            slug=market_data.get("slug", ""),
            active=market_data.get("active", False),
            closed=market_data.get("closed", False),
        )
