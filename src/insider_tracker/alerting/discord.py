"""Discord webhook notifier."""

import logging

import httpx

from ..detection.engine import InsiderAlert

logger = logging.getLogger(__name__)

EMBED_COLOR = 0xFF0000


def build_embed(alert: InsiderAlert) -> dict:
    """Build the Discord embed for an alert."""
    wallet = alert.wallet_address
    return {
        "title": "🚨 POTENTIAL INSIDER TRADING DETECTED",
        "description": "Large bet from a brand new wallet detected on-chain!",
        "color": EMBED_COLOR,
        "fields": [
            {"name": "📊 Market", "value": alert.market.question, "inline": False},
            {
                "name": "💰 Bet Amount",
                "value": f"${alert.trade_amount_usd:,.2f}",
                "inline": True,
            },
            {"name": "🎯 Position", "value": alert.outcome, "inline": True},
            {
                "name": "👤 Wallet Age",
                "value": alert.wallet_age.description,
                "inline": False,
            },
            {
                "name": "🔗 Wallet Address",
                "value": f"[{wallet[:6]}...{wallet[-4:]}](https://polygonscan.com/address/{wallet})",
                "inline": False,
            },
            {
                "name": "🔗 Market Link",
                "value": f"[View Market]({alert.market.url})",
                "inline": False,
            },
        ],
        "timestamp": alert.created_at.isoformat(),
        "footer": {"text": "Polymarket Insider Trading Tracker • On-Chain Detection"},
    }


class DiscordNotifier:
    """Posts alerts to a Discord webhook. Failures are logged, never raised."""

    def __init__(
        self,
        webhook_url: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.webhook_url = webhook_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def send_alert(self, alert: InsiderAlert) -> None:
        if not self.is_configured:
            return

        try:
            response = await self._client.post(
                self.webhook_url, json={"embeds": [build_embed(alert)]}
            )
            response.raise_for_status()
            logger.info("Alert sent to Discord")
        except httpx.HTTPError as e:
            logger.error(f"Error sending Discord alert: {e}")
