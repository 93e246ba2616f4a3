"""Block scanner - walks the chain forward in bounded chunks."""

import asyncio
import logging
from dataclasses import dataclass

from ..api.chain import FillEvent, PolygonRpcClient

logger = logging.getLogger(__name__)


@dataclass
class BlockCursor:
    """Watermark of the last fully processed block."""

    floor: int
    last_processed: int

    def __post_init__(self):
        if self.last_processed < self.floor:
            raise ValueError(
                f"last_processed {self.last_processed} is below floor {self.floor}"
            )

    def advance(self, height: int):
        """Move the watermark forward. Moving backwards is a bug."""
        if height < self.last_processed:
            raise ValueError(
                f"cursor cannot move back from {self.last_processed} to {height}"
            )
        self.last_processed = height


class BlockScanner:
    """
    Pulls exchange fill events for blocks past the cursor.

    Scanning starts at the chain head when the scanner is initialized;
    history before that is never backfilled. Each scan covers at most
    max_chunk blocks because node providers reject large log ranges.
    """

    def __init__(
        self,
        chain: PolygonRpcClient,
        max_chunk: int = 50,
        next_block_poll_seconds: float = 3.0,
    ):
        if max_chunk < 1:
            raise ValueError("max_chunk must be at least 1")
        self.chain = chain
        self.max_chunk = max_chunk
        self.next_block_poll_seconds = next_block_poll_seconds
        self.cursor: BlockCursor | None = None
        self.last_range: tuple[int, int] | None = None
        self._blocks_scanned = 0
        self._events_seen = 0

    async def initialize(self, wait_for_next_block: bool = False) -> BlockCursor:
        """
        Anchor the cursor at the current chain head.

        Args:
            wait_for_next_block: Block until a new block appears and start
                from it, so transactions in flight at startup are skipped

        Returns:
            The initialized cursor
        """
        start = await self.chain.current_height()

        if wait_for_next_block:
            logger.info(f"Waiting for a block after {start} before monitoring...")
            current = start
            while current <= start:
                await asyncio.sleep(self.next_block_poll_seconds)
                current = await self.chain.current_height()
            start = current

        self.cursor = BlockCursor(floor=start, last_processed=start)
        logger.info(f"Starting from block {start} (no historical data)")
        return self.cursor

    async def scan_next(self) -> list[FillEvent]:
        """
        Fetch fill events for the next chunk of unprocessed blocks.

        Returns an empty list when there are no new blocks. The cursor is
        advanced only after the log fetch succeeds; on any failure it stays
        put and the same range is retried next time.
        """
        if self.cursor is None:
            raise RuntimeError("Scanner not initialized. Call initialize() first.")

        current = await self.chain.current_height()
        if current <= self.cursor.last_processed:
            logger.debug("No new blocks to process")
            return []

        from_block = self.cursor.last_processed + 1
        to_block = min(current, self.cursor.last_processed + self.max_chunk)

        logger.debug(f"Scanning blocks {from_block} to {to_block}...")
        events = await self.chain.logs_in_range(from_block, to_block)

        self.cursor.advance(to_block)
        self.last_range = (from_block, to_block)
        self._blocks_scanned += to_block - from_block + 1
        self._events_seen += len(events)

        logger.info(
            f"Found {len(events)} fills in blocks {from_block}-{to_block}"
            + (f" ({current - to_block} blocks behind head)" if current > to_block else "")
        )
        return events

    @property
    def stats(self) -> dict:
        return {
            "last_block": self.cursor.last_processed if self.cursor else None,
            "blocks_scanned": self._blocks_scanned,
            "events_seen": self._events_seen,
        }
