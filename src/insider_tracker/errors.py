"""Error types shared by the chain, market and detection layers."""


class TrackerError(Exception):
    """Base class for tracker errors."""


class ConnectivityError(TrackerError):
    """A chain node or HTTP API was unreachable, timed out or returned an error."""


class NotFoundError(TrackerError):
    """A requested object (block, market) does not exist."""


class DecodeError(TrackerError):
    """An event log payload could not be decoded."""


class AgeSearchError(TrackerError):
    """The first-funded search failed after the transaction count was known."""

    def __init__(self, message: str, transaction_count: int | None = None):
        super().__init__(message)
        self.transaction_count = transaction_count
