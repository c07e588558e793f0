"""Custom exception hierarchy for yagna-named."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class NamedError(Exception):
    """Base exception for all yagna-named errors."""


class NamedConfigError(NamedError):
    """Invalid or missing configuration."""


class CacheError(NamedError):
    """Name cache file could not be read or written."""

    def __init__(self, message: str, *, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(message)


class CacheLoadError(CacheError):
    """Cache file exists but is unreadable or malformed.

    Fatal at startup: the caller should not continue with an unknown
    cache state.  The underlying cause is chained via ``__cause__``.
    """


class CachePersistError(CacheError):
    """Writing the cache file failed.

    Recoverable; the in-memory state is kept and the write is retried
    on the next change.
    """


class MarketTransportError(NamedError):
    """HTTP-level failure talking to the market API (network, bad status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MarketApiError(MarketTransportError):
    """Market API answered with an error document (e.g. unknown subscription)."""


class SubscriptionError(NamedError):
    """Demand subscription for a single subnet could not be created."""

    def __init__(self, message: str, *, subnet: str) -> None:
        self.subnet = subnet
        super().__init__(message)


class ExtractionError(NamedError):
    """Proposal does not carry a usable node name."""

    def __init__(self, message: str, *, proposal_id: str = "") -> None:
        self.proposal_id = proposal_id
        super().__init__(message)


class NoSourcesAvailable(NamedError):
    """Not a single subnet stream could be opened for a collection pass."""

    def __init__(self, subnets: Iterable[str]) -> None:
        self.subnets = tuple(subnets)
        listed = ", ".join(self.subnets) or "<none>"
        super().__init__(f"No market subscription could be created for subnets: {listed}")


class YagnaCommandError(NamedError):
    """Running the yagna executable failed or produced unusable output."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message)


class DecorateError(NamedError):
    """Command output cannot be decorated with node names."""
