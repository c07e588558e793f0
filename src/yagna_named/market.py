"""Async client for the yagna market API.

Usage::

    async with MarketClient(config) as market:
        subscription = await market.subscribe("public-beta")
        async for item in subscription.proposals():
            ...
        await subscription.close()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import aiohttp

from yagna_named._api import market as _market_api
from yagna_named._transport import RestTransport, Transport
from yagna_named.config import NamedConfig
from yagna_named.exceptions import MarketTransportError, NamedError
from yagna_named.models.market import MarketEvent, Proposal, create_demand

_logger = logging.getLogger(__name__)

#: Pause after a failed poll before asking the market again.
_RETRY_DELAY_SECONDS = 1.0

#: Poll answers meaning the demand no longer exists.
_GONE_STATUSES = (404, 410)


class Subscription:
    """A live demand subscription on one subnet."""

    def __init__(
        self,
        transport: Transport,
        subscription_id: str,
        subnet: str,
        *,
        poll_timeout: float,
        max_events: int,
        retry_delay: float = _RETRY_DELAY_SECONDS,
    ) -> None:
        self._transport = transport
        self._id = subscription_id
        self._subnet = subnet
        self._poll_timeout = poll_timeout
        self._max_events = max_events
        self._retry_delay = retry_delay
        self._closed = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def subnet(self) -> str:
        return self._subnet

    @property
    def closed(self) -> bool:
        return self._closed

    async def events(self) -> AsyncIterator[MarketEvent | NamedError]:
        """Poll market events until the subscription is closed or disappears.

        Failed polls are yielded as :class:`MarketTransportError` items so the
        consumer can log them; polling then resumes after a short delay.
        """
        while not self._closed:
            try:
                events = await _market_api.collect_demand_events(
                    self._transport,
                    self._id,
                    timeout=self._poll_timeout,
                    max_events=self._max_events,
                )
            except MarketTransportError as exc:
                if exc.status_code in _GONE_STATUSES:
                    _logger.warning("Subscription [%s] on subnet %s is gone: %s", self._id, self._subnet, exc)
                    return
                yield exc
                await asyncio.sleep(self._retry_delay)
                continue

            for event in events:
                yield event

    async def proposals(self) -> AsyncIterator[Proposal | NamedError]:
        """Offer proposals delivered on this subscription, in arrival order."""
        async for item in self.events():
            if isinstance(item, NamedError):
                yield item
                continue
            if item.is_proposal and item.proposal is not None:
                yield item.proposal
            else:
                _logger.debug("Ignoring %s event on subscription [%s]", item.event_type, self._id)

    async def close(self) -> None:
        """Unsubscribe the demand.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await _market_api.unsubscribe_demand(self._transport, self._id)
        _logger.debug("Removed subscription [%s]", self._id)


class MarketClient:
    """Market API client that opens demand subscriptions per subnet."""

    def __init__(
        self,
        config: NamedConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MarketClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = RestTransport(
                self._config.api_url,
                self._config.appkey,
                self._http_session,
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise NamedError("Client not initialized. Use 'async with MarketClient(...) as client:'")
        return self._transport

    async def subscribe(self, subnet: str) -> Subscription:
        """Publish the scanner demand on *subnet* and return its subscription."""
        transport = self._require_transport()
        _logger.info("Using subnet: %s", subnet)
        demand = create_demand(subnet, expiration=self._config.demand_expiration)
        subscription_id = await _market_api.subscribe_demand(transport, demand)
        _logger.info("Created subscription [%s] on subnet %s", subscription_id, subnet)
        return Subscription(
            transport,
            subscription_id,
            subnet,
            poll_timeout=self._config.poll_timeout,
            max_events=self._config.max_events,
        )
