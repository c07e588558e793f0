"""Market API endpoints used by the scanner.

Thin wrappers over the yagna ``market-api/v1`` demand endpoints.  They
translate raw JSON into models and leave retry policy to callers.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from yagna_named._constants import MARKET_API_PATH
from yagna_named._transport import Transport
from yagna_named.exceptions import MarketTransportError
from yagna_named.models.market import Demand, MarketEvent

_logger = logging.getLogger(__name__)

#: Extra client-side slack on top of the server-side long-poll timeout.
_POLL_GRACE_SECONDS = 10.0


async def subscribe_demand(transport: Transport, demand: Demand) -> str:
    """Publish *demand* and return the new subscription id."""
    endpoint = f"{MARKET_API_PATH}/demands"
    result = await transport.request_json("POST", endpoint, body=demand.model_dump())
    if not isinstance(result, str) or not result.strip():
        raise MarketTransportError(
            f"Unexpected subscription id from {endpoint}: {result!r}",
            endpoint=endpoint,
        )
    return result.strip()


def _parse_events(endpoint: str, result: Any) -> list[MarketEvent]:
    if result is None:
        return []
    if not isinstance(result, list):
        raise MarketTransportError(
            f"Expected an event list from {endpoint}, got {type(result).__name__}",
            endpoint=endpoint,
        )
    events: list[MarketEvent] = []
    for item in result:
        try:
            events.append(MarketEvent.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping malformed market event from %s", endpoint, exc_info=True)
    return events


async def collect_demand_events(
    transport: Transport,
    subscription_id: str,
    *,
    timeout: float,
    max_events: int,
) -> list[MarketEvent]:
    """Long-poll the events of a demand subscription."""
    endpoint = f"{MARKET_API_PATH}/demands/{subscription_id}/events"
    result = await transport.request_json(
        "GET",
        endpoint,
        params={"timeout": f"{timeout:g}", "maxEvents": str(max_events)},
        timeout=timeout + _POLL_GRACE_SECONDS,
    )
    return _parse_events(endpoint, result)


async def unsubscribe_demand(transport: Transport, subscription_id: str) -> None:
    """Remove a demand subscription; an already gone subscription is not an error."""
    endpoint = f"{MARKET_API_PATH}/demands/{subscription_id}"
    try:
        await transport.request_json("DELETE", endpoint)
    except MarketTransportError as exc:
        if exc.status_code in (404, 410):
            _logger.debug("Subscription %s already gone: %s", subscription_id, exc)
            return
        raise
