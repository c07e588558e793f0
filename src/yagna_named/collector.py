"""Bounded-time node name discovery across several market subnets.

Every subnet gets its own feeder task which opens a demand subscription
and pushes whatever it receives onto a single queue.  Exactly one
consumer loop folds the queued proposals into the result mapping until
the wall-clock deadline elapses.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any, Protocol

from pydantic import ValidationError

from yagna_named._constants import NODE_NAME_PROPERTY
from yagna_named.exceptions import ExtractionError, NamedError, NoSourcesAvailable, SubscriptionError
from yagna_named.models.market import Proposal
from yagna_named.models.node import NodeInfo
from yagna_named.properties import lookup_property

_logger = logging.getLogger(__name__)

#: Upper bound for unsubscribing after a pass.
_CLOSE_TIMEOUT_SECONDS = 5.0


class ProposalStream(Protocol):
    """An open subscription yielding proposals (or per-poll errors)."""

    def proposals(self) -> AsyncIterator[Proposal | NamedError]:
        ...

    async def close(self) -> None:
        ...


class ProposalSource(Protocol):
    """Anything able to open a proposal stream for a subnet."""

    async def subscribe(self, subnet: str) -> ProposalStream:
        ...


# Queue markers emitted by feeder tasks next to ``(subnet, item)`` tuples.


class _Opened:
    __slots__ = ("subnet", "stream")

    def __init__(self, subnet: str, stream: ProposalStream) -> None:
        self.subnet = subnet
        self.stream = stream


class _OpenFailed:
    __slots__ = ("subnet", "error")

    def __init__(self, subnet: str, error: SubscriptionError) -> None:
        self.subnet = subnet
        self.error = error


class _StreamDone:
    __slots__ = ("subnet",)

    def __init__(self, subnet: str) -> None:
        self.subnet = subnet


async def open_segment_stream(source: ProposalSource, subnet: str) -> ProposalStream:
    """Open one subscription for *subnet*.

    Raises
    ------
    SubscriptionError
        If the subscription could not be created.
    """
    try:
        return await source.subscribe(subnet)
    except NamedError as exc:
        raise SubscriptionError(
            f"Failed to create stream for subnet: {subnet}. Error: {exc}",
            subnet=subnet,
        ) from exc


def extract(proposal: Proposal) -> NodeInfo:
    """Pair the proposal issuer with its self-reported node name.

    Raises
    ------
    ExtractionError
        If the name property is absent or not a string, or the issuer id
        is not a valid node id.
    """
    _logger.debug("Parsing proposal [%s]", proposal.proposal_id)

    value = lookup_property(proposal.properties, NODE_NAME_PROPERTY)
    if value is None:
        raise ExtractionError(f"No key `{NODE_NAME_PROPERTY}`", proposal_id=proposal.proposal_id)
    if not isinstance(value, str):
        raise ExtractionError(
            f"Node name not found: `{NODE_NAME_PROPERTY}` is {type(value).__name__}, not a string",
            proposal_id=proposal.proposal_id,
        )

    try:
        return NodeInfo(id=proposal.issuer_id, name=value)
    except ValidationError as exc:
        raise ExtractionError(
            f"Invalid issuer id {proposal.issuer_id!r}",
            proposal_id=proposal.proposal_id,
        ) from exc


async def _feed(
    source: ProposalSource,
    subnet: str,
    queue: asyncio.Queue[Any],
    opening: set[str],
    stopping: asyncio.Event,
) -> None:
    opening.add(subnet)
    try:
        stream = await open_segment_stream(source, subnet)
    except SubscriptionError as exc:
        queue.put_nowait(_OpenFailed(subnet, exc))
        return
    except Exception as exc:
        _logger.debug("Unexpected failure subscribing subnet %s", subnet, exc_info=True)
        error = SubscriptionError(f"Failed to create stream for subnet: {subnet}. Error: {exc!r}", subnet=subnet)
        queue.put_nowait(_OpenFailed(subnet, error))
        return
    finally:
        opening.discard(subnet)

    queue.put_nowait(_Opened(subnet, stream))
    if stopping.is_set():
        # Pass already over: hand the stream back for closing only.
        return
    try:
        async for item in stream.proposals():
            queue.put_nowait((subnet, item))
    except Exception:
        _logger.warning("Proposal stream for subnet %s failed", subnet, exc_info=True)
    finally:
        queue.put_nowait(_StreamDone(subnet))


async def _shutdown(
    feeders: dict[str, asyncio.Task[None]],
    opening: set[str],
    stopping: asyncio.Event,
    opened: list[_Opened],
    queue: asyncio.Queue[Any],
) -> int:
    """Stop all feeders and close every stream that was opened.

    Subscriptions still being created get up to ``_CLOSE_TIMEOUT_SECONDS``
    to finish so they can be removed as well.  Returns the number of open
    failures that arrived after the consumer stopped reading.
    """
    stopping.set()
    pending = {subnet: task for subnet, task in feeders.items() if subnet in opening}
    for subnet, task in feeders.items():
        if subnet not in pending:
            task.cancel()
    if pending:
        await asyncio.wait(pending.values(), timeout=_CLOSE_TIMEOUT_SECONDS)
        for subnet, task in pending.items():
            if not task.done():
                _logger.warning("Subscription on subnet %s still pending, abandoning it", subnet)
                task.cancel()
    await asyncio.gather(*feeders.values(), return_exceptions=True)

    late_failures = 0
    while not queue.empty():
        item = queue.get_nowait()
        if isinstance(item, _Opened):
            opened.append(item)
        elif isinstance(item, _OpenFailed):
            _logger.warning("%s. Ignoring", item.error)
            late_failures += 1

    async def _close(item: _Opened) -> None:
        try:
            await asyncio.wait_for(item.stream.close(), _CLOSE_TIMEOUT_SECONDS)
        except Exception:
            _logger.debug("Closing stream for subnet %s failed", item.subnet, exc_info=True)

    await asyncio.gather(*(_close(item) for item in opened))
    return late_failures


async def collect(
    source: ProposalSource,
    subnets: Iterable[str],
    deadline: float,
) -> dict[str, str]:
    """Collect ``node id -> name`` pairs from all *subnets* for *deadline* seconds.

    Subnets whose subscription fails are skipped.  Reaching the deadline
    is the normal way for a pass to end, even when some subscriptions are
    still being created; whatever was gathered until then is returned.
    The pass also ends early once every stream is exhausted.
    Subscriptions are removed before returning.

    Raises
    ------
    NoSourcesAvailable
        If every subnet subscription failed to open.
    """
    loop = asyncio.get_running_loop()
    stop_at = loop.time() + deadline
    wanted = list(dict.fromkeys(subnets))
    if not wanted:
        raise NoSourcesAvailable(wanted)

    queue: asyncio.Queue[Any] = asyncio.Queue()
    opening: set[str] = set()
    stopping = asyncio.Event()
    feeders = {
        subnet: asyncio.create_task(
            _feed(source, subnet, queue, opening, stopping),
            name=f"yagna-named-{subnet}",
        )
        for subnet in wanted
    }

    collection: dict[str, str] = {}
    opened: list[_Opened] = []
    failed = 0
    try:
        active = len(feeders)
        while active:
            remaining = stop_at - loop.time()
            if remaining <= 0:
                break
            try:
                item = await asyncio.wait_for(queue.get(), remaining)
            except TimeoutError:
                break

            if isinstance(item, _Opened):
                opened.append(item)
                continue
            if isinstance(item, _OpenFailed):
                _logger.warning("%s. Ignoring", item.error)
                active -= 1
                failed += 1
                if failed == len(wanted):
                    raise NoSourcesAvailable(wanted)
                continue
            if isinstance(item, _StreamDone):
                _logger.debug("Stream for subnet %s finished", item.subnet)
                active -= 1
                continue

            subnet, payload = item
            if isinstance(payload, NamedError):
                _logger.warning("Proposal failed on subnet %s: %s", subnet, payload)
                continue
            try:
                node = extract(payload)
            except ExtractionError as exc:
                _logger.warning("Skipping proposal [%s] on subnet %s: %s", exc.proposal_id, subnet, exc)
                continue
            collection[node.id] = node.name
    finally:
        failed += await _shutdown(feeders, opening, stopping, opened, queue)

    if failed == len(wanted):
        raise NoSourcesAvailable(wanted)

    _logger.info("Collected %d node names from %d subnet(s)", len(collection), len(opened))
    return collection
