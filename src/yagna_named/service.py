"""Top-level workflows: the discovery loop and command decoration."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Sequence
from pathlib import Path

from yagna_named.cache import NameCache
from yagna_named.collector import ProposalSource, collect
from yagna_named.config import NamedConfig
from yagna_named.decorate import decorate_table
from yagna_named.market import MarketClient
from yagna_named.output import ResponseTable
from yagna_named.yagna import YagnaCommand

_logger = logging.getLogger(__name__)


async def run_collector(
    config: NamedConfig,
    *,
    source: ProposalSource | None = None,
    cache: NameCache | None = None,
    max_cycles: int | None = None,
) -> NameCache:
    """Collect node names forever (or *max_cycles* times), updating the cache.

    Each cycle listens to all configured subnets for
    ``config.collect_timeout`` seconds.  A cycle without any usable subnet
    raises :class:`~yagna_named.exceptions.NoSourcesAvailable`, which ends
    the loop.
    """
    if cache is None:
        cache = await NameCache.open(config.cache_path)
    _logger.info("Node name cache: %s (%d known)", cache.path, len(cache))

    async with contextlib.AsyncExitStack() as stack:
        if source is None:
            source = await stack.enter_async_context(MarketClient(config))

        cycle = 0
        while max_cycles is None or cycle < max_cycles:
            nodes = await collect(source, config.subnets, config.collect_timeout)
            await cache.update(nodes)
            cycle += 1

    return cache


async def decorate_command(
    config: NamedConfig,
    args: Sequence[str],
    *,
    executable: Path | str | None = None,
) -> ResponseTable:
    """Run ``yagna <args> --json`` and add a ``name`` column from the cache."""
    command = YagnaCommand(executable).args(args).args(["--json"])
    cache = await NameCache.open(config.cache_path)

    result = await command.run()
    decorated = decorate_table(result, cache)
    _logger.debug("%s", decorated)
    return ResponseTable.from_json(decorated)
