"""Command-line entry point.

``yagna-named collect`` runs the discovery loop.  Any other command is
passed to yagna with ``--json`` appended, and its output is printed with
an extra ``name`` column::

    yagna-named collect
    yagna-named payment accounts
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from dotenv import find_dotenv, load_dotenv

from yagna_named import __version__
from yagna_named.config import NamedConfig
from yagna_named.exceptions import NamedError
from yagna_named.output import CommandOutput
from yagna_named.service import decorate_command, run_collector

_logger = logging.getLogger("yagna_named")

COLLECT_COMMAND = "collect"

# Loggers that are too chatty at INFO for an interactive tool.
_QUIET_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yagna-named",
        description="Discover Golem provider names and show them next to yagna command output.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--appkey", default=None, help="yagna app key (env: YAGNA_APPKEY)")
    parser.add_argument("--api-url", default=None, help="yagna REST API URL (env: YAGNA_API_URL)")
    parser.add_argument("--datadir", default=None, help="Directory of the name cache (env: YAGNA_DATADIR)")
    parser.add_argument(
        "--json",
        action="store_true",
        default=None,
        help="Print JSON instead of a table (env: YAGNA_JSON_OUTPUT)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("YAGNA_NAMED_LOG", "INFO"),
        help="Logging level (env: YAGNA_NAMED_LOG, default INFO)",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help=f"'{COLLECT_COMMAND}' or a yagna command to decorate",
    )
    return parser


def _setup_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(asctime)s %(levelname)s %(name)s] %(message)s",
        stream=sys.stderr,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


async def _run(config: NamedConfig, command: list[str]) -> None:
    if command[0] == COLLECT_COMMAND:
        await run_collector(config)
        return
    table = await decorate_command(config, command)
    CommandOutput(table).print(config.json_output)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True), override=False)
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)

    if not args.command:
        parser.print_usage(sys.stderr)
        return 2

    try:
        config = NamedConfig.from_env(
            appkey=args.appkey,
            api_url=args.api_url,
            datadir=args.datadir,
            json_output=args.json,
        )
        asyncio.run(_run(config, list(args.command)))
    except NamedError as exc:
        _logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
