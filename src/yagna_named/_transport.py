"""HTTP transport for the yagna REST API with app-key authentication."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from yagna_named._constants import USER_AGENT
from yagna_named._redact import redact_for_log, redact_headers
from yagna_named.exceptions import MarketApiError, MarketTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by API modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        timeout: float | None = None,
    ) -> Any:
        ...


def _error_message(text: str) -> str | None:
    """Extract ``message`` from a yagna ``ErrorMessage`` document."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(document, dict):
        message = document.get("message")
        if isinstance(message, str) and message:
            return message
    return None


class RestTransport:
    """JSON-over-HTTP transport bound to one yagna API base URL."""

    def __init__(
        self,
        base_url: str,
        appkey: str,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._appkey = appkey
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "authorization": f"Bearer {self._appkey}",
            "user-agent": USER_AGENT,
        }

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Returns ``None`` for empty bodies (e.g. ``204 No Content``).
        Non-2xx answers raise :class:`MarketApiError` when the server sent
        an error document and :class:`MarketTransportError` otherwise.
        """
        url = f"{self._base_url}{endpoint}"
        headers = self._headers()
        data: str | None = None
        if body is not None:
            data = json.dumps(body, separators=(",", ":"))
            headers["content-type"] = "application/json"

        _logger.debug(
            "%s %s params=%s headers=%s body=%s",
            method,
            url,
            params,
            redact_headers(headers),
            redact_for_log(body),
        )

        client_timeout = aiohttp.ClientTimeout(total=timeout) if timeout is not None else None
        try:
            async with self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                data=data,
                headers=headers,
                timeout=client_timeout,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise MarketTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise MarketTransportError(
                f"Request to {endpoint} timed out",
                endpoint=endpoint,
            ) from exc

        if not 200 <= status < 300:
            message = _error_message(text)
            if message is not None:
                raise MarketApiError(
                    f"HTTP {status} from {endpoint}: {message}",
                    status_code=status,
                    endpoint=endpoint,
                )
            raise MarketTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        if not text.strip():
            return None

        try:
            result = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MarketTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        _logger.debug("%s %s -> %s %s", method, url, status, redact_for_log(result))
        return result
