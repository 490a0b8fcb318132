"""HTTP webhook sink."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from confwatch.exceptions import NotificationError
from confwatch.models.events import RefreshEvent

_logger = logging.getLogger(__name__)


class WebhookSink:
    """POST each refresh event as JSON to a fixed URL.

    Usage::

        async with WebhookSink("https://example.test/hooks/refresh") as sink:
            scheduler = RefreshScheduler(config, client, sink)
    """

    def __init__(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._external_session = session is not None
        self._http = session
        self._headers = dict(headers or {})
        self._timeout = timeout

    async def __aenter__(self) -> WebhookSink:
        if self._http is None:
            self._http = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
            self._http = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise NotificationError("Webhook sink not initialized. Use 'async with WebhookSink(...) as sink:'")
        return self._http

    async def publish(self, event: RefreshEvent) -> None:
        http = self._require_session()
        headers = {"content-type": "application/json", **self._headers}
        body = event.model_dump_json()

        _logger.debug("POST %s", self._url)

        try:
            async with http.post(self._url, data=body, headers=headers) as resp:
                if resp.status // 100 != 2:
                    text = await resp.text()
                    raise NotificationError(f"HTTP {resp.status} from webhook {self._url}: {text[:200]}")
        except NotificationError:
            raise
        except aiohttp.ClientError as exc:
            raise NotificationError(f"Webhook request to {self._url} failed: {exc}") from exc
