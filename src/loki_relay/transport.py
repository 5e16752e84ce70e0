from __future__ import annotations

import base64
import json
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from loki_relay.models import RelayConfig

PUSH_PATH = "/loki/api/v1/push"


class LokiTransport:
    """Forwards one push payload to Loki and hands back its raw response.

    A new ``httpx.AsyncClient`` is opened per push; nothing is shared
    between requests. Failures are not retried.
    """

    def __init__(
        self,
        config: RelayConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._url = f"{config.scheme}://{config.host}:{config.port}{PUSH_PATH}"

    @property
    def url(self) -> str:
        return self._url

    @property
    def auth_header(self) -> str:
        raw = f"{self._config.username}:{self._config.password}".encode()
        return f"Basic {base64.b64encode(raw).decode('ascii')}"

    async def push(
        self, payload: dict[str, list[dict[str, object]]],
    ) -> httpx.Response:
        body = json.dumps(payload).encode()
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Authorization": self.auth_header,
        }
        async with httpx.AsyncClient(transport=self._transport) as client:
            return await client.post(self._url, content=body, headers=headers)
