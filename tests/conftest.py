from __future__ import annotations

import asyncio
import json

import httpx

from loki_relay.models import RelayConfig, RelayRequest, RelayResponse
from loki_relay.relay import Relay

FIXED_NS = 1_700_000_000_000_000_000


def make_config(**overrides: object) -> RelayConfig:
    """Shared config factory with sensible test defaults."""
    defaults: dict[str, object] = {
        "host": "logs.example.net",
        "username": "12345",
        "password": "glc_secret",
    }
    defaults.update(overrides)
    return RelayConfig(**defaults)  # type: ignore[arg-type]


def make_request(
    body: object = b"",
    method: str = "POST",
    query: list[tuple[str, str]] | None = None,
    headers: dict[str, str] | None = None,
) -> RelayRequest:
    """Shared RelayRequest factory; non-bytes bodies are JSON-encoded."""
    if isinstance(body, str):
        raw = body.encode()
    elif isinstance(body, bytes):
        raw = body
    else:
        raw = json.dumps(body).encode()
    return RelayRequest(
        method=method,
        body=raw,
        query=query or [],
        headers=headers or {},
    )


class FakeLoki:
    """Mock Loki backend that records every push for test assertions."""

    def __init__(
        self,
        *,
        status_code: int = 204,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._status_code = status_code
        self._body = body
        self._headers = headers or {}
        self._error = error
        self.transport = httpx.MockTransport(self._handler)

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._error is not None:
            raise self._error
        return httpx.Response(
            self._status_code, content=self._body, headers=self._headers,
        )

    @property
    def payload(self) -> dict[str, object]:
        return json.loads(self.requests[-1].content)

    @property
    def values(self) -> list[list[object]]:
        return self.payload["streams"][0]["values"]  # type: ignore[index]

    @property
    def labels(self) -> dict[str, str]:
        return self.payload["streams"][0]["stream"]  # type: ignore[index]


def make_relay(
    backend: FakeLoki | None = None,
    config: RelayConfig | None = None,
    clock_ns: int = FIXED_NS,
) -> Relay:
    cfg = config or make_config()
    return Relay(
        lambda: cfg,
        clock=lambda: clock_ns,
        http_transport=backend.transport if backend else None,
    )


def run(relay: Relay, request: RelayRequest) -> RelayResponse:
    return asyncio.run(relay.handle(request))
