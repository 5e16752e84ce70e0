from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from loki_relay.errors import (
    ConfigurationError,
    MethodNotAllowed,
    RelayError,
    UpstreamError,
    ValidationError,
)
from loki_relay.models import Clock, RelayConfig, RelayRequest, RelayResponse
from loki_relay.parsing import build_labels, build_payload, parse_entries
from loki_relay.transport import LokiTransport

logger = logging.getLogger(__name__)

PREFLIGHT_MAX_AGE = 86400

_ALLOW_ORIGIN = {"Access-Control-Allow-Origin": "*"}
_CORS_HEADERS = {
    **_ALLOW_ORIGIN,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _text(status_code: int, message: str, headers: dict[str, str]) -> RelayResponse:
    return RelayResponse(
        status_code=status_code,
        body=message.encode(),
        headers={**headers, "Content-Type": "text/plain; charset=utf-8"},
    )


class Relay:
    """Validates log submissions and forwards them to Loki.

    Config is loaded on every POST, so environment changes apply to the
    next request. ``handle`` never raises: every failure becomes a
    response carrying the CORS headers.
    """

    def __init__(
        self,
        config_loader: Callable[[], RelayConfig] = RelayConfig.from_env,
        *,
        clock: Clock = time.time_ns,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config_loader = config_loader
        self._clock = clock
        self._http_transport = http_transport

    async def handle(self, request: RelayRequest) -> RelayResponse:
        method = request.method.upper()
        if method == "GET":
            return self.redirect()
        if method == "OPTIONS":
            return self.preflight()
        if method != "POST":
            err = MethodNotAllowed("Method not allowed. Please use POST.")
            return _text(err.status_code, err.message, _ALLOW_ORIGIN)

        try:
            return await self._post(request)
        except ConfigurationError as err:
            logger.error("%s", err.message)
            return _text(err.status_code, err.message, _CORS_HEADERS)
        except RelayError as err:
            return _text(err.status_code, err.message, _CORS_HEADERS)
        except Exception as exc:
            logger.exception("forwarding to Loki failed")
            err = UpstreamError(f"Error forwarding to Loki: {exc}")
            return _text(err.status_code, err.message, _CORS_HEADERS)

    def redirect(self) -> RelayResponse:
        try:
            location = self._config_loader().docs_url
        except ConfigurationError:
            location = RelayConfig().docs_url
        return RelayResponse(
            status_code=302,
            headers={**_ALLOW_ORIGIN, "Location": location},
        )

    def preflight(self) -> RelayResponse:
        return RelayResponse(
            status_code=204,
            headers={**_CORS_HEADERS, "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE)},
        )

    async def _post(self, request: RelayRequest) -> RelayResponse:
        config = self._config_loader()
        if not config.has_credentials:
            raise ConfigurationError(
                "Server configuration error: Missing Loki credentials",
            )

        try:
            entries = parse_entries(request, config, self._clock)
            labels = build_labels(request, config)
        except ValidationError as err:
            logger.info("rejected submission: %s", err.message)
            raise

        payload = build_payload(labels, entries)
        transport = LokiTransport(config, self._http_transport)
        resp = await transport.push(payload)
        logger.debug(
            "pushed %d value(s) to %s: status=%d",
            len(entries), transport.url, resp.status_code,
        )
        return self._relay(resp)

    @staticmethod
    def _relay(resp: httpx.Response) -> RelayResponse:
        return RelayResponse(
            status_code=resp.status_code,
            body=resp.content,
            headers={
                "Content-Type": resp.headers.get("Content-Type") or "text/plain",
                **_CORS_HEADERS,
            },
        )
