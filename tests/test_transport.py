from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from loki_relay.transport import LokiTransport

from .conftest import FakeLoki, make_config

_PAYLOAD = {"streams": [{"stream": {"proxy": "p"}, "values": [["1", "a"]]}]}


class TestURLConstruction:
    def test_default_port_uses_https(self) -> None:
        transport = LokiTransport(make_config())
        assert transport.url == "https://logs.example.net:443/loki/api/v1/push"

    @pytest.mark.parametrize("port", ["80", "3100", "8443"])
    def test_other_ports_use_http(self, port: str) -> None:
        transport = LokiTransport(make_config(port=port))
        assert transport.url == f"http://logs.example.net:{port}/loki/api/v1/push"


class TestAuthHeader:
    def test_basic_auth(self) -> None:
        transport = LokiTransport(make_config(username="user", password="p:ss"))
        scheme, _, token = transport.auth_header.partition(" ")
        assert scheme == "Basic"
        assert base64.b64decode(token) == b"user:p:ss"


class TestPush:
    def test_posts_json_with_credentials(self) -> None:
        backend = FakeLoki()
        transport = LokiTransport(make_config(), backend.transport)

        resp = asyncio.run(transport.push(_PAYLOAD))

        assert resp.status_code == 204
        (sent,) = backend.requests
        assert sent.method == "POST"
        assert sent.url.scheme == "https"
        assert sent.url.host == "logs.example.net"
        assert sent.url.path == "/loki/api/v1/push"
        assert sent.headers["Content-Type"] == "application/json"
        assert sent.headers["Authorization"] == transport.auth_header
        assert json.loads(sent.content) == _PAYLOAD

    def test_backend_error_response_returned(self) -> None:
        backend = FakeLoki(status_code=400, body=b"entry too far behind")
        transport = LokiTransport(make_config(), backend.transport)

        resp = asyncio.run(transport.push(_PAYLOAD))

        assert resp.status_code == 400
        assert resp.text == "entry too far behind"

    def test_connection_error_propagates(self) -> None:
        backend = FakeLoki(error=httpx.ConnectError("connection refused"))
        transport = LokiTransport(make_config(), backend.transport)

        with pytest.raises(httpx.ConnectError):
            asyncio.run(transport.push(_PAYLOAD))
        assert len(backend.requests) == 1
