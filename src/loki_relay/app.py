from __future__ import annotations

from fastapi import FastAPI, Request, Response

from loki_relay.models import RelayRequest
from loki_relay.relay import Relay

_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def create_app(relay: Relay | None = None) -> FastAPI:
    relay = relay or Relay()
    app = FastAPI(title="Loki Relay", docs_url=None, redoc_url=None, openapi_url=None)

    @app.api_route("/", methods=_METHODS)
    @app.api_route("/{path:path}", methods=_METHODS)
    async def handle(request: Request) -> Response:
        inbound = RelayRequest(
            method=request.method,
            body=await request.body(),
            query=request.query_params.multi_items(),
            headers=dict(request.headers),
        )
        out = await relay.handle(inbound)
        return Response(
            content=out.body,
            status_code=out.status_code,
            headers=out.headers,
        )

    return app
