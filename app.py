"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_relay
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import ChannelRouter
from services.routing_service import RoutingService
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.limits.max_connections,
            max_keepalive_connections=config.limits.max_keepalive_connections,
        )
        clients = {
            channel.name: httpx.AsyncClient(
                base_url=channel.base_url,
                timeout=config.limits.timeout,
                limits=limits,
                transport=transport,
            )
            for channel in config.channels
        }
        app.state.upstream_client = UpstreamClient(clients, timeout=config.limits.timeout)
        app.state.routing_service = RoutingService(
            logger=logger,
            router=ChannelRouter(config.channels),
            header_builder=HeaderBuilder(),
        )
        try:
            yield
        finally:
            for client in clients.values():
                await client.aclose()

    app = FastAPI(title="Channel Relay", version="0.1.0", lifespan=lifespan)

    @app.post("/v1/{path:path}")
    async def relay(request: Request):
        return await handle_relay(request, logger)

    return app
