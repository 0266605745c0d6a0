"""FastAPI application serving mounted asset directories."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import Response

from ..config import AssetServeConfig
from ..errors import AssetError
from ..logging import get_logger
from ..server import AssetServer


_ASSET_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


class HealthResponse(BaseModel):
    status: str
    mounts: int


class AssetURLResponse(BaseModel):
    url: str
    token: Optional[str] = None


def create_app(
    server: AssetServer | None = None,
    *,
    config: AssetServeConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application serving the server's mounts.

    When no server is given one is built from ``config`` and closed again when
    the application shuts down.
    """

    owns_server = server is None
    if server is None:
        server = (
            AssetServer.from_config(config) if config is not None else AssetServer()
        )
    logger = get_logger("service")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_server:
            logger.debug("Stopping asset watches")
            server.close()

    app = FastAPI(title="Asset Server", version="1.0.0", lifespan=lifespan)
    app.state.asset_server = server

    async def get_server() -> AssetServer:
        return server

    @app.get("/health", response_model=HealthResponse)
    async def health(
        asset_server: AssetServer = Depends(get_server),
    ) -> HealthResponse:
        return HealthResponse(status="ok", mounts=len(asset_server.mounts))

    @app.get("/_assets/url", response_model=AssetURLResponse)
    async def asset_url(
        prefix: str = Query(...),
        name: str = Query(...),
        asset_server: AssetServer = Depends(get_server),
    ) -> AssetURLResponse:
        url = asset_server.asset_url(prefix, name)
        _, _, query = url.partition("?")
        token = None
        param = f"{asset_server.cache_config.query_param}="
        if query.startswith(param):
            token = query[len(param):]
        return AssetURLResponse(url=url, token=token)

    async def serve_asset(request: Request) -> Response:
        handler = server.handler_for_path(request.url.path)
        return await handler(request)

    app.add_route(
        "/{path:path}", serve_asset, methods=list(_ASSET_METHODS), include_in_schema=False
    )

    @app.exception_handler(AssetError)
    async def asset_error_handler(_: Any, exc: AssetError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    return app


def run_service(
    config: AssetServeConfig, *, host: str | None = None, port: int | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
    )
