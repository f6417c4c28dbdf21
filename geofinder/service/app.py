"""HTTP transport for the proximity query surface."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Query, Request

from geofinder.common.config_loader import QuerySettings
from geofinder.index.builder import ProximityIndex
from geofinder.index.query import search

logger = logging.getLogger(__name__)


def create_app(index: ProximityIndex, settings: QuerySettings) -> FastAPI:
    app = FastAPI(title="geofinder")
    app.state.index = index
    app.state.query_settings = settings

    @app.get("/")
    def nearby(
        request: Request,
        longitude: float = Query(..., ge=-180, le=180),
        latitude: float = Query(..., ge=-90, le=90),
    ) -> list[dict]:
        return search(request.app.state.index, longitude, latitude, request.app.state.query_settings)

    @app.get("/health")
    def health(request: Request) -> dict:
        current: ProximityIndex = request.app.state.index
        return {"status": "ok", "regions": len(current.regions), "records": len(current.records)}

    return app


def serve(index: ProximityIndex, settings: QuerySettings, *, host: str, port: int, log_level: str = "info") -> None:
    import uvicorn

    logger.info("serving %d regions on %s:%d", len(index.regions), host, port)
    uvicorn.run(create_app(index, settings), host=host, port=port, log_level=log_level)
