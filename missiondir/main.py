from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from missiondir.auth_scopes import Surface
from missiondir.config import Settings, get_settings
from missiondir.errors import StoreError
from missiondir.firewall import FilterConfig, RequestFilterMiddleware
from missiondir.gateway import build_router
from missiondir.missions import MissionService
from missiondir.store import MissionStore, build_store

log = logging.getLogger("missiondir")


def _init_storage(app: FastAPI, store: Optional[MissionStore]) -> None:
    settings: Settings = app.state.settings
    # A store that cannot be built is fatal; the key table only degrades /health/ready.
    if store is None:
        store = build_store(settings)
    app.state.mission_service = MissionService(store)

    app.state.db_init_ok = True
    app.state.db_init_error = None
    if not settings.auth_enabled:
        return
    try:
        from missiondir.db import init_db

        init_db()
    except Exception as e:
        app.state.db_init_ok = False
        app.state.db_init_error = f"{type(e).__name__}: {e}"
        log.exception("api key table init failed")


def build_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[MissionStore] = None,
    auth_enabled: Optional[bool] = None,
) -> FastAPI:
    # Resolve ONCE. Never re-resolve later. Never mutate per-request.
    settings = settings or get_settings()
    if auth_enabled is not None:
        settings = replace(settings, auth_enabled=bool(auth_enabled))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(
            "starting service=%s env=%s backend=%s auth_enabled=%s",
            settings.service,
            settings.env,
            settings.store_backend,
            settings.auth_enabled,
        )
        yield

    app = FastAPI(title="mission-directory", version="0.1.0", lifespan=lifespan)

    # Freeze state at build time
    app.state.settings = settings
    app.state.app_instance_id = str(uuid.uuid4())
    _init_storage(app, store)

    app.add_middleware(RequestFilterMiddleware, config=FilterConfig.from_settings(settings))

    for surface in Surface:
        app.include_router(build_router(surface))

    @app.get("/health")
    async def health(request: Request) -> dict:
        s: Settings = request.app.state.settings
        return {
            "status": "ok",
            "service": s.service,
            "env": s.env,
            "auth_enabled": bool(s.auth_enabled),
            "store_backend": s.store_backend,
            "app_instance_id": request.app.state.app_instance_id,
        }

    @app.get("/health/live")
    async def health_live() -> dict:
        return {"status": "live"}

    @app.get("/health/ready")
    def health_ready(request: Request) -> dict:
        if not bool(request.app.state.db_init_ok):
            raise HTTPException(
                status_code=503,
                detail=f"db_init_failed: {request.app.state.db_init_error or 'unknown'}",
            )
        try:
            request.app.state.mission_service.store.ping()
        except StoreError:
            log.exception("store not ready")
            raise HTTPException(status_code=503, detail="store unavailable")
        return {"status": "ready", "store": settings.store_backend}

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


def run() -> None:
    import uvicorn

    from missiondir.logging_config import configure_logging

    configure_logging()
    uvicorn.run(build_app(), host="0.0.0.0", port=8080, log_config=None)


if __name__ == "__main__":
    run()
