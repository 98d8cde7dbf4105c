from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from lor_tracker.core.errors import install_exception_handlers
from lor_tracker.core.logging import RequestLoggingMiddleware, configure_logging
from lor_tracker.core.observability import PrometheusMiddleware, metrics_endpoint
from lor_tracker.core.settings import Settings, settings
from lor_tracker.db.session import engine
from lor_tracker.modules.router_registry import include_all_routers
from lor_tracker.services.notifications import Notifier
from lor_tracker.services.storage import LocalBlobStore

logger = logging.getLogger(__name__)


def _check_production_settings(config: Settings) -> None:
    if any(origin.strip() == "*" for origin in config.allow_origins):
        raise RuntimeError("ALLOW_ORIGINS cannot include '*' in production")
    if config.jwt_secret.startswith("change_me"):
        raise RuntimeError("JWT_SECRET must be set in production")


def create_app(
    *,
    blob_store: Optional[LocalBlobStore] = None,
    notifier: Optional[Notifier] = None,
    config: Settings = settings,
) -> FastAPI:
    configure_logging(level=config.log_level)

    # Always allow localhost during development (Vite often changes ports).
    allow_origin_regex = None
    if config.is_production:
        _check_production_settings(config)
    else:
        allow_origin_regex = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"

    app = FastAPI(title=config.project_name, version=config.project_version)
    app.state.blob_store = blob_store or LocalBlobStore(config.ensure_uploads_dir())
    app.state.notifier = notifier or Notifier()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allow_origins,
        allow_origin_regex=allow_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id", "Accept"],
    )
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    install_exception_handlers(app)
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["observability"], include_in_schema=False)
    include_all_routers(app)

    @app.get("/healthz", tags=["health"])
    def healthcheck() -> dict[str, str]:
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except Exception as exc:
            logger.error("healthcheck_failed", exc_info=exc)
            raise HTTPException(status_code=503, detail="Service unavailable") from exc
        return {"status": "ok", "database": "ok"}

    return app


app = create_app()
