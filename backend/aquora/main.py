import logging

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url

from aquora.auth.router import router as auth_router
from aquora.auth.security import build_password_hasher, build_token_codec
from aquora.core.config import API_PREFIX, Settings, get_settings
from aquora.core.errors import ApiError
from aquora.core.handlers import register_exception_handlers
from aquora.db.init_db import init_db
from aquora.db.session import create_db_engine, create_session_factory
from aquora.societies.router import router as societies_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    engine = engine or create_db_engine(settings)

    app = FastAPI(
        title="Aquora Society Administration API",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.password_hasher = build_password_hasher(settings)
    app.state.token_codec = build_token_codec(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Auth-Return-Refresh-Token"],
    )

    register_exception_handlers(app)

    @app.on_event("startup")
    def on_startup() -> None:
        db_url = make_url(settings.DATABASE_URL)
        logger.info(
            "Config sanity: env=%s db_host=%s cors_origins=%s access_ttl=%s refresh_ttl_days=%s "
            "cookie_secure=%s cookie_same_site=%s bcrypt_cost=%s",
            settings.ENV,
            db_url.host or "local",
            len(settings.CORS_ORIGINS),
            settings.AUTH_ACCESS_TOKEN_TTL,
            settings.AUTH_REFRESH_TOKEN_TTL_DAYS,
            settings.AUTH_REFRESH_TOKEN_COOKIE_SECURE,
            settings.AUTH_REFRESH_TOKEN_COOKIE_SAME_SITE,
            settings.BCRYPT_COST,
        )
        init_db(engine)

    # --- Routers ---
    api = APIRouter()

    @api.get("/health", tags=["system"])
    def api_health():
        return {"ok": True}

    api.include_router(auth_router, prefix="/auth", tags=["auth"])
    api.include_router(societies_router, prefix="/societies", tags=["societies"])
    app.include_router(api, prefix=API_PREFIX)

    # --- System ---
    @app.get("/health", tags=["system"])
    def health():
        return {"status": "ok"}

    @app.get("/ready", tags=["system"])
    def readiness():
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            raise ApiError("Database not ready", status_code=503) from exc
        return {"status": "ready"}

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
