"""FastAPI application factory and ASGI entry point (``quizdesk.main:app``)."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizdesk import __version__
from quizdesk.api.v1.router import api_router
from quizdesk.common.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from quizdesk.core.config import settings
from quizdesk.core.dependencies import ATTEMPT_TOKEN_HEADER
from quizdesk.core.errors import register_exception_handlers
from quizdesk.core.logging import get_logger, setup_logging
from quizdesk.core.redis_client import init_redis
from quizdesk.core.seed_auth import seed_demo_accounts
from quizdesk.core.security_headers import SecurityHeadersMiddleware
from quizdesk.db.base import Base
from quizdesk.db.engine import engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_redis()
    # Outside dev the schema is owned by Alembic
    if settings.ENV == "dev":
        Base.metadata.create_all(bind=engine)
    seed_demo_accounts()
    logger.info("startup", extra={"version": __version__, "api_prefix": settings.API_PREFIX})
    yield
    logger.info("shutdown")


def create_app() -> FastAPI:
    """Build the API application with middlewares, error handlers and routes."""
    expose_docs = settings.ENV != "prod"
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        description="Quiz administration API: timed single-attempt quizzes with scoring",
        openapi_url="/openapi.json" if expose_docs else None,
        docs_url="/docs" if expose_docs else None,
        redoc_url="/redoc" if expose_docs else None,
        lifespan=lifespan,
    )

    # Last added runs first: CORS, then request id, then security headers
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", ATTEMPT_TOKEN_HEADER, REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/", tags=["Root"])
    def root():
        return {
            "message": settings.PROJECT_NAME,
            "version": __version__,
            "docs_url": "/docs" if expose_docs else None,
        }

    return app


app = create_app()
