"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from accounts.api.middleware.error_handler import error_handler_middleware
from accounts.api.middleware.latency_logging import latency_logging_middleware
from accounts.api.routes import health, users
from accounts.core.cassandra import connect
from accounts.core.config import get_settings
from accounts.core.crypto import CredentialVerifier, PIICipher
from accounts.services.profile_cache import create_profile_cache
from accounts.services.profile_store import ProfileStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Own the store and cache clients for the life of the process.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    cassandra = connect(settings)
    store = ProfileStore(cassandra.session, keyspace=settings.cassandra_keyspace)
    if settings.cassandra_create_schema:
        store.ensure_schema()

    cache = create_profile_cache(settings)
    logger.info("Profile cache initialized (%s backend)", settings.cache_backend)

    app.state.cassandra = cassandra
    app.state.profile_store = store
    app.state.profile_cache = cache
    app.state.pii_cipher = PIICipher.from_hex(settings.pii_encryption_key)
    app.state.credential_verifier = CredentialVerifier(rounds=settings.bcrypt_rounds)

    yield

    cache.close()
    logger.info("Profile cache closed")
    cassandra.close()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Accounts API",
        description="User and bot profile service",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "PATCH", "OPTIONS", "HEAD"],
        allow_headers=["*"],
    )

    # Last added runs first: latency logging sees the formatted error status
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    app.include_router(health.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(users.router)
    app.include_router(api_v1_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "accounts.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
