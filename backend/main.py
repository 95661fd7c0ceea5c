"""
CipherChat Backend - Main Application Entry Point

Stores per-user RSA key pairs and exchanges end-to-end encrypted text
messages between users. Only ciphertext is persisted.

Security Notes:
- All endpoints except /health require a bearer token identifying the user
- Private keys are wrapped with AES-256-GCM at rest and never returned
- Plaintext and key material are never logged
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import crypto, keys, messages
from config import Settings, settings
from crypto_engine import derive_wrapping_key
from exceptions import (
    AuthorizationError,
    CipherError,
    IdentityError,
    KeyNotFoundError,
    MessagingError,
    NotFoundError,
)
from key_store import KeyStore
from messaging import MessagingService
from storage import (
    Database,
    MemoryKeyRepository,
    MemoryMessageLedger,
    SQLiteKeyRepository,
    SQLiteMessageLedger,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


ERROR_STATUS = {
    IdentityError: status.HTTP_401_UNAUTHORIZED,
    KeyNotFoundError: status.HTTP_404_NOT_FOUND,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    CipherError: 422,
}


async def build_messaging_service(
    config: Settings,
) -> Tuple[MessagingService, Optional[Database]]:
    """Wire the key store and ledger for the configured storage backend."""
    database = None

    if config.storage_backend == "memory":
        key_repository = MemoryKeyRepository()
        ledger = MemoryMessageLedger()
    else:
        database = Database(config.db_path)
        await database.connect()
        await database.init_schema()
        key_repository = SQLiteKeyRepository(database)
        ledger = SQLiteMessageLedger(database)

    key_store = KeyStore(
        key_repository,
        derive_wrapping_key(config.key_encryption_secret),
        key_size=config.rsa_key_size,
    )
    return MessagingService(key_store, ledger), database


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    service, database = await build_messaging_service(settings)
    app.state.messaging = service
    if database is not None:
        logger.info("Database initialized at %s", settings.db_path)
    else:
        logger.warning("Using in-memory storage; data will not survive a restart")

    yield

    logger.info("Shutting down %s", settings.app_name)
    if database is not None:
        await database.close()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="End-to-end encrypted messaging backend API",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info("%s %s failed: %s", request.method, request.url.path, exc.kind)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, IdentityError) else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "internal_error", "message": "Internal server error"},
    )


app.include_router(keys.router, prefix="/api/v1/keys", tags=["Keys"])
app.include_router(crypto.router, prefix="/api/v1/crypto", tags=["Crypto"])
app.include_router(messages.router, prefix="/api/v1/messages", tags=["Messages"])


@app.get("/")
async def root():
    return {"status": "running", "service": settings.app_name}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "storage": settings.storage_backend,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
