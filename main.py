"""
main.py — LandLedger Entry Point
==================================
This is the file you run to start the registry service.
It does 4 things in order:
    1. Creates the FastAPI app
    2. Creates the audit tables
    3. Connects to the ledger backend
    4. Registers the land and admin routers

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

Or simply:
    python main.py
"""

import logging
import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings

from db.session import init_db, close_db
from core.errors import RegistryError, ValidationError
from core.ledger import ledger
from core.models import OperationResult

from api.routes_lands import router as lands_router
from api.routes_admin import router as admin_router


# ── Logging setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(settings.LOG_FILE),
    ],
)
logger = logging.getLogger("landledger.main")


# ── Lifespan: runs on startup and shutdown ────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    await init_db()
    logger.info("✓ Audit database ready")

    logger.info(f"Connecting to ledger ({settings.LEDGER_BACKEND})...")
    await ledger.connect()
    logger.info(f"✓ Ledger connected — backend: {ledger.backend}")

    yield

    logger.info("Shutting down — closing ledger connection...")
    await ledger.disconnect()
    await close_db()
    logger.info("✓ Shutdown complete")


# ── Create the FastAPI app ────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Land registration, sale and purchase workflows over a ledger",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error mapping ─────────────────────────────────────────────────────────────
@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    """Every workflow failure becomes {success: false, code, message} with its own status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} — {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} refused: {exc.code} — {exc.message}")
    body = OperationResult(success=False, message=exc.message, code=exc.code, details=exc.details or None)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body, exclude_none=True))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies, paths and queries get the same envelope as a ValidationError."""
    details = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())[1:]] or ["request"]
        details[".".join(loc)] = str(err.get("msg"))
    logger.info(f"{request.method} {request.url.path} refused: {ValidationError.code} — {details}")
    body = OperationResult(
        success=False,
        message="Request is invalid.",
        code=ValidationError.code,
        details=details,
    )
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=jsonable_encoder(body, exclude_none=True),
    )


app.include_router(lands_router, prefix="/lands", tags=["Land Registry"])
app.include_router(admin_router, prefix="/admin", tags=["Administration"])


# ── Root endpoint ─────────────────────────────────────────────────────────────
@app.get("/", tags=["Status"])
async def root():
    return {
        "system": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "operational",
        "ledger": settings.LEDGER_BACKEND,
        "docs": "/docs",
    }


@app.get("/health-check", tags=["Status"])
async def health_check():
    """Deep health check — confirms the ledger answers."""
    return {
        "api": "ok",
        "ledger": await ledger.ping(),
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
