# vehicle_portal/main.py
"""
FastAPI application entry point.
Includes CORS, request timing, error translation, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from vehicle_portal.routers import auth, registrations, health
from vehicle_portal.database import create_tables
from vehicle_portal.config import settings
from vehicle_portal.services.errors import PortalError
from vehicle_portal.services.storage_service import upload_root
from vehicle_portal.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Vehicle Registration Portal API",
    description="Vehicle registration requests, document uploads and admin review.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(auth.router,          prefix="/api", tags=["Auth"])
app.include_router(registrations.router, prefix="/api", tags=["Registrations"])
app.include_router(health.router,        prefix="/api", tags=["Health"])

# Uploaded documents are referenced as "uploads/<name>"
app.mount("/uploads", StaticFiles(directory=str(upload_root())), name="uploads")


@app.get("/", include_in_schema=False)
def root():
    return {"message": "Vehicle Registration API is running"}


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Vehicle Registration Portal starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Vehicle Registration Portal shutting down...")
