"""
Main FastAPI application
"""
import asyncio
import contextlib
import json
import logging
import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from frontdesk.config.database import db_config
from frontdesk.config.settings import settings
from frontdesk.database.mongo_store import get_store
from frontdesk.errors import (
    FrontDeskError,
    NotFoundError,
    PreconditionError,
    StoreFailure,
    UnclassifiedEntryError,
    ValidationError,
)
from frontdesk.services.expiry_scheduler import ExpiryScheduler

from frontdesk.routes import rooms, checkins, houses, advance_bookings, payments

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

ERROR_STATUS_CODES = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (PreconditionError, 409),
    (UnclassifiedEntryError, 422),
    (StoreFailure, 503),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events"""
    # Startup
    await db_config.connect_db()
    scheduler_task = None
    if settings.EXPIRY_SCHEDULER_ENABLED:
        scheduler_task = asyncio.create_task(ExpiryScheduler(get_store()).run_forever())
    print(f"🚀 {settings.APP_NAME} v{settings.VERSION} started")
    yield
    # Shutdown
    if scheduler_task:
        scheduler_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler_task
    await db_config.close_db()
    print("👋 Application shutdown")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = exc.body
    # Round-trip through json with default=str to handle non-serializable objects (e.g. ValueError);
    # NaN and Infinity inputs come back as strings
    safe_errors = json.loads(json.dumps(exc.errors(), default=str), parse_constant=str)
    print("\n" + "="*60)
    print(f"❌ 422 VALIDATION ERROR on {request.method} {request.url.path}")
    print(f"📋 ERRORS: {json.dumps(safe_errors, indent=2)}")
    if body:
        print(f"📦 BODY SENT: {json.dumps(body, indent=2, default=str)}")
    print("="*60 + "\n")
    return JSONResponse(status_code=422, content={"detail": safe_errors})

@app.exception_handler(FrontDeskError)
async def frontdesk_exception_handler(request: Request, exc: FrontDeskError):
    status_code = next((code for cls, code in ERROR_STATUS_CODES if isinstance(exc, cls)), 400)
    print(f"⚠️ {status_code} on {request.method} {request.url.path}: {exc.message}")
    content = jsonable_encoder({**exc.detail, "detail": exc.message})
    return JSONResponse(status_code=status_code, content=content)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    print(f"\n🌐 {request.method} {request.url.path}")
    response = await call_next(request)
    duration = time.time() - start_time
    print(f"✅ {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
    return response

# Include routers
app.include_router(rooms.router, prefix="/api")
app.include_router(checkins.router, prefix="/api")
app.include_router(houses.router, prefix="/api")
app.include_router(advance_bookings.router, prefix="/api")
app.include_router(payments.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "currency": settings.CURRENCY,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
