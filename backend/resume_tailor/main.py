import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .config import get_settings
from .database import init_db
from .exceptions import ResumeTailorError
from .logging_config import configure_logging
from .routers import auth_router, profile_router, imports_router, resumes_router, sync_router, tailor_router
from .routers.imports import import_sessions
from .routers.resumes import editor_sessions

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.log_level)
    await init_db()
    logger.info(f"✅ {settings.app_name} started")
    yield
    # Shutdown: cancel pending auto-reverts and preview renders
    await import_sessions.close_all()
    editor_sessions.close_all()


app = FastAPI(
    title=settings.app_name,
    description="Resume import, profile sync and tailored resume editing",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware - uses origins from environment variable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


# Cache control middleware - import status is polled, never cache it
class NoCacheMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response

app.add_middleware(NoCacheMiddleware)


# ============================================================================
# Error handlers
# ============================================================================

@app.exception_handler(ResumeTailorError)
async def resume_tailor_error_handler(request: Request, exc: ResumeTailorError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({"error": exc.message, "details": exc.details}),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Something went wrong. Please try again.", "details": {}},
    )


# Include routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(imports_router)
app.include_router(sync_router)
app.include_router(resumes_router)
app.include_router(tailor_router)


@app.get("/")
async def root():
    return {"message": settings.app_name, "status": "running", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancer"""
    return {"status": "healthy"}
