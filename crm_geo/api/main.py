"""
FastAPI application for the geocode/route API
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crm_geo.application.container import close_provider_clients, get_container, init_container
from crm_geo.config import configure_logging
from crm_geo.utils.errors import GeoServiceError, RateLimitedError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    configure_logging()
    logger.info("🚀 Starting geo API")
    init_container()
    logger.info("✅ DI container initialized")

    yield

    await close_provider_clients(get_container())
    logger.info("🛑 Geo API stopped")


app = FastAPI(
    title="CRM Geo API",
    description=(
        "Geocoding and route estimation for the CRM map and scheduling views.\n\n"
        "## Endpoints\n\n"
        "- `POST /api/geocode` - address to coordinates (Google, then Nominatim), cached\n"
        "- `POST /api/route` - driving duration/distance (OSRM, haversine fallback), cached per 30 minutes"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Geo", "description": "Geocoding and routing"},
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GeoServiceError)
async def geo_error_handler(request: Request, exc: GeoServiceError):
    """Map the resolver error taxonomy to HTTP status codes"""
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
        headers=headers
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors, same as empty input"""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": str(exc.errors())}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Unexpected error", "details": str(exc)}
    )


@app.get("/")
async def root():
    return {
        "message": "CRM Geo API",
        "status": "ok",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    cache_store = get_container().cache_store()
    return {
        "status": "healthy",
        "persistent_cache": cache_store.has_persistent_store
    }


from crm_geo.api.routes import geo as geo_module

app.include_router(geo_module.router, prefix="/api", tags=["Geo"])
