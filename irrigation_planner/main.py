"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from irrigation_planner.config import settings
from irrigation_planner.middleware.error_handler import ErrorHandlerMiddleware
from irrigation_planner.api.v1.routers import catalog, geometry, projects

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_requests}/minute"],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Logs the effective planning configuration on startup.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Planning config: max_zone_area={settings.max_zone_area_m2}m², "
                f"clip_samples={settings.clip_sample_count}, "
                f"row_tolerance={settings.row_tolerance_deg}°")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    yield

    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Micro-irrigation Planning API

    Plans sprinkler layouts and pipe networks over user-drawn garden zones.

    ## Features

    - **Coverage Clipping**: Clip sprinkler coverage circles to irregular zone boundaries
    - **Sprinkler Placement**: Corner sprinklers plus a grid aligned with each zone's
      longest edge, keeping clear of sub-zones and forbidden areas
    - **Pipe Routing**: Sub-main from the main pipe to each zone, laterals chained
      along detected sprinkler rows
    - **Statistics and Reports**: Areas, pipe lengths, coverage, flow and junctions
    - **Rate Limiting**: Protects the API from abuse

    Every project endpoint is stateless: send the project, get the updated project back.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(catalog.router, prefix="/api/v1")
app.include_router(geometry.router, prefix="/api/v1")
app.include_router(projects.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
