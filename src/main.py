"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from .auth.router import router as auth_router
from .auth.tokens import TokenConfig
from .health_checks.router import router as health_checks_router
from .database import Base, engine
from .config import settings
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares

# Import all models here for creating tables
from .auth import models as auth_models  # noqa: F401
from .facilities import models as facility_models  # noqa: F401
from .registrations import models as registration_models  # noqa: F401
from .health_checks import models as health_check_models  # noqa: F401
from .notifications import models as notification_models  # noqa: F401
from .core import audit_models  # noqa: F401

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Token secrets are validated once here; a missing secret stops the process
token_config = TokenConfig.from_settings(settings)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

logger.info("Starting Blood Donation Facility API...")

# Create FastAPI application
app = FastAPI(
    title="Blood Donation Facility API",
    description="Staff authentication and pre-donation health-check workflow",
    version="1.0.0"
)
app.state.token_config = token_config

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware; refreshed tokens travel in response headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-access-token", "x-refresh-token"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(health_checks_router, prefix="/api/v1/health-checks", tags=["Health Checks"])

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to Blood Donation Facility API", "version": app.version}

# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": "connected"}
