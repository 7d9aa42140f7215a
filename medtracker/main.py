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
from .medications.router import router as medications_router
from .intents.router import router as intents_router
from .intents.service import SnapshotRefresher
from .database import engine, init_db
from .config import settings
from .medications import models  # noqa: F401  (registers tables on Base)
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
init_db()
logger.info("🚀 Starting MedTracker API...")

# Create FastAPI application
app = FastAPI(
    title="MedTracker API",
    description="API for tracking medication supply, doses and adherence goals",
    version="1.0.0"
)

# Widgets and shortcuts subscribe here for snapshot refreshes
app.state.snapshot_refresher = SnapshotRefresher()

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(medications_router, prefix="/api/v1/medications", tags=["Medications"])
app.include_router(intents_router, prefix="/api/v1/intents", tags=["Widgets & Shortcuts"])

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to MedTracker API", "version": app.version}

# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": engine.url.get_backend_name()}
