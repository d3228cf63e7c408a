from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from app.core.config import settings
from app.core.database import engine, Base
from app.core.error_handlers import register_error_handlers
from app.core.logging_config import setup_logging
from app.core.middleware import add_middleware
from app.core.redis_service import get_token_blocklist
from app.auth.routes import router as auth_router
from app.employees.routes import router as employees_router
from app.tasks.routes import router as tasks_router

# Set up logging
setup_logging(log_level=settings.log_level, log_file=settings.log_file)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Role-based employee and task management API",
    version="1.0.0",
    debug=settings.debug
)

# Session cookies are sent by the frontend, so credentials need an explicit origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register error handlers
register_error_handlers(app)

# Add middleware
add_middleware(app)

# Include routers
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(employees_router, prefix=settings.api_prefix)
app.include_router(tasks_router, prefix=settings.api_prefix)


@app.on_event("startup")
async def startup_event():
    """Initialize database tables and report the revocation store."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise  # Re-raise to prevent app from starting with errors

    if settings.enable_token_revocation and not get_token_blocklist().is_available():
        logger.warning("Redis not available, logout will not revoke tokens server-side")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Application shutting down...")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": f"{settings.app_name} API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "auth": f"{settings.api_prefix}/auth",
            "employees": f"{settings.api_prefix}/employees",
            "tasks": f"{settings.api_prefix}/tasks",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "message": "API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
