# src/jewelbook/main.py
"""
MAIN FASTAPI APPLICATION
"""

from datetime import datetime
from fastapi import FastAPI
import logging

from jewelbook.core import config
from jewelbook.core.database import get_database_manager
from jewelbook.core.logger import setup_logging
from jewelbook.core.security import build_middleware
from jewelbook.api.rates import router as rates_router
from jewelbook.api.expenses import router as expenses_router
from jewelbook.api.sales import router as sales_router
from jewelbook.api.reports import router as reports_router
from jewelbook.api.users import router as users_router

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Jewelbook",
    description="Back office for a jewellery shop: daily rates, sales, expenses and reports",
    version=config.APP_VERSION,
    docs_url="/docs" if config.IS_DEVELOPMENT else None,
    redoc_url=None,
    openapi_url="/openapi.json" if config.IS_DEVELOPMENT else None,
    middleware=build_middleware()
)

# Include routers
app.include_router(rates_router)
app.include_router(expenses_router)
app.include_router(sales_router)
app.include_router(reports_router)
app.include_router(users_router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": config.SERVICE_NAME,
        "version": config.APP_VERSION,
        "timestamp": datetime.now().isoformat()
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    logger.info(f"Starting {config.APP_NAME}...")

    try:
        db_manager = get_database_manager()
        db_manager.initialize_database()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    logger.info(f"{config.APP_NAME} started successfully")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info(f"Shutting down {config.APP_NAME}...")

    try:
        get_database_manager().close_all_connections()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "jewelbook.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.IS_DEVELOPMENT,
        log_level="info"
    )


if __name__ == "__main__":
    run()
