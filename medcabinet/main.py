"""Main FastAPI application for the medcabinet scheduling engine."""
import logging

from fastapi import FastAPI

from medcabinet import __version__
from medcabinet.db.init import init_db
from medcabinet.routers import schedules
from medcabinet.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Medcabinet Scheduling API",
    description="Recurrence resolution and intake reminder scheduling for medicine schedules",
    version=__version__,
)


@app.on_event("startup")
async def startup_event():
    """Initialize database and restore the reminder table on startup."""
    try:
        init_db()
        logger.info("[SUCCESS] Database tables initialized successfully.")
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {str(e)}")
        logger.warning("[WARNING] Server will continue but schedule persistence may fail.")

    try:
        await schedules.get_reminder_projector().load()
    except Exception as e:
        logger.warning(f"[WARNING] Reminder table could not be restored: {str(e)}")

    logger.info("[SUCCESS] Application startup complete.")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/metrics")
async def metrics():
    """Schedule and reminder counters."""
    return metrics_collector.get_metrics()


app.include_router(schedules.router, prefix="/api")  # /api/schedules, /api/medicines/{id}/schedules, /api/reminders


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medcabinet.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
