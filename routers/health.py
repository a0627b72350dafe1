# routers/health.py

from fastapi import APIRouter, Depends

from core.config import settings
from core.store import DataStore
from dependencies.store import get_data_store

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Checks the configured data store
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Data store health check")
def health_db(store: DataStore = Depends(get_data_store)):
    """
    Pings the data store (in-memory or Supabase).
    Safe for external health monitors (no auth required).
    """
    try:
        status = store.ping()
        return {
            "service": settings.DATA_STORE_BACKEND,
            "status": status.get("status", "unknown"),
            "details": status,
        }

    except Exception as e:
        return {
            "service": settings.DATA_STORE_BACKEND,
            "status": "error",
            "error": str(e),
        }


# -----------------------------------------------------
# GET /health/app
# Simple API health check for uptime monitors
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
    }
