# routers/__init__.py

from fastapi import APIRouter

# Public routes first: /requests/public/... must win over /requests/{id}/...
from .public import router as public_router
from .requests import router as requests_router
from .access import router as access_router
from .health import router as health_router


api_router = APIRouter()

api_router.include_router(public_router)
api_router.include_router(requests_router)
api_router.include_router(access_router)
api_router.include_router(health_router)

__all__ = ["api_router"]
