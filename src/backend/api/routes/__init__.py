"""
API router aggregating all HTTP endpoints under /api.
"""

from fastapi import APIRouter

from api.routes.admin import router as admin_router
from api.routes.choice import router as choice_router
from api.routes.health import router as health_router
from api.routes.state import router as state_router
from api.routes.submit import router as submit_router

router = APIRouter()

router.include_router(health_router, prefix="/health", tags=["Health"])
router.include_router(state_router, prefix="/state", tags=["State"])
router.include_router(submit_router, prefix="/submit", tags=["Access Code"])
router.include_router(choice_router, prefix="/choice", tags=["Votes"])
router.include_router(admin_router, prefix="/admin", tags=["Admin"])
