from fastapi import APIRouter

from app.api.v1.admin_users import router as admin_router
from app.api.v1.events import router as events_router
from app.api.v1.me import router as me_router
from app.api.v1.members import router as members_router
from app.api.v1.routes import router as routes_router

router = APIRouter()
router.include_router(events_router)
router.include_router(routes_router)
router.include_router(members_router)
router.include_router(me_router)
router.include_router(admin_router)
