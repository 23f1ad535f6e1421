from fastapi import APIRouter

from mosque_registry.modules.admins.admin_router import router as admin_review_router
from mosque_registry.modules.admins.router import router as admins_router
from mosque_registry.modules.audit.router import router as audit_router
from mosque_registry.modules.auth.router import router as auth_router
from mosque_registry.modules.mosques.admin_router import router as admin_mosques_router
from mosque_registry.modules.mosques.router import router as mosques_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(mosques_router, prefix="/mosques", tags=["Mosques"])

api_router.include_router(admins_router, prefix="/admins", tags=["Admins"])

api_router.include_router(
    admin_mosques_router,
    prefix="/admin/mosques",
    tags=["Admin - Mosques"],
)

api_router.include_router(
    admin_review_router,
    prefix="/admin/admins",
    tags=["Admin - Admins"],
)

api_router.include_router(
    audit_router,
    prefix="/admin/audit-logs",
    tags=["Admin - Audit"],
)
