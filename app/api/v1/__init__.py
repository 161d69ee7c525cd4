"""V1 API router aggregation."""

from fastapi import APIRouter

from app.api.v1.cages import router as cages_router
from app.api.v1.qr_codes import router as qr_codes_router
from app.api.v1.tenants import router as tenants_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(tenants_router)
v1_router.include_router(cages_router)
v1_router.include_router(qr_codes_router)
