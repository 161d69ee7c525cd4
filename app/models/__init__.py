"""Import all models so SQLModel.metadata picks them up."""

from app.models.api_token import ApiToken
from app.models.cage import Cage, CageCreate, CageRead, CageStatus, RoomNumber
from app.models.qr_code import (
    BlankMintRequest,
    CageQrCreate,
    ClaimResponse,
    QrCode,
    QrCodeRead,
    QrStats,
    ScanRequest,
    ScanResponse,
)
from app.models.tenant import Tenant, TenantRead
from app.models.user import User, UserRead, UserRole

__all__ = [
    "ApiToken",
    "BlankMintRequest",
    "Cage",
    "CageCreate",
    "CageQrCreate",
    "CageRead",
    "CageStatus",
    "ClaimResponse",
    "QrCode",
    "QrCodeRead",
    "QrStats",
    "RoomNumber",
    "ScanRequest",
    "ScanResponse",
    "Tenant",
    "TenantRead",
    "User",
    "UserRead",
    "UserRole",
]
