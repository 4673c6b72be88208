from ota_server.schemas.admin import (
    AllTrackingResponse,
    LoginRequest,
    LoginResponse,
    ReleaseListResponse,
    ReleaseResponse,
    RollbackRequest,
    RollbackResponse,
    StatsResponse,
    TrackingResponse,
    UserOtaSettingRequest,
    UserOtaSettingResponse,
)
from ota_server.schemas.manifest import ManifestRequest, ManifestResponse

__all__ = [
    "AllTrackingResponse",
    "LoginRequest",
    "LoginResponse",
    "ManifestRequest",
    "ManifestResponse",
    "ReleaseListResponse",
    "ReleaseResponse",
    "RollbackRequest",
    "RollbackResponse",
    "StatsResponse",
    "TrackingResponse",
    "UserOtaSettingRequest",
    "UserOtaSettingResponse",
]
