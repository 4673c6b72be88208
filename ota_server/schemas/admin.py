from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=256)


class LoginResponse(CamelModel):
    token: str
    token_type: str = Field(default="bearer", alias="tokenType")
    expires_at: datetime = Field(alias="expiresAt")


class ReleaseResponse(CamelModel):
    id: UUID
    path: str
    runtime_version: str = Field(alias="runtimeVersion")
    version: str | None = None
    commit_hash: str | None = Field(default=None, alias="commitHash")
    commit_message: str | None = Field(default=None, alias="commitMessage")
    is_active: bool = Field(alias="isActive")
    is_current: bool = Field(alias="isCurrent")
    timestamp: datetime
    published_at: datetime = Field(alias="publishedAt")
    size: int
    hash: str | None = None


class ReleaseListResponse(BaseModel):
    releases: list[ReleaseResponse]


class RollbackRequest(CamelModel):
    path: str = Field(..., min_length=1, max_length=255)
    runtime_version: str = Field(..., min_length=1, max_length=64, alias="runtimeVersion")
    commit_hash: str | None = Field(default=None, alias="commitHash")
    commit_message: str | None = Field(default=None, alias="commitMessage")


class RollbackResponse(BaseModel):
    success: bool
    release: ReleaseResponse


class TrackingResponse(CamelModel):
    release_id: UUID = Field(alias="releaseId")
    platform: str
    count: int


class AllTrackingResponse(CamelModel):
    trackings: list[TrackingResponse]
    total_releases: int = Field(alias="totalReleases")


class StatsResponse(CamelModel):
    total_releases: int = Field(alias="totalReleases")
    total_downloads: int = Field(alias="totalDownloads")
    ios_downloads: int = Field(alias="iosDownloads")
    android_downloads: int = Field(alias="androidDownloads")
    ios_percent: int = Field(alias="iosPercent")
    android_percent: int = Field(alias="androidPercent")
    average_downloads_per_release: int = Field(alias="averageDownloadsPerRelease")


class UserOtaSettingRequest(CamelModel):
    ota_enabled: bool = Field(alias="otaEnabled")


class UserOtaSettingResponse(CamelModel):
    user_id: str = Field(alias="userId")
    ota_enabled: bool = Field(alias="otaEnabled")
    explicit: bool
