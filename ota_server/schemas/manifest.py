"""Pydantic schemas for the device-facing manifest endpoint."""
from pydantic import BaseModel, ConfigDict, Field


class ManifestRequest(BaseModel):
    """Device asks which bundle it should run.

    Required fields are checked by the route so that a missing value yields the
    documented 400 body instead of a validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    app_id: str | None = Field(default=None, alias="appId")
    platform: str | None = None
    runtime_version: str | None = Field(default=None, alias="runtimeVersion")
    user_id: str | None = Field(default=None, alias="userId")


class ManifestResponse(BaseModel):
    """Update the device should download."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    bundle_url: str = Field(alias="bundleUrl")
    hash: str
