from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="OTA Update Server", alias="APP_NAME")
    database_url: str = Field(alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    allow_insecure_http: bool = Field(default=False, alias="ALLOW_INSECURE_HTTP")

    admin_password: str | None = Field(default=None, alias="ADMIN_PASSWORD")
    admin_token: str | None = Field(default=None, alias="ADMIN_TOKEN")
    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    admin_token_ttl_minutes: int = Field(default=720, alias="ADMIN_TOKEN_TTL_MINUTES")
    rate_limit_login_per_minute: int = Field(default=5, alias="RATE_LIMIT_LOGIN_PER_MINUTE")

    storage_backend: str = Field(default="local", alias="STORAGE_BACKEND")
    bundle_storage_dir: str = Field(default="bundles", alias="BUNDLE_STORAGE_DIR")
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")
    signed_url_secret: str | None = Field(default=None, alias="SIGNED_URL_SECRET")
    signed_url_ttl_seconds: int = Field(default=3600, alias="SIGNED_URL_TTL_SECONDS")
    signing_timeout_seconds: float = Field(default=10.0, alias="SIGNING_TIMEOUT_SECONDS")

    s3_bucket: str = Field(default="ota-bundles", alias="S3_BUCKET")
    s3_endpoint_url: str | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_access_key_id: str | None = Field(default=None, alias="S3_ACCESS_KEY_ID")
    s3_secret_access_key: str | None = Field(default=None, alias="S3_SECRET_ACCESS_KEY")

    track_downloads: bool = Field(default=True, alias="TRACK_DOWNLOADS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
