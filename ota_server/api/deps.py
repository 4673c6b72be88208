import hmac
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ota_server.config import Settings, get_settings
from ota_server.db import SessionLocal
from ota_server.services.auth import AdminToken, TokenExpired, TokenInvalid, decode_admin_token
from ota_server.services.rate_limit import RateLimiter
from ota_server.services.repository import ReleaseRepository
from ota_server.services.resolver import ManifestResolver
from ota_server.services.storage import ArtifactStore, LocalArtifactStore, S3ArtifactStore

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)
login_limiter = RateLimiter(settings.rate_limit_login_per_minute, 60)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def enforce_rate_limit(limiter: RateLimiter, key: str) -> None:
    if not limiter.allow(key):
        raise HTTPException(status_code=429, detail="Too many requests")


def rate_limit_login(request: Request) -> None:
    enforce_rate_limit(login_limiter, get_client_ip(request))


def build_artifact_store(config: Settings) -> ArtifactStore:
    backend = config.storage_backend.strip().lower()
    if backend == "local":
        return LocalArtifactStore(
            base_dir=config.bundle_storage_dir,
            base_url=config.public_base_url,
            secret=config.signed_url_secret,
        )
    if backend == "s3":
        return S3ArtifactStore(
            bucket=config.s3_bucket,
            endpoint_url=config.s3_endpoint_url,
            region=config.s3_region,
            access_key_id=config.s3_access_key_id,
            secret_access_key=config.s3_secret_access_key,
            timeout_seconds=config.signing_timeout_seconds,
        )
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


@lru_cache
def get_artifact_store() -> ArtifactStore:
    return build_artifact_store(get_settings())


def get_local_store(store: ArtifactStore = Depends(get_artifact_store)) -> LocalArtifactStore:
    if not isinstance(store, LocalArtifactStore):
        raise HTTPException(status_code=404, detail="Not found")
    return store


def get_resolver(
    db: Session = Depends(get_db),
    store: ArtifactStore = Depends(get_artifact_store),
) -> ManifestResolver:
    return ManifestResolver(
        repository=ReleaseRepository(db),
        artifact_store=store,
        signed_url_ttl=settings.signed_url_ttl_seconds,
        signing_timeout=settings.signing_timeout_seconds,
    )


def require_admin(
    x_admin_token: str | None = Header(default=None),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AdminToken | None:
    if settings.admin_token and x_admin_token:
        if hmac.compare_digest(x_admin_token, settings.admin_token):
            return None
        raise HTTPException(status_code=401, detail="Admin token invalid")

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing admin credentials")

    try:
        return decode_admin_token(credentials.credentials)
    except TokenExpired:
        raise HTTPException(status_code=401, detail="Token expired")
    except TokenInvalid:
        raise HTTPException(status_code=401, detail="Token invalid")
