import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from ota_server.config import get_settings
from ota_server.utils.time import utcnow

ADMIN_SUBJECT = "admin"


class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


@dataclass(frozen=True)
class AdminToken:
    subject: str
    issued_at: datetime
    expires_at: datetime


def verify_admin_password(password: str, expected: str | None) -> bool:
    if not expected or not password:
        return False
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def create_admin_token(
    issued_at: datetime | None = None,
    ttl_minutes: int | None = None,
    secret: str | None = None,
    algorithm: str | None = None,
) -> tuple[str, AdminToken]:
    settings = None
    issued_at = issued_at or utcnow()
    if ttl_minutes is None or secret is None or algorithm is None:
        settings = get_settings()
    ttl_minutes = ttl_minutes if ttl_minutes is not None else settings.admin_token_ttl_minutes
    expires_at = issued_at + timedelta(minutes=ttl_minutes)

    payload = {
        "sub": ADMIN_SUBJECT,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }

    token = jwt.encode(
        payload,
        secret or settings.jwt_secret,
        algorithm=algorithm or settings.jwt_algorithm,
    )
    return token, AdminToken(subject=ADMIN_SUBJECT, issued_at=issued_at, expires_at=expires_at)


def decode_admin_token(
    token: str,
    secret: str | None = None,
    algorithm: str | None = None,
) -> AdminToken:
    settings = None
    if secret is None or algorithm is None:
        settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[algorithm or settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid("Token invalid") from exc

    subject = payload.get("sub")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")

    if subject != ADMIN_SUBJECT or not issued_at or not expires_at:
        raise TokenInvalid("Token payload missing required claims")

    return AdminToken(
        subject=subject,
        issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
    )
