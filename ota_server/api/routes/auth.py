import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ota_server.api.deps import get_client_ip, rate_limit_login
from ota_server.config import get_settings
from ota_server.schemas import LoginRequest, LoginResponse
from ota_server.services.auth import create_admin_token, verify_admin_password

router = APIRouter(prefix="/api", tags=["auth"])
settings = get_settings()

logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(rate_limit_login)])
def login(payload: LoginRequest, request: Request):
    if not settings.admin_password:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Admin password not configured"},
        )
    if not verify_admin_password(payload.password, settings.admin_password):
        logger.warning("Failed admin login from %s", get_client_ip(request))
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Invalid password"})

    token, data = create_admin_token()
    return LoginResponse(token=token, expires_at=data.expires_at)
