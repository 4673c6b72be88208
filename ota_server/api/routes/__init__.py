from ota_server.api.routes.admin import router as admin_router
from ota_server.api.routes.auth import router as auth_router
from ota_server.api.routes.bundles import router as bundles_router
from ota_server.api.routes.manifest import router as manifest_router

__all__ = ["admin_router", "auth_router", "bundles_router", "manifest_router"]
