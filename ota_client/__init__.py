from ota_client.client import (
    FetchResult,
    HttpUpdateClient,
    UpdateCheckResult,
    UpdateClient,
    UpdateClientError,
    UpdateManifest,
    check_and_apply,
)

__all__ = [
    "FetchResult",
    "HttpUpdateClient",
    "UpdateCheckResult",
    "UpdateClient",
    "UpdateClientError",
    "UpdateManifest",
    "check_and_apply",
]
