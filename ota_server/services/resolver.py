"""Manifest resolution: which bundle, if any, a device should download."""
import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Optional, Union

from ota_server.services.storage import ArtifactStore, SigningError

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_TTL_SECONDS = 60 * 60


class ResolutionError(Exception):
    pass


class BundleMissing(ResolutionError):
    """An active release has no bundle row."""

    def __init__(self, release_id: str):
        super().__init__(f"Bundle not found for release {release_id}")
        self.release_id = release_id


class SigningFailed(ResolutionError):
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class NoUpdateReason(str, enum.Enum):
    suppressed = "suppressed"
    no_release = "no_release"


@dataclass(frozen=True)
class NoUpdate:
    reason: NoUpdateReason


@dataclass(frozen=True)
class ManifestUpdate:
    release_id: str
    signed_url: str
    hash: str


ManifestResult = Union[NoUpdate, ManifestUpdate]


class ManifestResolver:
    """Resolve the current update for a device.

    Lookups run in order (opt-out, release, bundle) and stop at the first one
    that rules the device out, so a signed URL is only minted for a servable
    bundle.

    Args:
        repository: object with ``find_user_setting``,
            ``find_latest_active_release`` and ``find_bundle_for_release``
        artifact_store: store that mints signed URLs for bundle paths
        signed_url_ttl: lifetime of minted URLs in seconds
        signing_timeout: seconds to wait for the artifact store
    """

    def __init__(
        self,
        repository,
        artifact_store: ArtifactStore,
        signed_url_ttl: int = DEFAULT_SIGNED_URL_TTL_SECONDS,
        signing_timeout: Optional[float] = 10.0,
    ):
        self.repository = repository
        self.artifact_store = artifact_store
        self.signed_url_ttl = signed_url_ttl
        self.signing_timeout = signing_timeout

    def resolve(
        self,
        app_id: Optional[str],
        platform: Optional[str],
        runtime_version: str,
        user_id: str,
    ) -> ManifestResult:
        setting = self.repository.find_user_setting(user_id)
        if setting is not None and setting.ota_enabled is False:
            logger.info("OTA disabled for user %s, skipping update check", user_id)
            return NoUpdate(NoUpdateReason.suppressed)

        release = self.repository.find_latest_active_release(runtime_version)
        if release is None:
            logger.debug(
                "No active release for runtime %s (app=%s, platform=%s)", runtime_version, app_id, platform
            )
            return NoUpdate(NoUpdateReason.no_release)

        bundle = self.repository.find_bundle_for_release(release.id)
        if bundle is None:
            logger.warning("Active release %s for runtime %s has no bundle", release.id, runtime_version)
            raise BundleMissing(str(release.id))

        signed_url = self._create_signed_url(bundle.file_path)
        logger.info(
            "Serving release %s to user %s (app=%s, platform=%s, runtime=%s)",
            release.id,
            user_id,
            app_id,
            platform,
            runtime_version,
        )
        return ManifestUpdate(release_id=str(release.id), signed_url=signed_url, hash=bundle.hash)

    def _create_signed_url(self, file_path: str) -> str:
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self.artifact_store.create_signed_url, file_path, self.signed_url_ttl)
        try:
            signed_url = future.result(timeout=self.signing_timeout)
        except FutureTimeoutError as exc:
            logger.error("Signing %s timed out after %ss", file_path, self.signing_timeout)
            raise SigningFailed(
                "Signed URL request timed out",
                details={"message": f"timed out after {self.signing_timeout}s"},
            ) from exc
        except SigningError as exc:
            logger.error("Signing %s failed: %s", file_path, exc)
            raise SigningFailed(str(exc), details=exc.details) from exc
        except Exception as exc:
            logger.error("Signing %s failed: %s", file_path, exc)
            raise SigningFailed("Signed URL request failed", details={"message": str(exc)}) from exc
        finally:
            executor.shutdown(wait=False)

        if not signed_url:
            raise SigningFailed("Artifact store returned no URL", details=None)
        return signed_url
