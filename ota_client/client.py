"""Device-side update client.

``UpdateClient`` is the opaque check/fetch/reload capability the app talks to.
``HttpUpdateClient`` implements it against the manifest server.
"""
import hashlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)


class UpdateClientError(Exception):
    pass


@dataclass(frozen=True)
class UpdateManifest:
    id: str
    bundle_url: str
    hash: str


@dataclass(frozen=True)
class UpdateCheckResult:
    is_available: bool
    manifest: Optional[UpdateManifest] = None


@dataclass(frozen=True)
class FetchResult:
    is_new: bool
    manifest: UpdateManifest
    bundle_path: Optional[Path] = None


class UpdateClient:
    def check_for_update(self) -> UpdateCheckResult:
        raise NotImplementedError

    def fetch_update(self, manifest: UpdateManifest) -> FetchResult:
        raise NotImplementedError

    def reload(self) -> None:
        raise NotImplementedError


class HttpUpdateClient(UpdateClient):
    """Update client that talks to ``POST /api/manifest``.

    Args:
        manifest_url: full URL of the manifest endpoint
        app_id: application identifier sent with each check
        platform: "ios" or "android"
        runtime_version: runtime version of the installed binary
        user_id: user the device belongs to
        bundle_dir: where downloaded bundles are written
        on_reload: called by ``reload()`` to restart the app on the new bundle
        current_update_id: id of the release currently running, if any
    """

    def __init__(
        self,
        manifest_url: str,
        app_id: str,
        platform: str,
        runtime_version: str,
        user_id: str,
        bundle_dir: str,
        on_reload: Optional[Callable[[Path], None]] = None,
        current_update_id: Optional[str] = None,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.manifest_url = manifest_url
        self.app_id = app_id
        self.platform = platform
        self.runtime_version = runtime_version
        self.user_id = user_id
        self.bundle_dir = Path(bundle_dir)
        self.on_reload = on_reload
        self.current_update_id = current_update_id
        self.pending_bundle: Optional[Path] = None
        self.pending_update_id: Optional[str] = None
        self._client = http_client or httpx.Client(timeout=httpx.Timeout(timeout_seconds))

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpUpdateClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def check_for_update(self) -> UpdateCheckResult:
        payload = {
            "appId": self.app_id,
            "platform": self.platform,
            "runtimeVersion": self.runtime_version,
            "userId": self.user_id,
        }
        try:
            response = self._client.post(self.manifest_url, json=payload)
        except httpx.RequestError as exc:
            logger.error("Manifest request failed: %s", exc)
            raise UpdateClientError("Manifest request failed") from exc

        if response.status_code == 204:
            return UpdateCheckResult(is_available=False)
        if response.status_code != 200:
            raise UpdateClientError(f"Manifest request returned {response.status_code}: {_error_text(response)}")

        try:
            data = response.json()
            manifest = UpdateManifest(id=str(data["id"]), bundle_url=data["bundleUrl"], hash=data["hash"])
        except (ValueError, KeyError, TypeError) as exc:
            raise UpdateClientError("Malformed manifest response") from exc

        if manifest.id == self.current_update_id:
            return UpdateCheckResult(is_available=False, manifest=manifest)
        return UpdateCheckResult(is_available=True, manifest=manifest)

    def fetch_update(self, manifest: UpdateManifest) -> FetchResult:
        if manifest.id == self.current_update_id:
            return FetchResult(is_new=False, manifest=manifest)

        try:
            response = self._client.get(manifest.bundle_url)
        except httpx.RequestError as exc:
            logger.error("Bundle download failed: %s", exc)
            raise UpdateClientError("Bundle download failed") from exc
        if response.status_code != 200:
            raise UpdateClientError(f"Bundle download returned {response.status_code}")

        content = response.content
        digest = hashlib.sha256(content).hexdigest()
        if digest.lower() != manifest.hash.lower():
            logger.warning("Bundle hash mismatch for update %s", manifest.id)
            raise UpdateClientError("Bundle hash mismatch")

        self.bundle_dir.mkdir(parents=True, exist_ok=True)
        bundle_path = self.bundle_dir / f"{_bundle_name(manifest.id)}.bundle"
        bundle_path.write_bytes(content)
        self.pending_bundle = bundle_path
        self.pending_update_id = manifest.id
        logger.info("Fetched update %s (%d bytes)", manifest.id, len(content))
        return FetchResult(is_new=True, manifest=manifest, bundle_path=bundle_path)

    def reload(self) -> None:
        if self.pending_bundle is None:
            raise UpdateClientError("No fetched update to apply")
        if self.on_reload is not None:
            self.on_reload(self.pending_bundle)
        self.current_update_id = self.pending_update_id
        self.pending_bundle = None
        self.pending_update_id = None


def check_and_apply(client: UpdateClient, confirm: Optional[Callable[[UpdateManifest], bool]] = None) -> bool:
    """Check for an update and, if the user agrees, fetch it and reload.

    Returns True when an update was applied.
    """
    result = client.check_for_update()
    if not result.is_available or result.manifest is None:
        return False
    if confirm is not None and not confirm(result.manifest):
        return False

    fetched = client.fetch_update(result.manifest)
    if not fetched.is_new:
        return False
    client.reload()
    return True


def _bundle_name(update_id: str) -> str:
    # Release ids come from the server; keep the file inside bundle_dir.
    name = re.sub(r"[^A-Za-z0-9_-]", "_", update_id).strip("_")
    return name or "update"


def _error_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return response.text
