"""Artifact stores that hold bundle files and mint signed download URLs."""
import hashlib
import hmac
import logging
import time
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote, urlencode

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class SigningError(StorageError):
    pass


class ArtifactStore:
    """Blob storage able to hand out time-limited download links."""

    def create_signed_url(self, file_path: str, expires_in: int) -> str:
        raise NotImplementedError


class LocalArtifactStore(ArtifactStore):
    """Bundles on local disk, served by the download route.

    URLs carry an expiry timestamp and an HMAC-SHA256 signature over
    ``file_path:expires``.
    """

    def __init__(self, base_dir: str, base_url: str, secret: Optional[str]):
        self.base_dir = Path(base_dir)
        self.base_url = base_url.rstrip("/")
        self.secret = secret

    def signature(self, file_path: str, expires: int) -> str:
        if not self.secret:
            raise SigningError("Signed URL secret not configured", details={"message": "SIGNED_URL_SECRET is not set"})
        payload = f"{file_path}:{expires}".encode("utf-8")
        return hmac.new(self.secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()

    def create_signed_url(self, file_path: str, expires_in: int) -> str:
        file_path = file_path.lstrip("/")
        expires = int(time.time()) + expires_in
        sig = self.signature(file_path, expires)
        query = urlencode({"expires": expires, "sig": sig})
        return f"{self.base_url}/api/bundles/{quote(file_path)}?{query}"

    def verify(self, file_path: str, expires: int, sig: str, now: Optional[int] = None) -> bool:
        now = now if now is not None else int(time.time())
        if expires < now:
            return False
        try:
            expected = self.signature(file_path.lstrip("/"), expires)
        except SigningError:
            return False
        return hmac.compare_digest(expected, sig)

    def resolve_path(self, file_path: str) -> Optional[Path]:
        """Absolute path of a stored bundle, or None if it escapes the store."""
        root = self.base_dir.resolve()
        candidate = (root / file_path.lstrip("/")).resolve()
        if candidate != root and root not in candidate.parents:
            return None
        return candidate


class S3ArtifactStore(ArtifactStore):
    """Bundles in an S3-compatible bucket, handed out as presigned GET URLs."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        client=None,
    ):
        self.bucket = bucket
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                config=BotoConfig(
                    connect_timeout=timeout_seconds,
                    read_timeout=timeout_seconds,
                    retries={"max_attempts": 1, "mode": "standard"},
                    signature_version="s3v4",
                ),
            )
        self.client = client

    def create_signed_url(self, file_path: str, expires_in: int) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": file_path.lstrip("/")},
                ExpiresIn=expires_in,
            )
        except ClientError as exc:
            logger.error("S3 presign failed for %s: %s", file_path, exc)
            raise SigningError("S3 presign failed", details=exc.response.get("Error")) from exc
        except BotoCoreError as exc:
            logger.error("S3 presign failed for %s: %s", file_path, exc)
            raise SigningError("S3 presign failed", details={"message": str(exc)}) from exc


def calculate_file_hash(file_path: Path) -> str:
    """SHA256 hex digest of a file, read in blocks."""
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for byte_block in iter(lambda: f.read(4096), b""):
            sha256_hash.update(byte_block)
    return sha256_hash.hexdigest()
