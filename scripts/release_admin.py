import argparse
from pathlib import Path

from ota_server.config import get_settings
from ota_server.db import SessionLocal
from ota_server.models import Bundle, Release
from ota_server.services.releases import ReleaseIdentity, ReleaseNotFound, ReleaseNotServable, list_releases, rollback_release
from ota_server.services.storage import calculate_file_hash
from ota_server.services.user_settings import set_user_ota_enabled
from ota_server.utils.time import utcnow


def print_release(release: Release, is_current: bool = False) -> None:
    bundle = release.bundle
    marker = "*" if is_current else " "
    print(
        f"{marker} {release.id}\t{release.runtime_version}\t{release.path}\t"
        f"{release.commit_hash or '-'}\t{'active' if release.is_active else 'inactive'}\t"
        f"{release.created_at.isoformat()}\t{bundle.file_path if bundle else 'NO BUNDLE'}"
    )


def list_all(db) -> int:
    rows = list_releases(db)
    if not rows:
        print("No releases found")
        return 0
    for row in rows:
        print_release(row.release, row.is_current)
    return 0


def register_release(
    db,
    runtime_version: str,
    path: str,
    file_path: str,
    version: str | None,
    commit_hash: str | None,
    commit_message: str | None,
    file_hash: str | None,
    size: int | None,
    inactive: bool,
) -> int:
    """Record a bundle that is already in the artifact store as a new release."""
    local_file = Path(get_settings().bundle_storage_dir) / file_path.lstrip("/")
    if local_file.is_file():
        computed = calculate_file_hash(local_file)
        if file_hash and file_hash.lower() != computed:
            print("File hash mismatch")
            return 1
        file_hash = computed
        size = local_file.stat().st_size
    elif not file_hash:
        print(f"Bundle not found at {local_file}; pass --hash and --size for remote storage")
        return 1

    now = utcnow()
    release = Release(
        runtime_version=runtime_version,
        version=version,
        path=path,
        commit_hash=commit_hash,
        commit_message=commit_message,
        is_active=not inactive,
        created_at=now,
        published_at=now,
    )
    db.add(release)
    db.flush()
    db.add(Bundle(release_id=release.id, file_path=file_path.lstrip("/"), hash=file_hash, size=size or 0))
    db.commit()
    print(f"Release created: {release.id}")
    return 0


def rollback(db, runtime_version: str, path: str, commit_hash: str | None) -> int:
    identity = ReleaseIdentity(path=path, runtime_version=runtime_version, commit_hash=commit_hash)
    try:
        release = rollback_release(db, identity)
    except ReleaseNotFound:
        print("Release not found")
        return 1
    except ReleaseNotServable:
        print("Release has no bundle")
        return 1
    print(f"Current release for {release.runtime_version}: {release.id}")
    return 0


def set_ota(db, user_id: str, enabled: bool) -> int:
    setting = set_user_ota_enabled(db, user_id, enabled)
    print(f"{setting.user_id}: ota_enabled={setting.ota_enabled}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OTA release administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list")

    register_parser = subparsers.add_parser("register")
    register_parser.add_argument("--runtime-version", required=True)
    register_parser.add_argument("--path", required=True, help="Release name shown in the dashboard")
    register_parser.add_argument("--file", required=True, help="Bundle path inside the artifact store")
    register_parser.add_argument("--version")
    register_parser.add_argument("--commit-hash")
    register_parser.add_argument("--commit-message")
    register_parser.add_argument("--hash", help="SHA256 of the bundle when it is not stored locally")
    register_parser.add_argument("--size", type=int)
    register_parser.add_argument("--inactive", action="store_true")

    rollback_parser = subparsers.add_parser("rollback")
    rollback_parser.add_argument("--runtime-version", required=True)
    rollback_parser.add_argument("--path", required=True)
    rollback_parser.add_argument("--commit-hash")

    enable_parser = subparsers.add_parser("enable-ota")
    enable_parser.add_argument("--user-id", required=True)

    disable_parser = subparsers.add_parser("disable-ota")
    disable_parser.add_argument("--user-id", required=True)

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    db = SessionLocal()
    try:
        if args.command == "list":
            return list_all(db)
        if args.command == "register":
            return register_release(
                db,
                args.runtime_version,
                args.path,
                args.file,
                args.version,
                args.commit_hash,
                args.commit_message,
                args.hash,
                args.size,
                args.inactive,
            )
        if args.command == "rollback":
            return rollback(db, args.runtime_version, args.path, args.commit_hash)
        if args.command == "enable-ota":
            return set_ota(db, args.user_id, True)
        if args.command == "disable-ota":
            return set_ota(db, args.user_id, False)
        print("Unknown command")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
