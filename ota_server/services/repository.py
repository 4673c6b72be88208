"""Read queries the manifest resolver needs from the release store."""
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from ota_server.models import Bundle, Release, UserOtaSetting


class ReleaseRepository:
    """Narrow query interface over the release store.

    The resolver only depends on these three methods, so tests can hand it any
    object that provides them.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_user_setting(self, user_id: str) -> Optional[UserOtaSetting]:
        return self.db.query(UserOtaSetting).filter(UserOtaSetting.user_id == user_id).first()

    def find_latest_active_release(self, runtime_version: str) -> Optional[Release]:
        return (
            self.db.query(Release)
            .filter(Release.runtime_version == runtime_version, Release.is_active.is_(True))
            .order_by(Release.created_at.desc())
            .first()
        )

    def find_bundle_for_release(self, release_id: uuid.UUID) -> Optional[Bundle]:
        return self.db.query(Bundle).filter(Bundle.release_id == release_id).first()
