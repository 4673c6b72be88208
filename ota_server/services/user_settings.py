from sqlalchemy.orm import Session

from ota_server.models import UserOtaSetting


def get_user_setting(db: Session, user_id: str) -> UserOtaSetting | None:
    return db.query(UserOtaSetting).filter(UserOtaSetting.user_id == user_id).first()


def set_user_ota_enabled(db: Session, user_id: str, enabled: bool) -> UserOtaSetting:
    setting = get_user_setting(db, user_id)
    if setting is None:
        setting = UserOtaSetting(user_id=user_id, ota_enabled=enabled)
        db.add(setting)
    else:
        setting.ota_enabled = enabled
    db.commit()
    db.refresh(setting)
    return setting
