from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ota_server.db.base import Base


class UserOtaSetting(Base):
    __tablename__ = "user_ota_settings"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    ota_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
