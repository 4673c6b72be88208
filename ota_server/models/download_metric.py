import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ota_server.db.base import Base


class Platform(str, enum.Enum):
    ios = "ios"
    android = "android"


class DownloadMetric(Base):
    __tablename__ = "download_metrics"
    __table_args__ = (UniqueConstraint("release_id", "platform", name="uq_download_metric_release_platform"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    release_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("releases.id"), nullable=False, index=True
    )
    platform: Mapped[Platform] = mapped_column(Enum(Platform), nullable=False)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    release = relationship("Release", back_populates="download_metrics")
