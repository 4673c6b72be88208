from ota_server.models.download_metric import DownloadMetric, Platform
from ota_server.models.release import Bundle, Release
from ota_server.models.user_ota_setting import UserOtaSetting

__all__ = [
    "Bundle",
    "DownloadMetric",
    "Platform",
    "Release",
    "UserOtaSetting",
]
