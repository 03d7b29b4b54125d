"""配置管理模块。"""

from .settings import (
    FilesystemConfig,
    LogSettings,
    StorageSettings,
    StreamWrapperSettings,
)

__all__ = [
    "FilesystemConfig",
    "LogSettings",
    "StorageSettings",
    "StreamWrapperSettings",
]
