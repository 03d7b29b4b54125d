"""应用层模块。

提供配置管理。
"""

from .config import (
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
