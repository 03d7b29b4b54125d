"""Common 层模块。

最基础层，提供：
- 异常基类
- 日志系统
"""

from .exceptions import (
    ErrorKind,
    FilesystemError,
    FoundationError,
    InvalidPathError,
    NotFoundError,
    OperationError,
    UnableToCreateDirectoryError,
)
from .logging import LoggerMixin, logger, setup_logging

__all__ = [
    # 异常
    "ErrorKind",
    "FilesystemError",
    "FoundationError",
    "InvalidPathError",
    "NotFoundError",
    "OperationError",
    "UnableToCreateDirectoryError",
    # 日志
    "LoggerMixin",
    "logger",
    "setup_logging",
]
