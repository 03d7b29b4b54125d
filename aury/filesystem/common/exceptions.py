"""文件系统异常定义。

异常体系：
- FoundationError: 所有异常的基类
- FilesystemError: 文件系统异常基类，携带错误类型（ErrorKind）
    - InvalidPathError: 非法路径（路径穿越等），不可重试
    - OperationError: 通用 I/O 或传输错误，包装原始异常
        - NotFoundError: 资源不存在
    - UnableToCreateDirectoryError: 无法创建根目录或父目录

调用方应通过异常类型或 ``kind`` 判断错误，而不是匹配错误消息。
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class FoundationError(Exception):
    """异常基类。"""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ErrorKind(str, Enum):
    """错误类型。"""

    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    OPERATION_FAILED = "operation_failed"
    UNABLE_TO_CREATE_DIRECTORY = "unable_to_create_directory"


class FilesystemError(FoundationError):
    """文件系统异常基类。

    Attributes:
        kind: 错误类型
        path: 相关路径（可选）
        metadata: 元数据
    """

    kind: ErrorKind = ErrorKind.OPERATION_FAILED

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        """转换为字典。"""
        return {
            "message": self.message,
            "kind": self.kind.value,
            "path": self.path,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} kind={self.kind.value} message={self.message}>"


class InvalidPathError(FilesystemError):
    """非法路径异常（例如越过根目录的 ``..``）。"""

    kind = ErrorKind.INVALID_PATH

    def __init__(self, path: str) -> None:
        super().__init__(f'Invalid path "{path}"', path=path)


class OperationError(FilesystemError):
    """操作失败异常。

    如果提供了原始异常，消息末尾会追加 ``": <原始消息>"``，
    调用方使用 ``raise ... from previous`` 保留异常链。
    """

    kind = ErrorKind.OPERATION_FAILED

    def __init__(
        self,
        message: str,
        previous: BaseException | None = None,
        *,
        path: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if previous is not None:
            message = f"{message}: {previous}"
        super().__init__(message, path=path, metadata=metadata)
        self.previous = previous


class NotFoundError(OperationError):
    """资源不存在异常。"""

    kind = ErrorKind.NOT_FOUND


class UnableToCreateDirectoryError(FilesystemError):
    """无法创建目录异常。"""

    kind = ErrorKind.UNABLE_TO_CREATE_DIRECTORY

    def __init__(self, path: str = "", previous: BaseException | None = None) -> None:
        reason = str(previous) if previous is not None else "Unknown error"
        super().__init__(f'Unable to create directory "{path}": {reason}', path=path)
        self.previous = previous


__all__ = [
    "ErrorKind",
    "FilesystemError",
    "FoundationError",
    "InvalidPathError",
    "NotFoundError",
    "OperationError",
    "UnableToCreateDirectoryError",
]
