"""文件状态对象。"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import mimetypes

from .visibility import Visibility

DIRECTORY_MIME_TYPE = "application/x-directory"
DEFAULT_MIME_TYPE = "application/octet-stream"

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def guess_mime_type(name: str) -> str | None:
    """根据扩展名猜测 MIME 类型。"""
    mime_type, _ = mimetypes.guess_type(name, strict=False)
    return mime_type


class FileStat:
    """目录项状态（只读）。

    每次 list/stat 调用构造一次，之后不可变。``visibility`` 可以是一个
    延迟加载函数（对象存储需要额外的 ACL 请求），首次访问时求值并缓存。

    Attributes:
        path: 相对路径（对象存储中也称为 prefix）
        last_modified: 最后修改时间（UTC）
        size: 文件大小；目录为 -1
        mime_type: MIME 类型；目录为 application/x-directory，无法识别时为 application/octet-stream
        visibility: 可见性
    """

    def __init__(
        self,
        path: str,
        last_modified: datetime | None,
        size: int,
        *,
        mime_type: str | None = None,
        visibility: Visibility | Callable[[], Visibility] = Visibility.PUBLIC,
        key: str | None = None,
    ) -> None:
        self._path = path
        self._last_modified = last_modified or EPOCH
        self._size = size
        self._mime_type = mime_type
        self._visibility = visibility
        self._key = key if key is not None else path

    @property
    def path(self) -> str:
        return self._path

    @property
    def last_modified(self) -> datetime:
        return self._last_modified

    @property
    def size(self) -> int:
        return self._size

    @property
    def is_directory(self) -> bool:
        return self._size == -1

    @property
    def mime_type(self) -> str:
        if self.is_directory:
            return DIRECTORY_MIME_TYPE
        if self._mime_type:
            return self._mime_type
        return guess_mime_type(self._key) or DEFAULT_MIME_TYPE

    @property
    def visibility(self) -> Visibility:
        if callable(self._visibility):
            self._visibility = self._visibility()
        return self._visibility

    def timestamp(self) -> int:
        """最后修改时间的 Unix 时间戳。"""
        return int(self._last_modified.timestamp())

    def __repr__(self) -> str:
        return f"<FileStat path={self._path!r} size={self._size}>"


__all__ = [
    "DEFAULT_MIME_TYPE",
    "DIRECTORY_MIME_TYPE",
    "EPOCH",
    "FileStat",
    "guess_mime_type",
]
