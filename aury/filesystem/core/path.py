"""路径规范化。

将用户输入的路径转换为规范的、不可越界的相对路径：
- 统一分隔符为 ``/``
- 去除控制字符（Unicode C 类字符）
- 去除开头的 ``./``
- 折叠 ``.`` 与 ``..`` 段，越过根目录时抛出 InvalidPathError
"""

from __future__ import annotations

import re
import unicodedata

from aury.filesystem.common.exceptions import InvalidPathError

SEPARATOR = "/"

_LEADING_DOT_SLASH = re.compile(r"^(?:\./)+")


def _strip_control_characters(path: str) -> str:
    return "".join(ch for ch in path if unicodedata.category(ch)[0] != "C")


def normalize_path(path: str) -> str:
    """规范化路径。

    纯函数，幂等：``normalize_path(normalize_path(p)) == normalize_path(p)``。

    Args:
        path: 原始路径

    Returns:
        str: 不含 ``.``/``..`` 段、不以分隔符开头或结尾的相对路径

    Raises:
        InvalidPathError: 路径越过根目录
    """
    normalized = path.replace("\\", SEPARATOR)
    normalized = _strip_control_characters(normalized)
    normalized = _LEADING_DOT_SLASH.sub("", normalized)

    segments: list[str] = []
    for segment in normalized.split(SEPARATOR):
        if segment in ("", "."):
            continue

        if segment == "..":
            if not segments:
                raise InvalidPathError(path)
            segments.pop()
        else:
            segments.append(segment)

    return SEPARATOR.join(segments)


class PathNormalizer:
    """路径规范化器（供需要注入的调用方使用）。"""

    @staticmethod
    def normalize(path: str) -> str:
        return normalize_path(path)


__all__ = [
    "PathNormalizer",
    "SEPARATOR",
    "normalize_path",
]
