"""进程所有者检测。"""

from __future__ import annotations

import os
import tempfile


class UserGuesser:
    """检测新建文件的实际所有者（uid/gid）。

    通过在临时目录创建文件并读取其 stat 得到；失败时退回到进程的 uid/gid。
    结果在进程内缓存。
    """

    _uid: int | None = None
    _gid: int | None = None

    @classmethod
    def _use_fallback(cls) -> None:
        cls._uid = os.getuid()
        cls._gid = os.getgid()

    @classmethod
    def _guess(cls) -> None:
        if cls._uid is not None:
            return

        try:
            with tempfile.NamedTemporaryFile(prefix="UserGuesser") as probe:
                probe.write(b"guessing")
                probe.flush()
                info = os.fstat(probe.fileno())
        except OSError:
            cls._use_fallback()
            return

        cls._uid = info.st_uid
        cls._gid = info.st_gid

    @classmethod
    def get_uid(cls) -> int:
        cls._guess()
        return int(cls._uid or 0)

    @classmethod
    def get_gid(cls) -> int:
        cls._guess()
        return int(cls._gid or 0)

    @classmethod
    def reset(cls) -> None:
        """清除缓存的检测结果。"""
        cls._uid = None
        cls._gid = None


__all__ = ["UserGuesser"]
