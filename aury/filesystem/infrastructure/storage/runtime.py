"""本地文件系统运行时。

LocalFilesystem 的所有操作系统调用都经过该对象，测试时可以替换为
模拟对象以覆盖失败路径。所有方法在失败时抛出 OSError。
"""

from __future__ import annotations

import os
import shutil
from typing import IO


class SystemRuntime:
    """基于 ``os``/``shutil`` 的默认运行时。"""

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_link(self, path: str) -> bool:
        return os.path.islink(path)

    def is_readable(self, path: str) -> bool:
        return os.access(path, os.R_OK)

    def open(self, path: str, mode: str) -> IO[bytes]:
        return open(path, mode)

    def stat(self, path: str) -> os.stat_result:
        return os.stat(path)

    def chmod(self, path: str, permissions: int) -> None:
        os.chmod(path, permissions)

    def unlink(self, path: str) -> None:
        os.unlink(path)

    def rmdir(self, path: str) -> None:
        os.rmdir(path)

    def makedirs(self, path: str, permissions: int) -> None:
        # makedirs 的 mode 受 umask 影响，创建后显式 chmod 最终目录
        os.makedirs(path, permissions, exist_ok=True)
        os.chmod(path, permissions)

    def rename(self, source: str, destination: str) -> None:
        os.replace(source, destination)

    def copy(self, source: str, destination: str) -> None:
        if os.path.isdir(source):
            shutil.copytree(source, destination, dirs_exist_ok=True)
        else:
            shutil.copyfile(source, destination)


__all__ = ["SystemRuntime"]
