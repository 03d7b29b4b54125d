"""文件系统接口。

所有存储后端（本地、S3、GCS）实现同一套文件操作契约：
exists / read / list / stat / write / delete / delete_directory /
create_directory / move / copy。

路径约定：调用方传入的路径会先经过 ``normalize_path`` 规范化，
越过根目录的路径抛出 InvalidPathError。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import IO, Any

from aury.filesystem.core.path import normalize_path
from aury.filesystem.core.stat import FileStat

# 小于该阈值的内容整体上传，否则使用分片上传
MULTIPART_THRESHOLD = 5 * 1024 * 1024
PART_SIZE = 5 * 1024 * 1024

WriteContents = bytes | bytearray | str | IO[bytes]
WriteConfig = Mapping[str, Any]


class IFilesystem(ABC):
    """文件系统接口。

    适配器实例不持有调用间的可变状态，可以在多个会话间共享；
    后端客户端的线程安全由客户端自身负责。
    """

    @abstractmethod
    def exists(self, location: str) -> bool:
        """检查文件、目录（或目录标记）是否存在。

        Args:
            location: 路径

        Returns:
            bool: 是否存在
        """
        pass

    @abstractmethod
    def read(self, location: str) -> IO[bytes]:
        """读取文件，返回按需拉取的只读流。

        Args:
            location: 路径

        Returns:
            IO[bytes]: 只读字节流

        Raises:
            OperationError: 路径是目录，或后端读取失败
            NotFoundError: 文件不存在
        """
        pass

    @abstractmethod
    def list(self, location: str, deep: bool = False) -> Iterable[FileStat]:
        """列出目录内容。

        Args:
            location: 目录路径
            deep: 是否递归列出所有子孙条目

        Returns:
            Iterable[FileStat]: 延迟物化的条目序列，路径相对于 ``location``
        """
        pass

    @abstractmethod
    def stat(self, location: str) -> FileStat:
        """获取文件状态。

        Raises:
            NotFoundError: 路径不存在
            OperationError: 其他后端错误
        """
        pass

    @abstractmethod
    def write(self, location: str, contents: WriteContents, config: WriteConfig | None = None) -> None:
        """写入文件。

        Args:
            location: 路径
            contents: 字节内容或可读流
            config: 写入选项（content-type、acl、cache-control、metadata 及后端专用选项）
        """
        pass

    @abstractmethod
    def delete(self, location: str) -> None:
        """删除文件。"""
        pass

    @abstractmethod
    def delete_directory(self, location: str) -> None:
        """删除目录及其全部内容。"""
        pass

    @abstractmethod
    def create_directory(self, location: str, config: WriteConfig | None = None) -> None:
        """创建目录。"""
        pass

    def move(self, source: str, destination: str, config: WriteConfig | None = None) -> None:
        """移动文件（复制后删除源文件）。"""
        self.copy(source, destination, config)
        self.delete(source)

    @abstractmethod
    def copy(self, source: str, destination: str, config: WriteConfig | None = None) -> None:
        """复制文件。

        Raises:
            NotFoundError: 源文件不存在
            OperationError: 目标已存在且未设置 ``overwrite``
        """
        pass

    @staticmethod
    def normalize(location: str) -> str:
        return normalize_path(location)


def backend_options(config: WriteConfig | None, backend: str) -> dict[str, Any]:
    """取出后端专用选项（``config[backend]``）。"""
    if not config:
        return {}
    options = config.get(backend)
    return dict(options) if isinstance(options, Mapping) else {}


def option(config: WriteConfig | None, backend: str, name: str, default: Any = None) -> Any:
    """读取写入选项：顶层选项优先于后端专用选项。"""
    if config and config.get(name) is not None:
        return config[name]
    return backend_options(config, backend).get(name, default)


__all__ = [
    "IFilesystem",
    "MULTIPART_THRESHOLD",
    "PART_SIZE",
    "WriteConfig",
    "WriteContents",
    "backend_options",
    "option",
]
