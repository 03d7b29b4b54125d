"""流会话状态。"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from aury.filesystem.application.config.settings import StreamWrapperSettings
from aury.filesystem.infrastructure.storage.base import IFilesystem

if TYPE_CHECKING:
    from .registry import ProtocolRegistry

PROTOCOL_SEPARATOR = "://"


def split_url(url: str) -> tuple[str, str]:
    """拆分 ``<protocol>://<file>``。

    Raises:
        ValueError: 不是合法的流 URL
    """
    protocol, separator, file = url.partition(PROTOCOL_SEPARATOR)
    if not separator or not protocol:
        raise ValueError(f"Invalid stream URL '{url}'")
    return protocol, file


class Stream:
    """单个流会话的可变状态。

    从 open 创建到 close 销毁，期间只属于一个调用方，不支持并发使用。

    Attributes:
        path: 完整 URL
        protocol: 协议名
        file: 文件系统内的路径
        filesystem: 解析得到的文件系统
        config: 流包装器配置
        handle: 绑定的流（纯读模式为远端读流，其他模式为 LocalBuffer）
        write_only: 只写（读取返回空）
        always_append: 追加模式，每次写入都写到末尾
        work_on_local_copy: 在本地副本上读写，flush/close 时回写
        write_buffer_size: 自动回写阈值（0 表示关闭）
        bytes_written: 上次回写以来写入的字节数
    """

    def __init__(self) -> None:
        self.path = ""
        self.protocol = ""
        self.file = ""
        self.filesystem: IFilesystem | None = None
        self.config = StreamWrapperSettings()
        self.handle: Any = None
        self.write_only = False
        self.always_append = False
        self.work_on_local_copy = False
        self.write_buffer_size = 0
        self.bytes_written = 0

    def set_path(self, path: str, registry: ProtocolRegistry) -> None:
        """解析 URL 并绑定协议对应的文件系统与配置。"""
        protocol, file = split_url(path)
        entry = registry.resolve(protocol)

        self.path = path
        self.protocol = protocol
        self.file = file
        self.filesystem = entry.filesystem
        self.config = entry.config
        self.write_buffer_size = entry.config.write_buffer_size

    @property
    def ignore_visibility_errors(self) -> bool:
        return self.config.ignore_visibility_errors

    @property
    def emulate_directory_last_modified(self) -> bool:
        return self.config.emulate_directory_last_modified

    def __repr__(self) -> str:
        return f"<Stream path={self.path!r} local_copy={self.work_on_local_copy}>"


__all__ = [
    "PROTOCOL_SEPARATOR",
    "Stream",
    "split_url",
]
