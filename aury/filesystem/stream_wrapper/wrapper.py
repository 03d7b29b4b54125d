"""流包装器。

让按 POSIX 文件接口编写的代码通过 ``<protocol>://<path>`` 访问任意存储后端：

    registry = ProtocolRegistry()
    registry.register("s3", S3Filesystem("my-bucket"))

    with open_url(registry, "s3://reports/2024.csv", "a") as f:
        f.write(b"...")
"""

from __future__ import annotations

import io
from typing import Any

from aury.filesystem.common.exceptions import NotFoundError
from aury.filesystem.common.logging import LoggerMixin

from .commands import COMMANDS, StreamCommand, StreamStat
from .registry import ProtocolRegistry
from .stream import Stream


class StreamWrapper(LoggerMixin):
    """单个流会话的命令分派器。

    每个 StreamWrapper 持有一个 Stream 会话状态，所有操作通过命令表分派。
    """

    def __init__(self, registry: ProtocolRegistry, current: Stream | None = None) -> None:
        self._registry = registry
        self._current = current or Stream()

    @property
    def current(self) -> Stream:
        return self._current

    def dispatch(self, command: StreamCommand, *args: Any) -> Any:
        """执行命令。

        ``OPEN`` 与 ``URL_STAT`` 需要解析协议，自动注入注册表。
        """
        handler = COMMANDS[command]
        if command in (StreamCommand.OPEN, StreamCommand.URL_STAT):
            return handler(self._current, self._registry, *args)
        return handler(self._current, *args)

    def stream_open(self, path: str, mode: str) -> bool:
        return self.dispatch(StreamCommand.OPEN, path, mode)

    def stream_read(self, count: int) -> bytes:
        return self.dispatch(StreamCommand.READ, count)

    def stream_write(self, data: bytes) -> int:
        return self.dispatch(StreamCommand.WRITE, data)

    def stream_seek(self, offset: int, whence: int = io.SEEK_SET) -> bool:
        return self.dispatch(StreamCommand.SEEK, offset, whence)

    def stream_tell(self) -> int | None:
        return self.dispatch(StreamCommand.TELL)

    def stream_eof(self) -> bool:
        return self.dispatch(StreamCommand.EOF)

    def stream_flush(self) -> bool:
        return self.dispatch(StreamCommand.FLUSH)

    def stream_close(self) -> None:
        self.dispatch(StreamCommand.CLOSE)

    def stream_stat(self) -> StreamStat | None:
        return self.dispatch(StreamCommand.STAT)

    def url_stat(self, path: str, quiet: bool = False) -> StreamStat | None:
        return self.dispatch(StreamCommand.URL_STAT, path, quiet)


class StreamFile(io.RawIOBase):
    """基于 StreamWrapper 的二进制文件对象。

    支持 ``with`` 语句、``read``/``write``/``seek``/``tell``/``flush``；
    纯读模式打开的远端流不支持 ``seek``。
    """

    def __init__(self, wrapper: StreamWrapper, url: str, mode: str) -> None:
        super().__init__()
        self._wrapper = wrapper
        self.name = url
        self.mode = mode

    @property
    def wrapper(self) -> StreamWrapper:
        return self._wrapper

    def readable(self) -> bool:
        return self.mode[0] == "r" or "+" in self.mode

    def writable(self) -> bool:
        return self.mode[0] != "r" or "+" in self.mode

    def seekable(self) -> bool:
        return self._wrapper.current.work_on_local_copy

    def readinto(self, b: Any) -> int:
        view = memoryview(b).cast("B")
        data = self._wrapper.stream_read(len(view))
        view[:len(data)] = data
        return len(data)

    def write(self, b: Any) -> int:
        self._checkClosed()
        return self._wrapper.stream_write(bytes(b))

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._checkClosed()
        if not self._wrapper.stream_seek(offset, whence):
            raise io.UnsupportedOperation("seek")
        return self.tell()

    def tell(self) -> int:
        self._checkClosed()
        position = self._wrapper.stream_tell()
        if position is None:
            raise io.UnsupportedOperation("tell")
        return position

    @property
    def eof(self) -> bool:
        return self._wrapper.stream_eof()

    def flush(self) -> None:
        """回写本地副本。

        Raises:
            OSError: 回写失败（本地缓冲区保持不变）
        """
        if self.closed or self._wrapper.current.handle is None:
            return
        if not self._wrapper.stream_flush():
            raise OSError(f"Unable to sync file {self.name}")

    def fstat(self) -> StreamStat | None:
        return self._wrapper.stream_stat()

    def close(self) -> None:
        if not self.closed:
            self._wrapper.stream_close()
        super().close()

    def __repr__(self) -> str:
        return f"<StreamFile name={self.name!r} mode={self.mode!r}>"


def open_url(registry: ProtocolRegistry, url: str, mode: str = "r") -> StreamFile:
    """以 POSIX 语义打开 ``<protocol>://<path>``。

    Raises:
        ValueError: 模式非法或协议未注册
        FileNotFoundError: 纯读模式下文件不存在
        FileExistsError: ``x`` 模式且文件已存在
    """
    wrapper = StreamWrapper(registry)
    try:
        wrapper.stream_open(url, mode)
    except NotFoundError as e:
        raise FileNotFoundError(str(e)) from e

    return StreamFile(wrapper, url, mode)


def url_stat(registry: ProtocolRegistry, url: str, quiet: bool = False) -> StreamStat | None:
    """获取 URL 的 stat，失败时返回 None。"""
    return StreamWrapper(registry).url_stat(url, quiet)


__all__ = [
    "StreamFile",
    "StreamStat",
    "StreamWrapper",
    "open_url",
    "url_stat",
]
