"""字节流工具。

- PumpStream: 按需从后端拉取数据块的只读流（不支持随机访问）
- LocalBuffer: 流包装器使用的本地读写缓冲区（内存，超出阈值后落盘）
- as_readable: 将 bytes/str/流统一为可读二进制流
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
import io
import os
import tempfile
from typing import IO, Any

BUFFER_SIZE = 64 * 1024

# 超过 2MB 写入临时文件
LOCAL_BUFFER_MAX_MEMORY = 2 * 1024 * 1024


class PumpStream(io.RawIOBase):
    """按需拉取的只读流。

    每次读取时才从 ``chunks`` 中拉取后端数据块，不做预读。
    """

    def __init__(self, chunks: Iterable[bytes], on_close: Callable[[], Any] | None = None) -> None:
        super().__init__()
        self._chunks: Iterator[bytes] = iter(chunks)
        self._buffer = bytearray()
        self._exhausted = False
        self._position = 0
        self._on_close = on_close

    def readable(self) -> bool:
        return True

    def _pull(self) -> bool:
        if self._exhausted:
            return False

        for chunk in self._chunks:
            if chunk:
                self._buffer.extend(chunk)
                return True

        self._exhausted = True
        return False

    def readinto(self, b: Any) -> int:
        view = memoryview(b).cast("B")
        wanted = len(view)
        while len(self._buffer) < wanted and self._pull():
            pass

        size = min(wanted, len(self._buffer))
        view[:size] = self._buffer[:size]
        del self._buffer[:size]
        self._position += size
        return size

    def tell(self) -> int:
        return self._position

    @property
    def eof(self) -> bool:
        return not self._buffer and not self._pull()

    def close(self) -> None:
        if not self.closed and self._on_close is not None:
            self._on_close()
        super().close()


class LocalBuffer:
    """本地读写缓冲区。

    流包装器以非纯读模式打开文件时，所有读写都在该缓冲区上进行，
    flush/close 时整体回写到后端。
    """

    def __init__(self, max_memory: int = LOCAL_BUFFER_MAX_MEMORY) -> None:
        self._file = tempfile.SpooledTemporaryFile(max_size=max_memory, mode="w+b")

    def read(self, size: int = -1) -> bytes:
        return self._file.read(size)

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def rewind(self) -> None:
        self._file.seek(0)

    def truncate(self, size: int | None = None) -> int:
        return self._file.truncate(size)

    @property
    def eof(self) -> bool:
        position = self._file.tell()
        end = self._file.seek(0, io.SEEK_END)
        self._file.seek(position)
        return position >= end

    def size(self) -> int:
        position = self._file.tell()
        end = self._file.seek(0, io.SEEK_END)
        self._file.seek(position)
        return end

    def fileno(self) -> int:
        """底层操作系统文件描述符（必要时将内存缓冲落盘）。"""
        return self._file.fileno()

    def fstat(self) -> os.stat_result:
        self._file.flush()
        return os.fstat(self.fileno())

    def pipe_from(self, source: IO[bytes], chunk_size: int = BUFFER_SIZE) -> int:
        """将 ``source`` 的全部内容写入缓冲区，返回写入的字节数。"""
        total = 0
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            self._file.write(chunk)
            total += len(chunk)
        return total

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self) -> None:
        self._file.close()


def as_readable(contents: bytes | bytearray | str | IO[bytes]) -> IO[bytes]:
    """将写入内容统一为可读二进制流。"""
    if isinstance(contents, str):
        return io.BytesIO(contents.encode("utf-8"))
    if isinstance(contents, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(contents))
    return contents


def read_exactly(stream: IO[bytes], size: int) -> bytes:
    """读取至多 ``size`` 字节，直到流结束（兼容每次返回较少数据的原始流）。"""
    parts = bytearray()
    while len(parts) < size:
        chunk = stream.read(size - len(parts))
        if not chunk:
            break
        parts.extend(chunk)
    return bytes(parts)


__all__ = [
    "BUFFER_SIZE",
    "LOCAL_BUFFER_MAX_MEMORY",
    "LocalBuffer",
    "PumpStream",
    "as_readable",
    "read_exactly",
]
