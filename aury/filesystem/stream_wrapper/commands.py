"""流命令表。

每个流操作（open/read/write/seek/tell/eof/flush/close/stat/url_stat）对应一个处理函数，
由 StreamWrapper 按 StreamCommand 分派。处理函数的第一个参数始终是当前会话的 Stream。
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import closing
from enum import Enum
import io
import re
import stat as stat_module
from typing import TYPE_CHECKING, Any, NamedTuple

from aury.filesystem.common.exceptions import FilesystemError
from aury.filesystem.common.logging import logger
from aury.filesystem.core.stat import FileStat
from aury.filesystem.core.streams import LocalBuffer
from aury.filesystem.core.visibility import Visibility

from .stream import Stream

if TYPE_CHECKING:
    from .registry import ProtocolRegistry

MODE_PATTERN = re.compile(r"^[rwacx](\+b?|b\+?)?$")


class StreamCommand(str, Enum):
    """流命令。"""

    OPEN = "stream_open"
    READ = "stream_read"
    WRITE = "stream_write"
    SEEK = "stream_seek"
    TELL = "stream_tell"
    EOF = "stream_eof"
    FLUSH = "stream_flush"
    CLOSE = "stream_close"
    STAT = "stream_stat"
    URL_STAT = "url_stat"


class StreamStat(NamedTuple):
    """stat 结果，字段与 ``os.stat_result`` 同名。"""

    st_mode: int
    st_ino: int
    st_dev: int
    st_nlink: int
    st_uid: int
    st_gid: int
    st_size: int
    st_atime: int
    st_mtime: int
    st_ctime: int
    st_blksize: int
    st_blocks: int
    st_rdev: int


def stream_open(current: Stream, registry: ProtocolRegistry, path: str, mode: str) -> bool:
    """打开流。

    纯读模式（``r``）直接绑定远端读流；其他模式在本地缓冲区上读写，
    非 ``w`` 模式且目标已存在时先把远端内容读入缓冲区。

    Raises:
        ValueError: 模式非法（会话状态不变）
        FileExistsError: ``x`` 模式且目标已存在
        FilesystemError: 后端错误
    """
    if not MODE_PATTERN.match(mode):
        raise ValueError(f'Invalid mode "{mode}".')

    current.set_path(path, registry)
    filesystem = current.filesystem
    file = current.file

    current.write_only = "+" not in mode
    if mode[0] == "r" and current.write_only:
        current.handle = filesystem.read(file)
        current.work_on_local_copy = False
        current.write_only = False
    else:
        buffer = LocalBuffer()
        if mode[0] != "w" and filesystem.exists(file):
            try:
                if mode[0] == "x":
                    raise FileExistsError(f'File "{file}" already exists.')
                with closing(filesystem.read(file)) as remote:
                    buffer.pipe_from(remote)
            except BaseException:
                buffer.close()
                raise

        current.handle = buffer
        current.work_on_local_copy = True

    current.always_append = mode[0] == "a"
    if current.work_on_local_copy and not current.always_append:
        current.handle.rewind()

    current.bytes_written = 0
    return True


def stream_read(current: Stream, count: int) -> bytes:
    if current.write_only or current.handle is None or count < 0:
        return b""
    return current.handle.read(count)


def stream_write(current: Stream, data: bytes) -> int:
    """写入数据。追加模式下先定位到末尾，写完后恢复原位置。"""
    if current.handle is None or not current.work_on_local_copy:
        return 0

    position = None
    if current.always_append:
        position = current.handle.tell()
        current.handle.seek(0, io.SEEK_END)

    current.handle.write(data)
    size = len(data)
    current.bytes_written += size

    if position is not None:
        current.handle.seek(position)

    if current.write_buffer_size and current.bytes_written >= current.write_buffer_size:
        stream_flush(current)

    return size


def stream_seek(current: Stream, offset: int, whence: int = io.SEEK_SET) -> bool:
    if current.handle is None:
        return False

    try:
        current.handle.seek(offset, whence)
    except (OSError, ValueError):
        # 远端读流不支持随机访问
        return False
    return True


def stream_tell(current: Stream) -> int | None:
    if current.handle is None:
        return None
    return current.handle.tell()


def stream_eof(current: Stream) -> bool:
    if current.handle is None:
        return False
    return bool(current.handle.eof)


def stream_flush(current: Stream) -> bool:
    """将本地副本整体回写到后端，完成后恢复读写位置。"""
    if current.handle is None:
        logger.warning("stream_flush(): 流未打开")
        return False

    success = True
    if current.work_on_local_copy:
        position = current.handle.tell()
        current.handle.rewind()
        try:
            current.filesystem.write(current.file, current.handle)
        except FilesystemError as e:
            logger.warning(f"stream_flush({current.path}) 文件同步失败: {e}")
            success = False
        finally:
            current.handle.seek(position)

    current.bytes_written = 0
    return success


def stream_close(current: Stream) -> None:
    if current.handle is None:
        return

    try:
        if current.work_on_local_copy:
            current.handle.rewind()
            try:
                current.filesystem.write(current.file, current.handle)
            except FilesystemError as e:
                logger.warning(f"stream_close({current.path}) 文件同步失败: {e}")
    finally:
        current.handle.close()
        current.handle = None


def _directory_last_modified(current: Stream, stat: FileStat) -> int:
    if not current.emulate_directory_last_modified:
        return stat.timestamp()

    # 每次 stat 需要额外列一次目录；空目录返回 0
    return max((item.timestamp() for item in current.filesystem.list(current.file)), default=0)


def get_remote_stats(current: Stream) -> tuple[int, int, int]:
    """从远端 stat 推导 (mode, size, mtime)。"""
    converter = current.config.visibility_converter()
    stat = current.filesystem.stat(current.file)

    try:
        visibility = stat.visibility
    except FilesystemError as e:
        if not current.ignore_visibility_errors:
            raise
        logger.warning(f"获取可见性失败，视为公开: {current.path}: {e}")
        visibility = Visibility.PUBLIC

    if stat.is_directory:
        mode = stat_module.S_IFDIR | converter.for_directory(visibility)
        return mode, 0, _directory_last_modified(current, stat)

    mode = stat_module.S_IFREG | converter.for_file(visibility)
    return mode, stat.size, stat.timestamp()


def get_stat(current: Stream) -> StreamStat:
    """组合本地副本与远端元数据。

    Raises:
        FilesystemError: 远端 stat 失败
    """
    mode = size = mtime = 0

    if current.work_on_local_copy and current.handle is not None:
        local = current.handle.fstat()
        mode, size, mtime = local.st_mode, local.st_size, int(local.st_mtime)
        if current.filesystem.exists(current.file):
            mode, _, mtime = get_remote_stats(current)
    else:
        mode, size, mtime = get_remote_stats(current)

    return StreamStat(
        st_mode=mode,
        st_ino=0,
        st_dev=0,
        st_nlink=0,
        st_uid=int(current.config.uid or 0),
        st_gid=int(current.config.gid or 0),
        st_size=size,
        st_atime=mtime,
        st_mtime=mtime,
        st_ctime=mtime,
        st_blksize=-1,
        st_blocks=-1,
        st_rdev=0,
    )


def stream_stat(current: Stream) -> StreamStat | None:
    try:
        return get_stat(current)
    except FilesystemError as e:
        logger.warning(f"stat 失败: {e}")
        return None


def url_stat(current: Stream, registry: ProtocolRegistry, path: str, quiet: bool = False) -> StreamStat | None:
    """按 URL 获取 stat（不需要打开流）。``quiet`` 时不记录失败日志。"""
    current.set_path(path, registry)

    try:
        return get_stat(current)
    except FilesystemError as e:
        if not quiet:
            logger.warning(f"stat 失败: {e}")
        return None


COMMANDS: dict[StreamCommand, Callable[..., Any]] = {
    StreamCommand.OPEN: stream_open,
    StreamCommand.READ: stream_read,
    StreamCommand.WRITE: stream_write,
    StreamCommand.SEEK: stream_seek,
    StreamCommand.TELL: stream_tell,
    StreamCommand.EOF: stream_eof,
    StreamCommand.FLUSH: stream_flush,
    StreamCommand.CLOSE: stream_close,
    StreamCommand.STAT: stream_stat,
    StreamCommand.URL_STAT: url_stat,
}


__all__ = [
    "COMMANDS",
    "MODE_PATTERN",
    "StreamCommand",
    "StreamStat",
    "get_remote_stats",
    "get_stat",
]
