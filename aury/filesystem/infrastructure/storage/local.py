"""本地文件系统实现。"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
import os
import re
import shutil
import stat as stat_module
from typing import IO, Any

from aury.filesystem.common.exceptions import (
    NotFoundError,
    OperationError,
    UnableToCreateDirectoryError,
)
from aury.filesystem.common.logging import LoggerMixin
from aury.filesystem.core.collection import LazyDirectoryListing
from aury.filesystem.core.stat import FileStat
from aury.filesystem.core.streams import BUFFER_SIZE, PumpStream, as_readable
from aury.filesystem.core.visibility import UnixVisibilityConverter, Visibility

from .base import IFilesystem, WriteConfig, WriteContents, backend_options
from .runtime import SystemRuntime

_REPEATED_SEPARATORS = re.compile(r"/+")


class LocalFilesystem(IFilesystem, LoggerMixin):
    """本地文件系统。

    Args:
        location: 根目录，构造时自动创建
        default_config: 默认权限（``file_permissions``、``dir_permissions``）
        runtime: 操作系统调用封装（默认 SystemRuntime）
        visibility: 可见性转换器

    Raises:
        UnableToCreateDirectoryError: 根目录无法创建
    """

    def __init__(
        self,
        location: str,
        default_config: Mapping[str, int] | None = None,
        runtime: SystemRuntime | None = None,
        visibility: UnixVisibilityConverter | None = None,
    ) -> None:
        self._runtime = runtime or SystemRuntime()
        self._root = "/" if re.fullmatch(r"/+", location) else location.rstrip("/")
        self._default_config = {
            "file_permissions": 0o644,
            "dir_permissions": 0o755,
            **(default_config or {}),
        }
        self._visibility = visibility or UnixVisibilityConverter()
        self._ensure_directory_exists(self._root)
        self.logger.info(f"本地文件系统初始化: {self._root}")

    @property
    def root(self) -> str:
        return self._root

    def _prefix(self, location: str) -> str:
        path = _REPEATED_SEPARATORS.sub("/", f"{self._root}/{self.normalize(location)}")
        return path.rstrip("/") if path != "/" else path

    def exists(self, location: str) -> bool:
        path = self._prefix(location)
        return self._runtime.is_file(path) or self._runtime.is_dir(path) or self._runtime.is_link(path)

    def read(self, location: str) -> IO[bytes]:
        path = self._prefix(location)
        if self._runtime.is_dir(path):
            raise OperationError("Cannot read a directory", path=location)
        if not self._runtime.is_file(path):
            raise NotFoundError(f'File "{location}" does not exist', path=location)
        if not self._runtime.is_readable(path):
            raise OperationError(f'File "{location}" is not readable', path=location)

        try:
            handle = self._runtime.open(path, "rb")
        except OSError as e:
            raise OperationError(f'File "{location}" cannot be opened for read', e, path=location) from e

        return PumpStream(iter(lambda: handle.read(BUFFER_SIZE), b""), on_close=handle.close)

    def list(self, location: str, deep: bool = False) -> LazyDirectoryListing[str]:
        path = self._prefix(location)
        if not self._runtime.is_dir(path):
            raise OperationError(f'Directory "{location}" does not exist', path=location)

        def transform(entry: str) -> FileStat | None:
            try:
                return self._file_stat(entry, os.path.relpath(entry, path))
            except OSError:
                # 列表过程中被删除或失效的符号链接
                return None

        return LazyDirectoryListing(self._iterate(path, deep), transform)

    @staticmethod
    def _iterate(path: str, deep: bool) -> Iterator[str]:
        if not deep:
            with os.scandir(path) as entries:
                for entry in entries:
                    yield entry.path
            return

        for dirpath, dirnames, filenames in os.walk(path):
            for name in dirnames + filenames:
                yield os.path.join(dirpath, name)

    def stat(self, location: str) -> FileStat:
        if not self.exists(location):
            raise NotFoundError(f"Stat failed for {location}: does not exist", path=location)

        try:
            return self._file_stat(self._prefix(location), self.normalize(location))
        except OSError as e:
            raise OperationError(f"Stat failed for {location}", e, path=location) from e

    def _file_stat(self, full_path: str, relative_path: str) -> FileStat:
        info = self._runtime.stat(full_path)
        is_directory = stat_module.S_ISDIR(info.st_mode)
        permissions = stat_module.S_IMODE(info.st_mode) & 0o777

        return FileStat(
            relative_path,
            datetime.fromtimestamp(info.st_mtime or 0, tz=timezone.utc),
            -1 if is_directory else info.st_size,
            visibility=self._visibility.from_backend(permissions, directory=is_directory),
            key=full_path,
        )

    def _permissions(self, config: WriteConfig | None, key: str) -> int | None:
        """写入选项中显式指定的权限（``local`` 选项或顶层 ``visibility``）。"""
        options = backend_options(config, "local")
        if isinstance(options.get(key), int):
            return options[key]

        visibility = (config or {}).get("visibility")
        if visibility is not None:
            return self._visibility.to_backend(Visibility(visibility), directory=key == "dir_permissions")
        return None

    def write(self, location: str, contents: WriteContents, config: WriteConfig | None = None) -> None:
        path = self._prefix(location)
        permissions = self._permissions(config, "file_permissions")
        self._ensure_directory_exists(os.path.dirname(path))

        try:
            try:
                handle = self._runtime.open(path, "xb")
                if permissions is None:
                    permissions = self._default_config["file_permissions"]
            except FileExistsError:
                handle = self._runtime.open(path, "wb")
        except OSError as e:
            raise OperationError(f'Unable to open file "{location}" for writing', e, path=location) from e

        with handle:
            if permissions is not None:
                try:
                    self._runtime.chmod(path, permissions)
                except OSError as e:
                    raise OperationError(f'Unable to open file "{location}" for writing', e, path=location) from e

            try:
                shutil.copyfileobj(as_readable(contents), handle, BUFFER_SIZE)
            except OSError as e:
                raise OperationError(f'Unable to write file "{location}"', e, path=location) from e

    def delete(self, location: str) -> None:
        path = self._prefix(location)
        if not self._runtime.is_file(path) and not self._runtime.is_link(path):
            raise OperationError(f'Cannot remove file "{location}": not a file', path=location)

        try:
            self._runtime.unlink(path)
        except OSError as e:
            raise OperationError(f'Cannot remove "{location}"', e, path=location) from e

    def delete_directory(self, location: str) -> None:
        path = self._prefix(location)
        if not self._runtime.is_dir(path):
            raise OperationError(f'Unable to delete directory "{location}": not a directory', path=location)

        # 先删除子项，再删除父目录
        for dirpath, dirnames, filenames in os.walk(path, topdown=False):
            for name in filenames + dirnames:
                child = os.path.join(dirpath, name)
                try:
                    if self._runtime.is_dir(child) and not self._runtime.is_link(child):
                        self._runtime.rmdir(child)
                    else:
                        self._runtime.unlink(child)
                except OSError as e:
                    raise OperationError(
                        f'Unable to delete directory: unable to delete file "{child}"', e, path=child
                    ) from e

        try:
            self._runtime.rmdir(path)
        except OSError as e:
            raise OperationError(f'Unable to delete directory "{location}"', e, path=location) from e

    def create_directory(self, location: str, config: WriteConfig | None = None) -> None:
        path = self._prefix(location)
        permissions = self._permissions(config, "dir_permissions")
        if self._runtime.is_dir(path):
            if permissions is not None:
                self._runtime.chmod(path, permissions)
            return

        try:
            self._runtime.makedirs(path, permissions if permissions is not None else self._default_config["dir_permissions"])
        except OSError as e:
            raise OperationError("Unable to create directory", e, path=location) from e

    def move(self, source: str, destination: str, config: WriteConfig | None = None) -> None:
        self._transfer(source, destination, config, "move")

    def copy(self, source: str, destination: str, config: WriteConfig | None = None) -> None:
        self._transfer(source, destination, config, "copy")

    def _transfer(self, source: str, destination: str, config: WriteConfig | None, verb: str) -> None:
        if not self.exists(source):
            raise NotFoundError(f"Cannot {verb} file: source does not exist", path=source)

        if not (config or {}).get("overwrite", False) and self.exists(destination):
            raise OperationError(
                f"Cannot {verb} file: destination already exist and overwrite flag is not set",
                path=destination,
            )

        source_path = self._prefix(source)
        destination_path = self._prefix(destination)
        options: dict[str, Any] = backend_options(config, "local")
        self._ensure_directory_exists(
            os.path.dirname(destination_path),
            options.get("dir_permissions", self._default_config["dir_permissions"]),
        )

        try:
            if verb == "move":
                self._runtime.rename(source_path, destination_path)
            else:
                self._runtime.copy(source_path, destination_path)
        except OSError as e:
            raise OperationError(f"Unable to {verb} file", e, path=destination) from e

        key = "dir_permissions" if self._runtime.is_dir(destination_path) else "file_permissions"
        if key in options:
            self._runtime.chmod(destination_path, options[key])

    def _ensure_directory_exists(self, dirname: str, permissions: int | None = None) -> None:
        if self._runtime.is_dir(dirname):
            return

        error: OSError | None = None
        try:
            self._runtime.makedirs(dirname, permissions if permissions is not None else self._default_config["dir_permissions"])
        except OSError as e:
            error = e

        if not self._runtime.is_dir(dirname):
            raise UnableToCreateDirectoryError(dirname, error)

    def __repr__(self) -> str:
        return f"<LocalFilesystem root={self._root}>"


__all__ = ["LocalFilesystem"]
