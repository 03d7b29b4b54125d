"""Google Cloud Storage 存储实现。

目录模拟规则与 S3 实现一致：目录标记为以 ``/`` 结尾的空对象，
``exists``/``stat`` 在对象不存在时探测 ``<key>/`` 前缀。

大文件使用客户端库的可恢复上传（resumable upload），分块大小 5MB。
"""

from __future__ import annotations

import re
from typing import IO, Any

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage

from aury.filesystem.common.exceptions import NotFoundError, OperationError
from aury.filesystem.common.logging import LoggerMixin
from aury.filesystem.core.collection import LazyDirectoryListing
from aury.filesystem.core.stat import FileStat
from aury.filesystem.core.streams import BUFFER_SIZE, LocalBuffer, PumpStream, as_readable
from aury.filesystem.core.visibility import AclVisibilityConverter, Visibility

from .base import (
    MULTIPART_THRESHOLD,
    PART_SIZE,
    IFilesystem,
    WriteConfig,
    WriteContents,
    backend_options,
    option,
)

_REPEATED_SEPARATORS = re.compile(r"/+")


class GCSFilesystem(IFilesystem, LoggerMixin):
    """GCS 文件系统。

    Args:
        bucket: 桶名
        prefix: 根前缀
        client: ``google.cloud.storage.Client``（共享）
        visibility: ACL 可见性转换器
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "/",
        client: Any = None,
        visibility: AclVisibilityConverter | None = None,
    ) -> None:
        self._bucket_name = bucket
        self._root = prefix
        self._client = client if client is not None else storage.Client()
        self._bucket = self._client.bucket(bucket)
        self._visibility = visibility or AclVisibilityConverter.for_gcs()
        self.logger.info(f"GCS 文件系统初始化: bucket={bucket}, prefix={prefix}")

    @property
    def bucket(self) -> str:
        return self._bucket_name

    def _key(self, location: str) -> str:
        key = _REPEATED_SEPARATORS.sub("/", f"{self._root}/{self.normalize(location)}")
        return key.strip("/")

    def exists(self, location: str) -> bool:
        key = self._key(location)
        if not key:
            return True

        try:
            if self._bucket.blob(key).exists():
                return True
        except GoogleAPIError as e:
            raise OperationError("Error while checking file existence", e, path=location) from e

        return self._directory_exists(key)

    def _directory_exists(self, key: str) -> bool:
        try:
            blobs = self._client.list_blobs(self._bucket_name, prefix=f"{key}/", max_results=1)
            return any(True for _ in blobs)
        except GoogleAPIError as e:
            raise OperationError("Error while checking directory existence", e, path=key) from e

    def read(self, location: str) -> IO[bytes]:
        if location.endswith("/"):
            raise OperationError("Cannot read a directory", path=location)

        try:
            blob = self._bucket.get_blob(self._key(location))
            if blob is None:
                raise NotFoundError("File does not exist", path=location)
            reader = blob.open("rb")
        except NotFound as e:
            raise NotFoundError("File does not exist", e, path=location) from e
        except GoogleAPIError as e:
            raise OperationError("Error while reading file", e, path=location) from e

        return PumpStream(iter(lambda: reader.read(BUFFER_SIZE), b""), on_close=reader.close)

    def list(self, location: str, deep: bool = False) -> LazyDirectoryListing[Any]:
        key = self._key(location)
        listing_prefix = f"{key}/" if key else ""
        params: dict[str, Any] = {"prefix": listing_prefix}
        if not deep:
            params["delimiter"] = "/"

        def source():
            try:
                iterator = self._client.list_blobs(self._bucket_name, **params)
                for page in iterator.pages:
                    yield from page
                    # 使用分隔符时，子目录前缀随每页返回
                    yield from getattr(page, "prefixes", ())
            except GoogleAPIError as e:
                raise OperationError("Error while listing directory", e, path=location) from e

        pattern = re.compile("^" + re.escape(listing_prefix))

        def transform(item: Any) -> FileStat | None:
            name = item if isinstance(item, str) else item.name
            relative = pattern.sub("", name)
            if not relative.strip("/"):
                return None

            if name.endswith("/"):
                return FileStat(
                    relative.rstrip("/"),
                    None if isinstance(item, str) else item.updated,
                    -1,
                    visibility=self._visibility.default_for_directories(),
                    key=name,
                )

            return self._blob_stat(item, relative)

        return LazyDirectoryListing(source(), transform)

    def _blob_stat(self, blob: Any, path: str) -> FileStat:
        return FileStat(
            path,
            blob.updated,
            int(blob.size or 0),
            mime_type=blob.content_type,
            visibility=lambda: self._blob_visibility(blob),
            key=blob.name,
        )

    def _blob_visibility(self, blob: Any) -> Visibility:
        try:
            blob.acl.reload()
            return self._visibility.from_backend(list(blob.acl))
        except GoogleAPIError as e:
            raise OperationError("Error while requesting file visibility", e, path=blob.name) from e

    def stat(self, location: str) -> FileStat:
        key = self._key(location)
        path = self.normalize(location)
        if not key:
            return FileStat(path, None, -1, visibility=self._visibility.default_for_directories())

        try:
            blob = self._bucket.get_blob(key)
        except GoogleAPIError as e:
            raise OperationError("Error while requesting file details", e, path=location) from e

        if blob is not None:
            return self._blob_stat(blob, path)
        if self._directory_exists(key):
            return FileStat(path, None, -1, visibility=self._visibility.default_for_directories())
        raise NotFoundError("File does not exist", path=location)

    def _predefined_acl(self, config: WriteConfig | None) -> str | None:
        gcs = backend_options(config, "gcs")
        acl = gcs.get("predefined-acl") or gcs.get("predefinedAcl") or option(config, "gcs", "acl")
        if acl is None and config and config.get("visibility") is not None:
            acl = self._visibility.visibility_to_acl(Visibility(config["visibility"]))
        return acl

    def write(self, location: str, contents: WriteContents, config: WriteConfig | None = None) -> None:
        self._upload(self._key(location), as_readable(contents), config)

    def _upload(self, key: str, stream: IO[bytes], config: WriteConfig | None) -> None:
        buffer = LocalBuffer()
        try:
            size = buffer.pipe_from(stream)
            buffer.rewind()

            chunk_size = PART_SIZE if size >= MULTIPART_THRESHOLD else None
            blob = self._bucket.blob(key, chunk_size=chunk_size)
            self.logger.debug(f"上传文件: {key} ({size} bytes, resumable={chunk_size is not None})")

            content_type = option(config, "gcs", "content-type")
            if content_type:
                blob.content_type = content_type

            cache_control = option(config, "gcs", "cache-control")
            if cache_control:
                blob.cache_control = cache_control

            metadata = option(config, "gcs", "metadata")
            if metadata:
                blob.metadata = {str(k): str(v) for k, v in metadata.items()}

            blob.upload_from_file(
                buffer,
                rewind=True,
                size=size,
                content_type=content_type,
                predefined_acl=self._predefined_acl(config),
                checksum="md5",
            )
        except GoogleAPIError as e:
            raise OperationError("Failed to write file", e, path=key) from e
        finally:
            buffer.close()

    def delete(self, location: str) -> None:
        try:
            self._bucket.delete_blob(self._key(location))
        except NotFound:
            return
        except GoogleAPIError as e:
            raise OperationError("Error while deleting file", e, path=location) from e

    def delete_directory(self, location: str) -> None:
        key = self._key(location)
        prefix = f"{key}/" if key else ""

        try:
            blobs = list(self._client.list_blobs(self._bucket_name, prefix=prefix))
            if blobs:
                self._bucket.delete_blobs(blobs, on_error=self._log_delete_error)
        except GoogleAPIError as e:
            raise OperationError(f'Unable to delete directory "{location}"', e, path=location) from e

    def _log_delete_error(self, blob: Any) -> None:
        self.logger.warning(f"删除目录部分失败: 对象 {blob.name} 未删除")

    def create_directory(self, location: str, config: WriteConfig | None = None) -> None:
        self._upload(f"{self._key(location)}/", as_readable(b""), config)

    def copy(self, source: str, destination: str, config: WriteConfig | None = None) -> None:
        source_blob = self._bucket.blob(self._key(source))
        try:
            source_exists = source_blob.exists()
        except GoogleAPIError as e:
            raise OperationError("Unable to copy file", e, path=source) from e
        if not source_exists:
            raise NotFoundError("Cannot copy file: source does not exist", path=source)

        if not (config or {}).get("overwrite", False) and self.exists(destination):
            raise OperationError(
                "Cannot copy file: destination already exist and overwrite flag is not set",
                path=destination,
            )

        try:
            copied = self._bucket.copy_blob(source_blob, self._bucket, new_name=self._key(destination))
            acl = self._predefined_acl(config)
            if acl:
                copied.acl.save_predefined(acl)
        except GoogleAPIError as e:
            raise OperationError("Unable to copy file", e, path=destination) from e

    def __repr__(self) -> str:
        return f"<GCSFilesystem bucket={self._bucket_name} prefix={self._root}>"


__all__ = ["GCSFilesystem"]
