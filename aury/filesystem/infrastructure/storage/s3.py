"""S3 协议存储实现（AWS S3、MinIO 等）。

对象存储没有目录的概念：
- 目录通过键前缀模拟，``create_directory`` 写入以 ``/`` 结尾的空对象作为目录标记
- ``exists``/``stat`` 在对象不存在时探测 ``<key>/`` 前缀，以识别模拟目录
- 非递归列表使用 ``/`` 作为分隔符，在下一级分隔符处截断

写入策略：
- 小于 5MB：单次 put_object，附带 Content-MD5 校验
- 大于等于 5MB：分片上传（每片 5MB，按顺序逐片上传），任一分片失败时先中止上传再抛出异常
"""

from __future__ import annotations

import base64
import hashlib
import re
from typing import IO, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from aury.filesystem.common.exceptions import NotFoundError, OperationError
from aury.filesystem.common.logging import LoggerMixin
from aury.filesystem.core.collection import LazyDirectoryListing
from aury.filesystem.core.stat import FileStat
from aury.filesystem.core.streams import BUFFER_SIZE, PumpStream, as_readable, read_exactly
from aury.filesystem.core.visibility import AclVisibilityConverter, Visibility

from .base import (
    MULTIPART_THRESHOLD,
    PART_SIZE,
    IFilesystem,
    WriteConfig,
    WriteContents,
    option,
)

# delete_objects 单次请求的最大键数量
DELETE_BATCH_SIZE = 1000

_REPEATED_SEPARATORS = re.compile(r"/+")
_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _is_not_found(error: ClientError) -> bool:
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return _error_code(error) in _NOT_FOUND_CODES or status == 404


def _content_md5(body: bytes) -> str:
    return base64.b64encode(hashlib.md5(body).digest()).decode("ascii")


class S3Filesystem(IFilesystem, LoggerMixin):
    """S3 协议文件系统。

    Args:
        bucket: 桶名
        prefix: 根前缀（所有键都位于该前缀下）
        client: boto3 S3 客户端（共享，不由本对象关闭）
        visibility: ACL 可见性转换器
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "/",
        client: Any = None,
        visibility: AclVisibilityConverter | None = None,
    ) -> None:
        self._bucket = bucket
        self._root = prefix
        self._client = client if client is not None else boto3.client("s3")
        self._visibility = visibility or AclVisibilityConverter.for_s3()
        self.logger.info(f"S3 文件系统初始化: bucket={bucket}, prefix={prefix}")

    @property
    def bucket(self) -> str:
        return self._bucket

    def _key(self, location: str) -> str:
        key = _REPEATED_SEPARATORS.sub("/", f"{self._root}/{self.normalize(location)}")
        return key.strip("/")

    def exists(self, location: str) -> bool:
        key = self._key(location)
        if not key:
            return True

        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
            return True
        except ClientError as e:
            if not _is_not_found(e):
                raise OperationError("Error while checking file existence", e, path=location) from e
        except BotoCoreError as e:
            raise OperationError("Error while checking file existence", e, path=location) from e

        return self._directory_exists(key)

    def _directory_exists(self, key: str) -> bool:
        try:
            response = self._client.list_objects_v2(Bucket=self._bucket, Prefix=f"{key}/", MaxKeys=1)
        except (ClientError, BotoCoreError) as e:
            raise OperationError("Error while checking directory existence", e, path=key) from e

        return bool(response.get("Contents")) or bool(response.get("CommonPrefixes"))

    def read(self, location: str) -> IO[bytes]:
        if location.endswith("/"):
            raise OperationError("Cannot read a directory", path=location)

        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._key(location))
        except ClientError as e:
            if _is_not_found(e):
                raise NotFoundError("File does not exist", e, path=location) from e
            if _error_code(e) == "InvalidObjectState":
                raise OperationError("File cannot be read", e, path=location) from e
            raise OperationError("Error while reading file", e, path=location) from e
        except BotoCoreError as e:
            raise OperationError("Error while reading file", e, path=location) from e

        body = response["Body"]
        return PumpStream(body.iter_chunks(BUFFER_SIZE), on_close=body.close)

    def list(self, location: str, deep: bool = False) -> LazyDirectoryListing[dict[str, Any]]:
        key = self._key(location)
        listing_prefix = f"{key}/" if key else ""
        params: dict[str, Any] = {"Bucket": self._bucket, "Prefix": listing_prefix}
        if not deep:
            params["Delimiter"] = "/"

        def source():
            paginator = self._client.get_paginator("list_objects_v2")
            try:
                for page in paginator.paginate(**params):
                    yield from page.get("Contents", [])
                    yield from page.get("CommonPrefixes", [])
            except (ClientError, BotoCoreError) as e:
                raise OperationError("Error while listing directory", e, path=location) from e

        pattern = re.compile("^" + re.escape(listing_prefix))

        def transform(item: dict[str, Any]) -> FileStat | None:
            object_key = item.get("Key") or item.get("Prefix")
            if not object_key:
                return None

            relative = pattern.sub("", object_key)
            if not relative.strip("/"):
                # 列表目录自身的目录标记
                return None

            if object_key.endswith("/"):
                return FileStat(
                    relative.rstrip("/"),
                    item.get("LastModified"),
                    -1,
                    visibility=self._visibility.default_for_directories(),
                    key=object_key,
                )

            return FileStat(
                relative,
                item.get("LastModified"),
                int(item.get("Size", 0)),
                visibility=lambda: self._object_visibility(object_key),
                key=object_key,
            )

        return LazyDirectoryListing(source(), transform)

    def _object_visibility(self, key: str) -> Visibility:
        try:
            response = self._client.get_object_acl(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise OperationError("Error while requesting file visibility", e, path=key) from e

        return self._visibility.from_backend(response.get("Grants"))

    def stat(self, location: str) -> FileStat:
        key = self._key(location)
        path = self.normalize(location)
        if not key:
            return FileStat(path, None, -1, visibility=self._visibility.default_for_directories())

        try:
            response = self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if not _is_not_found(e):
                raise OperationError("Error while requesting file details", e, path=location) from e
            if self._directory_exists(key):
                return FileStat(path, None, -1, visibility=self._visibility.default_for_directories())
            raise NotFoundError("File does not exist", e, path=location) from e
        except BotoCoreError as e:
            raise OperationError("Error while requesting file details", e, path=location) from e

        return FileStat(
            path,
            response.get("LastModified"),
            int(response.get("ContentLength", 0)),
            mime_type=response.get("ContentType"),
            visibility=lambda: self._object_visibility(key),
            key=key,
        )

    def _write_options(self, config: WriteConfig | None) -> dict[str, Any]:
        """写入选项 -> S3 请求参数。"""
        options: dict[str, Any] = {}

        content_type = option(config, "s3", "content-type")
        if content_type:
            options["ContentType"] = content_type

        acl = option(config, "s3", "acl")
        if acl is None and config and config.get("visibility") is not None:
            acl = self._visibility.visibility_to_acl(Visibility(config["visibility"]))
        if acl:
            options["ACL"] = acl

        cache_control = option(config, "s3", "cache-control")
        if cache_control:
            options["CacheControl"] = cache_control

        metadata = option(config, "s3", "metadata")
        if metadata:
            options["Metadata"] = {str(k): str(v) for k, v in metadata.items()}

        return options

    def write(self, location: str, contents: WriteContents, config: WriteConfig | None = None) -> None:
        key = self._key(location)
        stream = as_readable(contents)
        options = self._write_options(config)

        head = read_exactly(stream, MULTIPART_THRESHOLD)
        if len(head) < MULTIPART_THRESHOLD:
            self.logger.debug(f"单次上传: {key} ({len(head)} bytes)")
            self._put_object(key, head, options)
            return

        self.logger.debug(f"分片上传: {key}")
        self._multipart_upload(key, head, stream, options)

    def _put_object(self, key: str, body: bytes, options: dict[str, Any]) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentLength=len(body),
                ContentMD5=_content_md5(body),
                **options,
            )
        except (ClientError, BotoCoreError) as e:
            raise OperationError("Failed to upload file", e, path=key) from e

    def _multipart_upload(self, key: str, first_part: bytes, stream: IO[bytes], options: dict[str, Any]) -> None:
        try:
            upload_id = self._client.create_multipart_upload(Bucket=self._bucket, Key=key, **options)["UploadId"]
        except (ClientError, BotoCoreError) as e:
            raise OperationError("Failed to upload file", e, path=key) from e

        parts: list[dict[str, Any]] = []
        part_number = 0
        body = first_part
        try:
            while body:
                part_number += 1
                response = self._client.upload_part(
                    Bucket=self._bucket,
                    Key=key,
                    UploadId=upload_id,
                    PartNumber=part_number,
                    ContentLength=len(body),
                    ContentMD5=_content_md5(body),
                    Body=body,
                )
                parts.append({"ETag": response["ETag"], "PartNumber": part_number})
                self.logger.debug(f"分片已上传: {key} part={part_number} ({len(body)} bytes)")
                body = read_exactly(stream, PART_SIZE)
        except Exception as e:
            self._abort_multipart_upload(key, upload_id)
            raise OperationError("Failed to upload file", e, path=key) from e

        try:
            self._client.complete_multipart_upload(
                Bucket=self._bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
        except (ClientError, BotoCoreError) as e:
            raise OperationError("Failed to upload file", e, path=key) from e

    def _abort_multipart_upload(self, key: str, upload_id: str) -> None:
        self.logger.warning(f"中止分片上传: {key} upload_id={upload_id}")
        try:
            self._client.abort_multipart_upload(Bucket=self._bucket, Key=key, UploadId=upload_id)
        except (ClientError, BotoCoreError) as e:
            # 中止失败不影响原始错误的传播
            self.logger.warning(f"中止分片上传失败: {key}: {e}")

    def delete(self, location: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=self._key(location))
        except (ClientError, BotoCoreError) as e:
            raise OperationError(f'Cannot remove "{location}"', e, path=location) from e

    def delete_directory(self, location: str) -> None:
        key = self._key(location)
        prefix = f"{key}/" if key else ""

        try:
            paginator = self._client.get_paginator("list_objects_v2")
            keys = [
                item["Key"]
                for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix)
                for item in page.get("Contents", [])
                if item.get("Key")
            ]
        except (ClientError, BotoCoreError) as e:
            raise OperationError(f'Unable to delete directory "{location}"', e, path=location) from e

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            try:
                response = self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                raise OperationError(f'Unable to delete directory "{location}"', e, path=location) from e

            errors = response.get("Errors") or []
            if errors:
                self.logger.warning(f"删除目录部分失败: {location}, {len(errors)} 个对象未删除")

    def create_directory(self, location: str, config: WriteConfig | None = None) -> None:
        self._put_object(f"{self._key(location)}/", b"", self._write_options(config))

    def copy(self, source: str, destination: str, config: WriteConfig | None = None) -> None:
        if not self.exists(source):
            raise NotFoundError("Cannot copy file: source does not exist", path=source)

        if not (config or {}).get("overwrite", False) and self.exists(destination):
            raise OperationError(
                "Cannot copy file: destination already exist and overwrite flag is not set",
                path=destination,
            )

        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._key(destination),
            "CopySource": {"Bucket": self._bucket, "Key": self._key(source)},
        }
        acl = self._write_options(config).get("ACL")
        if acl:
            params["ACL"] = acl

        try:
            self._client.copy_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise OperationError("Unable to copy file", e, path=destination) from e

    def __repr__(self) -> str:
        return f"<S3Filesystem bucket={self._bucket} prefix={self._root}>"


__all__ = ["S3Filesystem"]
