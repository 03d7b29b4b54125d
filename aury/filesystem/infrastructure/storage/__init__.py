"""存储系统模块。

支持的后端：
- 本地文件系统
- S3协议存储（AWS S3, MinIO等）
- Google Cloud Storage

使用工厂模式，可以按配置切换存储后端。
"""

from .base import MULTIPART_THRESHOLD, PART_SIZE, IFilesystem
from .factory import StorageFactory, register_stream_wrappers, setup_filesystems
from .gcs import GCSFilesystem
from .local import LocalFilesystem
from .runtime import SystemRuntime
from .s3 import S3Filesystem

__all__ = [
    "GCSFilesystem",
    "IFilesystem",
    "LocalFilesystem",
    "MULTIPART_THRESHOLD",
    "PART_SIZE",
    "S3Filesystem",
    "StorageFactory",
    "SystemRuntime",
    "register_stream_wrappers",
    "setup_filesystems",
]
