"""基础设施层模块。

提供外部依赖的实现：
- 存储（本地文件系统、S3、GCS）
"""

from .storage import (
    GCSFilesystem,
    IFilesystem,
    LocalFilesystem,
    S3Filesystem,
    StorageFactory,
    SystemRuntime,
    register_stream_wrappers,
)

__all__ = [
    "GCSFilesystem",
    "IFilesystem",
    "LocalFilesystem",
    "S3Filesystem",
    "StorageFactory",
    "SystemRuntime",
    "register_stream_wrappers",
]
