"""核心层模块。

提供与存储后端无关的值对象和工具：
- 路径规范化
- 可见性及其转换器
- 文件状态（FileStat）
- 延迟目录列表
- 字节流工具
"""

from .collection import LazyDirectoryListing
from .path import PathNormalizer, normalize_path
from .stat import DEFAULT_MIME_TYPE, DIRECTORY_MIME_TYPE, FileStat
from .streams import LocalBuffer, PumpStream, as_readable
from .visibility import AclVisibilityConverter, UnixVisibilityConverter, Visibility

__all__ = [
    # 路径
    "PathNormalizer",
    "normalize_path",
    # 可见性
    "AclVisibilityConverter",
    "UnixVisibilityConverter",
    "Visibility",
    # 文件状态
    "DEFAULT_MIME_TYPE",
    "DIRECTORY_MIME_TYPE",
    "FileStat",
    "LazyDirectoryListing",
    # 字节流
    "LocalBuffer",
    "PumpStream",
    "as_readable",
]
