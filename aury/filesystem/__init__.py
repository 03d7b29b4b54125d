"""Aury Filesystem - 统一的存储抽象层。

以同一套文件操作契约访问本地磁盘、S3 协议存储与 Google Cloud Storage，
并通过流包装器以 POSIX 文件接口（``<protocol>://<path>``）访问任意后端。

模块结构：
- common: 最基础层（异常基类、日志系统）
- core: 核心值对象（路径规范化、可见性、文件状态、延迟列表、字节流）
- infrastructure: 基础设施层（本地、S3、GCS 文件系统实现与工厂）
- stream_wrapper: 流包装器（协议注册表、流会话、命令表）
- application: 应用层（配置管理）
"""

from . import application, common, core, infrastructure, stream_wrapper

__version__ = "0.1.0"
__all__ = [
    "application",
    "common",
    "core",
    "infrastructure",
    "stream_wrapper",
]
