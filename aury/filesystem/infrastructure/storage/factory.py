"""存储工厂 - 注册机制。

通过注册机制支持多种后端，按 StorageSettings 创建文件系统实例。
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from google.cloud import storage

from aury.filesystem.application.config.settings import FilesystemConfig, StorageSettings
from aury.filesystem.common.logging import logger, setup_logging

from .base import IFilesystem
from .gcs import GCSFilesystem
from .local import LocalFilesystem
from .s3 import S3Filesystem

if TYPE_CHECKING:
    from aury.filesystem.stream_wrapper.registry import ProtocolRegistry

StorageBuilder = Callable[..., IFilesystem]


def build_local(settings: StorageSettings, **_: Any) -> IFilesystem:
    default_config = {}
    if settings.file_permissions is not None:
        default_config["file_permissions"] = settings.file_permissions
    if settings.dir_permissions is not None:
        default_config["dir_permissions"] = settings.dir_permissions

    return LocalFilesystem(settings.path or "", default_config)


def build_s3(settings: StorageSettings, client: Any = None, **_: Any) -> IFilesystem:
    if client is None:
        client = boto3.client(
            "s3",
            aws_access_key_id=settings.access_key,
            aws_secret_access_key=settings.secret_key,
            endpoint_url=settings.endpoint,
            region_name=settings.region or None,
            config=Config(signature_version="s3v4"),
        )

    return S3Filesystem(settings.bucket or "", settings.prefix, client)


def build_gcs(settings: StorageSettings, client: Any = None, **_: Any) -> IFilesystem:
    if client is None:
        client_options = {"api_endpoint": settings.api_endpoint} if settings.api_endpoint else None
        if settings.key_file_path:
            client = storage.Client.from_service_account_json(
                settings.key_file_path,
                project=settings.project_id,
                client_options=client_options,
            )
        else:
            client = storage.Client(project=settings.project_id, client_options=client_options)

    return GCSFilesystem(settings.bucket or "", settings.prefix, client)


class StorageFactory:
    """存储工厂。"""

    _builders: dict[str, StorageBuilder] = {}

    @classmethod
    def register(cls, name: str, builder: StorageBuilder) -> None:
        """注册存储后端。

        Args:
            name: 后端类型名称
            builder: 构造函数，接收 StorageSettings 及可选关键字参数（如 ``client``）
        """
        cls._builders[name] = builder
        logger.debug(f"注册存储后端: {name}")

    @classmethod
    def create(cls, settings: StorageSettings, **options: Any) -> IFilesystem:
        """创建文件系统实例。

        Args:
            settings: 存储配置
            **options: 传给后端构造函数的额外参数（如预先创建的 ``client``）

        Returns:
            IFilesystem: 文件系统实例

        Raises:
            ValueError: 后端未注册
        """
        if settings.type not in cls._builders:
            available = ", ".join(cls._builders.keys())
            raise ValueError(
                f"存储后端 '{settings.type}' 未注册。"
                f"可用后端: {available}"
            )

        instance = cls._builders[settings.type](settings, **options)
        logger.info(f"创建存储实例: {settings.type}")
        return instance

    @classmethod
    def get_registered(cls) -> list[str]:
        """获取已注册的后端名称。"""
        return list(cls._builders.keys())


StorageFactory.register("local", build_local)
StorageFactory.register("s3", build_s3)
StorageFactory.register("gcs", build_gcs)


def register_stream_wrappers(
    registry: ProtocolRegistry,
    storages: Mapping[str, StorageSettings],
    filesystems: Mapping[str, IFilesystem] | None = None,
) -> dict[str, IFilesystem]:
    """为配置了 ``stream_wrapper_protocol`` 的存储注册流包装器协议。

    Args:
        registry: 协议注册表
        storages: 存储配置（名称 -> 配置）
        filesystems: 已创建的文件系统实例（名称 -> 实例），缺失的按配置创建

    Returns:
        dict[str, IFilesystem]: 所有存储的文件系统实例
    """
    instances = dict(filesystems or {})
    for name, settings in storages.items():
        if name not in instances:
            instances[name] = StorageFactory.create(settings)

        if settings.stream_wrapper_protocol:
            registry.register(settings.stream_wrapper_protocol, instances[name], settings.stream_wrapper)

    return instances


def setup_filesystems(config: FilesystemConfig, registry: ProtocolRegistry) -> dict[str, IFilesystem]:
    """应用启动入口：按顶层配置初始化日志、创建所有存储并注册流包装器协议。

    Args:
        config: 顶层配置
        registry: 协议注册表

    Returns:
        dict[str, IFilesystem]: 所有存储的文件系统实例
    """
    setup_logging(config.log.level, config.log.file)
    return register_stream_wrappers(registry, config.storages)


__all__ = [
    "StorageFactory",
    "build_gcs",
    "build_local",
    "build_s3",
    "register_stream_wrappers",
    "setup_filesystems",
]
