"""文件系统配置。

使用 pydantic-settings 从环境变量和 .env 文件加载配置：
- StorageSettings: 单个存储（后端类型、连接选项、流包装器协议）
- StreamWrapperSettings: 流包装器选项
- LogSettings: 日志配置
- FilesystemConfig: 顶层配置，按名称聚合多个存储
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from aury.filesystem.core.visibility import UnixVisibilityConverter, Visibility


def _parse_permissions(value: Any) -> Any:
    """权限值支持八进制字符串（``"0644"``、``"0o644"``）。"""
    if isinstance(value, str):
        return int(value, 8)
    return value


class StreamWrapperSettings(BaseModel):
    """流包装器配置。

    ``uid``/``gid`` 为 None 时，注册协议时自动检测当前进程的所有者。
    """

    ignore_visibility_errors: bool = Field(
        default=False,
        description="获取可见性失败时视为公开，而不是抛出异常"
    )
    emulate_directory_last_modified: bool = Field(
        default=False,
        description="目录修改时间取直接子项的最大修改时间（每次 stat 额外列一次目录）"
    )
    uid: int | None = Field(
        default=None,
        description="stat 返回的用户 ID"
    )
    gid: int | None = Field(
        default=None,
        description="stat 返回的组 ID"
    )
    visibility_file_public: int = Field(
        default=0o644,
        description="公开文件权限"
    )
    visibility_file_private: int = Field(
        default=0o600,
        description="私有文件权限"
    )
    visibility_directory_public: int = Field(
        default=0o755,
        description="公开目录权限"
    )
    visibility_directory_private: int = Field(
        default=0o700,
        description="私有目录权限"
    )
    visibility_default_for_directories: Visibility = Field(
        default=Visibility.PRIVATE,
        description="目录的默认可见性"
    )
    write_buffer_size: int = Field(
        default=0,
        ge=0,
        description="累计写入达到该字节数时自动回写（0 表示仅在 flush/close 时回写）"
    )

    @field_validator(
        "visibility_file_public",
        "visibility_file_private",
        "visibility_directory_public",
        "visibility_directory_private",
        mode="before",
    )
    @classmethod
    def parse_permissions(cls, value: Any) -> Any:
        return _parse_permissions(value)

    def visibility_converter(self) -> UnixVisibilityConverter:
        """按配置构造 Unix 权限位转换器。"""
        return UnixVisibilityConverter(
            file_public=self.visibility_file_public,
            file_private=self.visibility_file_private,
            directory_public=self.visibility_directory_public,
            directory_private=self.visibility_directory_private,
            default_for_directories=self.visibility_default_for_directories,
        )


class StorageSettings(BaseSettings):
    """存储配置。

    环境变量前缀: STORAGE_
    示例: STORAGE_TYPE, STORAGE_PATH, STORAGE_BUCKET, STORAGE_STREAM_WRAPPER_PROTOCOL
    """

    type: Literal["local", "s3", "gcs"] = Field(
        default="local",
        description="存储后端类型"
    )
    stream_wrapper_protocol: str | None = Field(
        default=None,
        description="流包装器协议名（设置后注册为 <protocol>://）"
    )
    stream_wrapper: StreamWrapperSettings = Field(
        default_factory=StreamWrapperSettings,
        description="流包装器选项"
    )

    # 本地存储
    path: str | None = Field(
        default=None,
        description="根目录（本地存储）"
    )
    file_permissions: int | None = Field(
        default=None,
        description="新文件的默认权限"
    )
    dir_permissions: int | None = Field(
        default=None,
        description="新目录的默认权限"
    )

    # 对象存储
    bucket: str | None = Field(
        default=None,
        description="桶名"
    )
    prefix: str = Field(
        default="/",
        description="根前缀"
    )

    # S3
    region: str | None = Field(
        default=None,
        description="区域"
    )
    access_key: str | None = Field(
        default=None,
        description="访问密钥ID"
    )
    secret_key: str | None = Field(
        default=None,
        description="访问密钥"
    )
    endpoint: str | None = Field(
        default=None,
        description="端点URL（MinIO 等 S3 兼容存储）"
    )

    # GCS
    project_id: str | None = Field(
        default=None,
        description="GCP 项目ID"
    )
    key_file_path: str | None = Field(
        default=None,
        description="服务账号密钥文件路径"
    )
    api_endpoint: str | None = Field(
        default=None,
        description="GCS API 端点（模拟器等）"
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    @field_validator("file_permissions", "dir_permissions", mode="before")
    @classmethod
    def parse_permissions(cls, value: Any) -> Any:
        return _parse_permissions(value)

    @model_validator(mode="after")
    def check_required_options(self) -> StorageSettings:
        if self.type in ("s3", "gcs") and not self.bucket:
            raise ValueError(f'"bucket" option is required if filesystem type is {self.type}')
        if self.type == "local" and not self.path:
            raise ValueError('"path" option is required if filesystem type is local')
        return self


class LogSettings(BaseSettings):
    """日志配置。

    环境变量前缀: LOG_
    示例: LOG_LEVEL, LOG_FILE
    """

    level: str = Field(
        default="INFO",
        description="日志级别"
    )
    file: str | None = Field(
        default=None,
        description="日志文件路径（如果不设置则仅输出到控制台）"
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class FilesystemConfig(BaseSettings):
    """顶层配置。

    按名称聚合多个存储，例如::

        FILESYSTEM_STORAGES='{"uploads": {"type": "local", "path": "/var/uploads"}}'
    """

    storages: dict[str, StorageSettings] = Field(
        default_factory=dict,
        description="存储配置（名称 -> 配置）"
    )
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        env_prefix="FILESYSTEM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


__all__ = [
    "FilesystemConfig",
    "LogSettings",
    "StorageSettings",
    "StreamWrapperSettings",
]
