"""协议注册表。

维护协议名（``scheme://``）到文件系统实例及流包装器配置的映射。
注册表是显式对象：应用启动时创建并注册，关闭时调用 ``unregister_all``。
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from aury.filesystem.application.config.settings import StreamWrapperSettings
from aury.filesystem.common.logging import LoggerMixin
from aury.filesystem.infrastructure.storage.base import IFilesystem

from .user import UserGuesser


@dataclass(frozen=True)
class RegistryEntry:
    """注册项。

    Attributes:
        filesystem: 文件系统实例（共享引用）
        config: 流包装器配置（uid/gid 已填充）
    """

    filesystem: IFilesystem
    config: StreamWrapperSettings


class ProtocolRegistry(LoggerMixin):
    """协议注册表。

    重复注册同一协议会被拒绝（返回 False，不产生副作用），不会合并配置。
    并发注册同一协议需要调用方自行串行化。
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}

    def register(
        self,
        protocol: str,
        filesystem: IFilesystem,
        config: StreamWrapperSettings | Mapping[str, Any] | None = None,
    ) -> bool:
        """注册协议。

        Args:
            protocol: 协议名
            filesystem: 文件系统实例
            config: 流包装器配置（StreamWrapperSettings 或同名键的字典）

        Returns:
            bool: 是否注册成功；协议已注册时返回 False
        """
        if protocol in self._entries:
            self.logger.warning(f"协议已注册，忽略重复注册: {protocol}")
            return False

        settings = config if isinstance(config, StreamWrapperSettings) else StreamWrapperSettings(**(config or {}))

        updates: dict[str, int] = {}
        if settings.uid is None:
            updates["uid"] = UserGuesser.get_uid()
        if settings.gid is None:
            updates["gid"] = UserGuesser.get_gid()
        if updates:
            settings = settings.model_copy(update=updates)

        self._entries[protocol] = RegistryEntry(filesystem, settings)
        self.logger.info(f"注册流包装器协议: {protocol}:// -> {filesystem!r}")
        return True

    def unregister(self, protocol: str) -> bool:
        """注销协议，协议未注册时返回 False。"""
        if protocol not in self._entries:
            return False

        del self._entries[protocol]
        self.logger.info(f"注销流包装器协议: {protocol}")
        return True

    def unregister_all(self) -> None:
        for protocol in self.protocols():
            self.unregister(protocol)

    def is_registered(self, protocol: str) -> bool:
        return protocol in self._entries

    def protocols(self) -> list[str]:
        """已注册的协议名。"""
        return list(self._entries.keys())

    def resolve(self, protocol: str) -> RegistryEntry:
        """获取协议对应的注册项。

        Raises:
            ValueError: 协议未注册
        """
        try:
            return self._entries[protocol]
        except KeyError:
            raise ValueError(f"协议 '{protocol}' 未注册") from None

    def __contains__(self, protocol: object) -> bool:
        return protocol in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"<ProtocolRegistry protocols={self.protocols()}>"


__all__ = [
    "ProtocolRegistry",
    "RegistryEntry",
]
