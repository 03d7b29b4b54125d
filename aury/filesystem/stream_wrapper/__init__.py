"""流包装器模块。

通过 ``<protocol>://<path>`` 以 POSIX 文件语义访问已注册的文件系统。
"""

from .commands import COMMANDS, StreamCommand, StreamStat
from .registry import ProtocolRegistry, RegistryEntry
from .stream import Stream
from .user import UserGuesser
from .wrapper import StreamFile, StreamWrapper, open_url, url_stat

__all__ = [
    "COMMANDS",
    "ProtocolRegistry",
    "RegistryEntry",
    "Stream",
    "StreamCommand",
    "StreamFile",
    "StreamStat",
    "StreamWrapper",
    "UserGuesser",
    "open_url",
    "url_stat",
]
