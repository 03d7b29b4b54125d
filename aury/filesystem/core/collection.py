"""延迟目录列表。"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

from .stat import FileStat

T = TypeVar("T")


class LazyDirectoryListing(Generic[T]):
    """延迟、单次消费的目录列表。

    包装后端原生的列表迭代器，首次遍历（或取长度、下标）时才发起后端请求，
    并将每个原生条目经 ``transform`` 转换为 FileStat。``transform`` 返回
    None 的条目被跳过（例如目录自身的标记对象）。

    后端迭代器最多消费一次：物化后的结果被缓存，再次遍历返回缓存的条目，
    不会重新请求后端。需要重新查询时请重新调用 ``list()``。
    """

    def __init__(self, source: Iterable[T], transform: Callable[[T], FileStat | None]) -> None:
        self._source: Iterable[T] | None = source
        self._transform = transform
        self._entries: list[FileStat] | None = None

    @property
    def is_initialized(self) -> bool:
        return self._entries is not None

    def _initialize(self) -> list[FileStat]:
        if self._entries is None:
            entries: list[FileStat] = []
            for item in self._source:
                stat = self._transform(item)
                if stat is not None:
                    entries.append(stat)

            self._entries = entries
            self._source = None

        return self._entries

    def __iter__(self) -> Iterator[FileStat]:
        return iter(self._initialize())

    def __len__(self) -> int:
        return len(self._initialize())

    def __getitem__(self, index: Any) -> Any:
        return self._initialize()[index]

    def to_list(self) -> list[FileStat]:
        return list(self._initialize())

    def __repr__(self) -> str:
        state = f"{len(self._entries)} entries" if self._entries is not None else "pending"
        return f"<LazyDirectoryListing {state}>"


__all__ = ["LazyDirectoryListing"]
