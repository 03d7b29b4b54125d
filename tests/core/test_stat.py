"""FileStat 与延迟目录列表测试。"""

from __future__ import annotations

from datetime import datetime, timezone

from aury.filesystem.core.collection import LazyDirectoryListing
from aury.filesystem.core.stat import (
    DEFAULT_MIME_TYPE,
    DIRECTORY_MIME_TYPE,
    EPOCH,
    FileStat,
)
from aury.filesystem.core.visibility import Visibility


class TestFileStat:
    """文件状态。"""

    def test_directory(self):
        stat = FileStat("dir", None, -1)

        assert stat.is_directory
        assert stat.size == -1
        assert stat.mime_type == DIRECTORY_MIME_TYPE
        assert stat.last_modified == EPOCH
        assert stat.timestamp() == 0

    def test_file(self):
        modified = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        stat = FileStat("docs/readme.txt", modified, 42)

        assert not stat.is_directory
        assert stat.path == "docs/readme.txt"
        assert stat.size == 42
        assert stat.last_modified == modified
        assert stat.timestamp() == int(modified.timestamp())
        assert stat.mime_type == "text/plain"

    def test_mime_type_fallback(self):
        assert FileStat("data.unknown-extension", None, 1).mime_type == DEFAULT_MIME_TYPE
        assert FileStat("noext", None, 1).mime_type == DEFAULT_MIME_TYPE

    def test_explicit_mime_type_wins(self):
        assert FileStat("a.txt", None, 1, mime_type="application/json").mime_type == "application/json"

    def test_mime_type_guessed_from_key(self):
        stat = FileStat("relative", None, 1, key="prefix/relative.json")
        assert stat.mime_type == "application/json"

    def test_lazy_visibility_is_resolved_once(self):
        calls = []

        def resolve():
            calls.append(1)
            return Visibility.PRIVATE

        stat = FileStat("a.txt", None, 1, visibility=resolve)
        assert calls == []

        assert stat.visibility == Visibility.PRIVATE
        assert stat.visibility == Visibility.PRIVATE
        assert len(calls) == 1


class TestLazyDirectoryListing:
    """延迟目录列表。"""

    @staticmethod
    def _source(consumed: list):
        for name in ["a", "skip", "b"]:
            consumed.append(name)
            yield name

    @staticmethod
    def _transform(name: str):
        if name == "skip":
            return None
        return FileStat(name, None, 1)

    def test_source_is_not_consumed_before_iteration(self):
        consumed: list = []
        listing = LazyDirectoryListing(self._source(consumed), self._transform)

        assert consumed == []
        assert not listing.is_initialized

        assert [stat.path for stat in listing] == ["a", "b"]
        assert consumed == ["a", "skip", "b"]
        assert listing.is_initialized

    def test_re_iteration_returns_cached_entries(self):
        consumed: list = []
        listing = LazyDirectoryListing(self._source(consumed), self._transform)

        first = [stat.path for stat in listing]
        second = [stat.path for stat in listing]

        assert first == second == ["a", "b"]
        assert consumed == ["a", "skip", "b"]

    def test_len_and_index_materialize(self):
        listing = LazyDirectoryListing(iter(["x", "y"]), lambda name: FileStat(name, None, -1))

        assert len(listing) == 2
        assert listing[1].path == "y"
        assert [stat.path for stat in listing.to_list()] == ["x", "y"]
