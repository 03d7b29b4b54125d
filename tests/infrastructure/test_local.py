"""本地文件系统测试。"""

from __future__ import annotations

import io
import os
import stat as stat_module
from unittest.mock import MagicMock

import pytest

from aury.filesystem.common.exceptions import (
    InvalidPathError,
    NotFoundError,
    OperationError,
    UnableToCreateDirectoryError,
)
from aury.filesystem.core.visibility import Visibility
from aury.filesystem.infrastructure.storage import LocalFilesystem, SystemRuntime


def _mode(path) -> int:
    return stat_module.S_IMODE(os.stat(path).st_mode)


@pytest.fixture
def root(local_fs) -> str:
    return local_fs.root


class TestConstruction:
    """构造与根目录。"""

    def test_creates_root(self, tmp_path):
        location = tmp_path / "a" / "b"
        filesystem = LocalFilesystem(str(location) + "/")

        assert location.is_dir()
        assert filesystem.root == str(location)

    def test_unable_to_create_root(self):
        runtime = MagicMock(spec=SystemRuntime)
        runtime.is_dir.return_value = False
        runtime.makedirs.side_effect = PermissionError("denied")

        with pytest.raises(UnableToCreateDirectoryError) as exc_info:
            LocalFilesystem("/nonexistent/root", runtime=runtime)

        assert "denied" in str(exc_info.value)


class TestRead:
    """读取。"""

    def test_partial_reads(self, local_fs, root):
        with open(os.path.join(root, "file.txt"), "wb") as f:
            f.write(b"Test Content")

        stream = local_fs.read("file.txt")
        try:
            assert stream.read(4) == b"Test"
            assert stream.read(100) == b" Content"
            assert stream.eof
        finally:
            stream.close()

    def test_missing_file(self, local_fs):
        with pytest.raises(NotFoundError):
            local_fs.read("missing.txt")

    def test_directory(self, local_fs, root):
        os.mkdir(os.path.join(root, "dir"))

        with pytest.raises(OperationError, match="Cannot read a directory"):
            local_fs.read("dir")

    def test_path_traversal(self, local_fs):
        with pytest.raises(InvalidPathError):
            local_fs.read("../outside.txt")


class TestWrite:
    """写入。"""

    def test_write_bytes_creates_parents(self, local_fs, root):
        local_fs.write("a/b/c.txt", b"hello")

        path = os.path.join(root, "a", "b", "c.txt")
        with open(path, "rb") as f:
            assert f.read() == b"hello"
        assert _mode(path) == 0o644
        assert _mode(os.path.join(root, "a", "b")) == 0o755

    def test_write_stream(self, local_fs, root):
        local_fs.write("stream.bin", io.BytesIO(b"x" * 200_000))

        assert os.path.getsize(os.path.join(root, "stream.bin")) == 200_000

    def test_overwrite_keeps_permissions(self, local_fs, root):
        local_fs.write("file.txt", b"one", {"local": {"file_permissions": 0o600}})
        local_fs.write("file.txt", b"two")

        path = os.path.join(root, "file.txt")
        with open(path, "rb") as f:
            assert f.read() == b"two"
        assert _mode(path) == 0o600

    def test_explicit_zero_permissions(self, local_fs, root):
        local_fs.write("locked.txt", b"x", {"local": {"file_permissions": 0o000}})

        assert _mode(os.path.join(root, "locked.txt")) == 0o000

    def test_visibility_option(self, local_fs, root):
        local_fs.write("private.txt", b"x", {"visibility": "private"})

        assert _mode(os.path.join(root, "private.txt")) == 0o600
        assert local_fs.stat("private.txt").visibility == Visibility.PRIVATE

    def test_open_failure(self, tmp_path):
        runtime = SystemRuntime()
        filesystem = LocalFilesystem(str(tmp_path), runtime=MagicMock(wraps=runtime))
        filesystem._runtime.open.side_effect = PermissionError("denied")

        with pytest.raises(OperationError, match="Unable to open file"):
            filesystem.write("x.txt", b"data")

    def test_chmod_failure_closes_handle(self, tmp_path):
        runtime = SystemRuntime()
        handles = []

        def open_file(path, mode):
            handle = runtime.open(path, mode)
            handles.append(handle)
            return handle

        filesystem = LocalFilesystem(str(tmp_path), runtime=MagicMock(wraps=runtime))
        filesystem._runtime.open.side_effect = open_file
        filesystem._runtime.chmod.side_effect = PermissionError("denied")

        with pytest.raises(OperationError, match="Unable to open file"):
            filesystem.write("x.txt", b"data")

        assert len(handles) == 1
        assert handles[0].closed


class TestList:
    """列表。"""

    @pytest.fixture(autouse=True)
    def tree(self, local_fs):
        local_fs.write("dir/a.txt", b"a")
        local_fs.write("dir/sub/b.txt", b"bb")
        local_fs.write("other.txt", b"c")

    def test_shallow(self, local_fs):
        entries = {entry.path: entry for entry in local_fs.list("dir")}

        assert set(entries) == {"a.txt", "sub"}
        assert entries["a.txt"].size == 1
        assert entries["sub"].is_directory

    def test_deep(self, local_fs):
        paths = {entry.path for entry in local_fs.list("dir", deep=True)}

        assert paths == {"a.txt", "sub", "sub/b.txt"}

    def test_root(self, local_fs):
        paths = {entry.path for entry in local_fs.list("")}

        assert paths == {"dir", "other.txt"}

    def test_is_lazy(self, local_fs):
        listing = local_fs.list("dir")

        assert not listing.is_initialized
        assert len(listing) == 2
        assert listing.is_initialized

    def test_missing_directory(self, local_fs):
        with pytest.raises(OperationError):
            local_fs.list("missing")


class TestStat:
    """文件状态。"""

    def test_file(self, local_fs, root):
        local_fs.write("doc.json", b"{}")
        os.utime(os.path.join(root, "doc.json"), (1_600_000_000, 1_600_000_000))

        stat = local_fs.stat("doc.json")

        assert stat.path == "doc.json"
        assert stat.size == 2
        assert stat.timestamp() == 1_600_000_000
        assert stat.mime_type == "application/json"
        assert stat.visibility == Visibility.PUBLIC

    def test_directory(self, local_fs):
        local_fs.create_directory("dir", {"visibility": "private"})

        stat = local_fs.stat("dir")

        assert stat.is_directory
        assert stat.mime_type == "application/x-directory"
        assert stat.visibility == Visibility.PRIVATE

    def test_missing(self, local_fs, root):
        with pytest.raises(NotFoundError):
            local_fs.stat("missing/file.txt")

        assert not os.path.exists(os.path.join(root, "missing"))


class TestDelete:
    """删除。"""

    def test_delete_file(self, local_fs, root):
        local_fs.write("file.txt", b"x")
        local_fs.delete("file.txt")

        assert not local_fs.exists("file.txt")

    def test_delete_directory_with_file_api(self, local_fs):
        local_fs.create_directory("dir")

        with pytest.raises(OperationError):
            local_fs.delete("dir")

    def test_delete_missing(self, local_fs):
        with pytest.raises(OperationError):
            local_fs.delete("missing.txt")

    def test_delete_directory(self, local_fs, root):
        local_fs.write("dir/a.txt", b"a")
        local_fs.write("dir/sub/deeper/b.txt", b"b")

        local_fs.delete_directory("dir")

        assert not os.path.exists(os.path.join(root, "dir"))

    def test_delete_directory_reports_child(self, tmp_path):
        runtime = MagicMock(wraps=SystemRuntime())
        filesystem = LocalFilesystem(str(tmp_path), runtime=runtime)
        filesystem.write("dir/a.txt", b"a")
        runtime.unlink.side_effect = PermissionError("denied")

        with pytest.raises(OperationError) as exc_info:
            filesystem.delete_directory("dir")

        assert exc_info.value.path == os.path.join(str(tmp_path), "dir", "a.txt")


class TestCreateDirectory:
    """创建目录。"""

    def test_create(self, local_fs, root):
        local_fs.create_directory("x/y", {"local": {"dir_permissions": 0o750}})

        assert _mode(os.path.join(root, "x", "y")) == 0o750

    def test_existing_directory_is_rechmoded(self, local_fs, root):
        local_fs.create_directory("x")
        local_fs.create_directory("x", {"local": {"dir_permissions": 0o700}})

        assert _mode(os.path.join(root, "x")) == 0o700


class TestCopyAndMove:
    """复制与移动。"""

    def test_copy(self, local_fs):
        local_fs.write("a.txt", b"content")
        local_fs.copy("a.txt", "nested/b.txt")

        assert local_fs.read("nested/b.txt").read() == b"content"
        assert local_fs.exists("a.txt")

    def test_move(self, local_fs):
        local_fs.write("a.txt", b"content")
        local_fs.move("a.txt", "b.txt")

        assert not local_fs.exists("a.txt")
        assert local_fs.read("b.txt").read() == b"content"

    def test_missing_source(self, local_fs):
        with pytest.raises(NotFoundError):
            local_fs.copy("missing.txt", "b.txt")

    def test_destination_exists(self, local_fs):
        local_fs.write("a.txt", b"new")
        local_fs.write("b.txt", b"old")

        with pytest.raises(OperationError, match="overwrite"):
            local_fs.copy("a.txt", "b.txt")

        local_fs.copy("a.txt", "b.txt", {"overwrite": True})
        assert local_fs.read("b.txt").read() == b"new"

    def test_permissions_reapplied(self, local_fs, root):
        local_fs.write("a.txt", b"x")
        local_fs.move("a.txt", "b.txt", {"local": {"file_permissions": 0o600}})

        assert _mode(os.path.join(root, "b.txt")) == 0o600
