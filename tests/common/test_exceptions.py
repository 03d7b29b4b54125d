"""异常与日志测试。"""

from __future__ import annotations

from pathlib import Path
import subprocess
import sys

from aury.filesystem.common.exceptions import (
    ErrorKind,
    FilesystemError,
    FoundationError,
    InvalidPathError,
    NotFoundError,
    OperationError,
    UnableToCreateDirectoryError,
)
from aury.filesystem.common.logging import LoggerMixin, logger


def test_hierarchy():
    assert issubclass(FilesystemError, FoundationError)
    assert issubclass(NotFoundError, OperationError)
    assert issubclass(InvalidPathError, FilesystemError)
    assert issubclass(UnableToCreateDirectoryError, FilesystemError)


def test_operation_error_wraps_previous():
    previous = OSError("disk full")
    error = OperationError("Unable to write file", previous, path="a.txt")

    assert str(error) == "Unable to write file: disk full"
    assert error.previous is previous
    assert error.kind == ErrorKind.OPERATION_FAILED
    assert error.to_dict() == {
        "message": "Unable to write file: disk full",
        "kind": "operation_failed",
        "path": "a.txt",
        "metadata": {},
    }


def test_error_kinds():
    assert NotFoundError("missing").kind == ErrorKind.NOT_FOUND
    assert InvalidPathError("../x").kind == ErrorKind.INVALID_PATH
    assert UnableToCreateDirectoryError("/root").kind == ErrorKind.UNABLE_TO_CREATE_DIRECTORY


def test_unable_to_create_directory_message():
    error = UnableToCreateDirectoryError("/data", PermissionError("denied"))

    assert str(error) == 'Unable to create directory "/data": denied'
    assert "Unknown error" in str(UnableToCreateDirectoryError("/data"))


def test_logger_mixin_binds_class_name():
    class Adapter(LoggerMixin):
        pass

    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    try:
        Adapter().logger.info("hello")
    finally:
        logger.remove(handler_id)

    assert records[0]["message"] == "hello"
    assert records[0]["extra"]["name"].endswith(".Adapter")


def test_import_keeps_host_sinks():
    code = (
        "from loguru import logger\n"
        "seen = []\n"
        "logger.add(seen.append)\n"
        "import aury.filesystem\n"
        "import aury.filesystem.common.logging\n"
        "logger.warning('host warning')\n"
        "print(len(seen))\n"
    )

    result = subprocess.run(
        [sys.executable, "-c", code],
        cwd=Path(__file__).resolve().parents[2],
        capture_output=True,
        text=True,
        check=True,
    )

    assert result.stdout.strip() == "1"
