"""测试公共夹具。"""

from __future__ import annotations

from unittest.mock import MagicMock

from botocore.exceptions import ClientError
import pytest

from aury.filesystem.infrastructure.storage.gcs import GCSFilesystem
from aury.filesystem.infrastructure.storage.local import LocalFilesystem
from aury.filesystem.infrastructure.storage.s3 import S3Filesystem
from aury.filesystem.stream_wrapper.registry import ProtocolRegistry

TEST_UID = 1000
TEST_GID = 1000


def client_error(code: str, status: int = 400, operation: str = "HeadObject") -> ClientError:
    """构造 botocore ClientError。"""
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} error"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def local_fs(tmp_path) -> LocalFilesystem:
    return LocalFilesystem(str(tmp_path / "root"))


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    # 默认没有任何目录前缀
    client.list_objects_v2.return_value = {"KeyCount": 0}
    return client


@pytest.fixture
def s3_fs(s3_client) -> S3Filesystem:
    return S3Filesystem("bucket", "/", s3_client)


@pytest.fixture
def gcs_client() -> MagicMock:
    client = MagicMock()
    client.list_blobs.return_value = iter([])
    return client


@pytest.fixture
def gcs_bucket(gcs_client) -> MagicMock:
    return gcs_client.bucket.return_value


@pytest.fixture
def gcs_fs(gcs_client) -> GCSFilesystem:
    return GCSFilesystem("bucket", "/", gcs_client)


@pytest.fixture
def registry():
    registry = ProtocolRegistry()
    yield registry
    registry.unregister_all()


@pytest.fixture
def local_registry(registry, local_fs) -> ProtocolRegistry:
    """注册 ``local://`` 协议到本地文件系统。"""
    registry.register("local", local_fs, {"uid": TEST_UID, "gid": TEST_GID})
    return registry
