"""可见性（Visibility）及其与后端权限表示之间的转换。

支持两种转换器：
- UnixVisibilityConverter: 基于 Unix 权限位（本地文件系统）
- AclVisibilityConverter: 基于 ACL 授权列表（S3、GCS 等对象存储）
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any


class Visibility(str, Enum):
    """抽象可见性。"""

    PUBLIC = "public"
    PRIVATE = "private"


class UnixVisibilityConverter:
    """Unix 权限位转换器。

    四个可配置的权限值（文件公开/私有、目录公开/私有）。
    反向转换时精确匹配权限值，无法匹配的值默认视为 PUBLIC。
    """

    def __init__(
        self,
        file_public: int = 0o644,
        file_private: int = 0o600,
        directory_public: int = 0o755,
        directory_private: int = 0o700,
        default_for_directories: Visibility = Visibility.PRIVATE,
    ) -> None:
        self.file_public = file_public
        self.file_private = file_private
        self.directory_public = directory_public
        self.directory_private = directory_private
        self._default_for_directories = default_for_directories

    def for_file(self, visibility: Visibility) -> int:
        return self.file_public if visibility == Visibility.PUBLIC else self.file_private

    def for_directory(self, visibility: Visibility) -> int:
        return self.directory_public if visibility == Visibility.PUBLIC else self.directory_private

    def inverse_for_file(self, permissions: int) -> Visibility:
        if permissions == self.file_private:
            return Visibility.PRIVATE
        return Visibility.PUBLIC

    def inverse_for_directory(self, permissions: int) -> Visibility:
        if permissions == self.directory_private:
            return Visibility.PRIVATE
        return Visibility.PUBLIC

    def to_backend(self, visibility: Visibility, *, directory: bool = False) -> int:
        """可见性 -> 权限位。"""
        return self.for_directory(visibility) if directory else self.for_file(visibility)

    def from_backend(self, permissions: int, *, directory: bool = False) -> Visibility:
        """权限位 -> 可见性。"""
        if directory:
            return self.inverse_for_directory(permissions)
        return self.inverse_for_file(permissions)

    def default_for_directories(self) -> Visibility:
        return self._default_for_directories

    def default_directory_permissions(self) -> int:
        return self.for_directory(self._default_for_directories)


class AclVisibilityConverter:
    """ACL 授权列表转换器。

    当任意一条授权的被授权者属于"所有用户"/"所有认证用户"且权限为读取时，
    视为 PUBLIC；否则为 PRIVATE。格式不完整的授权条目直接跳过。

    支持两种授权条目格式：
    - S3: ``{"Grantee": {"Type": "Group", "URI": ...}, "Permission": "READ"}``
    - GCS: ``{"entity": "allUsers", "role": "READER"}``
    """

    def __init__(
        self,
        public_grantees: Iterable[str],
        read_permission: str,
        public_acl: str,
        private_acl: str,
        default_for_directories: Visibility = Visibility.PUBLIC,
    ) -> None:
        self.public_grantees = tuple(public_grantees)
        self.read_permission = read_permission
        self.public_acl = public_acl
        self.private_acl = private_acl
        self._default_for_directories = default_for_directories

    @classmethod
    def for_s3(cls, default_for_directories: Visibility = Visibility.PUBLIC) -> AclVisibilityConverter:
        return cls(
            public_grantees=(
                "http://acs.amazonaws.com/groups/global/AllUsers",
                "http://acs.amazonaws.com/groups/global/AuthenticatedUsers",
            ),
            read_permission="READ",
            public_acl="public-read",
            private_acl="private",
            default_for_directories=default_for_directories,
        )

    @classmethod
    def for_gcs(cls, default_for_directories: Visibility = Visibility.PUBLIC) -> AclVisibilityConverter:
        return cls(
            public_grantees=("allUsers", "allAuthenticatedUsers"),
            read_permission="READER",
            public_acl="publicRead",
            private_acl="private",
            default_for_directories=default_for_directories,
        )

    def visibility_to_acl(self, visibility: Visibility) -> str:
        """可见性 -> 预定义（canned）ACL 名称，用于写入请求。"""
        return self.public_acl if visibility == Visibility.PUBLIC else self.private_acl

    def to_backend(self, visibility: Visibility) -> list[dict[str, Any]]:
        """可见性 -> 授权列表。"""
        if visibility != Visibility.PUBLIC:
            return []
        return [{"entity": self.public_grantees[0], "role": self.read_permission}]

    def from_backend(self, grants: Iterable[Any] | None) -> Visibility:
        """授权列表 -> 可见性。"""
        for grant in grants or ():
            fields = self._grant_fields(grant)
            if fields is None:
                continue

            grantee, permission = fields
            if grantee in self.public_grantees and permission == self.read_permission:
                return Visibility.PUBLIC

        return Visibility.PRIVATE

    def default_for_directories(self) -> Visibility:
        return self._default_for_directories

    @staticmethod
    def _grant_fields(grant: Any) -> tuple[str, str] | None:
        if not isinstance(grant, Mapping):
            return None

        if "entity" in grant and "role" in grant:
            return str(grant["entity"]), str(grant["role"])

        grantee = grant.get("Grantee")
        permission = grant.get("Permission")
        if not isinstance(grantee, Mapping) or permission is None:
            return None

        uri = grantee.get("URI")
        if uri is None:
            return None

        return str(uri), str(permission)


__all__ = [
    "AclVisibilityConverter",
    "UnixVisibilityConverter",
    "Visibility",
]
