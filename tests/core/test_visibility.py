"""可见性转换器测试。"""

from __future__ import annotations

import pytest

from aury.filesystem.core.visibility import (
    AclVisibilityConverter,
    UnixVisibilityConverter,
    Visibility,
)

ALL_USERS = "http://acs.amazonaws.com/groups/global/AllUsers"
AUTHENTICATED_USERS = "http://acs.amazonaws.com/groups/global/AuthenticatedUsers"


class TestUnixVisibilityConverter:
    """Unix 权限位转换器。"""

    @pytest.mark.parametrize("visibility", list(Visibility))
    def test_round_trip_for_files(self, visibility):
        converter = UnixVisibilityConverter()
        assert converter.from_backend(converter.to_backend(visibility)) == visibility

    @pytest.mark.parametrize("visibility", list(Visibility))
    def test_round_trip_for_directories(self, visibility):
        converter = UnixVisibilityConverter()
        permissions = converter.to_backend(visibility, directory=True)
        assert converter.from_backend(permissions, directory=True) == visibility

    def test_default_permissions(self):
        converter = UnixVisibilityConverter()
        assert converter.for_file(Visibility.PUBLIC) == 0o644
        assert converter.for_file(Visibility.PRIVATE) == 0o600
        assert converter.for_directory(Visibility.PUBLIC) == 0o755
        assert converter.for_directory(Visibility.PRIVATE) == 0o700
        assert converter.default_for_directories() == Visibility.PRIVATE
        assert converter.default_directory_permissions() == 0o700

    def test_unmatched_permissions_are_public(self):
        converter = UnixVisibilityConverter()
        assert converter.inverse_for_file(0o640) == Visibility.PUBLIC
        assert converter.inverse_for_directory(0o750) == Visibility.PUBLIC

    def test_custom_permissions(self):
        converter = UnixVisibilityConverter(file_private=0o640, directory_private=0o750)
        assert converter.inverse_for_file(0o640) == Visibility.PRIVATE
        assert converter.inverse_for_directory(0o750) == Visibility.PRIVATE
        assert converter.inverse_for_file(0o600) == Visibility.PUBLIC


class TestAclVisibilityConverter:
    """ACL 授权列表转换器。"""

    @pytest.mark.parametrize("factory", [AclVisibilityConverter.for_s3, AclVisibilityConverter.for_gcs])
    @pytest.mark.parametrize("visibility", list(Visibility))
    def test_round_trip(self, factory, visibility):
        converter = factory()
        assert converter.from_backend(converter.to_backend(visibility)) == visibility

    def test_s3_grants(self):
        converter = AclVisibilityConverter.for_s3()

        public = [
            {"Grantee": {"Type": "CanonicalUser", "ID": "owner"}, "Permission": "FULL_CONTROL"},
            {"Grantee": {"Type": "Group", "URI": ALL_USERS}, "Permission": "READ"},
        ]
        assert converter.from_backend(public) == Visibility.PUBLIC

        authenticated = [{"Grantee": {"Type": "Group", "URI": AUTHENTICATED_USERS}, "Permission": "READ"}]
        assert converter.from_backend(authenticated) == Visibility.PUBLIC

        write_only = [{"Grantee": {"Type": "Group", "URI": ALL_USERS}, "Permission": "WRITE"}]
        assert converter.from_backend(write_only) == Visibility.PRIVATE

    def test_gcs_grants(self):
        converter = AclVisibilityConverter.for_gcs()

        assert converter.from_backend([{"entity": "allUsers", "role": "READER"}]) == Visibility.PUBLIC
        assert converter.from_backend([{"entity": "allAuthenticatedUsers", "role": "READER"}]) == Visibility.PUBLIC
        assert converter.from_backend([{"entity": "user-a@example.com", "role": "OWNER"}]) == Visibility.PRIVATE
        assert converter.from_backend([{"entity": "allUsers", "role": "OWNER"}]) == Visibility.PRIVATE

    def test_malformed_grants_are_skipped(self):
        converter = AclVisibilityConverter.for_s3()
        grants = [
            "junk",
            {"Grantee": {}},
            {"Permission": "READ"},
            {"Grantee": {"Type": "Group"}, "Permission": "READ"},
            {"entity": "allUsers"},
        ]
        assert converter.from_backend(grants) == Visibility.PRIVATE
        assert converter.from_backend(grants + [{"Grantee": {"URI": ALL_USERS}, "Permission": "READ"}]) == Visibility.PUBLIC

    def test_empty_grants_are_private(self):
        converter = AclVisibilityConverter.for_gcs()
        assert converter.from_backend([]) == Visibility.PRIVATE
        assert converter.from_backend(None) == Visibility.PRIVATE

    def test_canned_acl(self):
        s3 = AclVisibilityConverter.for_s3()
        assert s3.visibility_to_acl(Visibility.PUBLIC) == "public-read"
        assert s3.visibility_to_acl(Visibility.PRIVATE) == "private"
        assert s3.default_for_directories() == Visibility.PUBLIC

        gcs = AclVisibilityConverter.for_gcs()
        assert gcs.visibility_to_acl(Visibility.PUBLIC) == "publicRead"
        assert gcs.visibility_to_acl(Visibility.PRIVATE) == "private"
