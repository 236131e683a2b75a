"""Unit tests for root-confined path resolution."""

import os
from unittest.mock import patch

import pytest

from ftp_binding.ftp.exceptions import SecurityError
from ftp_binding.ftp.paths import (
    MAX_SYMLINK_HOPS,
    ResolvedPath,
    is_within,
    normalize_root,
    resolve,
    resolve_directory,
    secure_join,
)

ROOT = "/srv/ftp/data"


class TestNormalizeRoot:
    """Tests for normalize_root."""

    @pytest.mark.parametrize("root,expected", [
        ("", "/"),
        ("   ", "/"),
        ("/srv/ftp/data/", "/srv/ftp/data"),
        ("/srv//ftp/./data", "/srv/ftp/data"),
        ("//srv/ftp", "/srv/ftp"),
        ("data/", "data"),
    ])
    def test_normalize(self, root, expected):
        assert normalize_root(root) == expected


class TestResolve:
    """Tests for resolve."""

    def test_nested_filename(self):
        resolved = resolve(ROOT, "reports/out.txt")

        assert resolved == ResolvedPath(
            absolute_path="/srv/ftp/data/reports/out.txt",
            directory="/srv/ftp/data/reports",
            base_name="out.txt",
        )

    def test_plain_filename(self):
        resolved = resolve(ROOT, "out.txt")

        assert resolved.directory == ROOT
        assert resolved.base_name == "out.txt"

    def test_traversal_is_neutralized(self):
        resolved = resolve(ROOT, "../../etc/passwd")

        assert resolved.absolute_path == "/srv/ftp/data/etc/passwd"
        assert resolved.directory == "/srv/ftp/data/etc"

    def test_absolute_filename_is_rerooted(self):
        assert resolve(ROOT, "/etc/passwd").absolute_path == "/srv/ftp/data/etc/passwd"

    @pytest.mark.parametrize("filename", [
        "../secret",
        "../../../../../../etc/shadow",
        "a/../../b",
        "a/b/../../../c",
        "./../x",
        "..//..//x",
        "reports/../../../data2/x",
        "/../x",
    ])
    def test_traversal_never_escapes_root(self, filename):
        resolved = resolve(ROOT, filename)

        assert resolved.absolute_path.startswith(ROOT + "/")
        assert is_within(ROOT, resolved.directory)
        assert "/" not in resolved.base_name
        assert os.path.dirname(resolved.absolute_path) == resolved.directory

    @pytest.mark.parametrize("filename", ["", ".", "..", "/", "../..", "a/.."])
    def test_filename_resolving_to_root_is_rejected(self, filename):
        with pytest.raises(SecurityError):
            resolve(ROOT, filename)

    @pytest.mark.parametrize("filename", ["out\r\n.txt", "out\n", "a\x00b"])
    def test_control_characters_rejected(self, filename):
        with pytest.raises(SecurityError, match="control characters"):
            resolve(ROOT, filename)

    def test_relative_root(self):
        resolved = resolve("data", "../x.txt")

        assert resolved.absolute_path == "data/x.txt"
        assert resolved.directory == "data"

    def test_current_directory_root(self):
        resolved = resolve(".", "x.txt")

        assert resolved.absolute_path == "x.txt"
        assert resolved.directory == "."

    def test_filesystem_root(self):
        resolved = resolve("", "../reports/out.txt")

        assert resolved.absolute_path == "/reports/out.txt"


class TestResolveDirectory:
    """Tests for resolve_directory."""

    def test_empty_directory_is_root(self):
        assert resolve_directory(ROOT, "") == ROOT

    def test_subdirectory(self):
        assert resolve_directory(ROOT, "reports") == "/srv/ftp/data/reports"

    def test_traversal(self):
        assert resolve_directory(ROOT, "../../..") == ROOT
        assert resolve_directory(ROOT, "../../etc") == "/srv/ftp/data/etc"


class TestIsWithin:
    """Tests for is_within."""

    def test_sibling_prefix_is_not_within(self):
        assert is_within("/srv/ftp/data", "/srv/ftp/data2") is False

    def test_descendant(self):
        assert is_within("/srv/ftp/data", "/srv/ftp/data/a/b") is True

    def test_filesystem_root(self):
        assert is_within("/", "/anything") is True

    def test_relative_root_dot(self):
        assert is_within(".", "a/b") is True
        assert is_within(".", "../a") is False


class TestSymlinks:
    """Tests for symlink handling under a local root."""

    @pytest.fixture
    def root(self, tmp_path):
        root = tmp_path / "root"
        (root / "real").mkdir(parents=True)
        return root

    def test_local_links_ignored_by_default(self, root):
        os.symlink("/etc", root / "escape")

        assert secure_join(str(root), "escape/passwd") == f"{root}/escape/passwd"

    def test_host_links_do_not_rewrite_remote_paths(self):
        # /bin is a symlink on many hosts; the remote path must not follow it
        assert resolve("", "bin/tool.txt").absolute_path == "/bin/tool.txt"
        assert resolve("", "bin/x").absolute_path == "/bin/x"

    def test_absolute_link_target_stays_in_root(self, root):
        os.symlink("/etc", root / "escape")

        result = secure_join(str(root), "escape/passwd", follow_links=True)

        assert result == f"{root}/etc/passwd"

    def test_relative_link_target_stays_in_root(self, root):
        os.symlink("../../../outside", root / "real" / "up")

        result = secure_join(str(root), "real/up/file.txt", follow_links=True)

        assert result == f"{root}/outside/file.txt"

    def test_link_inside_root_is_followed(self, root):
        os.symlink("real", root / "alias")

        assert secure_join(str(root), "alias/x", follow_links=True) == f"{root}/real/x"

    def test_resolve_passes_follow_links(self, root):
        os.symlink("real", root / "alias")

        resolved = resolve(str(root), "alias/x", follow_links=True)

        assert resolved.directory == f"{root}/real"

    def test_link_removed_before_readlink(self, root):
        os.symlink("real", root / "alias")

        with patch("ftp_binding.ftp.paths.os.readlink", side_effect=FileNotFoundError("gone")):
            result = secure_join(str(root), "alias/x", follow_links=True)

        assert result == f"{root}/alias/x"

    def test_symlink_loop_rejected(self, root):
        os.symlink("loop", root / "loop")

        with pytest.raises(SecurityError, match="symbolic links"):
            secure_join(str(root), "loop/x", follow_links=True)

    def test_hop_limit(self):
        assert MAX_SYMLINK_HOPS == 255
