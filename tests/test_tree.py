"""Tests for roost.discovery: compact and tree naming conventions."""

from pathlib import Path

import pytest

from roost.discovery import RouteDescriptor, Segment, scan, sort_routes
from roost.discovery.types import render_path
from roost.errors import DiscoveryError


def touch(root: Path, relative: str, content: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestSegment:
    def test_static(self) -> None:
        seg = Segment("users")
        assert seg.token == "users"
        assert seg.param == "users"

    def test_dynamic(self) -> None:
        seg = Segment("id", is_dynamic=True)
        assert seg.token == "[id]"
        assert seg.param == ":id"

    def test_render_root(self) -> None:
        assert render_path(()) == "/"
        assert render_path((), transport=True) == "/"

    def test_render_both_forms(self) -> None:
        segments = (Segment("users"), Segment("id", is_dynamic=True), Segment("posts"))
        assert render_path(segments) == "/users/[id]/posts"
        assert render_path(segments, transport=True) == "/users/:id/posts"


class TestCompact:
    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        assert scan(tmp_path / "controllers", "controller", "compact") == []

    def test_paths_from_file_names(self, tmp_path: Path) -> None:
        touch(tmp_path, "users.controller.py")
        touch(tmp_path, "users.[id].controller.py")
        touch(tmp_path, "@.controller.py")
        routes = {r.relative_path: r for r in scan(tmp_path, "controller", "compact")}

        assert routes["users.controller.py"].token_path == "/users"
        assert routes["users.[id].controller.py"].token_path == "/users/[id]"
        assert routes["users.[id].controller.py"].transport_path == "/users/:id"
        assert routes["@.controller.py"].token_path == "/"

    def test_bare_nomenclature_file_is_root(self, tmp_path: Path) -> None:
        touch(tmp_path, "controller.py")
        [route] = scan(tmp_path, "controller", "compact")
        assert route.segments == ()
        assert route.transport_path == "/"

    def test_sorted_by_relative_path_descending(self, tmp_path: Path) -> None:
        for name in ("a.pipe.py", "b.[x].pipe.py", "b.pipe.py", "@.pipe.py"):
            touch(tmp_path, name)
        names = [r.relative_path for r in scan(tmp_path, "pipe", "compact")]
        assert names == sorted(names, reverse=True)
        assert names[0] == "b.pipe.py"

    def test_descriptor_metadata(self, tmp_path: Path) -> None:
        file = touch(tmp_path, "users.service.py", "x = 1\n")
        [route] = scan(tmp_path, "service", "compact")
        assert route.absolute_path == file.resolve()
        assert route.filename == "users.service.py"
        assert route.byte_size == len("x = 1\n")
        assert route.mime_type

    def test_ignores_private_and_hidden_entries(self, tmp_path: Path) -> None:
        touch(tmp_path, "_helpers.py")
        touch(tmp_path, ".hidden")
        touch(tmp_path, "__pycache__/users.controller.cpython-312.pyc")
        touch(tmp_path, "users.controller.py")
        assert [r.filename for r in scan(tmp_path, "controller", "compact")] == ["users.controller.py"]

    def test_subdirectory_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "nested/users.controller.py")
        with pytest.raises(DiscoveryError, match="Subdirectory"):
            scan(tmp_path, "controller", "compact")

    def test_foreign_file_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "notes.txt")
        with pytest.raises(DiscoveryError, match="Unexpected file") as exc_info:
            scan(tmp_path, "controller", "compact")
        assert exc_info.value.path is not None

    def test_other_nomenclature_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "users.pipe.py")
        with pytest.raises(DiscoveryError):
            scan(tmp_path, "controller", "compact")

    def test_mixed_root_token_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "@.users.controller.py")
        with pytest.raises(DiscoveryError, match="'@'"):
            scan(tmp_path, "controller", "compact")

    def test_malformed_dynamic_token_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "[id.controller.py")
        with pytest.raises(DiscoveryError, match="Malformed"):
            scan(tmp_path, "controller", "compact")

    def test_empty_token_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "users..controller.py")
        with pytest.raises(DiscoveryError, match="Empty"):
            scan(tmp_path, "controller", "compact")

    def test_dynamic_name_must_be_identifier(self, tmp_path: Path) -> None:
        touch(tmp_path, "users.[1x].controller.py")
        with pytest.raises(DiscoveryError, match="Malformed"):
            scan(tmp_path, "controller", "compact")

    def test_repeated_dynamic_name_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "users.[id].posts.[id].controller.py")
        with pytest.raises(DiscoveryError, match=r"\[id\] repeats"):
            scan(tmp_path, "controller", "compact")


class TestTree:
    def test_directories_are_segments(self, tmp_path: Path) -> None:
        touch(tmp_path, "controller.py")
        touch(tmp_path, "users/controller.py")
        touch(tmp_path, "users/[id]/controller.py")
        routes = {r.relative_path: r for r in scan(tmp_path, "controller", "tree")}

        assert routes["controller.py"].token_path == "/"
        assert routes["users/controller.py"].token_path == "/users"
        assert routes["users/[id]/controller.py"].token_path == "/users/[id]"
        assert routes["users/[id]/controller.py"].transport_path == "/users/:id"
        assert routes["users/[id]/controller.py"].is_dynamic

    def test_sibling_kinds_are_skipped(self, tmp_path: Path) -> None:
        touch(tmp_path, "users/controller.py")
        touch(tmp_path, "users/middleware.py")
        touch(tmp_path, "users/schema.py")
        touch(tmp_path, "pipe.py")
        assert [r.relative_path for r in scan(tmp_path, "controller", "tree")] == ["users/controller.py"]
        assert [r.relative_path for r in scan(tmp_path, "middleware", "tree")] == ["users/middleware.py"]

    def test_directory_without_anchor_contributes_nothing(self, tmp_path: Path) -> None:
        (tmp_path / "empty" / "deeper").mkdir(parents=True)
        assert scan(tmp_path, "controller", "tree") == []

    def test_foreign_file_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "users/controller.py")
        touch(tmp_path, "users/readme.md")
        with pytest.raises(DiscoveryError, match="users/readme.md"):
            scan(tmp_path, "controller", "tree")

    def test_malformed_directory_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "[id/controller.py")
        with pytest.raises(DiscoveryError):
            scan(tmp_path, "controller", "tree")

    def test_repeated_dynamic_directory_rejected(self, tmp_path: Path) -> None:
        touch(tmp_path, "users/[id]/posts/[id]/controller.py")
        with pytest.raises(DiscoveryError, match="repeats"):
            scan(tmp_path, "controller", "tree")

    def test_same_name_in_sibling_branches_allowed(self, tmp_path: Path) -> None:
        touch(tmp_path, "users/[id]/controller.py")
        touch(tmp_path, "posts/[id]/controller.py")
        assert len(scan(tmp_path, "controller", "tree")) == 2

    def test_unknown_mode(self, tmp_path: Path) -> None:
        with pytest.raises(DiscoveryError, match="mode"):
            scan(tmp_path, "controller", "flat")


class TestSortRoutes:
    def test_idempotent(self, tmp_path: Path) -> None:
        for name in ("a.controller.py", "c.controller.py", "b.controller.py"):
            touch(tmp_path, name)
        once = scan(tmp_path, "controller", "compact")
        assert sort_routes(once) == once
        assert sort_routes(list(reversed(once))) == once

    def test_descriptor_is_frozen(self, tmp_path: Path) -> None:
        touch(tmp_path, "controller.py")
        [route] = scan(tmp_path, "controller", "compact")
        assert isinstance(route, RouteDescriptor)
        with pytest.raises(AttributeError):
            route.relative_path = "other"  # type: ignore[misc]
