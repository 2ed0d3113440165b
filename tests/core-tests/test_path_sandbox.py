"""
Tests for the workdir path sandbox.

Covers containment (sibling prefixes, parent escapes, absolute paths),
reads with truncation, writes creating parents, and directory listings.
"""
import os
from pathlib import Path

import pytest

from codexgate.core.exceptions import (
    OutOfBoundsPathError,
    PathNotFoundError,
    SandboxIOError,
)
from codexgate.core.output import format_dir_listing
from codexgate.core.path_sandbox import DirEntry, PathSandbox, is_within_root


@pytest.fixture
def sandbox(tmp_path: Path) -> PathSandbox:
    return PathSandbox(tmp_path / "data")


class TestContainment:
    """Test path resolution against the sandbox root."""

    @pytest.mark.unit
    def test_root_contains_itself(self) -> None:
        assert is_within_root("/data", "/data") is True
        assert is_within_root("/data", "/data/x/y") is True

    @pytest.mark.unit
    def test_sibling_with_shared_prefix_is_outside(self) -> None:
        """A string prefix match is not containment."""
        assert is_within_root("/data", "/data-secret") is False
        assert is_within_root("/data", "/data-secret/file") is False

    @pytest.mark.unit
    def test_relative_path_resolves_under_root(self, sandbox: PathSandbox) -> None:
        resolved = sandbox.resolve("notes/a.txt")
        assert resolved == sandbox.root / "notes" / "a.txt"

    @pytest.mark.unit
    def test_dot_segments_inside_root_are_allowed(self, sandbox: PathSandbox) -> None:
        resolved = sandbox.resolve("notes/../b.txt")
        assert resolved == sandbox.root / "b.txt"

    @pytest.mark.unit
    def test_empty_and_dot_resolve_to_root(self, sandbox: PathSandbox) -> None:
        assert sandbox.resolve(".") == sandbox.root
        assert sandbox.resolve("") == sandbox.root

    @pytest.mark.unit
    def test_parent_escape_rejected(self, sandbox: PathSandbox) -> None:
        with pytest.raises(OutOfBoundsPathError) as exc_info:
            sandbox.resolve("../etc/passwd")
        assert "outside workdir" in str(exc_info.value)

    @pytest.mark.unit
    def test_sibling_directory_rejected(self, sandbox: PathSandbox, tmp_path: Path) -> None:
        """`../data-secret` normalizes to a sibling of the root."""
        secret = tmp_path / "data-secret"
        secret.mkdir()
        (secret / "key.txt").write_text("secret")

        with pytest.raises(OutOfBoundsPathError):
            sandbox.read("../data-secret/key.txt")

    @pytest.mark.unit
    def test_absolute_path_outside_root_rejected(self, sandbox: PathSandbox) -> None:
        with pytest.raises(OutOfBoundsPathError):
            sandbox.resolve("/etc/passwd")

    @pytest.mark.unit
    def test_absolute_path_inside_root_allowed(self, sandbox: PathSandbox) -> None:
        inside = str(sandbox.root / "x.txt")
        assert sandbox.resolve(inside) == sandbox.root / "x.txt"

    @pytest.mark.unit
    def test_rejected_write_touches_nothing(self, sandbox: PathSandbox, tmp_path: Path) -> None:
        with pytest.raises(OutOfBoundsPathError):
            sandbox.write("../escaped/file.txt", "x")
        assert not (tmp_path / "escaped").exists()

    @pytest.mark.unit
    def test_root_created_on_init(self, tmp_path: Path) -> None:
        root = tmp_path / "missing" / "root"
        PathSandbox(root)
        assert root.is_dir()


class TestReadWrite:
    """Test file reads and writes inside the root."""

    @pytest.mark.unit
    def test_write_then_read(self, sandbox: PathSandbox) -> None:
        target = sandbox.write("notes/a.txt", "hi")

        assert target == sandbox.root / "notes" / "a.txt"
        assert sandbox.read("notes/a.txt") == "hi"

    @pytest.mark.unit
    def test_write_replaces_content(self, sandbox: PathSandbox) -> None:
        sandbox.write("a.txt", "first version")
        sandbox.write("a.txt", "second")
        assert sandbox.read("a.txt") == "second"

    @pytest.mark.unit
    def test_read_missing_file(self, sandbox: PathSandbox) -> None:
        with pytest.raises(PathNotFoundError):
            sandbox.read("nope.txt")

    @pytest.mark.unit
    def test_read_directory_is_io_error(self, sandbox: PathSandbox) -> None:
        (sandbox.root / "sub").mkdir()
        with pytest.raises(SandboxIOError):
            sandbox.read("sub")

    @pytest.mark.unit
    def test_read_truncated_to_cap(self, tmp_path: Path) -> None:
        sandbox = PathSandbox(tmp_path / "data", max_read_chars=10)
        sandbox.write("long.txt", "x" * 25)
        assert sandbox.read("long.txt") == "x" * 10

    @pytest.mark.unit
    def test_read_replaces_invalid_utf8(self, sandbox: PathSandbox) -> None:
        (sandbox.root / "bin.dat").write_bytes(b"ok\xff")
        assert sandbox.read("bin.dat") == "ok\ufffd"

    @pytest.mark.unit
    def test_write_under_file_is_io_error(self, sandbox: PathSandbox) -> None:
        sandbox.write("plain.txt", "x")
        with pytest.raises(SandboxIOError):
            sandbox.write("plain.txt/child.txt", "y")


class TestListing:
    """Test directory listings."""

    @pytest.mark.unit
    def test_empty_directory(self, sandbox: PathSandbox) -> None:
        entries = sandbox.list(".")
        assert entries == []
        assert format_dir_listing(entries) == "(empty)"

    @pytest.mark.unit
    def test_entries_marked_by_kind(self, sandbox: PathSandbox) -> None:
        sandbox.write("notes/a.txt", "hi")
        sandbox.write("top.txt", "x")

        entries = sandbox.list()
        assert set(entries) == {
            DirEntry(name="notes", is_dir=True),
            DirEntry(name="top.txt", is_dir=False),
        }
        lines = format_dir_listing(entries).splitlines()
        assert sorted(lines) == ["[D] notes", "[F] top.txt"]

    @pytest.mark.unit
    def test_subdirectory(self, sandbox: PathSandbox) -> None:
        sandbox.write("notes/a.txt", "hi")
        assert format_dir_listing(sandbox.list("notes")) == "[F] a.txt"

    @pytest.mark.unit
    def test_missing_directory(self, sandbox: PathSandbox) -> None:
        with pytest.raises(PathNotFoundError):
            sandbox.list("nope")

    @pytest.mark.unit
    def test_listing_a_file_is_io_error(self, sandbox: PathSandbox) -> None:
        sandbox.write("f.txt", "x")
        with pytest.raises(SandboxIOError):
            sandbox.list("f.txt")

    @pytest.mark.unit
    def test_listing_outside_root_rejected(self, sandbox: PathSandbox) -> None:
        with pytest.raises(OutOfBoundsPathError):
            sandbox.list("..")

    @pytest.mark.unit
    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinked_directory_listed_as_directory(self, sandbox: PathSandbox) -> None:
        (sandbox.root / "real").mkdir()
        os.symlink(sandbox.root / "real", sandbox.root / "link")
        entries = {entry.name: entry.is_dir for entry in sandbox.list()}
        assert entries == {"real": True, "link": True}
