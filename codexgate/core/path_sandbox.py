"""
Filesystem sandbox for the file tools.

Every caller-supplied path is joined onto a single root directory and
normalized; the result must be the root itself or lie beneath it on a
path-separator boundary. This is path containment, not an OS jail:
symlinks inside the root are followed as-is.

Usage:
    sandbox = PathSandbox(Path("~/codex-work").expanduser())
    sandbox.write("notes/a.txt", "hi")
    text = sandbox.read("notes/a.txt")
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .constants import MAX_READ_CHARS
from .exceptions import OutOfBoundsPathError, PathNotFoundError, SandboxIOError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirEntry:
    """One directory listing entry."""
    name: str
    is_dir: bool

    def to_line(self) -> str:
        return ("[D] " if self.is_dir else "[F] ") + self.name


def is_within_root(root: str, target: str) -> bool:
    """
    Check segment-aware containment of two absolute, normalized paths.

    `/data` contains `/data` and `/data/x` but not `/data-secret`.
    """
    try:
        return os.path.commonpath([root, target]) == root
    except ValueError:
        # Mixed drives on Windows
        return False


class PathSandbox:
    """Confines read/write/list operations to one root directory."""

    def __init__(self, root: Union[str, Path], max_read_chars: int = MAX_READ_CHARS) -> None:
        """
        Initialize the sandbox, creating the root if absent.

        Args:
            root: Sandbox root directory.
            max_read_chars: Read results are cut to this many characters.
        """
        self._root = os.path.normpath(os.path.abspath(os.path.expanduser(str(root))))
        self._max_read_chars = max_read_chars
        Path(self._root).mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return Path(self._root)

    def resolve(self, path: str) -> Path:
        """
        Resolve a caller path against the root.

        Raises:
            OutOfBoundsPathError: If the normalized path leaves the root.
        """
        target = os.path.normpath(os.path.join(self._root, path))
        if not is_within_root(self._root, target):
            logger.warning(f"Rejected path outside sandbox root: {path!r}")
            raise OutOfBoundsPathError(f"Path outside workdir: {path}")
        return Path(target)

    def read(self, path: str) -> str:
        """
        Read a text file, truncated to the read cap.

        Raises:
            OutOfBoundsPathError: Path leaves the root.
            PathNotFoundError: File does not exist.
            SandboxIOError: Any other filesystem failure.
        """
        target = self.resolve(path)
        try:
            with target.open("r", encoding="utf-8", errors="replace") as f:
                # One extra char is enough to know whether we cut anything
                content = f.read(self._max_read_chars + 1)
        except FileNotFoundError as e:
            raise PathNotFoundError(f"File not found: {path}") from e
        except OSError as e:
            raise SandboxIOError(f"Cannot read {path}: {e.strerror or e}") from e

        if len(content) > self._max_read_chars:
            logger.debug(f"Read of {path} truncated to {self._max_read_chars} chars")
            content = content[: self._max_read_chars]
        return content

    def write(self, path: str, content: str) -> Path:
        """
        Write a text file in full, creating parent directories.

        Raises:
            OutOfBoundsPathError: Path leaves the root.
            SandboxIOError: Any filesystem failure.
        """
        target = self.resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise SandboxIOError(f"Cannot write {path}: {e.strerror or e}") from e

        logger.info(f"Wrote {len(content)} chars to {target}")
        return target

    def list(self, path: str = ".") -> list[DirEntry]:
        """
        List a directory in platform scan order.

        Raises:
            OutOfBoundsPathError: Path leaves the root.
            PathNotFoundError: Directory does not exist.
            SandboxIOError: Not a directory, or any other filesystem failure.
        """
        target = self.resolve(path or ".")
        try:
            with os.scandir(target) as it:
                return [DirEntry(name=entry.name, is_dir=entry.is_dir()) for entry in it]
        except FileNotFoundError as e:
            raise PathNotFoundError(f"Directory not found: {path}") from e
        except OSError as e:
            raise SandboxIOError(f"Cannot list {path}: {e.strerror or e}") from e
