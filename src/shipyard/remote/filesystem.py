# Local Filesystem
#
# Local-side file access used by connections (inspection of release
# folders, reading files before upload...) and by the default gateway to
# resolve the local end of SFTP transfers. All paths are resolved inside
# a root directory; anything that escapes it is refused.

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class FileMetadata:
    """Metadata for a single filesystem entry."""
    path: str
    type: str  # "file" or "dir"
    size: int = 0
    timestamp: float = 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": self.path,
            "type": self.type,
            "size": self.size,
            "timestamp": self.timestamp,
        }


class LocalFilesystem:
    """Filesystem rooted at a local directory.

    Paths are interpreted relative to ``root``; absolute paths are
    re-anchored under it (so with the default root ``/`` they behave
    as plain absolute paths).

    Args:
        root: Directory that bounds every operation (default ``/``).
    """

    def __init__(self, root: PathLike = "/"):
        self.root = Path(root).resolve()

    def resolve(self, path: PathLike) -> Path:
        """Map *path* to an absolute path inside the root."""
        relative = str(path).lstrip("/\\")
        candidate = (self.root / relative).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            raise ValueError(f"Path escapes filesystem root: {path}")
        return candidate

    def _relative(self, path: Path) -> str:
        rel = path.relative_to(self.root).as_posix()
        return "" if rel == "." else rel

    def exists(self, path: PathLike) -> bool:
        return self.resolve(path).exists()

    def read(self, path: PathLike) -> str:
        return self.resolve(path).read_text(encoding="utf-8")

    def write(self, path: PathLike, contents: str) -> bool:
        """Write *contents*, creating parent directories as needed."""
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(contents, encoding="utf-8")
        return True

    def delete(self, path: PathLike) -> bool:
        """Delete a file or a whole directory tree."""
        target = self.resolve(path)
        if target.is_dir():
            shutil.rmtree(target)
        elif target.exists():
            target.unlink()
        else:
            raise FileNotFoundError(str(path))
        return True

    def create_dir(self, path: PathLike) -> bool:
        self.resolve(path).mkdir(parents=True, exist_ok=True)
        return True

    def get_metadata(self, path: PathLike) -> FileMetadata:
        target = self.resolve(path)
        stat = target.stat()
        return FileMetadata(
            path=self._relative(target),
            type="dir" if target.is_dir() else "file",
            size=0 if target.is_dir() else stat.st_size,
            timestamp=stat.st_mtime,
        )

    def list_contents(self, path: PathLike = "", recursive: bool = False) -> List[FileMetadata]:
        """List entries under *path*, sorted by path.

        Returns an empty list when *path* does not exist.
        """
        base = self.resolve(path)
        if not base.is_dir():
            return []
        entries = base.rglob("*") if recursive else base.iterdir()
        return sorted(
            (self.get_metadata(entry) for entry in entries),
            key=lambda m: m.path,
        )

    def __repr__(self) -> str:
        return f"LocalFilesystem(root={str(self.root)!r})"
