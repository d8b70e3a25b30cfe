from abc import ABC, abstractmethod
from typing import Any, Dict, List
import logging
import posixpath

import fsspec
from morefs.memory import MemFS

logger = logging.getLogger(__name__)

# --------------------------------------------------------
#
# Abstract Base FileSystem Interface
#
# --------------------------------------------------------
"""
    Abstract Base FileSystem Interface,
    define the small set of operations dockpush needs: reading
    dockerfiles and ignore files, stat-like lookups and listing.
"""

class FileSystem(ABC):
    """Dockpush File System Abstract Base Class"""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Read bytes from a file"""
        pass

    @abstractmethod
    def write_bytes(self, path: str, content: bytes):
        """Write bytes to a file, creating parent directories"""
        pass

    @abstractmethod
    def info(self, path: str) -> Dict[str, Any]:
        """Describe a path; raises FileNotFoundError when it does not exist"""
        pass

    @abstractmethod
    def entries(self, path: str) -> List[Dict[str, Any]]:
        """Describe the direct children of a directory"""
        pass

    @abstractmethod
    def is_file(self, path: str) -> bool:
        """Check if a path is a regular file, following links"""
        pass

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def write_text(self, path: str, content: str, encoding: str = "utf-8"):
        self.write_bytes(path, content.encode(encoding))


class GenericFileSystem(FileSystem, ABC):
    """FileSystem over any fsspec-compatible instance (fsspec local, morefs memory)"""

    def __init__(self, fs_instance, name=None):
        self.fs = fs_instance
        self.name = name or type(fs_instance).__name__

    def read_bytes(self, path: str) -> bytes:
        logger.debug(f"[{self.name}] Reading bytes from: {path}")
        with self.fs.open(path, "rb") as f:
            return f.read()

    def write_bytes(self, path: str, content: bytes):
        logger.debug(f"[{self.name}] Writing bytes to: {path}")
        parent = posixpath.dirname(path)
        if parent and parent != "/":
            self.fs.mkdirs(parent, exist_ok=True)
        with self.fs.open(path, "wb") as f:
            f.write(content)

    def info(self, path: str) -> Dict[str, Any]:
        return self.fs.info(path)

    def entries(self, path: str) -> List[Dict[str, Any]]:
        return self.fs.ls(path, detail=True)

    def is_file(self, path: str) -> bool:
        return self.fs.isfile(path)


class DiskFileSystem(GenericFileSystem):
    """Local disk file system using fsspec"""

    def __init__(self):
        super().__init__(fsspec.filesystem("file"), name="fileFS")


class MemoryFileSystem(GenericFileSystem):
    """In-memory file system backed by morefs, used for dry runs and tests"""

    def __init__(self):
        super().__init__(MemFS(), name="MorefsMemFS")


# --------------------
#
# Path Utilities
#
# --------------------

def file_exists(fs: FileSystem, path: str) -> bool:
    """
    Return False only when the filesystem reports that `path` does not exist.
    Permission and other I/O errors propagate.
    """
    try:
        fs.info(path)
    except FileNotFoundError:
        return False
    return True


def _entry_name(entry: Dict[str, Any]) -> str:
    return posixpath.basename(str(entry["name"]).rstrip("/"))


def list_files_recursive(fs: FileSystem, directory: str) -> List[str]:
    """
    List every regular file below `directory`, depth first and sorted by entry name.

    Results are `directory` joined with the path relative to it, so passing a
    relative directory yields relative paths. Directories are never returned.
    A symbolic link to a file is listed like the file; links to directories
    (and dangling links) are not followed.
    """
    files: List[str] = []
    _walk(fs, directory, directory, files)
    return files


def _walk(fs: FileSystem, real_dir: str, shown_dir: str, files: List[str]):
    for entry in sorted(fs.entries(real_dir), key=_entry_name):
        name = _entry_name(entry)
        real_path = posixpath.join(real_dir, name)
        shown_path = posixpath.join(shown_dir, name)
        if entry.get("islink", False):
            if fs.is_file(real_path):
                files.append(shown_path)
            else:
                logger.debug(f"Not following symbolic link '{real_path}'")
        elif entry.get("type") == "directory":
            _walk(fs, real_path, shown_path, files)
        elif entry.get("type") == "file":
            files.append(shown_path)
