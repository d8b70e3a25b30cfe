"""
Dockpush IO Module

- FileSystem: Abstract file system interface
- DiskFileSystem: Local disk file system (fsspec)
- MemoryFileSystem: In-memory file system (morefs) for dry runs and tests
- file_exists / list_files_recursive: Path utilities over a FileSystem
- IgnoreFilter: `.dockerignore` rules compiled into a path predicate

Usage:
    from dockpush.io import DiskFileSystem, list_files_recursive, IgnoreFilter

    fs = DiskFileSystem()
    keep = IgnoreFilter.load(fs, "/work/app")
    files = list_files_recursive(fs, "/work/app")
    keep.includes("src/main.py")
"""

from .fs import (
    FileSystem,
    GenericFileSystem,
    DiskFileSystem,
    MemoryFileSystem,
    file_exists,
    list_files_recursive,
)
from .ignore import IgnoreFilter

__all__ = [
    'FileSystem',
    'GenericFileSystem',
    'DiskFileSystem',
    'MemoryFileSystem',
    'file_exists',
    'list_files_recursive',
    'IgnoreFilter',
]
