import logging
import posixpath
from typing import Iterable, List, Optional

import pathspec

from .. import constants
from ..exceptions import IgnoreFileReadError
from .fs import FileSystem

logger = logging.getLogger(__name__)


class IgnoreFilter:
    """
    Predicate over context-relative paths compiled from a `.dockerignore` file.

    Rules use the gitignore grammar: glob patterns, `!` negation (last match
    wins) and trailing `/` for directory-only rules. A filter without rules
    accepts every path.
    """

    def __init__(self, spec: Optional[pathspec.PathSpec] = None, source: Optional[str] = None):
        self.spec = spec
        self.source = source

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: Optional[str] = None) -> "IgnoreFilter":
        return cls(pathspec.GitIgnoreSpec.from_lines(lines), source=source)

    @classmethod
    def load(cls, fs: FileSystem, context: str,
             filename: str = constants.DOCKERIGNORE_FILENAME) -> "IgnoreFilter":
        """Read `<context>/<filename>`; a missing file gives a permissive filter."""
        path = posixpath.join(context, filename)
        try:
            content = fs.read_text(path)
        except FileNotFoundError:
            logger.debug(f"No ignore file at '{path}', accepting every file.")
            return cls()
        except (OSError, UnicodeDecodeError) as e:
            raise IgnoreFileReadError(f"Failed to read ignore file '{path}': {e}", path=path) from e
        logger.debug(f"Loaded ignore rules from '{path}'.")
        return cls.from_lines(content.splitlines(), source=path)

    def includes(self, rel_path: str) -> bool:
        if self.spec is None:
            return True
        return not self.spec.match_file(rel_path)

    __call__ = includes

    def filter_paths(self, rel_paths: Iterable[str]) -> List[str]:
        return [p for p in rel_paths if self.includes(p)]
