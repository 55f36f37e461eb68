"""Exception hierarchy for cxt.

Everything except :class:`ParseFailure` aborts a run; a parse failure only
skips the offending source file.
"""

from __future__ import annotations

from pathlib import Path


class CxtError(Exception):
    """Base class for all cxt errors."""


class PathNotFound(CxtError):
    def __init__(self, path: Path, what: str = "file") -> None:
        super().__init__(f"{what} not found: {path}")
        self.path = path


class NotAFile(CxtError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"not a file: {path}")
        self.path = path


class NotADirectory(CxtError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"not a directory: {path}")
        self.path = path


class MalformedDatabase(CxtError):
    """The compilation database is not a list of command records."""


class ExternalToolUnavailable(CxtError):
    """libclang could not be loaded, so no file can be parsed."""


class ParseFailure(CxtError):
    def __init__(self, source: Path, reason: str) -> None:
        super().__init__(f"failed to parse {source}: {reason}")
        self.source = source
        self.reason = reason
