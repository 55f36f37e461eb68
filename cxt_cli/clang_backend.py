"""libclang adapter: parser handle and read-only node view.

Uses the ``clang.cindex`` bindings. A :class:`ClangContext` is created once
per run and spawns one translation unit per source file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from clang import cindex

from .errors import ExternalToolUnavailable, ParseFailure
from .models import SourceLocation

logger = logging.getLogger(__name__)


class CursorNode:
    """:class:`~cxt_cli.models.AstNode` view over a libclang cursor.

    Keeps a reference to its translation unit so the cursor stays valid for
    as long as the node is reachable.
    """

    __slots__ = ("cursor", "_tu")

    def __init__(self, cursor: cindex.Cursor, tu: cindex.TranslationUnit) -> None:
        self.cursor = cursor
        self._tu = tu

    @property
    def kind(self) -> str:
        try:
            return self.cursor.kind.name
        except ValueError:
            # Cursor kinds newer than the bindings have no name.
            return "UNKNOWN"

    @property
    def name(self) -> Optional[str]:
        return self.cursor.spelling or None

    @property
    def location(self) -> Optional[SourceLocation]:
        loc = self.cursor.location
        if loc.file is None:
            return None
        return SourceLocation(file=Path(loc.file.name), line=loc.line, column=loc.column)

    def children(self) -> List["CursorNode"]:
        return [CursorNode(child, self._tu) for child in self.cursor.get_children()]

    def is_in_system_header(self) -> bool:
        return bool(self.cursor.location.is_in_system_header)

    def __repr__(self) -> str:
        return f"CursorNode({self.kind}, {self.name!r})"


class ClangContext:
    """Owns the libclang index used to parse every file of a run."""

    def __init__(self, index: cindex.Index) -> None:
        self.index = index

    @classmethod
    def initialize(cls, library_file: Optional[str] = None) -> "ClangContext":
        """Load libclang, optionally from an explicit shared library."""
        if library_file:
            if not cindex.Config.loaded:
                cindex.Config.set_library_file(library_file)
            else:
                logger.debug("libclang already loaded, ignoring %s", library_file)
        try:
            index = cindex.Index.create()
        except (cindex.LibclangError, OSError) as exc:
            raise ExternalToolUnavailable(f"failed to initialize libclang: {exc}") from exc
        logger.debug("libclang initialized")
        return cls(index)

    def parse(self, source: Path, arguments: Sequence[str]) -> CursorNode:
        """Parse *source* and return the translation unit's root node."""
        if not source.exists():
            raise ParseFailure(source, "file not found")
        if not source.is_file():
            raise ParseFailure(source, "not a file")

        logger.debug("Parsing %s with %s", source, " ".join(arguments))
        try:
            tu = self.index.parse(str(source), args=list(arguments))
        except cindex.TranslationUnitLoadError as exc:
            raise ParseFailure(source, str(exc)) from exc

        for diag in tu.diagnostics:
            if diag.severity >= cindex.Diagnostic.Error:
                logger.warning("%s:%d:%d %s", source.name, diag.location.line, diag.location.column, diag.spelling)
        return CursorNode(tu.cursor, tu)
