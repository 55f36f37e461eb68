"""Core data models shared by the compile-option and traversal layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Tuple


@dataclass(frozen=True)
class CommandRecord:
    directory: Path
    command: str
    file: Path
    output: Path = field(default_factory=Path)


@dataclass
class CompileOption:
    pwd: Path = field(default_factory=Path)
    definitions: List[Tuple[str, str]] = field(default_factory=list)
    includes: List[Path] = field(default_factory=list)
    includes_system: List[Path] = field(default_factory=list)
    standard: str = "c++20"
    warnings: List[str] = field(default_factory=list)
    warnings_as_errors: bool = False
    source: Path = field(default_factory=Path)
    output: Path = field(default_factory=Path)

    @property
    def resolved_source(self) -> Path:
        """Source path, anchored at ``pwd`` when the database entry is relative."""
        if self.source.is_absolute():
            return self.source
        return self.pwd / self.source


@dataclass(frozen=True)
class SourceLocation:
    file: Optional[Path]
    line: int
    column: int

    def __str__(self) -> str:
        name = self.file.name if self.file is not None else "unknown"
        return f"{name}:{self.line}:{self.column}"


class AstNode(Protocol):
    """Read-only view of one node of an external parse.

    Nodes are borrowed from the parse session that produced them and must
    not outlive it.
    """

    @property
    def kind(self) -> str: ...

    @property
    def name(self) -> Optional[str]: ...

    @property
    def location(self) -> Optional[SourceLocation]: ...

    def children(self) -> List["AstNode"]: ...

    def is_in_system_header(self) -> bool: ...
