"""Sequential driver: parse each compile option and traverse its AST."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import AbstractSet, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from .clang_backend import ClangContext
from .compile_options import CompileOptionFlags, CompileOptionSet, build_arguments
from .errors import ParseFailure
from .models import CompileOption
from .traversal import Visitor, traverse

logger = logging.getLogger(__name__)


@dataclass
class ProcessReport:
    processed: int = 0
    nodes: int = 0
    matched: int = 0
    failed: List[Path] = field(default_factory=list)


class SourceProcessor:
    """Runs the parse-and-traverse pipeline over a :class:`CompileOptionSet`.

    Files are handled one at a time. A parse failure is reported and the
    file is skipped; every other error propagates.
    """

    def __init__(
        self,
        context: ClangContext,
        include_flags: Sequence[str] = (),
        ignore_kinds: Optional[AbstractSet[str]] = None,
        console: Optional[Console] = None,
    ) -> None:
        self.context = context
        self.include_flags = list(include_flags)
        self.ignore_kinds = ignore_kinds
        self.console = console or Console()

    def arguments_for(self, option: CompileOption) -> List[str]:
        args = build_arguments(option, CompileOptionFlags.REQUIRED_FOR_INDEXING)
        for flag in self.include_flags:
            args.extend(("-isystem", flag))
        return args

    def process_option(self, option: CompileOption, visitor: Visitor) -> Tuple[int, int]:
        """Parse one source and visit its nodes; returns (visited, matched)."""
        root = self.context.parse(option.resolved_source, self.arguments_for(option))
        stats = traverse(root, visitor, self.ignore_kinds)
        return stats.visited, stats.matched

    def run(self, options: CompileOptionSet, visitor: Visitor) -> ProcessReport:
        report = ProcessReport()
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
        ) as progress:
            task = progress.add_task("⌛ processing", total=len(options))
            for option in options:
                progress.update(task, description=f"⌛ processing [bold magenta]{escape(option.source.name)}[/bold magenta]")
                try:
                    visited, matched = self.process_option(option, visitor)
                except ParseFailure as exc:
                    logger.warning("Skipping %s: %s", exc.source, exc.reason)
                    progress.console.print(f"[yellow]⚠️  {escape(str(exc))}[/yellow]")
                    report.failed.append(exc.source)
                else:
                    report.processed += 1
                    report.nodes += visited
                    report.matched += matched
                progress.advance(task)
            progress.update(task, description="☑️ processing completed!")
        return report
