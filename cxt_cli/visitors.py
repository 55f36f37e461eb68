"""Visitors that render traversed nodes to a rich console."""

from __future__ import annotations

from typing import Dict, Optional

from rich.console import Console
from rich.markup import escape

from .models import AstNode

FUNCTION_KINDS: Dict[str, str] = {
    "FUNCTION_TEMPLATE": "[bright_magenta]template[/bright_magenta]",
    "FUNCTION_DECL": "[bright_blue]function[/bright_blue]",
    "CXX_METHOD": "[bright_cyan]method[/bright_cyan]",
}


def _describe_location(node: AstNode) -> str:
    loc = node.location
    if loc is None:
        return "[bold magenta]unknown[/bold magenta]"
    name = loc.file.name if loc.file is not None else "unknown"
    return f"[bold magenta]{escape(name)}[/bold magenta]:[italic]{loc.line}[/italic]:[italic]{loc.column}[/italic]"


class AstDumpVisitor:
    """Print every node. Never reports a match."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def __call__(self, node: AstNode) -> bool:
        self.console.print(
            f"  [[bold]{node.kind:^24}[/bold]] "
            f"[bold green]{escape(node.name or '<unknown>'):<50}[/bold green] "
            f"in file <{_describe_location(node)}>",
            highlight=False,
        )
        return False


class FunctionDumpVisitor:
    """Print free functions, function templates, and methods."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def __call__(self, node: AstNode) -> bool:
        label = FUNCTION_KINDS.get(node.kind)
        if label is None:
            return False
        self.console.print(
            f"  [bold]{label}[/bold] "
            f"[bold green]{escape(node.name or '<unknown>'):<30}[/bold green] "
            f"in file <{_describe_location(node)}>",
            highlight=False,
        )
        return True


VISITORS = {
    "ast": AstDumpVisitor,
    "functions": FunctionDumpVisitor,
}
