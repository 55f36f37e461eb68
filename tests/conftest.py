"""Pytest configuration and fixtures for cxt tests."""

import json
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Sequence

import pytest

from cxt_cli.errors import ParseFailure
from cxt_cli.models import SourceLocation


@dataclass
class FakeNode:
    """In-memory stand-in for a libclang cursor."""

    kind: str
    name: Optional[str] = None
    system: bool = False
    kids: List["FakeNode"] = field(default_factory=list)
    location: Optional[SourceLocation] = None

    def children(self) -> List["FakeNode"]:
        return list(self.kids)

    def is_in_system_header(self) -> bool:
        return self.system


class FakeClangContext:
    """Records parse calls and serves canned trees keyed by file name."""

    def __init__(self, trees: Dict[str, FakeNode], failing: Sequence[str] = ()) -> None:
        self.trees = trees
        self.failing = set(failing)
        self.calls: List[tuple] = []

    def parse(self, source: Path, arguments: Sequence[str]) -> FakeNode:
        self.calls.append((source, list(arguments)))
        if source.name in self.failing:
            raise ParseFailure(source, "unparsable")
        return self.trees.get(source.name, FakeNode("TRANSLATION_UNIT", source.name))


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Keep tests away from the user's ~/.cxt/config.toml."""
    monkeypatch.setattr("cxt_cli.config.CONFIG_FILE", tmp_path / "no-config.toml")
    monkeypatch.delenv("CLANG_LIBRARY_FILE", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def write_compile_db(temp_dir: Path) -> Callable[[List[dict]], Path]:
    """Write a compile_commands.json into *temp_dir* and return its path."""

    def _write(entries: List[dict]) -> Path:
        path = temp_dir / "compile_commands.json"
        path.write_text(json.dumps(entries), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_entries(temp_dir: Path) -> List[dict]:
    """Seven database entries, two of them test sources."""
    names = ["main.cc", "parser.cc", "tests/parser_test.cc", "lexer.cc", "util.cc", "unittest_main.cc", "io.cc"]
    return [
        {
            "directory": str(temp_dir),
            "command": f"/usr/bin/c++ -DVERSION={i} -I{temp_dir}/include -std=c++17 -Wall -o {name}.o -c {name}",
            "file": name,
            "output": f"{name}.o",
        }
        for i, name in enumerate(names)
    ]


@pytest.fixture
def sample_tree() -> FakeNode:
    """root -> [A (system), B (kind X)], A -> [A1], B -> [B1 (kind X)]."""
    return FakeNode(
        "TRANSLATION_UNIT",
        "root",
        kids=[
            FakeNode("NAMESPACE", "A", system=True, kids=[FakeNode("FUNCTION_DECL", "A1")]),
            FakeNode("X", "B", kids=[FakeNode("X", "B1")]),
        ],
    )
