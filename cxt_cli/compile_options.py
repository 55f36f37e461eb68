"""Compile option reconstruction from a compilation database.

Three layers:

- :func:`reconstruct_option` turns one raw :class:`CommandRecord` into a
  structured :class:`CompileOption` using a table of token rules.
- :class:`CompileOptionFlags` selects which option categories
  :func:`build_arguments` serializes back into an argument vector.
- :class:`CompileOptionSet` loads ``compile_commands.json`` and owns the
  options for a whole project.
"""

from __future__ import annotations

import enum
import json
import logging
import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from .config import COMPILE_COMMANDS_JSON
from .errors import MalformedDatabase, NotADirectory, NotAFile, PathNotFound
from .models import CommandRecord, CompileOption

logger = logging.getLogger(__name__)

DEFAULT_STANDARD = "c++20"
WARNINGS_AS_ERRORS_TOKEN = "error"
TEST_MARKER = "test"
ARGUMENT_PREFIX = ("-x", "c++", "-g")


# ===================================================================
# Reconstruction
# ===================================================================

@dataclass(frozen=True)
class _TokenRule:
    """Maps a command-line token onto one :class:`CompileOption` field."""

    category: str
    pattern: "re.Pattern[str]"
    transform: Callable[["re.Match[str]"], Any]
    # Bare flag whose value is the following token (``-isystem /usr/include``).
    separate: Optional[str] = None


_TOKEN_RULES: Tuple[_TokenRule, ...] = (
    _TokenRule(
        "definitions",
        re.compile(r"-D([^=]+)=(.*)", re.DOTALL),
        lambda m: (m.group(1), m.group(2)),
    ),
    _TokenRule("includes", re.compile(r"-I(.+)", re.DOTALL), lambda m: Path(m.group(1))),
    _TokenRule(
        "includes_system",
        re.compile(r"-isystem(.+)", re.DOTALL),
        lambda m: Path(m.group(1)),
        separate="-isystem",
    ),
    # -Wl, -Wa and -Wp forward options to other tools and are not warnings.
    _TokenRule("warnings", re.compile(r"-W(?![lap],)(.+)", re.DOTALL), lambda m: m.group(1)),
    _TokenRule("standard", re.compile(r"-std=(.+)", re.DOTALL), lambda m: m.group(1)),
)


def split_command(command: str) -> List[str]:
    """Split a shell command line, tolerating unbalanced quotes.

    Quotes are honoured but backslashes are literal, so Windows paths such as
    ``-IC:\\dev\\include`` survive.
    """
    lex = shlex.shlex(command, posix=True)
    lex.whitespace_split = True
    lex.commenters = ""
    lex.escape = ""
    try:
        return list(lex)
    except ValueError as exc:
        logger.debug("Falling back to whitespace split for %r: %s", command, exc)
        return command.split()


def extract_tokens(command: str) -> Dict[str, List[Any]]:
    """Collect every rule match in *command*, grouped by category in order."""
    found: Dict[str, List[Any]] = {rule.category: [] for rule in _TOKEN_RULES}
    tokens = split_command(command)
    index = 0
    while index < len(tokens):
        token = tokens[index]
        for rule in _TOKEN_RULES:
            if rule.separate is not None and token == rule.separate:
                if index + 1 < len(tokens):
                    index += 1
                    match = rule.pattern.fullmatch(token + tokens[index])
                    if match:
                        found[rule.category].append(rule.transform(match))
                    else:
                        logger.debug("Dropping %s with an empty value", token)
                break
            match = rule.pattern.fullmatch(token)
            if match:
                found[rule.category].append(rule.transform(match))
                break
        else:
            if token.startswith("-D"):
                logger.debug("Dropping macro definition without a value: %s", token)
        index += 1
    return found


def reconstruct_option(record: CommandRecord) -> CompileOption:
    """Build the structured :class:`CompileOption` for one database entry."""
    found = extract_tokens(record.command)

    warnings: List[str] = []
    warnings_as_errors = False
    for name in found["warnings"]:
        if name == WARNINGS_AS_ERRORS_TOKEN:
            warnings_as_errors = True
        elif name not in warnings:
            warnings.append(name)

    standards = found["standard"]
    return CompileOption(
        pwd=record.directory,
        definitions=found["definitions"],
        includes=found["includes"],
        includes_system=found["includes_system"],
        standard=standards[0] if standards else DEFAULT_STANDARD,
        warnings=warnings,
        warnings_as_errors=warnings_as_errors,
        source=record.file,
        output=record.output,
    )


# ===================================================================
# Argument reconstruction
# ===================================================================

class CompileOptionFlags(enum.Flag):
    """Option categories that :func:`build_arguments` may emit.

    ``SOURCE`` and ``OUTPUT`` select the translation unit and artifact paths,
    which are handed to the parser separately, so they never contribute to
    the argument vector.
    """

    NONE = 0
    INCLUDES = 1
    INCLUDES_SYSTEM = 2
    DEFINITIONS = 4
    WARNINGS = 8
    WARNINGS_AS_ERRORS = 16
    STANDARD = 32
    SOURCE = 64
    OUTPUT = 128

    ALL = 255
    REQUIRED_FOR_INDEXING = INCLUDES | INCLUDES_SYSTEM | DEFINITIONS | STANDARD


def _pairs(flag: str, values: Sequence[Any]) -> List[str]:
    args: List[str] = []
    for value in values:
        args.extend((flag, str(value)))
    return args


# Emission order is fixed here, not by the selector.
_SERIALIZERS: Tuple[Tuple[CompileOptionFlags, Callable[[CompileOption], List[str]]], ...] = (
    (CompileOptionFlags.STANDARD, lambda o: [f"-std={o.standard}"] if o.standard else []),
    (CompileOptionFlags.WARNINGS, lambda o: _pairs("-W", o.warnings)),
    (
        CompileOptionFlags.WARNINGS_AS_ERRORS,
        lambda o: ["-W", WARNINGS_AS_ERRORS_TOKEN] if o.warnings_as_errors else [],
    ),
    (CompileOptionFlags.DEFINITIONS, lambda o: _pairs("-D", [f"{n}={v}" for n, v in o.definitions])),
    (CompileOptionFlags.INCLUDES, lambda o: _pairs("-I", o.includes)),
    (CompileOptionFlags.INCLUDES_SYSTEM, lambda o: _pairs("-isystem", o.includes_system)),
)


def build_arguments(option: CompileOption, flags: CompileOptionFlags) -> List[str]:
    """Serialize the categories of *option* selected by *flags*.

    Definitions and includes are emitted as separate flag/value pairs
    (``-D FOO=1``, ``-I bar``), which libclang accepts but
    :func:`reconstruct_option` does not read back: it only recognizes the
    attached forms found in compilation databases.
    """
    args = list(ARGUMENT_PREFIX)
    for flag, serialize in _SERIALIZERS:
        if flag in flags:
            args.extend(serialize(option))
    return args


# ===================================================================
# Compilation database
# ===================================================================

def parse_records(payload: Any) -> List[CommandRecord]:
    """Validate decoded ``compile_commands.json`` content.

    Entries may carry either a ``command`` string or an ``arguments`` list;
    ``output`` is optional. Any other shape rejects the whole database.
    """
    if not isinstance(payload, list):
        raise MalformedDatabase("compilation database must be a JSON array of entries")

    records: List[CommandRecord] = []
    for i, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise MalformedDatabase(f"entry {i} is not an object")
        directory = entry.get("directory")
        file = entry.get("file")
        if not isinstance(directory, str) or not isinstance(file, str):
            raise MalformedDatabase(f"entry {i} needs string 'directory' and 'file' fields")

        command = entry.get("command")
        if command is None and "arguments" in entry:
            arguments = entry["arguments"]
            if not isinstance(arguments, list) or not all(isinstance(a, str) for a in arguments):
                raise MalformedDatabase(f"entry {i} has a non-string 'arguments' list")
            command = shlex.join(arguments)
        if not isinstance(command, str):
            raise MalformedDatabase(f"entry {i} needs a 'command' string or an 'arguments' list")

        output = entry.get("output", "")
        if not isinstance(output, str):
            raise MalformedDatabase(f"entry {i} has a non-string 'output' field")

        records.append(
            CommandRecord(directory=Path(directory), command=command, file=Path(file), output=Path(output))
        )
    return records


class CompileOptionSet:
    """Ordered compile options for every translation unit of a project."""

    def __init__(self, options: Optional[List[CompileOption]] = None) -> None:
        self.options: List[CompileOption] = list(options or [])

    def __len__(self) -> int:
        return len(self.options)

    def __iter__(self) -> Iterator[CompileOption]:
        return iter(self.options)

    @classmethod
    def from_path(cls, path: Path) -> "CompileOptionSet":
        """Load from a build directory or directly from a database file."""
        if path.is_dir():
            return cls.from_dir(path)
        return cls.from_file(path)

    @classmethod
    def from_dir(cls, directory: Path) -> "CompileOptionSet":
        if not directory.exists():
            raise PathNotFound(directory, "directory")
        if not directory.is_dir():
            raise NotADirectory(directory)
        return cls.from_file(directory / COMPILE_COMMANDS_JSON)

    @classmethod
    def from_file(cls, path: Path) -> "CompileOptionSet":
        if not path.exists():
            raise PathNotFound(path)
        if not path.is_file():
            raise NotAFile(path)

        logger.info("Parsing build options: %s", path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedDatabase(f"{path}: {exc}") from exc

        options = [reconstruct_option(record) for record in parse_records(payload)]
        logger.debug("Loaded %d compile options from %s", len(options), path)
        return cls(options)

    def retain(self, predicate: Callable[[CompileOption], bool]) -> int:
        """Keep only options matching *predicate*; return how many were removed."""
        before = len(self.options)
        self.options = [opt for opt in self.options if predicate(opt)]
        return before - len(self.options)

    def exclude_tests(self, console: Optional[Console] = None) -> int:
        """Drop options whose source path mentions ``test``."""
        removed = self.retain(lambda opt: TEST_MARKER not in str(opt.source))
        logger.info("Discarded %d test sources, %d remaining", removed, len(self.options))
        if console is not None:
            console.print(f"🧹 discarded {removed} test file(s), {len(self.options)} remaining")
        return removed

    def render_table(self) -> Table:
        """Summarize every option as a rich table."""
        table = Table(title=f"Compile options ({len(self.options)})")
        table.add_column("Source", style="magenta")
        table.add_column("Std", style="cyan")
        table.add_column("Defs", justify="right")
        table.add_column("Includes", justify="right")
        table.add_column("System", justify="right")
        table.add_column("Warnings")
        for opt in self.options:
            warnings = ", ".join(opt.warnings)
            if opt.warnings_as_errors:
                warnings = f"{warnings} [red](as errors)[/red]" if warnings else "[red](as errors)[/red]"
            table.add_row(
                str(opt.source),
                opt.standard,
                str(len(opt.definitions)),
                str(len(opt.includes)),
                str(len(opt.includes_system)),
                warnings or "-",
            )
        return table
