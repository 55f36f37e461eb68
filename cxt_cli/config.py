"""Configuration paths and defaults for cxt."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("CXT_HOME", str(Path.home() / ".cxt"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
COMPILE_COMMANDS_JSON = "compile_commands.json"

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "clang": {
        "library_file": "",
    },
    "process": {
        "exclude_tests": True,
        "ignore_kinds": [],
        "include_flags": [],
    },
}


def load_config(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Load ``config.toml`` merged over :data:`DEFAULT_CONFIG`.

    A missing or unreadable file yields the defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    path = path or CONFIG_FILE
    if not path.exists():
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.debug("Ignoring unreadable config %s: %s", path, exc)
        return config

    for section, values in loaded.items():
        if isinstance(values, dict) and section in config:
            config[section].update(values)
    return config


def libclang_library_file(config: Dict[str, Dict[str, Any]]) -> Optional[str]:
    """Explicit libclang shared library, if one is configured."""
    lib = os.environ.get("CLANG_LIBRARY_FILE") or config["clang"].get("library_file")
    return lib or None
