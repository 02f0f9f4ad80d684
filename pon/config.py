"""Pon Configuration — project-level .ponrc.yml support.

Loads configuration from .ponrc.yml (or .ponrc.yaml, .ponrc.json) found in
the current directory or one of its parents. Lets a project tune:
  - operator precedences (merged over the built-in table)
  - the LLVM module name and REPL prompt
  - whether each definition is run through the LLVM verifier
  - the default output format of ``pon compile``

Example .ponrc.yml:
    precedence:
      "<": 10
      "+": 20
      "-": 20
      "*": 40
    module_name: calc
    prompt: "calc> "
    verify: true
    emit: ll
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from pon.parser import DEFAULT_PRECEDENCE, validate_precedence

logger = logging.getLogger(__name__)

EMIT_FORMATS = ("ll", "asm", "obj")


@dataclass
class PonConfig:
    """Project-level Pon configuration."""
    precedence: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_PRECEDENCE))
    module_name: str = "pon"
    prompt: str = "pon> "
    # Run the LLVM verifier after every definition
    verify: bool = True
    # Print the whole module when a REPL session ends
    dump_module: bool = True
    # Output: "ll", "asm", "obj"
    emit: str = "ll"


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".ponrc.yml",
    ".ponrc.yaml",
    ".ponrc.json",
    "pon.config.yml",
    "pon.config.json",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> PonConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    Missing, unreadable or unparsable files give the defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return PonConfig()

    try:
        with open(path, "r") as f:
            content = f.read()
    except OSError as e:
        logger.warning("cannot read config %s: %s", path, e)
        return PonConfig()

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("ignoring malformed config %s: %s", path, e)
        return PonConfig()

    if not isinstance(data, dict):
        return PonConfig()

    logger.debug("loaded config from %s", path)
    return _dict_to_config(data)


def _require_bool(data: Dict[str, Any], key: str) -> bool:
    value = data[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


def _dict_to_config(data: Dict[str, Any]) -> PonConfig:
    """Convert a parsed dict to PonConfig."""
    config = PonConfig()

    if "precedence" in data and isinstance(data["precedence"], dict):
        merged = dict(DEFAULT_PRECEDENCE)
        merged.update(data["precedence"])
        config.precedence = validate_precedence(merged)
    if "module_name" in data:
        config.module_name = str(data["module_name"])
    if "prompt" in data:
        config.prompt = str(data["prompt"])
    if "verify" in data:
        config.verify = _require_bool(data, "verify")
    if "dump_module" in data:
        config.dump_module = _require_bool(data, "dump_module")
    if "emit" in data:
        emit = str(data["emit"])
        if emit not in EMIT_FORMATS:
            raise ValueError(f"emit must be one of {EMIT_FORMATS}, got {emit!r}")
        config.emit = emit

    return config
