"""TOML config loading for gucjava.toml."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from gucjava.parser import DEFAULT_MAX_NESTING_DEPTH

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "gucjava.toml"


@dataclass
class ParserConfig:
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH


@dataclass
class OutputConfig:
    color: bool = True


@dataclass
class FilesConfig:
    extensions: list[str] = field(default_factory=lambda: [".java", ".gj"])


@dataclass
class GucJavaConfig:
    parser: ParserConfig = field(default_factory=ParserConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    files: FilesConfig = field(default_factory=FilesConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find gucjava.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_FILENAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> GucJavaConfig:
    """Parse a gucjava.toml file into a GucJavaConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = GucJavaConfig()

    if "parser" in data:
        psr = data["parser"]
        config.parser = ParserConfig(
            max_nesting_depth=psr.get("max_nesting_depth", DEFAULT_MAX_NESTING_DEPTH),
        )

    if "output" in data:
        out = data["output"]
        config.output = OutputConfig(color=out.get("color", True))

    if "files" in data:
        fls = data["files"]
        config.files = FilesConfig(
            extensions=fls.get("extensions", [".java", ".gj"]),
        )

    return config


def resolve_config(start_path: Path | None = None) -> GucJavaConfig:
    """Load the nearest gucjava.toml, or the defaults when there is none."""
    try:
        path = find_config(start_path)
    except FileNotFoundError:
        logger.debug("no %s found, using defaults", CONFIG_FILENAME)
        return GucJavaConfig()
    logger.debug("loading config from %s", path)
    return load_config(path)
