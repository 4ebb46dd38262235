"""Project configuration loading for Droll.

This module only reads `droll.toml` and performs light validation. A missing
file is not an error for the CLI: it falls back to `default_config()`.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from droll.errors import DrollConfigError
from droll.parser import DEFAULT_MAX_DEPTH, max_depth_limit

CONFIG_FILENAME = "droll.toml"

OUTPUT_FORMATS = ("text", "json")


@dataclass(frozen=True)
class RollConfig:
    seed: int | None
    max_dice: int | None


@dataclass(frozen=True)
class ParserConfig:
    max_depth: int


@dataclass(frozen=True)
class OutputConfig:
    format: str
    show_rolls: bool
    show_tree: bool


@dataclass(frozen=True)
class MCPConfig:
    enabled: bool


@dataclass(frozen=True)
class DrollConfig:
    version: int
    roll: RollConfig
    parser: ParserConfig
    output: OutputConfig
    mcp: MCPConfig


def default_config() -> DrollConfig:
    return DrollConfig(
        version=1,
        roll=RollConfig(seed=None, max_dice=None),
        parser=ParserConfig(max_depth=DEFAULT_MAX_DEPTH),
        output=OutputConfig(format="text", show_rolls=False, show_tree=False),
        mcp=MCPConfig(enabled=True),
    )


def find_project_root(start: Path) -> Path:
    """Walk upward from `start` (file or directory) looking for `droll.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent

    raise DrollConfigError("Could not find droll.toml by walking upward from start path.")


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DrollConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise DrollConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise DrollConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise DrollConfigError(f"Expected {name} to be a string.")
    return value


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> DrollConfig:
    """Load and validate `droll.toml`.

    If neither `root` nor `config_path` are provided, the project root is
    discovered by walking upward from the current working directory.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
        config_path = root / CONFIG_FILENAME

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise DrollConfigError(f"Missing droll.toml at: {config_path}") from e
    except OSError as e:
        raise DrollConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DrollConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise DrollConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise DrollConfigError("Missing required `version = 1` in droll.toml.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise DrollConfigError(f"Unsupported config version: {version_i} (expected 1).")

    defaults = default_config()
    roll_tbl = _as_table(data.get("roll"), name="roll")
    parser_tbl = _as_table(data.get("parser"), name="parser")
    output_tbl = _as_table(data.get("output"), name="output")
    mcp_tbl = _as_table(data.get("mcp"), name="mcp")

    seed = _as_int(roll_tbl["seed"], name="roll.seed") if "seed" in roll_tbl else None

    if "max_dice" in roll_tbl:
        max_dice: int | None = _as_int(roll_tbl["max_dice"], name="roll.max_dice")
    else:
        max_dice = defaults.roll.max_dice

    if "max_depth" in parser_tbl:
        max_depth = _as_int(parser_tbl["max_depth"], name="parser.max_depth")
    else:
        max_depth = defaults.parser.max_depth

    if "format" in output_tbl:
        fmt = _as_str(output_tbl["format"], name="output.format")
    else:
        fmt = defaults.output.format

    if "show_rolls" in output_tbl:
        show_rolls = _as_bool(output_tbl["show_rolls"], name="output.show_rolls")
    else:
        show_rolls = defaults.output.show_rolls

    if "show_tree" in output_tbl:
        show_tree = _as_bool(output_tbl["show_tree"], name="output.show_tree")
    else:
        show_tree = defaults.output.show_tree

    if "enabled" in mcp_tbl:
        mcp_enabled = _as_bool(mcp_tbl["enabled"], name="mcp.enabled")
    else:
        mcp_enabled = defaults.mcp.enabled

    # Validation
    if max_dice is not None and max_dice < 1:
        raise DrollConfigError("Invalid config: roll.max_dice must be >= 1.")

    if max_depth < 1:
        raise DrollConfigError("Invalid config: parser.max_depth must be >= 1.")
    if max_depth > max_depth_limit():
        raise DrollConfigError(
            f"Invalid config: parser.max_depth must be <= {max_depth_limit()} "
            "(bounded by the interpreter recursion limit)."
        )

    if fmt not in OUTPUT_FORMATS:
        raise DrollConfigError(
            f"Invalid config: output.format must be one of {', '.join(OUTPUT_FORMATS)}."
        )

    return DrollConfig(
        version=version_i,
        roll=RollConfig(seed=seed, max_dice=max_dice),
        parser=ParserConfig(max_depth=max_depth),
        output=OutputConfig(format=fmt, show_rolls=show_rolls, show_tree=show_tree),
        mcp=MCPConfig(enabled=mcp_enabled),
    )
