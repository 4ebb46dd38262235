"""MCP server for Droll: exposes dice rolling and parsing as MCP tools.

The server uses FastMCP (optional dependency) for the transport layer.
Core tool functions are plain Python and can be tested without FastMCP installed.
"""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path

from droll.api import roll_detailed
from droll.ast import render
from droll.config import DrollConfig, default_config, find_project_root, load_config
from droll.diagnostics import error_payload
from droll.errors import DrollConfigError, DrollError
from droll.parser import DEFAULT_MAX_DEPTH, parse

logger = logging.getLogger("droll.mcp_server")

# Dice per roll when droll.toml sets no [roll] max_dice. Tool calls come from
# remote clients, so the server never rolls an unbounded count.
DEFAULT_MAX_DICE = 10_000

# ---------------------------------------------------------------------------
# Core tool functions (no FastMCP dependency)
# ---------------------------------------------------------------------------


def tool_roll(
    notation: str,
    *,
    seed: int | None = None,
    detailed: bool = False,
    max_dice: int | None = DEFAULT_MAX_DICE,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str:
    """Roll dice notation and return a JSON envelope.

    ``detailed`` adds the rendered parse tree and the individual draws.
    """
    rng = random.Random(seed) if seed is not None else None
    try:
        result = roll_detailed(notation, rng=rng, max_dice=max_dice, max_depth=max_depth)
    except DrollError as e:
        logger.debug("roll %r failed: %s", notation, e)
        return json.dumps({"command": "roll", "ok": False, "error": error_payload(e)})

    payload = {"command": "roll", "ok": True, "notation": notation, "total": result.total}
    if detailed:
        payload.update(result.to_dict())
    return json.dumps(payload)


def tool_parse(notation: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Parse dice notation and return its tree as a JSON envelope."""
    try:
        tree = parse(notation, max_depth=max_depth)
    except DrollError as e:
        return json.dumps({"command": "parse", "ok": False, "error": error_payload(e)})
    return json.dumps({"command": "parse", "ok": True, "notation": notation, "tree": render(tree)})


def _server_config() -> DrollConfig:
    try:
        root = find_project_root(Path.cwd())
    except DrollConfigError:
        # No droll.toml above the working directory: serve with defaults.
        return default_config()
    return load_config(root=root)


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def create_mcp_server(config: DrollConfig | None = None):
    """Create and return a FastMCP server with droll tools registered.

    Limits and the default seed come from *config* (defaults when omitted).
    Raises ImportError if fastmcp is not installed.
    """
    from fastmcp import FastMCP

    cfg = config if config is not None else default_config()
    max_dice = cfg.roll.max_dice if cfg.roll.max_dice is not None else DEFAULT_MAX_DICE
    max_depth = cfg.parser.max_depth

    mcp = FastMCP("droll", instructions="Roll and inspect dice notation such as 2d20+10")

    @mcp.tool()
    def droll_roll(notation: str, seed: int | None = None, detailed: bool = False) -> str:
        """Roll dice notation (e.g. "2d6+3", "d20", "3d6-1") and return the total.

        Set detailed=True to also get the parse tree and every die drawn.
        Pass seed for a reproducible result. Returns JSON.
        """
        return tool_roll(
            notation,
            seed=seed if seed is not None else cfg.roll.seed,
            detailed=detailed,
            max_dice=max_dice,
            max_depth=max_depth,
        )

    @mcp.tool()
    def droll_parse(notation: str) -> str:
        """Parse dice notation without rolling.

        Returns JSON with the prefix-form parse tree, e.g. "(+ (d 2 6) 3)".
        """
        return tool_parse(notation, max_depth=max_depth)

    return mcp


def run_server(*, root: str | None = None, config: DrollConfig | None = None) -> None:
    """Entry point: create and run the MCP server (stdio transport).

    If *root* is provided, changes the working directory to that path first.
    The config is loaded once here unless the caller already has one.
    """
    import os

    if root:
        os.chdir(Path(root).resolve())
    cfg = config if config is not None else _server_config()
    logger.debug("serving with max_dice=%s max_depth=%d", cfg.roll.max_dice, cfg.parser.max_depth)
    mcp = create_mcp_server(cfg)
    mcp.run()
