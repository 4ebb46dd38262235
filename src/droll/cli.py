from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

from droll import __version__
from droll.api import roll_detailed
from droll.ast import render
from droll.config import DrollConfig, default_config, find_project_root, load_config
from droll.diagnostics import error_payload, format_error
from droll.errors import DrollConfigError, DrollError
from droll.parser import parse

EXIT_OK = 0
EXIT_NOTATION_ERROR = 1
EXIT_CONFIG_OR_USAGE = 2
EXIT_MISSING_DEPENDENCY = 3


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for droll.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to droll.toml (defaults to <root>/droll.toml).",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every die drawn to stderr.",
    )


def _add_notation(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "notation",
        nargs="+",
        help="Dice notation, e.g. 2d20+10. Put `--` before notation starting with `-`.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit a single JSON object on stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="droll", description="Roll dice notation.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    roll_p = subparsers.add_parser("roll", help="Evaluate dice notation and print the total.")
    _add_common_flags(roll_p)
    _add_notation(roll_p)
    roll_p.add_argument("--seed", type=int, default=None, help="Seed for reproducible rolls.")
    roll_p.add_argument(
        "--max-dice", type=int, default=None, help="Reject rolls of more dice than this."
    )
    roll_p.add_argument("--rolls", action="store_true", help="Also print every die drawn.")
    roll_p.add_argument("--tree", action="store_true", help="Also print the parse tree.")

    parse_p = subparsers.add_parser("parse", help="Print the parse tree without rolling.")
    _add_common_flags(parse_p)
    _add_notation(parse_p)

    mcp_p = subparsers.add_parser("mcp", help="MCP tool server.")
    mcp_sub = mcp_p.add_subparsers(dest="mcp_command", required=True)
    serve_p = mcp_sub.add_parser("serve", help="Serve droll tools over stdio.")
    _add_common_flags(serve_p)

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _resolve_root_and_config(args: argparse.Namespace) -> tuple[Path | None, Path | None]:
    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None
    return root, config_path


def _load_config(args: argparse.Namespace) -> DrollConfig:
    root, config_path = _resolve_root_and_config(args)
    if root is None and config_path is None:
        try:
            root = find_project_root(Path.cwd())
        except DrollConfigError:
            # No droll.toml anywhere above cwd: run with defaults.
            return default_config()
    return load_config(root=root, config_path=config_path)


def _is_json_mode(args: argparse.Namespace, cfg: DrollConfig | None = None) -> bool:
    if bool(getattr(args, "json_output", False)):
        return True
    return cfg is not None and cfg.output.format == "json"


def _notation(args: argparse.Namespace) -> str:
    return " ".join(args.notation)


def _configure_logging(args: argparse.Namespace) -> None:
    if bool(getattr(args, "verbose", False)):
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s", stream=sys.stderr)


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _emit_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


def _report_failure(
    command: str, exc: BaseException, *, notation: str | None, json_mode: bool
) -> None:
    if json_mode:
        _emit_json({"command": command, "ok": False, "error": error_payload(exc)})
    else:
        _eprint(format_error(exc, notation))


def cmd_roll(args: argparse.Namespace) -> int:
    notation = _notation(args)
    try:
        cfg = _load_config(args)
    except DrollConfigError as e:
        _report_failure("roll", e, notation=None, json_mode=_is_json_mode(args))
        return EXIT_CONFIG_OR_USAGE

    json_mode = _is_json_mode(args, cfg)
    seed = args.seed if args.seed is not None else cfg.roll.seed
    max_dice = args.max_dice if args.max_dice is not None else cfg.roll.max_dice
    rng = random.Random(seed) if seed is not None else None

    try:
        result = roll_detailed(
            notation, rng=rng, max_dice=max_dice, max_depth=cfg.parser.max_depth
        )
    except DrollError as e:
        _report_failure("roll", e, notation=notation, json_mode=json_mode)
        return EXIT_NOTATION_ERROR

    if json_mode:
        _emit_json({"command": "roll", "ok": True, **result.to_dict()})
        return EXIT_OK

    if args.tree or cfg.output.show_tree:
        print(f"tree: {render(result.tree)}")
    if args.rolls or cfg.output.show_rolls:
        for r in result.rolls:
            draws = ", ".join(str(d) for d in r.draws)
            print(f"{r.count}d{r.sides}: [{draws}] = {r.total}")
    print(result.total)
    return EXIT_OK


def cmd_parse(args: argparse.Namespace) -> int:
    notation = _notation(args)
    try:
        cfg = _load_config(args)
    except DrollConfigError as e:
        _report_failure("parse", e, notation=None, json_mode=_is_json_mode(args))
        return EXIT_CONFIG_OR_USAGE

    json_mode = _is_json_mode(args, cfg)
    try:
        tree = parse(notation, max_depth=cfg.parser.max_depth)
    except DrollError as e:
        _report_failure("parse", e, notation=notation, json_mode=json_mode)
        return EXIT_NOTATION_ERROR

    if json_mode:
        _emit_json({"command": "parse", "ok": True, "notation": notation, "tree": render(tree)})
    else:
        print(render(tree))
    return EXIT_OK


def cmd_mcp(args: argparse.Namespace) -> int:
    try:
        cfg = _load_config(args)
    except DrollConfigError as e:
        _eprint(format_error(e))
        return EXIT_CONFIG_OR_USAGE

    if not cfg.mcp.enabled:
        _eprint("error: MCP server is disabled ([mcp] enabled = false in droll.toml)")
        return EXIT_CONFIG_OR_USAGE

    try:
        from droll.mcp_server import run_server

        run_server(root=args.root, config=cfg)
    except ImportError:
        _eprint("error: fastmcp is not installed\nhint: pip install 'droll[mcp]'")
        return EXIT_MISSING_DEPENDENCY
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_USAGE

    _configure_logging(args)

    if args.command == "roll":
        return cmd_roll(args)
    if args.command == "parse":
        return cmd_parse(args)
    if args.command == "mcp":
        return cmd_mcp(args)

    return EXIT_CONFIG_OR_USAGE


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
