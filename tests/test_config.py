from __future__ import annotations

from pathlib import Path

import pytest

from droll.config import default_config, find_project_root, load_config
from droll.errors import DrollConfigError
from droll.parser import max_depth_limit


def _write(root: Path, text: str) -> None:
    (root / "droll.toml").write_text(text, encoding="utf-8")


def test_load_minimal_config_defaults_apply(tmp_path: Path) -> None:
    _write(tmp_path, "version = 1\n")
    cfg = load_config(root=tmp_path)

    assert cfg.version == 1
    assert cfg.roll.seed is None
    assert cfg.roll.max_dice is None
    assert cfg.parser.max_depth == 200
    assert cfg.output.format == "text"
    assert cfg.output.show_rolls is False
    assert cfg.output.show_tree is False
    assert cfg.mcp.enabled is True
    assert cfg == default_config()


def test_load_config_overrides_work(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "\n".join(
            [
                "version = 1",
                "",
                "[roll]",
                "seed = 42",
                "max_dice = 50",
                "",
                "[parser]",
                "max_depth = 32",
                "",
                "[output]",
                'format = "json"',
                "show_rolls = true",
                "show_tree = true",
                "",
                "[mcp]",
                "enabled = false",
                "",
            ]
        ),
    )
    cfg = load_config(root=tmp_path)

    assert cfg.roll.seed == 42
    assert cfg.roll.max_dice == 50
    assert cfg.parser.max_depth == 32
    assert cfg.output.format == "json"
    assert cfg.output.show_rolls is True
    assert cfg.output.show_tree is True
    assert cfg.mcp.enabled is False


def test_explicit_config_path(tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    path.write_text("version = 1\n[roll]\nseed = 3\n", encoding="utf-8")
    assert load_config(config_path=path).roll.seed == 3


def test_missing_version_is_rejected(tmp_path: Path) -> None:
    _write(tmp_path, "[roll]\nseed = 1\n")
    with pytest.raises(DrollConfigError, match="version"):
        load_config(root=tmp_path)


def test_unsupported_version_is_rejected(tmp_path: Path) -> None:
    _write(tmp_path, "version = 2\n")
    with pytest.raises(DrollConfigError, match="Unsupported config version"):
        load_config(root=tmp_path)


def test_invalid_toml_is_rejected(tmp_path: Path) -> None:
    _write(tmp_path, "version = \n")
    with pytest.raises(DrollConfigError, match="Invalid TOML"):
        load_config(root=tmp_path)


def test_missing_file_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(DrollConfigError, match="Missing droll.toml"):
        load_config(root=tmp_path)


@pytest.mark.parametrize(
    ("body", "match"),
    [
        ("[roll]\nseed = true\n", "roll.seed"),
        ('[roll]\nmax_dice = "ten"\n', "roll.max_dice"),
        ("[roll]\nmax_dice = 0\n", "max_dice must be >= 1"),
        ("[parser]\nmax_depth = 0\n", "max_depth must be >= 1"),
        ("[parser]\nmax_depth = 100000\n", "max_depth must be <="),
        ('[output]\nformat = "yaml"\n', "output.format"),
        ("[output]\nshow_rolls = 1\n", "output.show_rolls"),
        ("roll = 3\n", r"\[roll\] to be a table"),
    ],
)
def test_invalid_values_are_rejected(tmp_path: Path, body: str, match: str) -> None:
    _write(tmp_path, "version = 1\n" + body)
    with pytest.raises(DrollConfigError, match=match):
        load_config(root=tmp_path)


def test_find_project_root_walks_upward(tmp_path: Path) -> None:
    _write(tmp_path, "version = 1\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_project_root(nested) == tmp_path.resolve()


def test_find_project_root_fails_without_config(tmp_path: Path) -> None:
    with pytest.raises(DrollConfigError, match="Could not find droll.toml"):
        find_project_root(tmp_path)


def test_max_depth_ceiling_follows_recursion_limit(tmp_path: Path) -> None:
    _write(tmp_path, f"version = 1\n[parser]\nmax_depth = {max_depth_limit()}\n")
    assert load_config(root=tmp_path).parser.max_depth == max_depth_limit()

    _write(tmp_path, f"version = 1\n[parser]\nmax_depth = {max_depth_limit() + 1}\n")
    with pytest.raises(DrollConfigError, match="recursion limit"):
        load_config(root=tmp_path)
