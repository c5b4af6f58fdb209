"""Tests for TOML config file loading."""

from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from dali.cli import build_parser, load_config, main, resolve_options
from dali.interpreter import DEFAULT_MAX_CALL_DEPTH


def _options(tmp_path: Path, config: str | None, *flags: str):
    if config is not None:
        (tmp_path / "dali.toml").write_text(config)
    script = tmp_path / "prog.dali"
    script.write_text("")
    ns = build_parser().parse_args([str(script), *flags])
    return resolve_options(ns)


class TestLoadConfig:
    def test_missing_config_returns_empty(self, tmp_path: Path) -> None:
        assert load_config(None, tmp_path) == {}

    def test_explicit_path(self, tmp_path: Path) -> None:
        cfg = tmp_path / "custom.toml"
        cfg.write_text("[interpreter]\nmax_call_depth = 8\n")
        result = load_config(cfg, tmp_path)
        assert result["interpreter"] == {"max_call_depth": 8}

    def test_auto_discover_dali_toml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "dali.toml"
        cfg.write_text('[repl]\nprompt = ">> "\n')
        result = load_config(None, tmp_path)
        assert result["repl"] == {"prompt": ">> "}


class TestConfigMerge:
    def test_defaults(self, tmp_path: Path) -> None:
        opts = _options(tmp_path, None)
        assert opts.max_call_depth == DEFAULT_MAX_CALL_DEPTH
        assert opts.resolve is True
        assert opts.prompt == "> "
        assert opts.continuation == ". "

    def test_config_call_depth(self, tmp_path: Path) -> None:
        opts = _options(tmp_path, "[interpreter]\nmax_call_depth = 10\n")
        assert opts.max_call_depth == 10

    def test_cli_overrides_config_call_depth(self, tmp_path: Path) -> None:
        opts = _options(tmp_path, "[interpreter]\nmax_call_depth = 10\n", "--max-call-depth", "3")
        assert opts.max_call_depth == 3

    def test_config_disables_resolver(self, tmp_path: Path) -> None:
        opts = _options(tmp_path, "[interpreter]\nresolve = false\n")
        assert opts.resolve is False

    def test_cli_disables_resolver(self, tmp_path: Path) -> None:
        opts = _options(tmp_path, "[interpreter]\nresolve = true\n", "--no-resolve")
        assert opts.resolve is False

    def test_repl_prompts(self, tmp_path: Path) -> None:
        opts = _options(tmp_path, '[repl]\nprompt = "dali> "\ncontinuation = "... "\n')
        assert opts.prompt == "dali> "
        assert opts.continuation == "... "

    def test_explicit_config_flag(self, tmp_path: Path) -> None:
        cfg = tmp_path / "alt.toml"
        cfg.write_text("[interpreter]\nmax_call_depth = 7\n")
        opts = _options(tmp_path, None, "--config", str(cfg))
        assert opts.max_call_depth == 7

    def test_config_found_next_to_script(self, tmp_path: Path, monkeypatch) -> None:
        project = tmp_path / "project"
        project.mkdir()
        (project / "dali.toml").write_text("[interpreter]\nmax_call_depth = 9\n")
        script = project / "prog.dali"
        script.write_text("")
        monkeypatch.chdir(tmp_path)
        opts = resolve_options(build_parser().parse_args([str(script)]))
        assert opts.max_call_depth == 9


class TestInvalidConfig:
    def test_non_integer_depth(self, tmp_path: Path) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="must be an integer"):
            _options(tmp_path, '[interpreter]\nmax_call_depth = "deep"\n')

    def test_depth_below_one(self, tmp_path: Path) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="at least 1"):
            _options(tmp_path, None, "--max-call-depth", "0")

    def test_main_reports_bad_config(self, tmp_path: Path, capsys) -> None:
        (tmp_path / "dali.toml").write_text("[interpreter]\nmax_call_depth = true\n")
        script = tmp_path / "prog.dali"
        script.write_text("")
        assert main([str(script)]) == 2
        assert "error:" in capsys.readouterr().err

    def test_main_reports_malformed_toml(self, tmp_path: Path, capsys) -> None:
        (tmp_path / "dali.toml").write_text("[interpreter\n")
        script = tmp_path / "prog.dali"
        script.write_text("")
        assert main([str(script)]) == 2
        assert "error:" in capsys.readouterr().err
