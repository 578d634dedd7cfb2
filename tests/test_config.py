"""
tests/test_config.py — YAML Configuration Loader Tests
=======================================================
"""

from __future__ import annotations

import pytest

from gigquest.config import GigQuestConfig, load_config


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GIGQUEST_CONFIG", raising=False)
    assert load_config() == GigQuestConfig()


def test_reads_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("access_token_minutes: 15\npage_size_max: 25\n", encoding="utf-8")

    cfg = load_config(path)
    assert cfg.access_token_minutes == 15
    assert cfg.page_size_max == 25
    assert cfg.refresh_token_days == 7


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == GigQuestConfig()


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_env_override(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("leaderboard_default_limit: 3\n", encoding="utf-8")
    monkeypatch.setenv("GIGQUEST_CONFIG", str(path))
    assert load_config().leaderboard_default_limit == 3


def test_missing_env_file(tmp_path, monkeypatch):
    monkeypatch.setenv("GIGQUEST_CONFIG", str(tmp_path / "gone.yaml"))
    with pytest.raises(FileNotFoundError):
        load_config()


def test_bad_value(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("page_size_max: lots\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
