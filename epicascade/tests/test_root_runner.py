from __future__ import annotations

from pathlib import Path

from runner import _rewrite_config_path_arg


def test_rewrite_uses_existing_argument(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path("run.json").write_text("{}", encoding="utf-8")

    argv = ["runner.py", "--config", "run.json"]
    assert _rewrite_config_path_arg(argv) == argv


def test_rewrite_falls_back_to_configs_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    configs = Path("configs")
    configs.mkdir()
    (configs / "run.json").write_text("{}", encoding="utf-8")

    rewritten = _rewrite_config_path_arg(["runner.py", "--config", "run.json", "-n", "2"])
    assert rewritten == ["runner.py", "--config", str(Path("configs/run.json")), "-n", "2"]


def test_rewrite_keeps_unknown_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    argv = ["runner.py", "--config", "missing.json"]
    assert _rewrite_config_path_arg(argv) == argv


def test_rewrite_without_config_is_noop():
    argv = ["runner.py", "-p", "0.2", "-t", "3"]
    assert _rewrite_config_path_arg(argv) == argv
