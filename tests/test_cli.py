from __future__ import annotations

import json
from pathlib import Path

import pytest

import promptfoo_scaffold.cli as cli
from conftest import write_tree


def test_help_lists_subcommands(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--help"])
    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    for name in ("check", "render", "show", "refs"):
        assert name in out


def test_check_clean_scaffold_writes_report(scaffold: Path, tmp_path: Path, capsys):
    out_path = tmp_path / "reports" / "check.json"
    assert cli.main(["check", "-c", str(scaffold), "--out", str(out_path)]) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary["ok"] is True
    assert summary["test_cases"] == 3

    report = json.loads(out_path.read_text(encoding="utf-8"))
    assert report["config_path"] == str(scaffold)
    assert report["issues"] == []


def test_check_uses_config_from_env(scaffold: Path, monkeypatch, capsys):
    monkeypatch.setenv("PROMPTFOO_CONFIG", str(scaffold))
    assert cli.main(["check"]) == 0
    assert json.loads(capsys.readouterr().out)["use_cases"] == 2


def test_check_fails_on_errors_and_strict_warnings(tmp_path: Path, capsys):
    write_tree(tmp_path, {"promptfooconfig.yaml": "providers: [echo]\nprompts: ['{{a}}']\ntests: [{vars: {b: x}}]\n"})
    config = str(tmp_path / "promptfooconfig.yaml")
    assert cli.main(["check", "-c", config]) == 1
    out = capsys.readouterr().out
    assert "[check] ERROR missing-var" in out
    assert "[check] WARNING unused-var" in out

    write_tree(tmp_path, {"promptfooconfig.yaml": "providers: [echo]\nprompts: ['x']\n"})
    assert cli.main(["check", "-c", config]) == 0
    assert cli.main(["check", "-c", config, "--strict"]) == 1


def test_render_prints_filled_prompts(scaffold: Path, capsys):
    assert cli.main(["render", "-c", str(scaffold), "--use-case", "translation"]) == 0
    out = capsys.readouterr().out
    assert "Translate from English to Klingon:" in out
    assert "Translate from English to French:" in out
    assert "{{" not in out
    assert "Say hi" not in out


def test_render_reports_unresolved_placeholders(tmp_path: Path, capsys):
    write_tree(tmp_path, {"promptfooconfig.yaml": "prompts: ['{{a}} {{b}}']\ntests: [{description: t, vars: {a: x}}]\n"})
    assert cli.main(["render", "-c", str(tmp_path / "promptfooconfig.yaml")]) == 1
    captured = capsys.readouterr()
    assert "unresolved placeholders" in captured.err
    assert "b" in captured.err


def test_show_effective_assertions(scaffold: Path, capsys):
    assert cli.main(["show", "-c", str(scaffold), "--use-case", "0"]) == 0
    (uc,) = json.loads(capsys.readouterr().out)
    assert uc["use_case"] == "translation"
    assert uc["providers"] == ["echo"]
    klingon, french = uc["tests"]
    assert [a["type"] for a in klingon["assert"]] == ["not-contains", "cost"]
    assert [a["type"] for a in french["assert"]] == ["not-contains", "cost", "contains"]
    assert french["vars"]["outputLanguage"] == "French"


def test_unknown_use_case(scaffold: Path, capsys):
    assert cli.main(["show", "-c", str(scaffold), "--use-case", "poetry"]) == 2
    assert "no use case matches 'poetry'" in capsys.readouterr().err


def test_refs(tmp_path: Path, scaffold: Path, capsys):
    assert cli.main(["refs", "-c", str(scaffold)]) == 0
    out = capsys.readouterr().out
    assert "ok      file://prompts/translation.txt" in out
    assert "MISSING" not in out

    (tmp_path / "evals" / "common.yaml").unlink()
    assert cli.main(["refs", "-c", str(scaffold)]) == 1
    assert "MISSING file://evals/common.yaml" in capsys.readouterr().out


def test_load_error_exit_code(tmp_path: Path, capsys):
    write_tree(tmp_path, {"promptfooconfig.yaml": "prompts: ['file://missing.txt']\n"})
    assert cli.main(["render", "-c", str(tmp_path / "promptfooconfig.yaml")]) == 2
    assert "[render] error:" in capsys.readouterr().err
