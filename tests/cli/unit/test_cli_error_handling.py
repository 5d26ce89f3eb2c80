"""CLI error-handling tests."""

from __future__ import annotations

from pathlib import Path

from mail2workitem.cli import main


def test_missing_required_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["validate"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "Missing option" in captured.err
    assert "--config" in captured.err
    assert "Traceback" not in captured.err


def test_unknown_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["validate", "--bogus"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "No such option: --bogus" in captured.err
    assert "Traceback" not in captured.err


def test_configuration_error_is_reported_without_traceback(tmp_path: Path, capsys) -> None:
    config_path = tmp_path / "broken.xml"
    config_path.write_text("<Config><Instances>", encoding="utf-8")

    exit_code = main(["validate", "--config", str(config_path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Failed to parse configuration file" in captured.err
    assert "Traceback" not in captured.err


def test_unknown_instance_is_reported(tmp_path: Path, capsys) -> None:
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("Instances: []\n", encoding="utf-8")

    exit_code = main(
        ["resolve-field", "--config", str(config_path), "--instance", "Main", "--field", "F"]
    )
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Unknown instance: Main" in captured.err
