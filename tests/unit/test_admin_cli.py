"""
Unit tests for the admin CLI commands that need no database.
"""

import json
import sys
from datetime import datetime, timedelta, timezone

import pytest

from src.cli import admin_cli


@pytest.fixture
def run_cli(tmp_path, monkeypatch):
    """Invoke admin_cli.main with an empty configuration file"""
    config = tmp_path / "pipeline.yaml"
    config.write_text("{}\n")

    def _run(*args: str) -> None:
        monkeypatch.setattr(sys, "argv", ["movement-admin", "--config", str(config), *args])
        admin_cli.main()

    return _run


def test_classify(run_cli, capsys):
    run_cli("classify", "2352", "960", "ABC")

    lines = capsys.readouterr().out.splitlines()
    assert any(line.split() == ["2352", "STORE"] for line in lines)
    assert any(line.split() == ["960", "DC"] for line in lines)
    assert any(line.split() == ["ABC", "UNKNOWN"] for line in lines)


def test_classify_rejects_bad_id(run_cli):
    with pytest.raises(SystemExit) as exc_info:
        run_cli("classify", "23;52")
    assert exc_info.value.code == 2


def test_process_file(run_cli, tmp_path, capsys):
    timestamp = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    movements = [
        {
            "destination": "960",
            "servicingNodes": ["960", "1001"],
            "sourceLocation": "2352",
            "destinationLocation": "960",
            "status": "PLANNED",
            "timestamp": timestamp,
        },
        {
            "destination": "2352",
            "servicingNodes": [],
            "sourceLocation": "960",
            "destinationLocation": "2352",
            "status": "PLANNED",
            "timestamp": timestamp,
        },
    ]
    path = tmp_path / "movements.json"
    path.write_text(json.dumps(movements))

    run_cli("process-file", "--file", str(path))

    out = capsys.readouterr().out
    assert "Total movements: 2" in out
    assert "Reverse:       1" in out
    assert "Invalid:       1" in out
    assert "Servicing nodes cannot be empty" in out


def test_process_file_requires_array(run_cli, tmp_path):
    path = tmp_path / "movements.json"
    path.write_text(json.dumps({"destination": "960"}))

    with pytest.raises(SystemExit) as exc_info:
        run_cli("process-file", "--file", str(path))
    assert exc_info.value.code == 2


def test_no_command_prints_help(run_cli):
    with pytest.raises(SystemExit) as exc_info:
        run_cli()
    assert exc_info.value.code == 1
