from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

from click.testing import CliRunner

from momentum_exit.config import Settings
from momentum_exit.main import cli


def test_cli_status_smoke() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["status"])
    assert result.exit_code == 0
    assert "Required signals: 2/3" in result.output


def test_cli_detect_two_signals() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "detect",
            "--current-price",
            "103",
            "--profit-pct",
            "3",
            "--momentum-1h",
            "-0.6",
            "--volume-ratio",
            "0.5",
        ],
    )
    assert result.exit_code == 0
    assert '"should_exit": true' in result.output
    assert '"signal_count": 2' in result.output


def test_cli_evaluate_writes_journal(monkeypatch: object, tmp_path: Path) -> None:
    monkeypatch.setattr(
        "momentum_exit.main.get_settings",
        lambda: Settings(journal_dir=tmp_path / "journal"),
    )
    opened_at = (datetime.now(UTC) - timedelta(hours=2)).isoformat()
    payload = {
        "trades": [
            {
                "trade_id": "t1",
                "pair": "BTC/USD",
                "entry_price": 100.0,
                "quantity": 1.5,
                "entry_time": opened_at,
            }
        ],
        "prices": {"BTC/USD": 104.0},
        "indicators": {"BTC/USD": {"momentum1h": -0.7, "momentum4h": -0.8}},
    }
    input_file = tmp_path / "positions.json"
    input_file.write_text(json.dumps(payload), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["evaluate", str(input_file)])
    assert result.exit_code == 0
    assert "exits_triggered" in result.output
    assert "momentum_failure_late" in result.output
    assert list((tmp_path / "journal").glob("*.jsonl"))


def test_cli_evaluate_invalid_input(tmp_path: Path) -> None:
    input_file = tmp_path / "broken.json"
    input_file.write_text("{not json", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["evaluate", "--no-journal", str(input_file)])
    assert result.exit_code == 1


def test_cli_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "momentum-exit version" in result.output


def test_cli_evaluate_rejects_non_object_payload(tmp_path: Path) -> None:
    input_file = tmp_path / "rows.json"
    input_file.write_text(json.dumps({"trades": [], "prices": [103.0]}), encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["evaluate", "--no-journal", str(input_file)])
    assert result.exit_code == 1

    input_file.write_text(json.dumps([1, 2]), encoding="utf-8")
    result = runner.invoke(cli, ["evaluate", "--no-journal", str(input_file)])
    assert result.exit_code == 1
