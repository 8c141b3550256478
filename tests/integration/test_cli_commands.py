"""
End-to-end tests of the command-line interface.
"""

import csv
import json

import pytest
from cashflowlab import __version__
from cashflowlab.cli import EXAMPLE_SNAPSHOT, main

RUN = ["--today", "2026-01-01", "--days", "30"]


def _invoke(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "group.json"
    path.write_text(json.dumps(EXAMPLE_SNAPSHOT), encoding="utf-8")
    return path


def test_version(capsys):
    assert _invoke(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_example_prints_loadable_snapshot(capsys):
    assert _invoke(["example"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [e["id"] for e in data["entities"]] == ["holding", "opco"]


class TestValidate:
    def test_clean_snapshot(self, snapshot_file, capsys):
        assert _invoke(["validate", "-i", str(snapshot_file)]) == 0
        assert "Validation passed" in capsys.readouterr().out

    def test_cycle_is_an_error(self, tmp_path, capsys):
        data = {
            "entities": [
                {"id": "a", "name": "A", "parentId": "b"},
                {"id": "b", "name": "B", "parentId": "a"},
            ]
        }
        path = tmp_path / "cycle.yaml"
        path.write_text(json.dumps(data), encoding="utf-8")

        assert _invoke(["validate", "-i", str(path), "--format", "json"]) == 1
        report = json.loads(capsys.readouterr().out)
        assert report["cycles"] == [["a", "b"]]
        assert report["exit_code"] == 1

    def test_missing_file(self, tmp_path, capsys):
        assert _invoke(["validate", "-i", str(tmp_path / "nope.json")]) == 1
        assert "Validation failed" in capsys.readouterr().out


class TestRun:
    def test_results_and_ledger(self, snapshot_file, tmp_path, capsys):
        out = tmp_path / "results.json"
        ledger = tmp_path / "ledger.csv"
        code = _invoke(
            ["run", "-i", str(snapshot_file), "-o", str(out), "--ledger", str(ledger)] + RUN
        )
        assert code == 0
        assert "Simulated 30 days" in capsys.readouterr().out

        days = json.loads(out.read_text(encoding="utf-8"))
        assert len(days) == 30
        assert days[0]["date"] == "2026-01-01"
        assert set(days[0]["entity_balances"]) == {"holding", "opco"}

        with ledger.open(encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert {r["description"] for r in rows} >= {"Capital injection", "Office rent"}
        assert rows[0]["date"] == "2026-01-01"

    def test_missing_input(self, tmp_path, capsys):
        code = _invoke(
            ["run", "-i", str(tmp_path / "nope.json"), "-o", str(tmp_path / "x.json")]
        )
        assert code == 1
        assert "Error running simulation" in capsys.readouterr().err

    def test_bad_config_section(self, snapshot_file, tmp_path, capsys):
        config = tmp_path / "config.yaml"
        config.write_text("config:\n  horizon_days: -5\n", encoding="utf-8")
        code = _invoke(
            [
                "run",
                "-i",
                str(snapshot_file),
                "-o",
                str(tmp_path / "x.json"),
                "--config",
                str(config),
            ]
        )
        assert code == 1
        assert "Error running simulation" in capsys.readouterr().err


class TestReports:
    def test_group_kpis(self, snapshot_file, capsys):
        assert _invoke(["kpi", "-i", str(snapshot_file), "--format", "json"] + RUN) == 0
        kpis = json.loads(capsys.readouterr().out)
        assert kpis["opening_balance"] == pytest.approx(97_000.0)
        assert kpis["first_deficit_date"] is None

    def test_single_entity_kpis(self, snapshot_file, capsys):
        argv = ["kpi", "-i", str(snapshot_file), "--select", "opco", "--format", "json"]
        assert _invoke(argv + RUN) == 0
        kpis = json.loads(capsys.readouterr().out)
        assert kpis["opening_balance"] == pytest.approx(-5000.0)

    def test_kpi_text(self, snapshot_file, capsys):
        assert _invoke(["kpi", "-i", str(snapshot_file)] + RUN) == 0
        out = capsys.readouterr().out
        assert "opening_balance: 97,000.00" in out
        assert "first_deficit_date: -" in out

    def test_alerts(self, snapshot_file, capsys):
        assert _invoke(["alerts", "-i", str(snapshot_file)] + RUN) == 0
        out = capsys.readouterr().out
        assert "Expected capital injection: OpCo (9,000)" in out
        assert out.startswith("2026-01-01")

    def test_alerts_json(self, snapshot_file, capsys):
        assert _invoke(["alerts", "-i", str(snapshot_file), "--format", "json"] + RUN) == 0
        alerts = json.loads(capsys.readouterr().out)
        assert {a["category"] for a in alerts} == {"flow"}
        assert all(set(a) == {"date", "message", "severity", "category"} for a in alerts)
