from __future__ import annotations

import datetime as dt
import json
import textwrap

import pytest

from barops.live import live_cli


def _write_config(tmp_path):
    path = tmp_path / "venue.yaml"
    path.write_text(
        textwrap.dedent(
            """
            storeName: Corner Bar
            timezone: UTC
            openingTime: '16:00'
            closingTime: '02:00'
            dailyOperatingHours: {}
            square:
              locationId: LOC-1
            """
        ).strip(),
        encoding="utf-8",
    )
    return path


def _write_capture(tmp_path):
    path = tmp_path / "capture.json"
    path.write_text(
        json.dumps(
            {
                "payments": [
                    {"createdAt": "2024-03-15T16:05:00Z", "amountCents": 1000},
                    {"createdAt": "not a time", "amountCents": 50},
                ],
                "openOrders": [{"label": "Table 4", "createdAt": "2024-03-15T16:30:00Z", "amountCents": 500}],
                "timesheets": [{"startAt": "2024-03-15T16:00:00Z", "employeeId": 7}],
                "employeeRates": {"7": 30},
                "unavailable": ["openOrders"],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_parse_reference():
    assert live_cli.parse_reference(None) is None
    assert live_cli.parse_reference("2024-03-15") == dt.datetime(2024, 3, 15, 12, 0, tzinfo=dt.timezone.utc)
    assert live_cli.parse_reference("2024-03-15T17:30:00Z") == dt.datetime(
        2024, 3, 15, 17, 30, tzinfo=dt.timezone.utc
    )
    assert live_cli.parse_reference("2024-02-30") is None
    assert live_cli.parse_reference("tomorrow") is None


def test_sample_snapshot_as_json(capsys):
    live_cli.main(["--date", "2024-03-15", "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert payload["source"] == "sample"
    assert payload["snapshot"]["dayKey"] == "friday"
    assert len(payload["snapshot"]["timeline"]["revenueBuckets"]) == 48


def test_realtime_tables_from_capture(tmp_path, capsys):
    config_path = _write_config(tmp_path)
    capture_path = _write_capture(tmp_path)
    live_cli.main(
        [
            "--config",
            str(config_path),
            "--source",
            "realtime",
            "--records",
            str(capture_path),
            "--date",
            "2024-03-15T17:00:00Z",
        ]
    )
    out = capsys.readouterr().out
    assert "Corner Bar" in out
    assert "Integrations" in out
    assert "rejected" in out
    assert "$10.00" in out


def test_realtime_without_capture_exits(tmp_path, capsys, monkeypatch):
    for name in ("SQUARE_ACCESS_TOKEN", "BAROPS_SQUARE_ACCESS_TOKEN", "DEPUTY_ACCESS_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(SystemExit) as excinfo:
        live_cli.main(["--config", str(_write_config(tmp_path)), "--source", "realtime", "--json"])
    assert excinfo.value.code == 2
    payload = json.loads(capsys.readouterr().out)
    assert payload["error"] == "realtime_config_missing"
    assert "square.accessToken" in payload["missing"]


def test_open_tables_are_rendered(tmp_path, capsys):
    capture_path = tmp_path / "open.json"
    capture_path.write_text(
        json.dumps({"openOrders": [{"label": "Table 4", "createdAt": "2024-03-15T16:30:00Z", "amountCents": 1250}]}),
        encoding="utf-8",
    )
    live_cli.main(
        [
            "--config",
            str(_write_config(tmp_path)),
            "--source",
            "realtime",
            "--records",
            str(capture_path),
            "--date",
            "2024-03-15T17:00:00Z",
        ]
    )
    out = capsys.readouterr().out
    assert "Open tables" in out
    assert "table 4" in out
    assert "$12.50" in out


def test_open_tables_omitted_when_unavailable(tmp_path, capsys):
    live_cli.main(
        [
            "--config",
            str(_write_config(tmp_path)),
            "--source",
            "realtime",
            "--records",
            str(_write_capture(tmp_path)),
            "--date",
            "2024-03-15T17:00:00Z",
        ]
    )
    assert "Open tables" not in capsys.readouterr().out
