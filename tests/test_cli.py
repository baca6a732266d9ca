import json
import sys

import pytest

from vitalmon import cli
from vitalmon.core.enums import VitalKind


def test_load_config_defaults():
    config = cli.load_config()
    assert config.rng_seed is None
    assert config.canvas_width == 800
    assert config.alarm_priority == "critical"


def test_load_config_file(tmp_path):
    path = tmp_path / "monitor.json"
    path.write_text(json.dumps({
        "rng_seed": 11,
        "vitals": {"heartRate": 130},
        "alarm_limits": {"heartRate": {"low": 50, "high": 140}},
        "nibp_interval_min": 0,
        "audio_available": False,
        "ecg_lead": "V1",
        "big_numbers": True,
    }))
    config = cli.load_config(str(path), seed=5)
    assert config.rng_seed == 5, "CLI seed should override the file"
    assert config.initial_vitals == {"heartRate": 130}
    assert config.nibp_interval_min == 0
    assert not config.audio_available
    assert config.ecg_lead == "V1"
    assert config.big_numbers


def test_load_config_bad_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(SystemExit):
        cli.load_config(str(path))


def test_headless_run(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", [
        "vitalmon", "--mode", "headless", "--duration", "2", "--seed", "3",
        "--rhythm", "VT", "--hr", "150",
    ])
    cli.main()
    out = capsys.readouterr().out
    assert "Starting Headless Monitor" in out
    assert "Rhythm: VT" in out
    assert "HR: 150" in out
    assert "heartRate: 150 (Normal: 60-100)" in out
    assert "NIBP: Measuring..." in out
    assert "Completed:" in out


def test_config_limits_reach_engine(tmp_path):
    from vitalmon.core.engine import MonitorEngine

    path = tmp_path / "limits.json"
    path.write_text(json.dumps({"alarm_limits": {"spo2": [90, 100]}}))
    engine = MonitorEngine(cli.load_config(str(path)))
    assert engine.store.limits[VitalKind.SPO2].low == 90
    engine.set_vital("spo2", 92)
    assert not engine.alarms.active
