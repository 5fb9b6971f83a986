import logging

import pytest

import macd.main as cli
from macd.local import effective_settings
from macd.log.setup import MainFormatter


@pytest.fixture(autouse=True)
def _fast_ticks(monkeypatch):
    monkeypatch.setattr(effective_settings, "TICK_INTERVAL_SECONDS", 0.05)
    monkeypatch.setattr(cli.setproctitle, "setproctitle", lambda title: None)
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, MainFormatter):
            root.removeHandler(handler)
    root.setLevel(level)


def test_missing_option_is_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code != 0


def test_missing_config_file(tmp_path, capsys):
    missing = tmp_path / "nope.conf"

    assert cli.main(["-i", str(missing)]) == 1
    assert f"{missing} not found" in capsys.readouterr().err


def test_bad_timelimit_is_reported_before_launching(tmp_path, capsys):
    config = tmp_path / "bad.conf"
    config.write_text("timelimit soon\n/bin/sh\n")

    assert cli.main(["-i", str(config)]) == 1
    captured = capsys.readouterr()
    assert "Time limit 'soon' is not an integer" in captured.err
    assert captured.out == ""


def test_full_run(tmp_path, capsys, shell_script):
    script = shell_script("exit 0", name="quick.sh")
    config = tmp_path / "run.conf"
    config.write_text(f"timelimit 5\n{script} one two\n{tmp_path / 'ghost'}\n")

    assert cli.main(["-i", str(config)]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("Starting report, ")
    assert out[1].startswith(f"[0] {script} one two, started successfully (pid: ")
    assert out[2] == f"[1] {tmp_path / 'ghost'}, failed to start"
    assert out[-3:] == ["[0] Exited", "[1] Exited", out[-1]]
    assert out[-1].startswith("Exiting (total time: ")


@pytest.mark.parametrize("setting", ["REPORT_INTERVAL_TICKS", "TICK_INTERVAL_SECONDS"])
def test_invalid_cadence_is_reported_before_launching(tmp_path, capsys, monkeypatch, shell_script, setting):
    monkeypatch.setattr(effective_settings, setting, 0)
    script = shell_script("exit 0", name="quick.sh")
    config = tmp_path / "run.conf"
    config.write_text(f"timelimit 5\n{script}\n")

    assert cli.main(["-i", str(config)]) == 1
    captured = capsys.readouterr()
    assert "macd: Invalid supervision cadence" in captured.err
    assert captured.out == ""
