"""
Tests for the command-line entry point.
"""

import logging
import os
from datetime import datetime

import pytest

from minicron import cli
from minicron.service import SchedulerService


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ('MINICRON_SCHEDULE_FILE', 'MINICRON_OUTPUT_LOG', 'MINICRON_LOG_FILE',
                 'MINICRON_LOG_LEVEL', 'MINICRON_COMMAND_TIMEOUT', 'MINICRON_TICK_SECONDS'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('MINICRON_DATA_DIR', str(tmp_path))
    monkeypatch.setattr(cli, 'setup_logging', lambda log_file=None, level="INFO": None)
    monkeypatch.setattr(SchedulerService, 'install_signal_handlers', lambda self: None)


def test_missing_schedule_file_exits_nonzero(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert cli.main([str(tmp_path / "missing.txt")]) == 1

    assert "Cannot read schedule file" in caplog.text


def test_parse_error_exits_before_ticking(tmp_path, monkeypatch, caplog):
    schedule = tmp_path / "commands.txt"
    schedule.write_text("*/5 echo ok\nabc def\n", encoding="utf-8")

    def fail_run_forever(self):
        raise AssertionError("loop must not start")

    monkeypatch.setattr(SchedulerService, 'run_forever', fail_run_forever)

    with caplog.at_level(logging.ERROR):
        assert cli.main([str(schedule)]) == 1

    assert "line 2" in caplog.text
    assert not (tmp_path / "output.log").exists()


def test_undecodable_schedule_file_exits_nonzero(tmp_path, caplog):
    schedule = tmp_path / "commands.txt"
    schedule.write_bytes(b"*/5 echo \xff\xfe\n")

    with caplog.at_level(logging.ERROR):
        assert cli.main([str(schedule)]) == 1

    assert "not valid UTF-8" in caplog.text
    assert not (tmp_path / "output.log").exists()


def test_invalid_configuration_exits_nonzero(tmp_path, monkeypatch):
    monkeypatch.setenv('MINICRON_TICK_SECONDS', '-1')
    schedule = tmp_path / "commands.txt"
    schedule.write_text("*/5 echo ok\n", encoding="utf-8")

    assert cli.main([str(schedule)]) == 1


def test_malformed_environment_exits_nonzero(monkeypatch, capsys):
    monkeypatch.setenv('MINICRON_COMMAND_TIMEOUT', 'forever')

    assert cli.main([]) == 1
    assert "MINICRON_COMMAND_TIMEOUT" in capsys.readouterr().err


def test_default_schedule_file_comes_from_data_dir(tmp_path, monkeypatch):
    (tmp_path / "commands.txt").write_text("# nothing yet\n", encoding="utf-8")
    seen = {}

    def run_forever(self):
        seen['entries'] = self.entries

    monkeypatch.setattr(SchedulerService, 'run_forever', run_forever)

    assert cli.main([]) == 0
    assert seen['entries'] == []


@pytest.mark.skipif(os.name == 'nt', reason="uses POSIX shell commands")
def test_runs_a_tick_and_writes_output(tmp_path, monkeypatch):
    schedule = tmp_path / "jobs.txt"
    schedule.write_text("# demo\n*/1 echo hi\n", encoding="utf-8")

    def run_forever(self):
        self.run_tick(datetime(2024, 1, 1, 0, 0))

    monkeypatch.setattr(SchedulerService, 'run_forever', run_forever)

    assert cli.main([str(schedule)]) == 0

    content = (tmp_path / "output.log").read_text(encoding="utf-8")
    assert content.startswith("[")
    assert "echo hi\nhi\n" in content


def test_parser_accepts_single_optional_argument():
    parser = cli.build_parser()

    assert parser.parse_args([]).schedule_file is None
    assert parser.parse_args(["jobs.txt"]).schedule_file == "jobs.txt"
    with pytest.raises(SystemExit):
        parser.parse_args(["a.txt", "b.txt"])
