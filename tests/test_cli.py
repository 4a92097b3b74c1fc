from __future__ import annotations

from pathlib import Path

import pytest

from interCDB.cli import main, parse_args
from interCDB.Log import Log

FIXTURE = Path(__file__).parent / "cdb" / "two_blocks.cdb"


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    Log(level="INFO")


def test_parse_args_defaults() -> None:
    args = parse_args([str(FIXTURE)])
    assert args.path == FIXTURE
    assert args.log_file is None
    assert args.debug is False


def test_parse_args_requires_path() -> None:
    with pytest.raises(SystemExit):
        parse_args([])


def test_main_summarises_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    assert main([str(FIXTURE), "--log-file", str(log_file), "--debug"]) == 0

    text = log_file.read_text()
    assert "subdomain 1 'SOLIDS_HEX8': 2 elements" in text
    assert "subdomain 3 'TETS': 1 elements" in text
    assert "node set 2 'RIGHT': 4 nodes" in text
    assert "DEBUG" in text


def test_main_reports_failure(tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"
    assert main([str(tmp_path / "absent.cdb"), "--log-file", str(log_file)]) == 1
    assert "failed" in log_file.read_text()


def test_quiet_logs_to_file_only(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    log_file = tmp_path / "quiet.log"
    assert main([str(FIXTURE), "--log-file", str(log_file), "--quiet"]) == 0
    assert "node set 1 'BOTTOM': 5 nodes" in log_file.read_text()
    assert "BOTTOM" not in capsys.readouterr().err


def test_log_options_record_configuration(tmp_path: Path) -> None:
    from interCDB.CDB.options import LogOptions

    log = LogOptions(log_file=tmp_path / "a.log", debug_mode=True, console=False).apply()
    assert log is Log()
    assert log.level == "DEBUG"
    assert log.log_file == tmp_path / "a.log"
