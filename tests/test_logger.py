import json
import logging

import pytest

from sealbox_core.logger import ROOT_LOGGER, configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    configure_logging(level="INFO", stream="stdout")


def test_records_are_one_json_object_per_line(capsys):
    configure_logging(level="INFO", stream="stdout")
    get_logger("Sealbox.Test").info('quoted "value" and\nnewline')
    line = capsys.readouterr().out.strip()
    assert "\n" not in line
    doc = json.loads(line)
    assert doc["level"] == "INFO"
    assert doc["name"] == "Sealbox.Test"
    assert doc["msg"] == 'quoted "value" and\nnewline'
    assert doc["ts"].endswith("Z")


def test_stream_and_level_from_env(monkeypatch, capsys):
    monkeypatch.setenv("SEALBOX_LOG_STREAM", "stderr")
    monkeypatch.setenv("SEALBOX_LOG_LEVEL", "warning")
    configure_logging()
    log = get_logger("Sealbox.Test")
    log.info("hidden")
    log.warning("shown")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert [json.loads(l)["msg"] for l in captured.err.splitlines()] == ["shown"]


def test_log_file_receives_records(monkeypatch, tmp_path, capsys):
    path = tmp_path / "logs" / "sealbox.log"
    monkeypatch.setenv("SEALBOX_LOG_FILE", str(path))
    configure_logging(level="DEBUG")
    get_logger("Sealbox.Test").debug("to file")
    logging.getLogger(ROOT_LOGGER).handlers[-1].flush()
    assert json.loads(path.read_text().strip())["msg"] == "to file"


def test_reconfigure_replaces_handlers():
    configure_logging()
    configure_logging()
    assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1


def test_unknown_stream_is_rejected():
    with pytest.raises(ValueError):
        configure_logging(stream="syslog")
