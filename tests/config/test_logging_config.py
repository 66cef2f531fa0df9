import logging
from logging.handlers import RotatingFileHandler

from shipment_buckets.config.logging_config import (
    DEFAULT_LOGGER_NAME,
    get_logger,
)


def _reset(name):
    lg = logging.getLogger(name)
    for h in list(lg.handlers):
        lg.removeHandler(h)
        h.close()
    return lg


def test_default_name_is_package_logger():
    _reset(DEFAULT_LOGGER_NAME)
    lg = get_logger(console=False)
    assert lg.name == "shipment_buckets"
    assert lg.propagate is False


def test_get_logger_idempotent_no_duplicate_handlers(tmp_path):
    _reset("sb.test")
    log_path = tmp_path / "run.log"
    logger = get_logger("sb.test", level="DEBUG", log_file=log_path, console=False)
    logger2 = get_logger("sb.test", level="DEBUG", log_file=log_path, console=False)

    assert logger is logger2
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RotatingFileHandler)


def test_get_logger_adds_single_console_handler():
    _reset("sb.console")
    get_logger("sb.console", level="INFO", console=True)
    logger = get_logger("sb.console", level="INFO", console=True)
    shs = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
    assert len(shs) == 1


def test_get_logger_writes_to_file(tmp_path):
    _reset("sb.file")
    log_file = tmp_path / "logs" / "app.log"
    logger = get_logger("sb.file", level="INFO", log_file=log_file, console=False)
    logger.info("hello buckets")
    for h in logger.handlers:
        h.flush()

    assert log_file.exists()
    text = log_file.read_text(encoding="utf-8")
    assert "hello buckets" in text
    assert "| INFO | sb.file |" in text


def test_get_logger_respects_level_env(monkeypatch, tmp_path):
    _reset("sb.level.env")
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    log_file = tmp_path / "lvl.log"
    logger = get_logger("sb.level.env", log_file=log_file, console=False)

    logger.info("should NOT appear")
    logger.error("should appear")
    for h in logger.handlers:
        h.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "should appear" in text
    assert "should NOT appear" not in text


def test_unknown_level_falls_back_to_info(monkeypatch):
    _reset("sb.level.bad")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    logger = get_logger("sb.level.bad", level="chatty", console=False)
    assert logger.level == logging.INFO


def test_console_then_file_gives_two_handlers(tmp_path):
    name = "sb.multi"
    _reset(name)
    lg1 = get_logger(name, level="INFO", console=True, log_file=None)
    lg2 = get_logger(name, level="INFO", console=True, log_file=tmp_path / "x.log")

    assert lg1 is lg2
    assert len(lg2.handlers) == 2
