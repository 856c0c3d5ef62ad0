import logging

import pytest

from casemap.utils.logging import LOG_LEVELS, logManager, log_function_call, log_performance, setup_logging


def test_setup_with_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "casemap.log"
    setup_logging(LOG_LEVELS["WARNING"], log_file=log_file, force=True)
    stats = logManager.get_stats()
    assert "RotatingFileHandler" in stats["handlers"]
    assert stats["console_level"] == "WARNING"
    assert stats["file_level"] == "DEBUG"

    logging.getLogger("casemap.test").info("to file only")
    for h in logging.getLogger().handlers:
        h.flush()
    assert "to file only" in log_file.read_text(encoding="utf-8")

    logManager.set_level(logging.ERROR, "file")
    assert logManager.get_stats()["file_level"] == "ERROR"
    setup_logging(force=True)


def test_bad_rotation(tmp_path):
    with pytest.raises(ValueError):
        logManager.setup_logging(log_file=tmp_path / "x.log", rotation="weekly", force=True)
    setup_logging(force=True)


def test_decorators_pass_through():
    @log_performance(threshold_ms=0.0)
    def slow(x):
        return x * 2

    @log_function_call()
    def boom():
        raise KeyError("k")

    assert slow(21) == 42
    with pytest.raises(KeyError):
        boom()


def test_env_level(monkeypatch):
    from casemap.utils.logging import env_level

    monkeypatch.setenv("CASEMAP_LOG_LEVEL", "debug")
    assert env_level() == logging.DEBUG
    monkeypatch.setenv("CASEMAP_LOG_LEVEL", "chatty")
    assert env_level(logging.ERROR) == logging.ERROR


def test_pillow_logger_is_quiet():
    setup_logging(logging.DEBUG, force=True)
    assert logging.getLogger("PIL").level == logging.WARNING
    setup_logging(force=True)
