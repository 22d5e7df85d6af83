import logging

from logging_setup import get_logger, setup_logging


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "dashboard.log"
    setup_logging("DEBUG", str(log_file))

    get_logger("tests").debug("hola")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "hola" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_info():
    setup_logging("verbose")
    assert logging.getLogger().level == logging.INFO
