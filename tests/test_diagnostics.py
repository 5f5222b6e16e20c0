# tests/test_diagnostics.py
import logging

from pingtrace.diagnostics import setup_logging


def test_quiet_by_default():
    logger = setup_logging()
    assert [type(h) for h in logger.handlers] == [logging.NullHandler]


def test_verbose_and_debug_pick_stderr_level():
    (handler,) = setup_logging(verbose=True).handlers
    assert handler.level == logging.INFO
    (handler,) = setup_logging(debug=True).handlers
    assert handler.level == logging.DEBUG


def test_log_file_gets_debug_records(tmp_path):
    path = tmp_path / "run.log"
    logger = setup_logging(log_file=str(path))
    logger.debug("hop 3: probe error")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    assert "hop 3: probe error" in path.read_text()
