# tests/test_logging_setup.py

from __future__ import annotations

import logging

from taskboard.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_quiets_timer_chatter_only() -> None:
    f = _ConsoleNoiseFilter()

    assert not f.filter(_record("taskboard.board.timer", logging.INFO))
    assert not f.filter(_record("taskboard.board.timer", logging.DEBUG))
    assert f.filter(_record("taskboard.board.timer", logging.WARNING))

    assert f.filter(_record("taskboard.board.controller", logging.INFO))
    assert f.filter(_record("taskboard.board.timers_extra", logging.DEBUG))


def test_console_filter_hides_third_party_below_error() -> None:
    f = _ConsoleNoiseFilter()

    assert not f.filter(_record("nio.client", logging.WARNING))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    assert not f.filter(_record("taskboardx", logging.INFO))
    assert f.filter(_record("aiohttp.client", logging.ERROR))


def test_file_log_keeps_everything(tmp_path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    for h in saved_handlers:
        root.removeHandler(h)
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs")
        logging.getLogger("taskboard.board.timer").debug("Timer started task_id=t1")
        for h in root.handlers:
            h.flush()

        assert log_file == tmp_path / "logs" / "taskboard.log"
        assert "Timer started task_id=t1" in log_file.read_text("utf-8")
    finally:
        for h in list(root.handlers):
            if h not in saved_handlers:
                root.removeHandler(h)
                h.close()
        for h in saved_handlers:
            if h not in root.handlers:
                root.addHandler(h)
        root.setLevel(saved_level)
        logging.captureWarnings(False)
