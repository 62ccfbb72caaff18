from __future__ import annotations

import logging

import pytest

from aclctl.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent, mapLogLevel


@pytest.mark.parametrize(
    "name, level",
    [("ERROR", logging.ERROR), ("warn", logging.WARNING), ("INFO", logging.INFO), (" debug ", logging.DEBUG)],
)
def test_map_log_level(name, level):
    assert mapLogLevel(name) == level


def test_map_log_level_rejects_unknown():
    with pytest.raises(ValueError):
        mapLogLevel("TRACE")


def test_logger_without_dir_has_no_file():
    logger, path = createCommandLogger("cmd", None, "run-x", "INFO")

    assert path is None
    assert logger.propagate is False
    assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
    closeCommandLogger(logger)


def test_logger_with_dir_writes_component(tmp_path):
    logger, path = createCommandLogger("cmd", str(tmp_path), "run-y", "INFO")

    logEvent(logger, logging.INFO, "run-y", "resolve", "hello")
    logger.info("no extras")
    closeCommandLogger(logger)

    text = (tmp_path / "cmd_run-y.log").read_text(encoding="utf-8")
    assert path == str(tmp_path / "cmd_run-y.log")
    assert "comp=resolve msg=hello" in text
    assert "comp=core msg=no extras" in text
