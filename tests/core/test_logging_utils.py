import io
import json
import logging
import sys

from zonefence.core.logging_utils import (
    log_event,
    resolve_log_level,
    setup_cli_logging,
)


def test_log_event_emits_json_payload(caplog):
    logger = logging.getLogger("tests.zonefence.events")
    with caplog.at_level(logging.INFO, logger=logger.name):
        log_event(logger, logging.INFO, "rules.loaded", root="/p", dirs=("a", "b"))
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload == {"event": "rules.loaded", "root": "/p", "dirs": ["a", "b"]}


def test_log_event_skips_disabled_levels(caplog):
    logger = logging.getLogger("tests.zonefence.quiet")
    with caplog.at_level(logging.WARNING, logger=logger.name):
        log_event(logger, logging.DEBUG, "evaluate.violation")
    assert caplog.records == []


def test_resolve_log_level():
    assert resolve_log_level(True, {}) == logging.DEBUG
    assert resolve_log_level(False, {}) == logging.WARNING
    assert resolve_log_level(False, {"ZONEFENCE_LOG_LEVEL": "info"}) == logging.INFO
    assert resolve_log_level(False, {"ZONEFENCE_LOG_LEVEL": "bogus"}) == logging.WARNING


def test_setup_cli_logging_replaces_stale_handler(monkeypatch):
    closed = io.StringIO()
    monkeypatch.setattr(sys, "stderr", closed)
    setup_cli_logging(logging.WARNING)
    closed.close()

    fresh = io.StringIO()
    monkeypatch.setattr(sys, "stderr", fresh)
    logger = setup_cli_logging(logging.WARNING)
    try:
        named = [h for h in logger.handlers if h.get_name() == "zonefence-cli"]
        assert len(named) == 1
        logging.getLogger("zonefence.tests").warning("still writable")
        assert "still writable" in fresh.getvalue()
    finally:
        for handler in named:
            logger.removeHandler(handler)
