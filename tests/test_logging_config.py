"""Tests for claude_context.logging_config module."""

import logging

import pytest

from claude_context.logging_config import (
    log_compact,
    log_delete,
    log_edit_event,
    log_repair,
    log_replace,
    log_restore,
    setup_logging,
)


@pytest.fixture
def log_dir(isolated_dirs):
    """Logs go under the isolated CLAUDE_CONTEXT_DATA_DIR."""
    return isolated_dirs["data_dir"] / "logs"


def _events(log_dir):
    event_files = list(log_dir.glob("edit-events-*.log"))
    assert len(event_files) == 1
    return event_files[0].read_text()


def _console_handlers(logger):
    return [
        h
        for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_returns_logger(self, log_dir):
        logger = setup_logging()
        assert isinstance(logger, logging.Logger)
        assert logger.name == "claude_context"

    def test_creates_log_directory(self, log_dir):
        assert not log_dir.exists()
        setup_logging()
        assert log_dir.exists()

    def test_log_file_named_with_date(self, log_dir):
        setup_logging()
        log_files = list(log_dir.glob("local-*.log"))
        assert len(log_files) == 1

    def test_default_level_info(self, log_dir):
        assert setup_logging().level == logging.INFO

    def test_level_case_insensitive(self, log_dir):
        assert setup_logging("debug").level == logging.DEBUG

    def test_invalid_level_falls_back_to_info(self, log_dir):
        assert setup_logging("LOUD").level == logging.INFO

    def test_debug_adds_console_handler(self, log_dir):
        assert len(_console_handlers(setup_logging("DEBUG"))) == 1

    def test_warning_has_no_console_handler(self, log_dir):
        assert _console_handlers(setup_logging("WARNING")) == []

    def test_no_duplicate_handlers(self, log_dir):
        logger1 = setup_logging("DEBUG")
        logger2 = setup_logging("DEBUG")
        assert logger1 is logger2
        assert len(logger1.handlers) == 2

    def test_writes_formatted_messages(self, log_dir):
        logger = setup_logging("INFO")
        logging.getLogger("claude_context.service").info("format check")
        for h in logger.handlers:
            h.flush()
        content = list(log_dir.glob("local-*.log"))[0].read_text()
        assert " | INFO | claude_context.service | format check" in content


class TestLogEditEvent:
    """Tests for log_edit_event."""

    def test_event_format(self, log_dir):
        log_edit_event("delete", "requested=2, deleted=1", session_id="abc")
        assert "delete | session=abc | requested=2, deleted=1" in _events(log_dir)

    def test_default_session(self, log_dir):
        log_edit_event("repair", "details")
        assert "session=unknown" in _events(log_dir)

    def test_appends(self, log_dir):
        log_edit_event("delete", "first")
        log_edit_event("restore", "second")
        lines = _events(log_dir).strip().split("\n")
        assert len(lines) == 2
        assert "first" in lines[0]
        assert "second" in lines[1]


class TestConvenienceFunctions:
    """Tests for the per-operation event wrappers."""

    def test_log_delete(self, log_dir):
        log_delete("s1", requested=3, deleted=2)
        assert "delete | session=s1 | requested=3, deleted=2" in _events(log_dir)

    def test_log_restore(self, log_dir):
        log_restore("s1", requested=1, restored=1)
        assert "restore | session=s1 | requested=1, restored=1" in _events(log_dir)

    def test_log_replace(self, log_dir):
        log_replace("s1", index=4, new_chars=120)
        assert "replace | session=s1 | line=4, new_chars=120" in _events(log_dir)

    def test_log_compact_truncates_id(self, log_dir):
        log_compact("s1", "abcdef1234567890", position="before 3", chars=42)
        content = _events(log_dir)
        assert "id=abcdef12..." in content
        assert "position=before 3" in content
        assert "chars=42" in content

    def test_log_repair(self, log_dir):
        log_repair(None, timestamps=2, parents=1)
        assert "repair | session=unknown | timestamps=2, parents=1" in _events(log_dir)
