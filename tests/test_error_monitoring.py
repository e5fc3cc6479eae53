"""Tests for failure classification and history."""

from src.utils.error_monitoring import (
    CorruptStateError,
    ErrorHandler,
    ErrorSeverity,
    FeedParseError,
    FetchError,
    MalformedDateError,
    ParseError,
    StateIOError,
)


def test_taxonomy():
    assert issubclass(MalformedDateError, ParseError)
    assert issubclass(FeedParseError, ParseError)


def test_severity_classification():
    handler = ErrorHandler()
    assert handler.classify_severity(CorruptStateError("x")) is ErrorSeverity.HIGH
    assert handler.classify_severity(StateIOError("x")) is ErrorSeverity.HIGH
    assert handler.classify_severity(FetchError("x")) is ErrorSeverity.MEDIUM
    assert handler.classify_severity(MalformedDateError("x")) is ErrorSeverity.MEDIUM
    assert handler.classify_severity(KeyError("x")) is ErrorSeverity.CRITICAL


def test_handle_error_records_context():
    handler = ErrorHandler()
    ctx = handler.handle_error(CorruptStateError("bad json"), "load", {"path": "store.json"})

    assert ctx.stage == "load"
    assert ctx.error_type == "CorruptStateError"
    assert ctx.recovery_action
    assert ctx.metadata == {"path": "store.json"}
    assert handler.get_error_statistics()["error_types"] == {"CorruptStateError": 1}


def test_repeated_failures_detected():
    handler = ErrorHandler()
    for _ in range(3):
        handler.handle_error(FetchError("down"), "fetch")

    patterns = handler.detect_error_patterns()
    assert patterns == ["Repeated pattern: FetchError in fetch occurred 3 times recently"]


def test_history_is_bounded():
    handler = ErrorHandler()
    for _ in range(150):
        handler.handle_error(FetchError("down"), "fetch")
    assert len(handler.error_history) == 100
    assert handler.get_error_statistics()["total_errors"] == 150
