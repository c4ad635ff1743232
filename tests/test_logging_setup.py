import io
import logging

import pytest

from finance_advisor import logging_setup


@pytest.fixture(autouse=True)
def _restore_package_logger():
    yield
    logging_setup.reset_logging()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (logging.DEBUG, logging.DEBUG),
        ("warning", logging.WARNING),
        (" Error ", logging.ERROR),
        ("15", 15),
        ("bogus", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_level(value: int | str | None, expected: int | None) -> None:
    assert logging_setup.parse_level(value) == expected


def test_level_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    assert logging_setup.resolve_level() == logging.WARNING
    monkeypatch.setenv("FINANCE_ADVISOR_LOG_LEVEL", "ERROR")
    assert logging_setup.resolve_level() == logging.ERROR
    assert logging_setup.resolve_level("debug") == logging.DEBUG


def test_bad_env_level_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FINANCE_ADVISOR_LOG_LEVEL", "chatty")
    assert logging_setup.resolve_level() == logging.WARNING


def test_bad_explicit_level_raises() -> None:
    with pytest.raises(ValueError, match="unknown log level"):
        logging_setup.resolve_level("chatty")


def test_reconfiguring_replaces_the_handler() -> None:
    first, second = io.StringIO(), io.StringIO()
    logger = logging_setup.get_logger("finance_advisor.ingest")

    logging_setup.configure_logging("INFO", stream=first)
    logging_setup.configure_logging("INFO", stream=second)
    logger.info("ingest:extracted rows=%d", 2)

    pkg = logging.getLogger("finance_advisor")
    assert len(pkg.handlers) == 1
    assert first.getvalue() == ""
    assert "finance_advisor.ingest INFO ingest:extracted rows=2" in second.getvalue()


def test_level_filters_records() -> None:
    out = io.StringIO()
    assert logging_setup.configure_logging(stream=out) == logging.WARNING
    logger = logging_setup.get_logger("finance_advisor.session")
    logger.info("session:upload_applied")
    logger.warning("session:upload_rejected")
    assert "upload_applied" not in out.getvalue()
    assert "upload_rejected" in out.getvalue()


def test_reset_returns_to_silent_library_mode() -> None:
    logging_setup.configure_logging("DEBUG", stream=io.StringIO())
    logging_setup.reset_logging()
    pkg = logging.getLogger("finance_advisor")
    assert pkg.propagate
    assert pkg.level == logging.NOTSET
    assert all(isinstance(h, logging.NullHandler) for h in pkg.handlers)
