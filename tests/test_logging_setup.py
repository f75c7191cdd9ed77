"""Unit tests for JSON log output"""

import json
import logging
from io import StringIO

import pytest

from dunning_letters.logging_setup import log_letter_outcome, setup_logging


@pytest.fixture
def stream():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    out = StringIO()
    yield out
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _records(out: StringIO):
    return [json.loads(line) for line in out.getvalue().splitlines()]


def test_letter_outcome_as_json(stream):
    """Test letter figures arrive as top-level JSON keys"""
    setup_logging("info", json_output=True, stream=stream)
    log_letter_outcome("1001", "Brief.pdf", 2, 1, "810.00", section_errors=1)

    (record,) = _records(stream)
    assert record["message"] == "Letter written"
    assert record["level"] == "INFO"
    assert record["service"] == "dunning-letters"
    assert record["tenant_id"] == "1001"
    assert record["dunning_level"] == 2
    assert record["amount_due"] == "810.00"
    assert record["section_errors"] == 1
    assert "timestamp" in record


def test_error_pages_log_as_warning(stream):
    setup_logging("WARNING", json_output=True, stream=stream)
    log_letter_outcome("1001", "Brief.pdf", 1, 1, "0", error="Keine Records vorhanden")
    log_letter_outcome("1002", "Brief2.pdf", 1, 1, "50")

    records = _records(stream)
    assert [r["tenant_id"] for r in records] == ["1001"]
    assert records[0]["error"] == "Keine Records vorhanden"


def test_plain_text_output(stream):
    setup_logging("DEBUG", json_output=False, stream=stream)
    logging.getLogger("dunning_letters.test").info("hallo")
    assert "INFO dunning_letters.test: hallo" in stream.getvalue()
    assert logging.getLogger("fpdf").level == logging.WARNING
