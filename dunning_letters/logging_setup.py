"""Logging for batch runs: JSON lines for machines, plain text for people"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "dunning-letters"
QUIET_LOGGERS = ("fpdf", "PIL")

letter_logger = logging.getLogger("dunning_letters.letters")


class LetterJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter; fields passed via ``extra`` become top-level keys."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO", json_output: bool = True, stream: Optional[TextIO] = None) -> None:
    """Replace the root handlers with a single stream handler."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    if json_output:
        handler.setFormatter(LetterJsonFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_letter_outcome(
    tenant_id: str,
    file_name: str,
    level: int,
    pages: int,
    amount_due: str,
    section_errors: int = 0,
    error: Optional[str] = None,
) -> None:
    """One record per generated letter, with the figures needed to audit a batch."""
    letter_logger.log(
        logging.WARNING if error else logging.INFO,
        "Letter written" if not error else "Error page written",
        extra={
            "tenant_id": tenant_id,
            "file_name": file_name,
            "dunning_level": level,
            "pages": pages,
            "amount_due": amount_due,
            "section_errors": section_errors,
            "error": error,
        },
    )
