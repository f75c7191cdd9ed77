import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, Optional

from .config import DEFAULT_OUTPUT_DIR, ENV_OUTPUT_DIR, MAIL_HANDOFF_TTL
from .models import BankData

logger = logging.getLogger(__name__)

DocumentSink = Callable[[str, bytes, Dict], Optional[Path]]


def resolve_output_dir(output_dir: Optional[Path] = None) -> Path:
    if output_dir is not None:
        return Path(output_dir)
    env_dir = os.getenv(ENV_OUTPUT_DIR)
    return Path(env_dir) if env_dir else DEFAULT_OUTPUT_DIR


def save_document(
    file_name: str,
    pdf_bytes: bytes,
    metadata: Dict,
    output_dir: Optional[Path] = None,
) -> Path:
    """
    Write a generated letter and a small JSON metadata sidecar next to it.
    Returns the PDF path.
    """
    target_dir = resolve_output_dir(output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    pdf_path = target_dir / file_name
    meta_path = pdf_path.with_suffix(".json")

    pdf_path.write_bytes(pdf_bytes)

    sidecar = dict(metadata)
    sidecar.setdefault("generated_at", datetime.now().isoformat(timespec="seconds"))
    sidecar["path"] = str(pdf_path)
    try:
        meta_path.write_text(json.dumps(sidecar, indent=2, default=str, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        # Metadata failures should not block PDF saving.
        logger.warning("Could not write metadata for %s: %s", file_name, exc)
    return pdf_path


def directory_sink(output_dir: Optional[Path] = None) -> DocumentSink:
    def sink(file_name: str, pdf_bytes: bytes, metadata: Dict) -> Path:
        return save_document(file_name, pdf_bytes, metadata, output_dir=output_dir)

    return sink


@dataclass(frozen=True)
class MailHandoff:
    """Payment figures of the last letter, for composing the accompanying e-mail."""

    bank_data: BankData
    arrears: Decimal
    fee: Decimal
    amount_due: Decimal
    purpose_text: str
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict:
        data = asdict(self)
        for key in ("arrears", "fee", "amount_due"):
            data[key] = str(data[key])
        return data


class MailHandoffStore:
    """Per-tenant hand-off records that expire after a few minutes."""

    def __init__(self, ttl: float = MAIL_HANDOFF_TTL, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._records: Dict[str, MailHandoff] = {}

    def save(
        self,
        tenant_id: str,
        bank_data: BankData,
        arrears: Decimal,
        fee: Decimal,
        amount_due: Decimal,
        purpose_text: str,
    ) -> MailHandoff:
        record = MailHandoff(
            bank_data=bank_data,
            arrears=arrears,
            fee=fee,
            amount_due=amount_due,
            purpose_text=purpose_text,
            created_at=self.clock(),
        )
        self._records[str(tenant_id)] = record
        return record

    def load(self, tenant_id: str) -> Optional[MailHandoff]:
        record = self._records.get(str(tenant_id))
        if record is None:
            return None
        if self.clock() - record.created_at > self.ttl:
            del self._records[str(tenant_id)]
            return None
        return record

    def clear(self) -> None:
        self._records.clear()
