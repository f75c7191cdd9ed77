"""Unit tests for document output and the mail hand-off store"""

import json
from decimal import Decimal

from dunning_letters.config import ENV_OUTPUT_DIR
from dunning_letters.document_store import MailHandoffStore, directory_sink, resolve_output_dir, save_document
from dunning_letters.models import BankData


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_save_writes_pdf_and_sidecar(tmp_path):
    path = save_document("Brief_1001.pdf", b"%PDF-1.3 test", {"tenant_id": "1001", "fee": Decimal("10")}, tmp_path)

    assert path == tmp_path / "Brief_1001.pdf"
    assert path.read_bytes() == b"%PDF-1.3 test"
    sidecar = json.loads((tmp_path / "Brief_1001.json").read_text(encoding="utf-8"))
    assert sidecar["tenant_id"] == "1001"
    assert sidecar["fee"] == "10"
    assert sidecar["path"] == str(path)
    assert "generated_at" in sidecar


def test_output_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_OUTPUT_DIR, str(tmp_path / "env"))
    assert resolve_output_dir() == tmp_path / "env"
    assert resolve_output_dir(tmp_path / "explicit") == tmp_path / "explicit"


def test_directory_sink_creates_folder(tmp_path):
    sink = directory_sink(tmp_path / "nested" / "letters")
    path = sink("a.pdf", b"%PDF", {})
    assert path.exists()


def test_handoff_expires_after_ttl():
    """Test hand-off records are dropped five minutes after saving"""
    clock = FakeClock()
    store = MailHandoffStore(ttl=300, clock=clock)
    store.save("1001", BankData(iban="DE89"), Decimal("800"), Decimal("10"), Decimal("810"), "Ausgleich, 1001")

    clock.now += 300
    assert store.load("1001").amount_due == Decimal("810")
    clock.now += 1
    assert store.load("1001") is None


def test_handoff_to_dict():
    store = MailHandoffStore(clock=FakeClock())
    record = store.save(1001, BankData(iban="DE89"), Decimal("800"), Decimal("0"), Decimal("800"), "Ausgleich, 1001")
    data = record.to_dict()
    assert data["amount_due"] == "800"
    assert data["bank_data"]["iban"] == "DE89"
    assert store.load("1001") is record


def test_handoff_clear():
    store = MailHandoffStore()
    store.save("1001", BankData(), Decimal("1"), Decimal("0"), Decimal("1"), "x")
    store.clear()
    assert store.load("1001") is None
