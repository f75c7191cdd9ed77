"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import Callable, List

import pytest
from PIL import Image

from dunning_letters.assembler import DocumentAssembler, GenerationContext
from dunning_letters.assets import AssetCache
from dunning_letters.levels import DunningLevel
from dunning_letters.models import FinancialRecord, Tenant, UserProfile
from dunning_letters.stores import InMemoryLedgerStore, InMemoryLevelStore

ISSUED_ON = date(2026, 10, 19)

NO_LOGOS = {
    "main": {"url": "", "max_px": (300, 200), "quality": 30, "max_mm": (60.0, 20.0), "top": 10.0},
    "left": {"url": "", "max_px": (250, 150), "quality": 80, "max_mm": (30.0, 10.0), "side_margin": 15.0, "offset": -3.0},
    "right": {"url": "", "max_px": (250, 150), "quality": 80, "max_mm": (35.0, 35.0), "side_margin": 0.0, "offset": -6.0},
}


def make_records(count: int, debit: str = "100,00", credit: str = "0", cost_type: str = "Miete") -> List[FinancialRecord]:
    return [
        FinancialRecord(period=f"{2020 + i // 12}{i % 12 + 1:02d}", cost_type=cost_type, debit=debit, credit=credit)
        for i in range(count)
    ]


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    """Render an in-memory PNG of the given size"""

    def _png(width: int = 600, height: int = 400, mode: str = "RGBA") -> bytes:
        color = (30, 60, 90, 128) if mode == "RGBA" else (30, 60, 90)
        out = BytesIO()
        Image.new(mode, (width, height), color).save(out, format="PNG")
        return out.getvalue()

    return _png


@pytest.fixture
def sample_tenant() -> Tenant:
    """Tenant owing 800 EUR over two periods"""
    return Tenant(
        id="1001",
        name="Max Muster",
        name1="Max Muster",
        street="Hauptstraße 5",
        postal_code="90402",
        city="Nürnberg",
        iban="DE89370400440532013000",
        bic="COBADEFFXXX",
        account_holder="Hausverwaltung Treuhandkonto",
        bank_name="Commerzbank",
        records=[
            FinancialRecord(period="202602", cost_type="Nettomiete", debit="500,00", credit="200,00"),
            FinancialRecord(period="202601", cost_type="Nettomiete", debit="500,00", credit="0"),
        ],
    )


@pytest.fixture
def ledger_store(sample_tenant: Tenant) -> InMemoryLedgerStore:
    store = InMemoryLedgerStore()
    store.add_tenant(sample_tenant)
    return store


@pytest.fixture
def level_store() -> InMemoryLevelStore:
    return InMemoryLevelStore()


@pytest.fixture
def context(ledger_store: InMemoryLedgerStore, level_store: InMemoryLevelStore) -> GenerationContext:
    """Generation context without remote logos and a fixed issue date"""
    return GenerationContext(
        ledger_store=ledger_store,
        level_store=level_store,
        profile=UserProfile(name="Erika Beispiel", email="erika@example.org", phone="0911 123"),
        assets=AssetCache(specs=NO_LOGOS),
        issued_on=ISSUED_ON,
    )


@pytest.fixture
def assembler(context: GenerationContext) -> DocumentAssembler:
    return DocumentAssembler(context)


@pytest.fixture
def first_notice(level_store: InMemoryLevelStore, ledger_store: InMemoryLedgerStore) -> InMemoryLevelStore:
    """Sample tenant at the first notice with a 10 EUR fee from the import"""
    level_store.set_level("1001", DunningLevel.FIRST_NOTICE)
    ledger_store.csv_fees["1001"] = Decimal("10.00")
    return level_store
