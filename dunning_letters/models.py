from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .formatting import Number, parse_amount


@dataclass
class FinancialRecord:
    """One ledger line: what was owed (debit) against what was paid (credit)."""

    period: str
    cost_type: str = ""
    debit: Number = 0
    credit: Number = 0
    enabled: bool = True

    @property
    def debit_amount(self) -> Decimal:
        return parse_amount(self.debit)

    @property
    def credit_amount(self) -> Decimal:
        return parse_amount(self.credit)

    @property
    def difference(self) -> Decimal:
        return self.credit_amount - self.debit_amount

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinancialRecord":
        return cls(
            period=str(data.get("period", "")),
            cost_type=str(data.get("cost_type", "") or ""),
            debit=data.get("debit", 0),
            credit=data.get("credit", 0),
            enabled=bool(data.get("enabled", True)),
        )


@dataclass
class Tenant:
    id: str
    name: str = ""
    name1: str = ""
    name2: str = ""
    salutation1: str = ""
    salutation2: str = ""
    street: str = ""
    postal_code: str = ""
    city: str = ""
    email1: str = ""
    email2: str = ""
    iban: str = ""
    bic: str = ""
    account_holder: str = ""
    bank_name: str = ""
    portfolio: str = ""
    records: List[FinancialRecord] = field(default_factory=list)
    selected: bool = True

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        parts = [p for p in (self.name1, self.name2) if p]
        return ", ".join(parts)

    def active_records(self) -> List[FinancialRecord]:
        return [r for r in self.records if r.enabled]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tenant":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__ and k != "records"}
        known["id"] = str(data.get("id", "") or "")
        records = [FinancialRecord.from_dict(r) for r in data.get("records") or []]
        return cls(records=records, **known)


@dataclass(frozen=True)
class PostAddress:
    """Alternative postal address used instead of the tenant's own."""

    street: str = ""
    postal_code: str = ""
    city: str = ""


@dataclass(frozen=True)
class BankData:
    iban: str = ""
    bic: str = ""
    account_holder: str = ""
    bank_name: str = ""

    def is_valid(self) -> bool:
        return bool(self.iban or self.bic or self.bank_name)


@dataclass(frozen=True)
class UserProfile:
    """The person signing off the letter."""

    name: str = ""
    email: str = ""
    phone: str = ""
    bank: Optional[BankData] = None
