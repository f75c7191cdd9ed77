import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from .exceptions import InvalidFeeError
from .fees import validate_fee
from .formatting import Number, parse_amount
from .levels import DunningLevel, LevelConfig, coerce_level, get_level_config
from .models import BankData, PostAddress, Tenant, UserProfile

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    def get_tenant(self, tenant_id: str) -> Optional[Tenant]: ...

    def calculate_tenant_total(self, tenant_id: str) -> Decimal: ...

    def get_csv_fee(self, tenant_id: str) -> Optional[Decimal]: ...

    def get_post_address(self, tenant_id: str) -> Optional[PostAddress]: ...


class LevelStore(Protocol):
    def get_level(self, tenant_id: str) -> DunningLevel: ...

    def get_level_config(self, level: DunningLevel) -> LevelConfig: ...

    def get_fee_override(self, tenant_id: str) -> Optional[Decimal]: ...


@dataclass
class InMemoryLedgerStore:
    tenants: Dict[str, Tenant] = field(default_factory=dict)
    csv_fees: Dict[str, Decimal] = field(default_factory=dict)
    post_addresses: Dict[str, PostAddress] = field(default_factory=dict)

    def add_tenant(self, tenant: Tenant) -> None:
        self.tenants[tenant.id] = tenant

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        return self.tenants.get(str(tenant_id))

    def calculate_tenant_total(self, tenant_id: str) -> Decimal:
        tenant = self.get_tenant(tenant_id)
        if tenant is None:
            return Decimal("0")
        return sum((r.difference for r in tenant.active_records()), Decimal("0"))

    def get_csv_fee(self, tenant_id: str) -> Optional[Decimal]:
        return self.csv_fees.get(str(tenant_id))

    def get_post_address(self, tenant_id: str) -> Optional[PostAddress]:
        return self.post_addresses.get(str(tenant_id))

    def selected_tenants(self) -> List[Tenant]:
        return [t for t in self.tenants.values() if t.selected]


@dataclass
class InMemoryLevelStore:
    levels: Dict[str, DunningLevel] = field(default_factory=dict)
    fee_overrides: Dict[str, Decimal] = field(default_factory=dict)

    def get_level(self, tenant_id: str) -> DunningLevel:
        return coerce_level(self.levels.get(str(tenant_id)))

    def set_level(self, tenant_id: str, level: Union[int, str, DunningLevel]) -> None:
        self.levels[str(tenant_id)] = coerce_level(level)

    def get_level_config(self, level: DunningLevel) -> LevelConfig:
        return get_level_config(level)

    def get_fee_override(self, tenant_id: str) -> Optional[Decimal]:
        return self.fee_overrides.get(str(tenant_id))

    def set_fee_override(self, tenant_id: str, fee: Number) -> Decimal:
        value = validate_fee(fee)
        self.fee_overrides[str(tenant_id)] = value
        return value

    def clear_fee_override(self, tenant_id: str) -> None:
        self.fee_overrides.pop(str(tenant_id), None)


@dataclass
class Snapshot:
    ledger: InMemoryLedgerStore
    levels: InMemoryLevelStore
    profile: UserProfile


def snapshot_from_dict(data: Dict[str, Any]) -> Snapshot:
    """
    Build in-memory stores from an exported snapshot:
    {"tenants": [...], "levels": {id: level}, "fee_overrides": {id: fee},
     "csv_fees": {id: fee}, "post_addresses": {id: {...}}, "profile": {...}}
    """
    ledger = InMemoryLedgerStore()
    for raw in data.get("tenants") or []:
        ledger.add_tenant(Tenant.from_dict(raw))
    for tenant_id, fee in (data.get("csv_fees") or {}).items():
        ledger.csv_fees[str(tenant_id)] = parse_amount(fee)
    for tenant_id, addr in (data.get("post_addresses") or {}).items():
        ledger.post_addresses[str(tenant_id)] = PostAddress(
            street=addr.get("street", ""),
            postal_code=str(addr.get("postal_code", "")),
            city=addr.get("city", ""),
        )

    levels = InMemoryLevelStore()
    for tenant_id, level in (data.get("levels") or {}).items():
        try:
            levels.set_level(tenant_id, level)
        except ValueError as exc:
            logger.warning("Ignoring dunning level for %s: %s", tenant_id, exc)
    for tenant_id, fee in (data.get("fee_overrides") or {}).items():
        try:
            levels.set_fee_override(tenant_id, fee)
        except InvalidFeeError as exc:
            logger.warning("Ignoring fee override for %s: %s", tenant_id, exc)

    raw_profile = data.get("profile") or {}
    raw_bank = raw_profile.get("bank")
    profile = UserProfile(
        name=raw_profile.get("name", ""),
        email=raw_profile.get("email", ""),
        phone=raw_profile.get("phone", ""),
        bank=BankData(**raw_bank) if raw_bank else None,
    )
    return Snapshot(ledger=ledger, levels=levels, profile=profile)


def load_snapshot(path: Path) -> Snapshot:
    return snapshot_from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
