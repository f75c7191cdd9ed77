from decimal import Decimal
from typing import TYPE_CHECKING

from .config import MAX_FEE
from .exceptions import InvalidFeeError
from .formatting import Number, parse_amount
from .levels import DunningLevel, coerce_level

if TYPE_CHECKING:
    from .stores import LedgerStore, LevelStore


def validate_fee(value: Number) -> Decimal:
    """Fee overrides must lie within 0..999.99."""
    fee = parse_amount(value)
    if fee < 0 or fee > Decimal(MAX_FEE):
        raise InvalidFeeError(f"Fee {fee} outside 0..{MAX_FEE}")
    return fee


def resolve_fee(
    tenant_id: str,
    level: DunningLevel,
    level_store: "LevelStore",
    ledger_store: "LedgerStore",
) -> Decimal:
    """
    Fee charged on a letter. Reminders are always free; otherwise a manual
    override wins, then the fee imported with the ledger, then the level's
    statutory fee.
    """
    level = coerce_level(level)
    if level == DunningLevel.REMINDER:
        return Decimal("0")
    override = level_store.get_fee_override(tenant_id)
    if override is not None:
        return parse_amount(override)
    csv_fee = ledger_store.get_csv_fee(tenant_id)
    if csv_fee is not None:
        return parse_amount(csv_fee)
    return level_store.get_level_config(level).statutory_fee


def has_custom_fee(tenant_id: str, level: DunningLevel, level_store: "LevelStore") -> bool:
    """True when a manual override differs from the level's statutory fee."""
    level = coerce_level(level)
    if level < DunningLevel.FIRST_NOTICE:
        return False
    override = level_store.get_fee_override(tenant_id)
    if override is None:
        return False
    return parse_amount(override) != level_store.get_level_config(level).statutory_fee
