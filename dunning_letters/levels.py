from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum
from typing import Dict, Union


class DunningLevel(IntEnum):
    REMINDER = 1
    FIRST_NOTICE = 2
    SECOND_NOTICE = 3


DEFAULT_LEVEL = DunningLevel.REMINDER


@dataclass(frozen=True)
class LevelConfig:
    name: str
    short_name: str
    icon: str
    color: str
    tone: str
    statutory_fee: Decimal
    deadline_days: int


LEVEL_CONFIGS: Dict[DunningLevel, LevelConfig] = {
    DunningLevel.REMINDER: LevelConfig(
        name="Zahlungserinnerung",
        short_name="Erinnerung",
        icon="fa-info-circle",
        color="#557189",
        tone="freundlich",
        statutory_fee=Decimal("0.00"),
        deadline_days=10,
    ),
    DunningLevel.FIRST_NOTICE: LevelConfig(
        name="1. Mahnung",
        short_name="1. Mahnung",
        icon="fa-exclamation-triangle",
        color="#557189",
        tone="bestimmt",
        statutory_fee=Decimal("10.00"),
        deadline_days=7,
    ),
    DunningLevel.SECOND_NOTICE: LevelConfig(
        name="2. Mahnung",
        short_name="2. Mahnung",
        icon="fa-ban",
        color="#557189",
        tone="nachdrücklich",
        statutory_fee=Decimal("10.00"),
        deadline_days=7,
    ),
}

# Legacy codes still found in exported level assignments.
_LEGACY_CODES = {"E": DunningLevel.REMINDER, "M1": DunningLevel.FIRST_NOTICE, "M2": DunningLevel.SECOND_NOTICE}


def coerce_level(value: Union[int, str, DunningLevel, None]) -> DunningLevel:
    """
    Single conversion point from external level values to DunningLevel.
    Accepts 1-3 (int or numeric string) and the codes E, M1, M2. None means
    the default level; everything else raises ValueError.
    """
    if value is None:
        return DEFAULT_LEVEL
    if isinstance(value, DunningLevel):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Unknown dunning level: {value!r}")
    if isinstance(value, int):
        return DunningLevel(value)
    s = str(value).strip().upper()
    if s in _LEGACY_CODES:
        return _LEGACY_CODES[s]
    if s.isdigit():
        return DunningLevel(int(s))
    raise ValueError(f"Unknown dunning level: {value!r}")


def get_level_config(level: Union[int, str, DunningLevel, None]) -> LevelConfig:
    return LEVEL_CONFIGS[coerce_level(level)]
