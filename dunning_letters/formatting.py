import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, Decimal, str, None]

_TWO_PLACES = Decimal("0.01")

_GERMAN_MONTHS = (
    "Januar",
    "Februar",
    "März",
    "April",
    "Mai",
    "Juni",
    "Juli",
    "August",
    "September",
    "Oktober",
    "November",
    "Dezember",
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9äöüÄÖÜß\s-]")
_WHITESPACE = re.compile(r"\s+")


def parse_amount(value: Number) -> Decimal:
    """
    Parse a ledger amount. Accepts numbers and locale strings such as
    "1.234,56 €", "-12,5" or "100.00". Unparseable or non-finite input
    (NaN, Infinity) counts as zero.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        s = _WHITESPACE.sub("", str(value).replace("€", ""))
        if "," in s:
            # German notation: dots group thousands, comma marks decimals.
            s = s.replace(".", "").replace(",", ".")
        try:
            result = Decimal(s) if s else Decimal("0")
        except InvalidOperation:
            return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def quantize(value: Number) -> Decimal:
    return parse_amount(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def format_number(value: Number) -> str:
    """German number with two decimals and dot thousands grouping: 1.234,56"""
    amount = quantize(value)
    text = f"{abs(amount):,.2f}"
    text = text.replace(",", "X").replace(".", ",").replace("X", ".")
    return f"-{text}" if amount < 0 else text


def format_amount(value: Number) -> str:
    """Currency rendering used in letters: 1.234,56 €"""
    return f"{format_number(value)} €"


def _as_date(value: Union[date, datetime, None]) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def format_date(value: Union[date, datetime, None] = None) -> str:
    """Short German date, zero padded: 05.03.2026"""
    d = _as_date(value)
    return f"{d.day:02d}.{d.month:02d}.{d.year}"


def format_long_date(value: Union[date, datetime, None] = None) -> str:
    """Long German date: 19. Oktober 2026"""
    d = _as_date(value)
    return f"{d.day}. {_GERMAN_MONTHS[d.month - 1]} {d.year}"


def payment_deadline(days: int, today: Optional[date] = None) -> date:
    return _as_date(today) + timedelta(days=days)


def format_period(period: str) -> str:
    """Turn a YYYYMM period code into YYYY-MM; anything else is returned as-is."""
    s = str(period or "").strip()
    if len(s) == 6 and s.isdigit():
        return f"{s[:4]}-{s[4:]}"
    return s


def format_iban(iban: Optional[str]) -> str:
    """Group an IBAN in blocks of four characters."""
    compact = _WHITESPACE.sub("", str(iban or "")).upper()
    return " ".join(compact[i : i + 4] for i in range(0, len(compact), 4))


def sanitize_filename_part(text: Optional[str]) -> str:
    """Keep letters, digits, umlauts, spaces and dashes; whitespace runs become underscores."""
    s = _UNSAFE_FILENAME_CHARS.sub("", str(text or ""))
    return _WHITESPACE.sub("_", s.strip())
