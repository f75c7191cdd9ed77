"""
Section renderers for a dunning letter.

Every renderer has the signature ``(pdf, letter, y) -> y``: it draws its
block starting at the vertical cursor ``y`` (millimetres from the top of
the current page) and returns the cursor below what it drew. Each section
comes as a primary renderer and a minimal fallback that the assembler
switches to when the primary raises.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from fpdf import FPDF

from .assets import AssetCache, calculate_logo_size
from .config import (
    BANK_ROW_HEIGHT,
    COMPANY,
    CONTINUATION_TOP,
    GENERIC_SALUTATION,
    LINE_HEIGHT,
    LOGO_SPECS,
    MARGIN,
    MUTED_COLOR,
    PANEL_BORDER,
    PANEL_FILL,
    TEXT_COLOR,
    UNKNOWN_CITY,
    UNKNOWN_STREET,
    UNKNOWN_TENANT,
)
from .formatting import format_amount, format_date, format_iban, format_long_date, payment_deadline
from .ledger_table import LedgerTotals, TableResult, layout_ledger_table
from .letter_text import LetterTexts, build_salutation, closing_text, render_placeholders
from .levels import DunningLevel, LevelConfig
from .models import BankData, PostAddress, Tenant, UserProfile
from .pdf_utils import (
    add_text_block,
    draw_right_aligned,
    draw_text,
    needs_new_page,
    set_font,
    truncate_to_width,
    wrap_pdf_line,
)

logger = logging.getLogger(__name__)

LABEL_COLOR = (80, 80, 80)
CONTACT_COLOR = (11, 11, 11)
BODY_BOTTOM_RESERVE = 25.0
DISCLAIMER = "Dieses Schreiben wurde maschinell erstellt und trägt daher keine Unterschrift."


@dataclass
class Letter:
    """Everything the sections of one letter need, resolved before drawing."""

    tenant: Tenant
    level: DunningLevel
    config: LevelConfig
    fee: Decimal
    totals: LedgerTotals
    texts: LetterTexts
    bank: BankData
    profile: UserProfile
    assets: AssetCache
    post_address: Optional[PostAddress] = None
    issued_on: Optional[date] = None
    table: Optional[TableResult] = None

    @property
    def today(self) -> date:
        return self.issued_on or date.today()

    @property
    def deadline(self) -> date:
        return payment_deadline(self.config.deadline_days, self.today)

    @property
    def arrears(self) -> Decimal:
        return self.table.arrears if self.table else self.totals.arrears

    @property
    def amount_due(self) -> Decimal:
        return self.table.amount_due if self.table else self.totals.amount_due

    @property
    def purpose(self) -> str:
        return f"Ausgleich, {self.tenant.id or 'Unbekannt'}"

    def placeholders(self) -> Dict[str, str]:
        return {
            "SCHULDEN_BETRAG": format_amount(self.arrears),
            "GESAMT_BETRAG": format_amount(self.amount_due),
            "ZAHLUNGSFRIST": format_long_date(self.deadline),
            "MIETER_NAME": self.tenant.display_name,
        }

    def render(self, template: str) -> str:
        return render_placeholders(template, self.placeholders())


def content_width(pdf: FPDF) -> float:
    return pdf.w - 2 * MARGIN


def _continue_on_new_page(pdf: FPDF) -> float:
    font = (pdf.font_family, pdf.font_style, pdf.font_size_pt)
    pdf.add_page()
    pdf.set_font(*font)
    return CONTINUATION_TOP


def _text_block(pdf: FPDF, text: str, y: float) -> float:
    return add_text_block(
        pdf,
        text,
        MARGIN,
        y,
        content_width(pdf),
        bottom_reserve=BODY_BOTTOM_RESERVE,
        continuation_top=CONTINUATION_TOP,
    )


# ---- Logo
def render_logo(pdf: FPDF, letter: Letter, y: float) -> float:
    asset = letter.assets.get("main")
    if asset is None:
        return 23.0
    spec = LOGO_SPECS["main"]
    max_w, max_h = spec["max_mm"]
    w, h = calculate_logo_size(asset, max_w, max_h)
    top = spec.get("top", 10.0)
    pdf.image(asset.stream(), x=(pdf.w - w) / 2, y=top, w=w, h=h)
    pdf.main_logo = asset
    return top + h + 4 + 3


def fallback_logo(pdf: FPDF, letter: Letter, y: float) -> float:
    return 25.0


# ---- Sender line
def sender_line() -> str:
    return f"{COMPANY['name']} | {COMPANY['street']} | {COMPANY['city']}"


def render_sender(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 7, "", MUTED_COLOR)
    draw_text(pdf, MARGIN, y, sender_line())
    return y + 8


def fallback_sender(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 8)
    draw_text(pdf, MARGIN, y, sender_line())
    return y + 4


# ---- Address and contact block
def address_lines(tenant: Tenant, post_address: Optional[PostAddress] = None) -> List[str]:
    if tenant.name1 and tenant.name2:
        lines = [tenant.name1, tenant.name2]
    elif tenant.name or tenant.name1:
        lines = [tenant.name or tenant.name1]
    else:
        lines = [UNKNOWN_TENANT]
    source = post_address or tenant
    lines.append(source.street or UNKNOWN_STREET)
    lines.append(f"{source.postal_code or ''} {source.city or ''}".strip() or UNKNOWN_CITY)
    return lines


def contact_lines(profile: UserProfile, today: date) -> List[str]:
    return [
        f"Datum: {format_date(today)}",
        f"Bearbeiter: {profile.name or COMPANY['name']}",
        f"Telefon: {profile.phone or COMPANY['phone']}",
        f"E-Mail: {profile.email or COMPANY['email']}",
    ]


def render_address(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10, "", TEXT_COLOR)
    lines = address_lines(letter.tenant, letter.post_address)
    for i, line in enumerate(lines):
        draw_text(pdf, MARGIN, y + i * LINE_HEIGHT, line)

    set_font(pdf, 8, "", CONTACT_COLOR)
    right = pdf.w - MARGIN
    for i, line in enumerate(contact_lines(letter.profile, letter.today)):
        draw_right_aligned(pdf, right, y + i * 3.3, line)
    return y + len(lines) * LINE_HEIGHT + 12


def fallback_address(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10)
    tenant = letter.tenant
    draw_text(pdf, MARGIN, y, tenant.display_name or UNKNOWN_TENANT)
    draw_text(pdf, MARGIN, y + 3, tenant.street or UNKNOWN_STREET)
    draw_text(pdf, MARGIN, y + 6, f"{tenant.postal_code} {tenant.city}".strip() or UNKNOWN_CITY)
    draw_right_aligned(pdf, pdf.w - MARGIN, y, f"Datum: {format_date(letter.today)}")
    return y + 12


# ---- Subject
def render_subject(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10, "B")
    draw_text(pdf, MARGIN, y, f"Objekt: {letter.tenant.street or 'Unbekannt'}, {letter.tenant.id}")
    y += 4
    draw_text(pdf, MARGIN, y, letter.config.name)
    return y + 10


def fallback_subject(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10, "B")
    draw_text(pdf, MARGIN, y, f"Objekt: {letter.tenant.street or 'Unbekannt'}, {letter.tenant.id or 'ID'}")
    draw_text(pdf, MARGIN, y + 4, letter.config.name)
    return y + 8


# ---- Salutation and intro
def render_salutation(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10)
    y = _text_block(pdf, build_salutation(letter.tenant), y)
    y += 2
    y = _text_block(pdf, letter.render(letter.texts.intro), y)
    return y + 1


def fallback_salutation(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10)
    draw_text(pdf, MARGIN, y, GENERIC_SALUTATION)
    return y + 6


# ---- Text after the table
def render_trailing_text(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10)
    y += 4
    y = _text_block(pdf, letter.render(letter.texts.deadline), y)
    y += 4
    if letter.level == DunningLevel.SECOND_NOTICE and letter.texts.termination:
        set_font(pdf, 10, "B")
        y = _text_block(pdf, letter.render(letter.texts.termination), y)
        set_font(pdf, 10)
        y += 4
    y = _text_block(pdf, letter.render(letter.texts.main), y)
    return y + 6


def fallback_trailing_text(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10)
    y += 4
    draw_text(
        pdf,
        MARGIN,
        y,
        f"Bitte überweisen Sie {format_amount(letter.amount_due)} bis zum {format_date(letter.deadline)}.",
    )
    return y + 10


# ---- Banking block
def _bank_rows(letter: Letter) -> List[tuple]:
    bank = letter.bank
    amount = letter.amount_due
    rows = []
    if bank.account_holder or bank.bank_name:
        rows.append((("Kontoinhaber:", bank.account_holder), ("Bank:", bank.bank_name)))
    if bank.iban or bank.bic:
        rows.append((("IBAN:", format_iban(bank.iban) if bank.iban else ""), ("BIC:", bank.bic)))
    if amount > 0 or letter.purpose:
        rows.append((("Betrag:", format_amount(amount) if amount > 0 else ""), ("Zweck:", letter.purpose)))
    return rows


def render_bank(pdf: FPDF, letter: Letter, y: float) -> float:
    width = content_width(pdf)
    column_w = width / 2
    label_w = column_w * 0.35
    rows = _bank_rows(letter)
    y += 2
    box_h = len(rows) * (BANK_ROW_HEIGHT + 1) + 1

    pdf.set_fill_color(*PANEL_FILL)
    pdf.set_draw_color(*PANEL_BORDER)
    pdf.set_line_width(0.5)
    pdf.rect(MARGIN, y - 4, width + 4, box_h, style="DF")

    left_value_x = MARGIN + label_w
    right_x = MARGIN + column_w
    right_value_x = right_x + label_w * 0.7
    for (left_label, left_value), (right_label, right_value) in rows:
        if left_value:
            set_font(pdf, 9, "B", LABEL_COLOR)
            draw_text(pdf, MARGIN + 3, y, left_label)
            set_font(pdf, 9)
            draw_text(pdf, left_value_x, y, truncate_to_width(pdf, left_value, right_x - left_value_x - 2))
        if right_value:
            set_font(pdf, 9, "B", LABEL_COLOR)
            draw_text(pdf, right_x, y, right_label)
            set_font(pdf, 9)
            draw_text(pdf, right_value_x, y, truncate_to_width(pdf, right_value, MARGIN + width - right_value_x))
        y += BANK_ROW_HEIGHT + 1
    return y + 2


def fallback_bank(pdf: FPDF, letter: Letter, y: float) -> float:
    bank = letter.bank
    set_font(pdf, 9)
    draw_text(pdf, MARGIN, y, "Bankverbindung:")
    y += 5
    for line in (
        f"IBAN: {format_iban(bank.iban) or '-'}",
        f"BIC: {bank.bic or '-'}",
        f"Bank: {bank.bank_name or '-'}",
    ):
        draw_text(pdf, MARGIN, y, line)
        y += 4
    draw_text(pdf, MARGIN, y, f"Verwendungszweck: {letter.purpose} - {format_amount(letter.amount_due)}")
    return y + 6


# ---- Closing
def render_closing(pdf: FPDF, letter: Letter, y: float) -> float:
    text = closing_text(letter.level)
    set_font(pdf, 10)
    needed = len(wrap_pdf_line(pdf, text, content_width(pdf))) * LINE_HEIGHT + 40
    if needs_new_page(pdf, y, needed, 20):
        y = _continue_on_new_page(pdf)

    y = _text_block(pdf, text, y)
    y += 6
    draw_text(pdf, MARGIN, y, "Mit freundlichen Grüßen")
    y += 6
    draw_text(pdf, MARGIN, y, COMPANY["name"])
    y += 6
    if letter.profile.name:
        draw_text(pdf, MARGIN, y, letter.profile.name)
        y += 5
    set_font(pdf, 8, "I", MUTED_COLOR)
    draw_text(pdf, MARGIN, y, DISCLAIMER)
    return y + 6


def fallback_closing(pdf: FPDF, letter: Letter, y: float) -> float:
    set_font(pdf, 10)
    draw_text(pdf, MARGIN, y, "Mit freundlichen Grüßen")
    draw_text(pdf, MARGIN, y + 6, COMPANY["name"])
    if letter.profile.name:
        set_font(pdf, 9)
        draw_text(pdf, MARGIN, y + 12, letter.profile.name)
    return y + 18


# ---- Ledger table
def render_ledger_table(pdf: FPDF, letter: Letter, y: float) -> float:
    letter.table = layout_ledger_table(pdf, letter.tenant.records, letter.level, letter.fee, y)
    return letter.table.final_y + 1
