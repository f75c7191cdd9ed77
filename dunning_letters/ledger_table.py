"""
Ledger table layout: one row per open ledger position, paginated with a
hard row cap per page and a space check that keeps room for the summary.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from fpdf import FPDF

from .config import (
    BANK_BOTTOM_RESERVE,
    BANK_SPACE_RESERVE,
    MARGIN,
    MAX_ROWS_PER_PAGE,
    NEGATIVE_COLOR,
    POSITIVE_COLOR,
    TABLE_COLUMN_GAP,
    TABLE_COLUMN_SHARES,
    TABLE_CONTINUATION_LINE_HEIGHT,
    TABLE_CONTINUATION_TOP,
    TABLE_FOOTER_RESERVE,
    TABLE_HEADERS,
    TABLE_MAX_CONTINUATION_LINES,
    TABLE_ROW_HEIGHT,
    TABLE_SUMMARY_RESERVE,
)
from .exceptions import LedgerLayoutError
from .formatting import format_amount, format_period, parse_amount
from .levels import DunningLevel, coerce_level
from .models import FinancialRecord
from .pdf_utils import draw_right_aligned, draw_rule, draw_text, needs_new_page, set_font, wrap_pdf_line

logger = logging.getLogger(__name__)

HEADER_COLOR = (120, 120, 120)
HEADER_HEIGHT = 10.0


@dataclass(frozen=True)
class Column:
    x: float
    width: float

    @property
    def right(self) -> float:
        """Anchor for right-aligned values."""
        return self.x + self.width - 2

    @property
    def end(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class LedgerTotals:
    net_difference: Decimal
    arrears: Decimal
    fee: Decimal
    amount_due: Decimal


@dataclass
class TableResult:
    final_y: float
    total_pages: int = 1
    total_positions: int = 0
    net_difference: Decimal = Decimal("0")
    arrears: Decimal = Decimal("0")
    fee: Decimal = Decimal("0")
    amount_due: Decimal = Decimal("0")
    summary_page: Optional[int] = None
    rows_per_page: List[int] = field(default_factory=list)
    has_space_for_bank_details: bool = True


def calculate_columns(margin: float, page_width: float) -> List[Column]:
    """Period, cost type, debit, credit and difference columns, left to right."""
    if margin < 0 or page_width <= margin * 2:
        raise LedgerLayoutError(f"No room for a table: width {page_width}, margin {margin}")
    available = page_width - 2 * margin
    columns = []
    x = margin
    for share in TABLE_COLUMN_SHARES:
        width = math.floor(available * share)
        columns.append(Column(x=x, width=width))
        x += width + TABLE_COLUMN_GAP
    return columns


def open_positions(records: Iterable[FinancialRecord]) -> List[FinancialRecord]:
    """Enabled records with a non-zero difference, ordered by period code."""
    rows = [r for r in records if r.enabled and r.difference != 0]
    return sorted(rows, key=lambda r: str(r.period))


def summarize(records: Iterable[FinancialRecord], level, fee: Decimal) -> LedgerTotals:
    """
    Totals for the open positions. The fee is only charged when there are
    arrears and the level is a notice.
    """
    net = sum((r.difference for r in open_positions(records)), Decimal("0"))
    arrears = -net if net < 0 else Decimal("0")
    applied = Decimal("0")
    if arrears > 0 and coerce_level(level) >= DunningLevel.FIRST_NOTICE and fee > 0:
        applied = parse_amount(fee)
    return LedgerTotals(net_difference=net, arrears=arrears, fee=applied, amount_due=arrears + applied)


def _draw_header(pdf: FPDF, y: float, columns: List[Column]) -> float:
    set_font(pdf, 9, "B")
    pdf.set_draw_color(*HEADER_COLOR)
    pdf.set_line_width(0.5)
    pdf.line(columns[0].x, y + 7, columns[-1].end, y + 7)
    text_y = y + 5
    for idx, (label, col) in enumerate(zip(TABLE_HEADERS, columns)):
        if idx < 2:
            draw_text(pdf, col.x, text_y, label)
        else:
            draw_right_aligned(pdf, col.right, text_y, label)
    return y + HEADER_HEIGHT


def _cost_type_lines(pdf: FPDF, record: FinancialRecord, column: Column) -> List[str]:
    set_font(pdf, 9)
    return wrap_pdf_line(pdf, record.cost_type, column.width - 4, max_lines=1 + TABLE_MAX_CONTINUATION_LINES)


def row_height(continuation_lines: int) -> float:
    return TABLE_ROW_HEIGHT + continuation_lines * TABLE_CONTINUATION_LINE_HEIGHT


def _draw_row(pdf: FPDF, record: FinancialRecord, lines: List[str], y: float, columns: List[Column]) -> None:
    period_col, cost_col, debit_col, credit_col, diff_col = columns
    text_y = y + 3
    set_font(pdf, 9)
    draw_text(pdf, period_col.x, text_y, format_period(record.period))
    if lines and lines[0]:
        draw_text(pdf, cost_col.x, text_y, lines[0])
    draw_right_aligned(pdf, debit_col.right, text_y, format_amount(record.debit_amount))
    draw_right_aligned(pdf, credit_col.right, text_y, format_amount(record.credit_amount))

    difference = record.difference
    if difference < 0:
        set_font(pdf, 9, "B", NEGATIVE_COLOR)
    else:
        set_font(pdf, 9, "", POSITIVE_COLOR)
    prefix = "+" if difference > 0 else "-"
    draw_right_aligned(pdf, diff_col.right, text_y, f"{prefix}{format_amount(abs(difference))}")

    set_font(pdf, 8)
    for i, extra in enumerate(lines[1:], start=1):
        draw_text(pdf, cost_col.x + 2, text_y + i * TABLE_CONTINUATION_LINE_HEIGHT, extra)
    set_font(pdf, 9)


def _draw_summary(pdf: FPDF, y: float, columns: List[Column], totals: LedgerTotals) -> float:
    first, last = columns[0], columns[-1]
    y += 2
    draw_rule(pdf, first.x, last.end, y, HEADER_COLOR, 0.3)
    y += 5

    set_font(pdf, 10, "B")
    label = "Gesamtrückstand:" if totals.net_difference < 0 else "Guthaben:"
    draw_text(pdf, first.x, y, label)
    draw_right_aligned(pdf, last.right, y, format_amount(abs(totals.net_difference)))
    y += 5

    if totals.fee > 0:
        set_font(pdf, 9)
        draw_text(pdf, first.x, y, "Mahngebühren:")
        draw_right_aligned(pdf, last.right, y, format_amount(totals.fee))
        y += 5
        set_font(pdf, 10, "B")
        draw_rule(pdf, first.x, last.end, y - 1, HEADER_COLOR, 0.5)
        draw_text(pdf, first.x, y + 3, "Zu zahlen:")
        draw_right_aligned(pdf, last.right, y + 3, format_amount(totals.amount_due))
        y += 6
    set_font(pdf, 10)
    return y


def layout_ledger_table(
    pdf: FPDF,
    records: Iterable[FinancialRecord],
    level: DunningLevel,
    fee: Decimal,
    start_y: float,
    margin: float = MARGIN,
    footer_reserve: float = TABLE_FOOTER_RESERVE,
) -> TableResult:
    """
    Draw the ledger table starting at start_y, breaking pages as needed.
    Returns the cursor after the summary together with the totals and the
    pagination figures the rest of the letter depends on.
    """
    columns = calculate_columns(margin, pdf.w)
    rows = open_positions(records)
    if not rows:
        logger.info("No open positions, table skipped")
        return TableResult(final_y=start_y)

    totals = summarize(rows, level, fee)
    y = _draw_header(pdf, start_y, columns)
    rows_on_page = 0
    rows_per_page: List[int] = []
    pages = 1

    for record in rows:
        lines = _cost_type_lines(pdf, record, columns[1])
        height = row_height(len(lines) - 1 if lines else 0)
        if rows_on_page >= MAX_ROWS_PER_PAGE or needs_new_page(
            pdf, y, height + TABLE_SUMMARY_RESERVE, footer_reserve
        ):
            logger.debug(
                "Table page break after %d rows on page %d", rows_on_page, pages
            )
            rows_per_page.append(rows_on_page)
            pdf.add_page()
            y = _draw_header(pdf, TABLE_CONTINUATION_TOP, columns)
            rows_on_page = 0
            pages += 1
        _draw_row(pdf, record, lines, y, columns)
        y += height
        rows_on_page += 1
    rows_per_page.append(rows_on_page)

    y = _draw_summary(pdf, y, columns, totals)
    return TableResult(
        final_y=y,
        total_pages=pages,
        total_positions=len(rows),
        net_difference=totals.net_difference,
        arrears=totals.arrears,
        fee=totals.fee,
        amount_due=totals.amount_due,
        summary_page=pdf.page_no(),
        rows_per_page=rows_per_page,
        has_space_for_bank_details=not needs_new_page(pdf, y, BANK_SPACE_RESERVE, BANK_BOTTOM_RESERVE),
    )
