from typing import List, Optional, Tuple

from fpdf import FPDF

from .config import LINE_HEIGHT, RULE_COLOR

PDF_ENCODING = "windows-1252"


def pdf_safe_text(text) -> str:
    if text is None:
        return ""
    return str(text).encode(PDF_ENCODING, "replace").decode(PDF_ENCODING)


def set_font(pdf: FPDF, size: float, style: str = "", color: Tuple[int, int, int] = (0, 0, 0)) -> None:
    pdf.set_font("Helvetica", style, size)
    pdf.set_text_color(*color)


def _split_by_width(pdf: FPDF, word: str, max_w: float) -> List[str]:
    pieces = [""]
    for ch in word:
        if pieces[-1] and pdf.get_string_width(pieces[-1] + ch) > max_w:
            pieces.append(ch)
        else:
            pieces[-1] += ch
    return pieces


def wrap_pdf_line(pdf: FPDF, text: str, max_w: float, max_lines: Optional[int] = None) -> List[str]:
    """
    Greedy word wrap measured in the current font. A word wider than max_w
    is cut by character. With max_lines the result is capped, and wrapping
    stops once the cap is exceeded.
    """
    safe_text = pdf_safe_text(text)
    if max_w <= 0:
        return [safe_text]
    lines: List[str] = []
    for word in safe_text.split():
        joined = f"{lines[-1]} {word}" if lines else word
        if lines and pdf.get_string_width(joined) <= max_w:
            lines[-1] = joined
        elif pdf.get_string_width(word) <= max_w:
            lines.append(word)
        else:
            lines.extend(_split_by_width(pdf, word, max_w))
        if max_lines is not None and len(lines) > max_lines:
            break
    if not lines:
        return [safe_text]
    return lines if max_lines is None else lines[:max_lines]


def truncate_to_width(pdf: FPDF, text: str, max_w: float, suffix: str = "...") -> str:
    text = pdf_safe_text(text)
    if not text:
        return ""
    if max_w <= 0 or pdf.get_string_width(text) <= max_w:
        return text
    suffix_w = pdf.get_string_width(suffix)
    if suffix_w >= max_w:
        return ""
    low, high = 0, len(text)
    while low < high:
        mid = (low + high) // 2
        if pdf.get_string_width(text[:mid]) + suffix_w <= max_w:
            low = mid + 1
        else:
            high = mid
    cut = max(low - 1, 0)
    return text[:cut].rstrip() + suffix


def draw_text(pdf: FPDF, x: float, y: float, text: str) -> None:
    """Place text with its baseline at y."""
    pdf.text(x, y, pdf_safe_text(text))


def draw_right_aligned(pdf: FPDF, right_x: float, y: float, text: str) -> None:
    safe = pdf_safe_text(text)
    pdf.text(right_x - pdf.get_string_width(safe), y, safe)


def draw_centered(pdf: FPDF, y: float, text: str) -> None:
    safe = pdf_safe_text(text)
    pdf.text((pdf.w - pdf.get_string_width(safe)) / 2, y, safe)


def draw_rule(
    pdf: FPDF, x1: float, x2: float, y: float, color: Tuple[int, int, int] = RULE_COLOR, width: float = 0.2
) -> None:
    pdf.set_draw_color(*color)
    pdf.set_line_width(width)
    pdf.line(x1, y, x2, y)


def needs_new_page(pdf: FPDF, y: float, height: float, bottom_reserve: float) -> bool:
    return pdf.h - y - bottom_reserve < height


def add_text_block(
    pdf: FPDF,
    text: str,
    x: float,
    y: float,
    max_w: float,
    line_h: float = LINE_HEIGHT,
    blank_gap: float = 2,
    bottom_reserve: float = 25,
    continuation_top: Optional[float] = None,
) -> float:
    """
    Write a multi-paragraph block line by line starting at baseline y and
    return the cursor below it. Blank lines advance by blank_gap. When the
    next line would run into bottom_reserve a new page is started.
    """
    top = continuation_top if continuation_top is not None else pdf.t_margin
    for paragraph in str(text or "").split("\n"):
        if not paragraph.strip():
            y += blank_gap
            continue
        for line in wrap_pdf_line(pdf, paragraph, max_w):
            if needs_new_page(pdf, y, line_h, bottom_reserve):
                font = (pdf.font_family, pdf.font_style, pdf.font_size_pt)
                pdf.add_page()
                pdf.set_font(*font)
                y = top
            pdf.text(x, y, line)
            y += line_h
    return y
