import logging
from typing import Dict, Optional, Sequence

from fpdf import FPDF

from .assets import AssetCache, calculate_logo_size
from .config import (
    FOOTER_BOTTOM_MARGIN,
    FOOTER_COLOR,
    FOOTER_FONT_SIZE,
    FOOTER_LINE_SPACING,
    FOOTER_LINES,
    LOGO_SPECS,
    PT_TO_MM,
)
from .pdf_utils import draw_centered, set_font

logger = logging.getLogger(__name__)


class FooterCompositor:
    """
    Post-pass that stamps the company footer and the two footer logos on
    every page. Pages already stamped are remembered on the document, so
    running the pass again only touches pages added since.
    """

    def __init__(
        self,
        assets: AssetCache,
        lines: Sequence[str] = FOOTER_LINES,
        logo_specs: Optional[Dict[str, Dict]] = None,
    ):
        self.assets = assets
        self.lines = tuple(lines)
        self.logo_specs = LOGO_SPECS if logo_specs is None else logo_specs

    @property
    def line_height(self) -> float:
        return FOOTER_FONT_SIZE * PT_TO_MM

    @property
    def total_height(self) -> float:
        n = len(self.lines)
        return n * self.line_height + max(n - 1, 0) * FOOTER_LINE_SPACING

    def first_line_y(self, page_height: float) -> float:
        return page_height - FOOTER_BOTTOM_MARGIN - self.total_height + self.line_height

    def stamp(self, pdf: FPDF) -> int:
        """Stamp every page not stamped yet; returns how many were stamped."""
        stamped = getattr(pdf, "footer_stamped", None)
        if stamped is None:
            stamped = set()
            pdf.footer_stamped = stamped
        last_page = pdf.page
        count = 0
        for page in range(1, pdf.pages_count + 1):
            if page in stamped:
                continue
            pdf.page = page
            try:
                self._stamp_page(pdf)
            except Exception as exc:
                logger.warning("Footer on page %d failed: %s", page, exc)
            stamped.add(page)
            count += 1
        pdf.page = last_page
        return count

    def _stamp_page(self, pdf: FPDF) -> None:
        # set_font() returns early when the font is unchanged, which would leave a
        # revisited page without a font operator; switching styles forces one.
        pdf.set_font("Helvetica", "B", FOOTER_FONT_SIZE)
        set_font(pdf, FOOTER_FONT_SIZE, "", FOOTER_COLOR)
        first_y = self.first_line_y(pdf.h)
        for i, line in enumerate(self.lines):
            draw_centered(pdf, first_y + i * (self.line_height + FOOTER_LINE_SPACING), line)
        self._place_logo(pdf, "left", first_y)
        self._place_logo(pdf, "right", first_y)

    def _place_logo(self, pdf: FPDF, key: str, first_y: float) -> None:
        spec = self.logo_specs.get(key)
        if not spec:
            return
        asset = self.assets.get(key)
        if asset is None:
            return
        max_w, max_h = spec["max_mm"]
        w, h = calculate_logo_size(asset, max_w, max_h)
        side = spec.get("side_margin", 0.0)
        x = side if key == "left" else pdf.w - side - w
        y = first_y - h / 2 + self.total_height / 2 + spec.get("offset", 0.0)
        pdf.image(asset.stream(), x=x, y=y, w=w, h=h)
