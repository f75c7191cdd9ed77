import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from fpdf import FPDF

from .assets import AssetCache, calculate_logo_size
from .config import (
    BANK_BOTTOM_RESERVE,
    BANK_NOT_FOUND,
    BANK_SPACE_RESERVE,
    COMPANY,
    CONTENT_TOP,
    CONTINUATION_TOP,
    LOGO_SPECS,
    MARGIN,
    PAGE_FORMAT,
)
from .document_store import DocumentSink, MailHandoffStore
from .exceptions import InvalidTenantError, LedgerLayoutError
from .fees import has_custom_fee, resolve_fee
from .footer import FooterCompositor
from .formatting import format_date, sanitize_filename_part
from .ledger_table import summarize
from .letter_text import TextLibrary
from .logging_setup import log_letter_outcome
from .levels import DunningLevel, LevelConfig, coerce_level
from .models import BankData, Tenant, UserProfile
from .pdf_utils import PDF_ENCODING, draw_text, needs_new_page, set_font, wrap_pdf_line
from . import sections
from .sections import Letter
from .stores import LedgerStore, LevelStore

logger = logging.getLogger(__name__)

Renderer = Callable[[FPDF, Letter, float], float]

FALLBACK_STEP = 15.0


class LetterDocument(FPDF):
    """A4 letter in millimetres. Continuation pages repeat the main logo."""

    def __init__(self):
        super().__init__(orientation="P", unit="mm", format=PAGE_FORMAT)
        self.core_fonts_encoding = PDF_ENCODING
        self.set_auto_page_break(auto=False)
        self.set_margins(MARGIN, MARGIN, MARGIN)
        self.main_logo = None
        self.footer_stamped = set()

    def header(self):
        if self.page_no() == 1 or self.main_logo is None:
            return
        w, h = calculate_logo_size(self.main_logo, *LOGO_SPECS["main"]["max_mm"])
        self.image(self.main_logo.stream(), x=(self.w - w) / 2, y=LOGO_SPECS["main"].get("top", 10.0), w=w, h=h)


@dataclass
class SectionSpec:
    id: str
    title: str
    renderer: Renderer
    fallback: Optional[Renderer] = None
    gap_after: float = 0.0
    # Minimum room the section needs before it starts; otherwise it goes to a new page.
    reserve: float = 0.0
    # A failing fatal section replaces the whole letter with an error page.
    fatal: bool = False


SECTION_REGISTRY: List[SectionSpec] = [
    SectionSpec("logo", "Logo", sections.render_logo, sections.fallback_logo),
    SectionSpec("sender", "Absenderzeile", sections.render_sender, sections.fallback_sender),
    SectionSpec("address", "Anschrift", sections.render_address, sections.fallback_address, gap_after=14),
    SectionSpec("subject", "Betreff", sections.render_subject, sections.fallback_subject, gap_after=2),
    SectionSpec("salutation", "Anrede und Einleitung", sections.render_salutation, sections.fallback_salutation),
    SectionSpec("ledger_table", "Forderungsaufstellung", sections.render_ledger_table, fatal=True),
    SectionSpec("trailing_text", "Zahlungsfrist", sections.render_trailing_text, sections.fallback_trailing_text),
    SectionSpec("bank", "Bankverbindung", sections.render_bank, sections.fallback_bank, reserve=BANK_SPACE_RESERVE),
    SectionSpec("closing", "Schlusstext", sections.render_closing, sections.fallback_closing),
]


@dataclass
class GenerationContext:
    """Collaborators shared by every letter of one run."""

    ledger_store: LedgerStore
    level_store: LevelStore
    profile: UserProfile = field(default_factory=UserProfile)
    assets: AssetCache = field(default_factory=AssetCache)
    texts: TextLibrary = field(default_factory=TextLibrary)
    handoff: MailHandoffStore = field(default_factory=MailHandoffStore)
    sink: Optional[DocumentSink] = None
    issued_on: Optional[date] = None


@dataclass
class AssembledLetter:
    page_count: int
    data: bytes
    letter: Optional[Letter] = None
    section_errors: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class GeneratedLetter:
    file_name: str
    page_count: int
    level: DunningLevel
    fee: Decimal
    amount_due: Decimal
    path: Optional[Path] = None
    error: Optional[str] = None


def resolve_bank_data(tenant: Tenant, profile: UserProfile) -> BankData:
    """Tenant account first, then the editor's account, then placeholders."""
    candidates = [
        BankData(
            iban=tenant.iban,
            bic=tenant.bic,
            account_holder=tenant.account_holder,
            bank_name=tenant.bank_name,
        ),
        profile.bank,
    ]
    for bank in candidates:
        if bank is not None and bank.is_valid():
            break
    else:
        bank = BankData(
            iban=BANK_NOT_FOUND,
            bic=BANK_NOT_FOUND,
            account_holder=BANK_NOT_FOUND,
            bank_name=BANK_NOT_FOUND,
        )
    if not bank.account_holder:
        bank = replace(bank, account_holder=COMPANY["name"])
    return bank


def build_file_name(
    tenant: Tenant,
    config: LevelConfig,
    issued_on: Optional[date] = None,
    custom_fee: Optional[Decimal] = None,
) -> str:
    """
    {property}_{tenant}_{level} vom {dd.mm.yyyy}_{id}[_{fee}EUR].pdf
    custom_fee is only given when a manual override differs from the level fee.
    """
    property_part = sanitize_filename_part(tenant.street or "Unbekannt").replace("_", ". ")
    name_part = sanitize_filename_part(tenant.name or tenant.name1 or "Mieter").replace("_", " ")
    id_part = sanitize_filename_part(tenant.id or "ID")
    suffix = ""
    if custom_fee is not None:
        suffix = f"_{custom_fee.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}EUR"
    return f"{property_part}_{name_part}_{config.name} vom {format_date(issued_on)}_{id_part}{suffix}.pdf"


def fallback_file_name(tenant: Tenant, issued_on: Optional[date] = None) -> str:
    return f"Mahnung_{tenant.id or 'Mieter'}_{format_date(issued_on)}.pdf"


class DocumentAssembler:
    """
    Lays out one dunning letter section by section while threading the
    vertical cursor through the renderers. Primary renderers can be swapped
    per section id; the built-in fallback of a section always stays in place.
    """

    def __init__(self, context: GenerationContext, renderers: Optional[Dict[str, Renderer]] = None):
        self.context = context
        self.footer = FooterCompositor(context.assets)
        overrides = renderers or {}
        unknown = set(overrides) - {s.id for s in SECTION_REGISTRY}
        if unknown:
            raise ValueError(f"Unknown sections: {sorted(unknown)}")
        self.sections = [
            replace(spec, renderer=overrides[spec.id]) if spec.id in overrides else spec
            for spec in SECTION_REGISTRY
        ]

    # ---- letter data
    def build_letter(self, tenant: Tenant, level: DunningLevel) -> Letter:
        ctx = self.context
        config = ctx.level_store.get_level_config(level)
        fee = resolve_fee(tenant.id, level, ctx.level_store, ctx.ledger_store)
        return Letter(
            tenant=tenant,
            level=level,
            config=config,
            fee=fee,
            totals=summarize(tenant.records, level, fee),
            texts=ctx.texts.texts_for(tenant.id, level),
            bank=resolve_bank_data(tenant, ctx.profile),
            profile=ctx.profile,
            assets=ctx.assets,
            post_address=ctx.ledger_store.get_post_address(tenant.id),
            issued_on=ctx.issued_on,
        )

    @staticmethod
    def validate(tenant: Optional[Tenant]) -> None:
        if tenant is None or not str(tenant.id or "").strip():
            raise InvalidTenantError("Mieter ohne ID")
        if not tenant.records:
            raise InvalidTenantError("Keine Records vorhanden")

    # ---- layout
    def _run_section(self, pdf: LetterDocument, spec: SectionSpec, letter: Letter, y: float, errors: List[str]) -> float:
        if spec.reserve and needs_new_page(pdf, y, spec.reserve, BANK_BOTTOM_RESERVE):
            pdf.add_page()
            y = CONTINUATION_TOP
        try:
            y = spec.renderer(pdf, letter, y)
        except Exception as exc:
            if spec.fatal:
                raise LedgerLayoutError(f"{spec.title}: {exc}") from exc
            logger.warning("Section %s failed, using fallback: %s", spec.id, exc)
            errors.append(f"{spec.title}: {exc}")
            try:
                y = spec.fallback(pdf, letter, y)
            except Exception as fallback_exc:
                logger.warning("Fallback for %s failed: %s", spec.id, fallback_exc)
                y += FALLBACK_STEP
        return y + spec.gap_after

    def compose(self, tenant: Tenant, level: DunningLevel) -> AssembledLetter:
        letter = self.build_letter(tenant, level)
        pdf = LetterDocument()
        pdf.add_page()
        y = CONTENT_TOP
        errors: List[str] = []
        for spec in self.sections:
            y = self._run_section(pdf, spec, letter, y, errors)
        self.footer.stamp(pdf)
        return AssembledLetter(page_count=pdf.pages_count, data=bytes(pdf.output()), letter=letter, section_errors=errors)

    def error_document(self, tenant: Optional[Tenant], reason: str) -> AssembledLetter:
        """A single page stating which tenant failed and why."""
        pdf = LetterDocument()
        pdf.add_page()
        y = CONTENT_TOP
        set_font(pdf, 14, "B", (200, 0, 0))
        draw_text(pdf, MARGIN, y, "FEHLER BEI PDF-GENERIERUNG")
        y += 10
        set_font(pdf, 10)
        name = (tenant.display_name if tenant else "") or "Unbekannt"
        tenant_id = (tenant.id if tenant else "") or "Unbekannt"
        draw_text(pdf, MARGIN, y, f"Mieter: {name} ({tenant_id})")
        y += 5
        for line in wrap_pdf_line(pdf, f"Fehler: {reason}", pdf.w - 2 * MARGIN):
            draw_text(pdf, MARGIN, y, line)
            y += 5
        draw_text(pdf, MARGIN, y, "Bitte wenden Sie sich an den Support.")
        self.footer.stamp(pdf)
        return AssembledLetter(page_count=pdf.pages_count, data=bytes(pdf.output()), error=reason)

    def assemble_letter(self, tenant: Optional[Tenant], level=None) -> AssembledLetter:
        try:
            self.validate(tenant)
            level = coerce_level(level if level is not None else self.context.level_store.get_level(tenant.id))
            return self.compose(tenant, level)
        except (InvalidTenantError, LedgerLayoutError) as exc:
            logger.error("Letter for %s replaced by error page: %s", getattr(tenant, "id", None), exc)
            return self.error_document(tenant, str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure for %s, writing error page", getattr(tenant, "id", None))
            return self.error_document(tenant, f"{type(exc).__name__}: {exc}")

    def assemble(self, tenant: Optional[Tenant], level=None) -> Tuple[int, bytes]:
        result = self.assemble_letter(tenant, level)
        return result.page_count, result.data

    # ---- full generation
    def generate_for_tenant(self, tenant: Tenant) -> GeneratedLetter:
        """
        Assemble the letter at the tenant's current level, hand it to the
        sink and record the payment figures for the follow-up e-mail.
        """
        ctx = self.context
        level = ctx.level_store.get_level(tenant.id)
        config = ctx.level_store.get_level_config(level)
        result = self.assemble_letter(tenant, level)

        custom_fee = None
        if has_custom_fee(tenant.id, level, ctx.level_store):
            custom_fee = resolve_fee(tenant.id, level, ctx.level_store, ctx.ledger_store)
        try:
            file_name = build_file_name(tenant, config, ctx.issued_on, custom_fee)
        except Exception as exc:
            logger.warning("File name for %s failed: %s", tenant.id, exc)
            file_name = fallback_file_name(tenant, ctx.issued_on)

        letter = result.letter
        fee = letter.table.fee if letter and letter.table else Decimal("0")
        amount_due = letter.amount_due if letter else Decimal("0")
        if letter is not None:
            ctx.handoff.save(
                tenant.id,
                bank_data=letter.bank,
                arrears=letter.arrears,
                fee=fee,
                amount_due=amount_due,
                purpose_text=letter.purpose,
            )

        path = None
        if ctx.sink is not None:
            path = ctx.sink(
                file_name,
                result.data,
                {
                    "tenant_id": tenant.id,
                    "tenant_name": tenant.display_name,
                    "level": int(level),
                    "level_name": config.name,
                    "fee": str(fee),
                    "amount_due": str(amount_due),
                    "pages": result.page_count,
                    "section_errors": result.section_errors,
                    "error": result.error,
                },
            )
        log_letter_outcome(
            tenant.id,
            file_name,
            int(level),
            result.page_count,
            str(amount_due),
            section_errors=len(result.section_errors),
            error=result.error,
        )
        return GeneratedLetter(
            file_name=file_name,
            page_count=result.page_count,
            level=level,
            fee=fee,
            amount_due=amount_due,
            path=path,
            error=result.error,
        )
