import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from jinja2 import TemplateError, Undefined, nodes
from jinja2.sandbox import SandboxedEnvironment

from .config import GENERIC_SALUTATION
from .levels import DunningLevel, coerce_level
from .models import Tenant

logger = logging.getLogger(__name__)

MAIN_TEXT = "Sollten Sie die Zahlung bereits veranlasst haben, betrachten Sie dieses Schreiben bitte als gegenstandslos."

TERMINATION_TEXT = (
    "Vorsorglich machen wir Sie darauf aufmerksam, dass wir gemäß § 543 Abs. 2 Satz 3 BGB zur Kündigung "
    "des mit Ihnen bestehenden Mietverhältnisses berechtigt sind, wenn Sie für einen Zeitraum, der sich über "
    "mehr als zwei Fälligkeitsterminen erstreckt, mit der Entrichtung der Miete oder eines nicht unerheblichen "
    "Teiles der Miete im Verzug befinden. Sollten Sie den ausstehenden Gesamtbetrag nicht innerhalb der o. g. "
    "Frist ausgleichen, werden wir von unserem Recht der fristlosen Kündigung Gebrauch machen."
)

CLOSING_TEXTS = {
    DunningLevel.REMINDER: "Bei Rückfragen stehen wir Ihnen gerne zur Verfügung.",
    DunningLevel.FIRST_NOTICE: "Wir erwarten Ihre umgehende Zahlung und bitten Sie, weitere Mahnkosten zu vermeiden.",
    DunningLevel.SECOND_NOTICE: "Bei weiterer Zahlungsverweigerung sehen wir uns gezwungen, rechtliche Schritte einzuleiten.",
}


@dataclass(frozen=True)
class LetterTexts:
    """The free-text parts of one letter, still containing placeholders."""

    intro: str
    deadline: str
    main: str = MAIN_TEXT
    termination: str = ""


DEFAULT_TEXTS: Dict[DunningLevel, LetterTexts] = {
    DunningLevel.REMINDER: LetterTexts(
        intro=(
            "bei der regelmäßigen Überprüfung Ihres Mietkontos mussten wir bedauerlicherweise einen "
            "Zahlungsrückstand in Höhe von {SCHULDEN_BETRAG} feststellen. Sicherlich ist es Ihrer "
            "Aufmerksamkeit entgangen, dass die nachfolgend genannten Beträge bereits zur Zahlung fällig "
            "geworden sind."
        ),
        deadline=(
            "Wir bitten Sie, den offenen Betrag von {SCHULDEN_BETRAG} bis zum {ZAHLUNGSFRIST} auf "
            "untenstehendes Konto zu überweisen."
        ),
    ),
    DunningLevel.FIRST_NOTICE: LetterTexts(
        intro="trotz unserer Zahlungserinnerung ist die Zahlung folgender Beträge noch nicht bei uns eingegangen:",
        deadline="Wir fordern Sie auf, den Gesamtbetrag von {GESAMT_BETRAG} bis zum {ZAHLUNGSFRIST} zu begleichen.",
    ),
    DunningLevel.SECOND_NOTICE: LetterTexts(
        intro="trotz mehrfacher Aufforderung ist die Zahlung folgender Beträge noch immer nicht erfolgt:",
        deadline="Zahlen Sie den Gesamtbetrag von {GESAMT_BETRAG} bis spätestens {ZAHLUNGSFRIST}.",
        termination=TERMINATION_TEXT,
    ),
}

_TEXT_FIELDS = ("intro", "deadline", "main", "termination")


@dataclass
class TextLibrary:
    """
    Letter texts per level. Tenant-specific overrides win over global
    overrides, which win over the built-in defaults. Overrides are partial:
    {"intro": "..."} only replaces the intro.
    """

    global_overrides: Dict[DunningLevel, Dict[str, str]] = field(default_factory=dict)
    tenant_overrides: Dict[str, Dict[DunningLevel, Dict[str, str]]] = field(default_factory=dict)

    def set_global(self, level, **texts: str) -> None:
        self._merge(self.global_overrides.setdefault(coerce_level(level), {}), texts)

    def set_for_tenant(self, tenant_id: str, level, **texts: str) -> None:
        per_tenant = self.tenant_overrides.setdefault(str(tenant_id), {})
        self._merge(per_tenant.setdefault(coerce_level(level), {}), texts)

    def clear_tenant(self, tenant_id: str) -> None:
        self.tenant_overrides.pop(str(tenant_id), None)

    def texts_for(self, tenant_id: Optional[str], level) -> LetterTexts:
        level = coerce_level(level)
        texts = DEFAULT_TEXTS[level]
        layers = [self.global_overrides.get(level, {})]
        if tenant_id is not None:
            layers.append(self.tenant_overrides.get(str(tenant_id), {}).get(level, {}))
        for layer in layers:
            if layer:
                texts = replace(texts, **layer)
        return texts

    @staticmethod
    def _merge(target: Dict[str, str], texts: Mapping[str, str]) -> None:
        unknown = set(texts) - set(_TEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown text fields: {sorted(unknown)}")
        target.update(texts)


class _KeepPlaceholder(Undefined):
    """Unknown placeholders are written back unchanged."""

    def __str__(self) -> str:
        return "{%s}" % self._undefined_name


def _build_env() -> SandboxedEnvironment:
    return SandboxedEnvironment(
        variable_start_string="{",
        variable_end_string="}",
        undefined=_KeepPlaceholder,
        autoescape=False,
        keep_trailing_newline=True,
    )


_ENV = _build_env()


def _only_names(ast: nodes.Template) -> bool:
    """True when the text holds nothing but literal text and bare {NAME} lookups."""
    return all(
        isinstance(stmt, nodes.Output)
        and all(isinstance(node, (nodes.TemplateData, nodes.Name)) for node in stmt.nodes)
        for stmt in ast.body
    )


def _replace_plain(template: str, values: Mapping[str, str]) -> str:
    text = template
    for key, value in values.items():
        text = text.replace("{" + key + "}", str(value))
    return text


def render_placeholders(template: str, values: Mapping[str, str]) -> str:
    """
    Substitute {NAME} placeholders. Anything else in braces, such as an
    expression or a stray brace, is left as written; the known names are
    then replaced as plain text.
    """
    if not template:
        return ""
    try:
        ast = _ENV.parse(template)
        if _only_names(ast):
            return _ENV.from_string(ast).render(**values)
    except TemplateError as exc:
        logger.debug("Letter text is not a plain placeholder template: %s", exc)
    return _replace_plain(template, values)


def build_salutation(tenant: Tenant) -> str:
    """Personal salutation lines, each ending with a comma."""
    if tenant.salutation1 and tenant.salutation2:
        return f"{tenant.salutation1},\n{tenant.salutation2},"
    if tenant.salutation1 or tenant.salutation2:
        return f"{tenant.salutation1 or tenant.salutation2},"
    if tenant.name1 and tenant.name2:
        return f"{GENERIC_SALUTATION}\nsehr geehrte/r {tenant.name1} und {tenant.name2},"
    named = tenant.name1 or tenant.name
    if named:
        return f"{GENERIC_SALUTATION}\nsehr geehrte/r {named},"
    return GENERIC_SALUTATION


def closing_text(level) -> str:
    return CLOSING_TEXTS[coerce_level(level)]
