"""Unit tests for letter texts and placeholder rendering"""

import pytest

from dunning_letters.config import GENERIC_SALUTATION
from dunning_letters.letter_text import (
    DEFAULT_TEXTS,
    TERMINATION_TEXT,
    TextLibrary,
    build_salutation,
    closing_text,
    render_placeholders,
)
from dunning_letters.levels import DunningLevel
from dunning_letters.models import Tenant

VALUES = {"SCHULDEN_BETRAG": "800,00 €", "ZAHLUNGSFRIST": "29. Oktober 2026"}


def test_placeholders_are_substituted():
    text = render_placeholders("Bitte zahlen Sie {SCHULDEN_BETRAG} bis zum {ZAHLUNGSFRIST}.", VALUES)
    assert text == "Bitte zahlen Sie 800,00 € bis zum 29. Oktober 2026."


def test_unknown_placeholder_is_kept():
    assert render_placeholders("Hallo {MIETER_NAME}, {SCHULDEN_BETRAG}", VALUES) == "Hallo {MIETER_NAME}, 800,00 €"


def test_stray_brace_falls_back_to_replace():
    """Test text that is not a valid template still gets known names replaced"""
    text = render_placeholders("Betrag: {SCHULDEN_BETRAG} (Stand {", VALUES)
    assert text == "Betrag: 800,00 € (Stand {"


@pytest.mark.parametrize(
    "template, expected",
    [
        ("Bitte {7*7} beachten, {SCHULDEN_BETRAG}", "Bitte {7*7} beachten, 800,00 €"),
        ("Kunde {KUNDE.NAME}: {SCHULDEN_BETRAG}", "Kunde {KUNDE.NAME}: 800,00 €"),
        ("{SCHULDEN_BETRAG|upper} bis {ZAHLUNGSFRIST}", "{SCHULDEN_BETRAG|upper} bis 29. Oktober 2026"),
        ("{% if 1 %}x{% endif %} {SCHULDEN_BETRAG}", "{% if 1 %}x{% endif %} 800,00 €"),
    ],
)
def test_expressions_are_left_as_written(template, expected):
    """Test only bare names are substituted, nothing is evaluated"""
    assert render_placeholders(template, VALUES) == expected


def test_empty_template():
    assert render_placeholders("", VALUES) == ""


@pytest.mark.parametrize(
    "tenant, expected",
    [
        (
            Tenant(id="1", salutation1="Sehr geehrter Herr Muster", salutation2="sehr geehrte Frau Muster"),
            "Sehr geehrter Herr Muster,\nsehr geehrte Frau Muster,",
        ),
        (Tenant(id="1", salutation2="Liebe Familie Muster"), "Liebe Familie Muster,"),
        (
            Tenant(id="1", name1="Max Muster", name2="Erika Muster"),
            f"{GENERIC_SALUTATION}\nsehr geehrte/r Max Muster und Erika Muster,",
        ),
        (Tenant(id="1", name="Max Muster"), f"{GENERIC_SALUTATION}\nsehr geehrte/r Max Muster,"),
        (Tenant(id="1"), GENERIC_SALUTATION),
    ],
)
def test_salutation_variants(tenant, expected):
    assert build_salutation(tenant) == expected


def test_defaults_per_level():
    """Test only the second notice carries the termination warning"""
    library = TextLibrary()
    assert library.texts_for(None, 1) == DEFAULT_TEXTS[DunningLevel.REMINDER]
    assert library.texts_for("1001", 2).termination == ""
    assert library.texts_for("1001", 3).termination == TERMINATION_TEXT


def test_tenant_override_beats_global():
    library = TextLibrary()
    library.set_global(2, intro="Global", deadline="Globale Frist")
    library.set_for_tenant("1001", 2, intro="Nur für 1001")

    own = library.texts_for("1001", 2)
    other = library.texts_for("1002", 2)

    assert own.intro == "Nur für 1001"
    assert own.deadline == "Globale Frist"
    assert other.intro == "Global"
    assert library.texts_for("1001", 1) == DEFAULT_TEXTS[DunningLevel.REMINDER]


def test_clear_tenant_restores_global():
    library = TextLibrary()
    library.set_for_tenant("1001", "M1", intro="Eigener Text")
    library.clear_tenant("1001")
    assert library.texts_for("1001", 2) == DEFAULT_TEXTS[DunningLevel.FIRST_NOTICE]


def test_unknown_text_field_is_rejected():
    with pytest.raises(ValueError):
        TextLibrary().set_global(1, signature="x")


def test_closing_text_per_level():
    assert "rechtliche Schritte" in closing_text(DunningLevel.SECOND_NOTICE)
    assert closing_text("E") != closing_text("M1")
