"""Unit tests for individual letter sections"""

import pytest

from dunning_letters.assembler import LetterDocument
from dunning_letters.levels import DunningLevel
from dunning_letters.models import PostAddress, Tenant
from dunning_letters.sections import address_lines, render_closing, render_logo


@pytest.fixture
def pdf() -> LetterDocument:
    doc = LetterDocument()
    doc.add_page()
    return doc


def test_closing_ends_below_disclaimer(pdf, assembler, sample_tenant):
    """Test the closing block reserves no extra space after the disclaimer"""
    letter = assembler.build_letter(sample_tenant, DunningLevel.REMINDER)
    # one closing line, greeting, company, editor name, disclaimer
    assert render_closing(pdf, letter, 100) == pytest.approx(100 + 4 + 6 + 6 + 6 + 5 + 6)
    assert pdf.pages_count == 1


def test_closing_moves_to_new_page(pdf, assembler, sample_tenant):
    letter = assembler.build_letter(sample_tenant, DunningLevel.SECOND_NOTICE)
    y = render_closing(pdf, letter, 250)
    assert pdf.pages_count == 2
    assert y < 100


def test_logo_without_asset_keeps_top_gap(pdf, assembler, sample_tenant):
    letter = assembler.build_letter(sample_tenant, DunningLevel.REMINDER)
    assert render_logo(pdf, letter, 40) == 23.0


def test_address_prefers_post_address():
    tenant = Tenant(
        id="1", name1="Max Muster", name2="Erika Muster", street="Hauptstraße 5", postal_code="90402", city="Nürnberg"
    )
    assert address_lines(tenant) == ["Max Muster", "Erika Muster", "Hauptstraße 5", "90402 Nürnberg"]
    post = PostAddress(street="Postfach 12", postal_code="90001", city="Nürnberg")
    assert address_lines(tenant, post)[2:] == ["Postfach 12", "90001 Nürnberg"]
