"""End-to-end tests for the command line entry point"""

import json

import pytest

from dunning_letters.cli import build_parser, main
from dunning_letters.config import BATCH_DELAY


@pytest.fixture
def snapshot_file(tmp_path):
    data = {
        "tenants": [
            {
                "id": "1001",
                "name": "Max Muster",
                "street": "Hauptstraße 5",
                "postal_code": "90402",
                "city": "Nürnberg",
                "records": [
                    {"period": "202601", "cost_type": "Nettomiete", "debit": "500,00", "credit": "0"},
                    {"period": "202602", "cost_type": "Nettomiete", "debit": "500,00", "credit": "200,00"},
                ],
            },
            {"id": "1002", "name": "Ohne Auswahl", "selected": False, "records": []},
        ],
        "levels": {"1001": "M1"},
        "csv_fees": {"1001": "10,00"},
        "fee_overrides": {"1002": "5000"},
        "profile": {"name": "Erika Beispiel", "bank": {"iban": "DE02120300000000202051", "bank_name": "DKB"}},
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_parser_defaults():
    args = build_parser().parse_args(["snap.json"])
    assert args.delay == BATCH_DELAY
    assert args.tenants is None
    assert not args.json_logs


def test_generates_selected_tenants(snapshot_file, tmp_path, capsys):
    """Test only selected tenants are written with a metadata sidecar"""
    out = tmp_path / "out"
    code = main([str(snapshot_file), "--output", str(out), "--delay", "0"])

    assert code == 0
    pdfs = sorted(p.name for p in out.glob("*.pdf"))
    assert len(pdfs) == 1
    assert pdfs[0].startswith("Hauptstraße. 5_Max Muster_1. Mahnung vom ")
    meta = json.loads(next(out.glob("*.json")).read_text(encoding="utf-8"))
    assert meta["level"] == 2
    assert "1 erfolgreich, 0 fehlgeschlagen" in capsys.readouterr().out


def test_explicit_tenant_filter(snapshot_file, tmp_path):
    """Test --tenant also reaches unselected tenants, which then get an error page"""
    out = tmp_path / "out"
    code = main(
        [str(snapshot_file), "--output", str(out), "--delay", "0", "--tenant", "1002", "--tenant", "9999", "--json-logs"]
    )

    assert code == 0
    meta = json.loads(next(out.glob("*.json")).read_text(encoding="utf-8"))
    assert meta["tenant_id"] == "1002"
    assert meta["error"] == "Keine Records vorhanden"
