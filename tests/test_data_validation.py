"""
Tests for CSV row validation, data-directory checks and the CSV repository.
"""
import logging
from decimal import Decimal
from pathlib import Path

import pytest

from price_quoting.config.settings import Settings, get_sample_data_dir
from price_quoting.data.repository import CsvPricingRepository
from price_quoting.data.validate_data import validate_data_dir
from price_quoting.data.validators import (
    parse_price_book_row,
    parse_price_entry_row,
    parse_product_row,
    parse_tax_rule_row,
)
from price_quoting.engine import PriceBasis

D = Decimal


def write_csv(path: Path, header: str, *rows: str):
    path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")


BOOK_HEADER = "id,name,currency,is_default,is_active,price_basis,valid_from,valid_to,created_at"
ENTRY_HEADER = ("id,price_book_id,product_id,variant_id,unit_price,min_qty,max_qty,"
                "discount_pct,unit_id,valid_from,valid_to,created_at")


class TestRowParsers:
    def test_price_book_row(self):
        book, errors = parse_price_book_row({
            "id": "PB1", "currency": "eur", "is_default": "true", "price_basis": "inclusive",
            "created_at": "2024-01-01",
        }, 2)
        assert errors == []
        assert book.currency == "EUR"
        assert book.is_default and book.is_active
        assert book.price_basis == PriceBasis.INCLUSIVE
        assert book.created_at.tzinfo is not None

    def test_price_book_bad_currency_and_basis(self):
        book, errors = parse_price_book_row({"id": "PB1", "currency": "EURO", "price_basis": "NET"}, 5)
        assert book is None
        assert len(errors) == 2
        assert all(e.startswith("Line 5:") for e in errors)

    def test_price_entry_row(self):
        entry, errors = parse_price_entry_row({
            "id": "E1", "price_book_id": "PB1", "product_id": "P1", "unit_price": "8.00",
            "min_qty": "10", "max_qty": "", "discount_pct": "20", "unit_id": "pcs",
        }, 2)
        assert errors == []
        assert entry.unit_price == D("8.00")
        assert entry.max_qty is None
        assert entry.discount_pct == D(20)
        assert entry.unit_id == "pcs"

    @pytest.mark.parametrize("overrides,message", [
        ({"product_id": ""}, "exactly one of product_id or variant_id"),
        ({"variant_id": "V1"}, "exactly one of product_id or variant_id"),
        ({"unit_price": ""}, "unit_price is required"),
        ({"unit_price": "ten"}, "unit_price must be numeric"),
        ({"min_qty": "10", "max_qty": "5"}, "max_qty must be >= min_qty"),
        ({"min_qty": "-1"}, "min_qty must not be negative"),
        ({"discount_pct": "100"}, "discount_pct must be in [0, 100)"),
        ({"valid_from": "2024-02-01", "valid_to": "2024-01-01"}, "valid_to must be after valid_from"),
    ])
    def test_price_entry_rejections(self, overrides, message):
        row = {"id": "E1", "price_book_id": "PB1", "product_id": "P1", "unit_price": "1"}
        row.update(overrides)
        entry, errors = parse_price_entry_row(row, 7)
        assert entry is None
        assert any(message in e for e in errors), errors

    def test_tax_rule_row(self):
        rule, errors = parse_tax_rule_row({
            "id": "T1", "name": "PST", "rate_pct": "7.5", "compound": "yes", "priority": "20",
            "country": "CA", "region": "PE", "postal_pattern": "C1*",
        }, 2)
        assert errors == []
        assert rule.compound is True
        assert rule.priority == 20
        assert rule.rate_pct == D("7.5")
        assert rule.postal_pattern == "C1*"

    @pytest.mark.parametrize("rate", ["-1", "101", "abc"])
    def test_tax_rule_rate_out_of_range(self, rate):
        rule, errors = parse_tax_rule_row({"id": "T1", "rate_pct": rate}, 2)
        assert rule is None
        assert errors


def test_sample_data_is_valid():
    report = validate_data_dir(get_sample_data_dir())
    assert report["status"] == "success", report["errors"]
    assert report["errors"] == []
    assert report["files"]["price_books.csv"] == {"rows": 4, "valid": 4, "invalid": 0}


def test_bad_data_dir_is_reported(tmp_path):
    write_csv(tmp_path / "price_books.csv", BOOK_HEADER,
              "PB1,Main,EUR,true,true,,,,",
              "PB2,Other,EUR,true,true,,,,",
              "PB1,Dup,EUR,false,true,,,,")
    write_csv(tmp_path / "price_entries.csv", ENTRY_HEADER,
              "E1,PB1,P1,,10,1,20,,,,,",
              "E2,PB1,P1,,8,10,,,,,,",
              "E3,PBX,P1,,8,1,,,,,,",
              "E4,PB1,P1,V1,8,1,,,,,,")

    report = validate_data_dir(tmp_path)

    assert report["status"] == "failed"
    assert "price_books.csv: duplicate id 'PB1'" in report["errors"]
    assert any("price_entries.csv: Line 5:" in e for e in report["errors"])
    assert "products.csv: file not found" in report["warnings"]
    assert "Several active default price books: PB1, PB2 (newest wins)" in report["warnings"]
    assert "Entry E3 references unknown price book 'PBX'" in report["warnings"]
    assert "Entries E1 and E2 have overlapping quantity tiers" in report["warnings"]


def test_missing_required_files(tmp_path):
    report = validate_data_dir(tmp_path)
    assert report["status"] == "failed"
    assert "price_books.csv: file not found" in report["errors"]
    assert "price_entries.csv: file not found" in report["errors"]


class TestCsvRepository:
    @pytest.fixture
    def repo(self):
        return CsvPricingRepository(get_sample_data_dir())

    def test_default_book(self, repo):
        assert repo.get_default_price_book().id == "PB1"

    def test_entries_in_scope(self, repo):
        ids = {e.id for e in repo.list_price_entries("PB1", "P200", "V200-RED")}
        assert ids == {"E3", "E4", "E5"}
        assert {e.id for e in repo.list_price_entries("PB1", "P200")} == {"E3", "E5"}

    def test_tax_rules_filtered_by_country(self, repo):
        assert {r.id for r in repo.list_tax_rules("de")} == {"T-DE-VAT", "T-DE-VAT-RED", "T-DE-OLD"}
        assert repo.list_tax_rules(None) == []
        assert repo.list_tax_rules("FR") == []

    def test_invalid_rows_are_skipped_with_warning(self, tmp_path, caplog):
        write_csv(tmp_path / "price_books.csv", BOOK_HEADER,
                  "PB1,Main,EUR,true,true,,,,",
                  "PB2,Broken,EURO,false,true,,,,")
        repo = CsvPricingRepository(tmp_path)
        with caplog.at_level(logging.WARNING, logger="price_quoting.data.validators"):
            books = repo.list_price_books()
        assert [b.id for b in books] == ["PB1"]
        assert "skipped invalid row" in caplog.text

    def test_reads_fresh_on_every_call(self, tmp_path):
        write_csv(tmp_path / "price_books.csv", BOOK_HEADER, "PB1,Main,EUR,true,true,,,,")
        repo = CsvPricingRepository(tmp_path)
        assert repo.get_default_price_book().id == "PB1"

        write_csv(tmp_path / "price_books.csv", BOOK_HEADER, "PB9,Next,EUR,true,true,,,,")
        assert repo.get_default_price_book().id == "PB9"


def test_settings_minor_units(tmp_path):
    settings = Settings(project_root=tmp_path, data_dir=tmp_path)
    assert settings.minor_units("JPY") == 0
    assert settings.minor_units("bhd") == 3
    assert settings.minor_units("EUR") == 2
    assert settings.minor_units(None) == 2


def test_settings_load_reads_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("PRICE_QUOTING_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PRICE_QUOTING_LOG_LEVEL", "debug")
    monkeypatch.setenv("PRICE_QUOTING_DEFAULT_CURRENCY_DIGITS", "3")
    settings = Settings.load(tmp_path)
    assert settings.data_dir == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.minor_units("XYZ") == 3


def test_product_row_unit_and_status():
    product, errors = parse_product_row(
        {"id": "P1", "name": "Widget", "tax_class_id": "STANDARD", "unit_id": "pcs", "is_active": "false"}, 2
    )
    assert errors == []
    assert product.unit_id == "pcs"
    assert product.is_active is False


def test_missing_columns_are_reported(tmp_path):
    write_csv(tmp_path / "price_books.csv", "id,currency,is_default", "PB1,EUR,true")
    write_csv(tmp_path / "price_entries.csv", ENTRY_HEADER, "E1,PB1,P1,,10,1,,,,,,")

    report = validate_data_dir(tmp_path)

    assert report["status"] == "success"
    assert ("price_books.csv: missing columns name, is_active, price_basis, "
            "valid_from, valid_to, created_at") in report["warnings"]


def test_open_ended_tiers_are_flagged_as_overlapping(tmp_path):
    """Stacked "from N up" tiers resolve by recency, so the data check calls them out."""
    write_csv(tmp_path / "price_books.csv", BOOK_HEADER, "PB1,Main,EUR,true,true,,,,")
    write_csv(tmp_path / "price_entries.csv", ENTRY_HEADER,
              "E1,PB1,P1,,120,1,,,,,,",
              "E2,PB1,P1,,110,10,,,,,,",
              "E3,PB1,P1,,99,50,,,,,,")

    report = validate_data_dir(tmp_path)

    assert "Entries E1 and E2 have overlapping quantity tiers" in report["warnings"]
    assert "Entries E2 and E3 have overlapping quantity tiers" in report["warnings"]
