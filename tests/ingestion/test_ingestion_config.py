"""Tests for the ingestion configuration helpers and vocabulary overrides."""

import pytest

from command_center.core.enums import ParserKind, Section
from command_center.core.schemas import BillField, CashFlowField, default_vocabulary
from command_center.ingestion.config import (
    CASH_FLOW_MAX_BYTES,
    EXCEL_ONLY_EXTENSIONS,
    MB,
    SPREADSHEET_EXTENSIONS,
    build_vocabulary,
    get_allowed_extensions,
    get_max_bytes,
    load_vocabulary_overrides,
)


def test_get_max_bytes():
    """Test that get_max_bytes() returns the ceiling for each parser kind."""
    assert get_max_bytes(ParserKind.BILLS) == 10 * MB
    assert get_max_bytes(ParserKind.BUDGET) == 10 * MB
    assert get_max_bytes(ParserKind.CASH_FLOW) == CASH_FLOW_MAX_BYTES == 20 * MB


def test_get_allowed_extensions():
    assert get_allowed_extensions(ParserKind.BILLS) == SPREADSHEET_EXTENSIONS
    assert get_allowed_extensions(ParserKind.CASH_FLOW) == EXCEL_ONLY_EXTENSIONS
    assert ".csv" not in get_allowed_extensions(ParserKind.CASH_FLOW)


def test_helpers_reject_unknown_kind():
    with pytest.raises(ValueError, match="Unsupported parser kind"):
        get_max_bytes("PAYROLL")
    with pytest.raises(ValueError, match="Unsupported parser kind"):
        get_allowed_extensions("PAYROLL")


class TestVocabularyOverrides:
    def test_load_and_apply(self, tmp_path):
        """Test that shared and per-kind tables are layered over the defaults."""
        path = tmp_path / "vocabulary.yaml"
        path.write_text(
            "skip_labels:\n"
            "  - Running Balance\n"
            "bills:\n"
            "  header_aliases:\n"
            "    payee: [Remit To, Supplier]\n"
            "    amount: Balance Due\n"
            "cash_flow:\n"
            "  section_keywords:\n"
            "    Capital Projects: investments\n",
            encoding="utf-8",
        )
        overrides = load_vocabulary_overrides(path)

        bills = build_vocabulary(ParserKind.BILLS, overrides)
        assert bills.resolve_header("remit-to") == BillField.PAYEE
        assert bills.resolve_header("Supplier") == BillField.PAYEE
        assert bills.resolve_header("Balance Due") == BillField.AMOUNT
        assert bills.resolve_header("Vendor") == BillField.PAYEE
        assert bills.is_skipped("Running Balance")

        cash_flow = build_vocabulary(ParserKind.CASH_FLOW, overrides)
        assert cash_flow.section_for("CAPITAL PROJECTS") == Section.INVESTMENTS
        assert cash_flow.section_for("Cash In") == Section.CASH_IN
        assert cash_flow.resolve_header("Supplier") is None

    def test_no_overrides_returns_defaults(self):
        assert build_vocabulary(ParserKind.BUDGET) == default_vocabulary(ParserKind.BUDGET)

    def test_defaults_are_not_mutated(self):
        build_vocabulary(ParserKind.BILLS, {"header_aliases": {"title": ["Invoice"]}})
        assert default_vocabulary(ParserKind.BILLS).resolve_header("Invoice") is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Vocabulary file not found"):
            load_vocabulary_overrides(tmp_path / "missing.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("header_aliases: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Failed to read vocabulary file"):
            load_vocabulary_overrides(path)

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_vocabulary_overrides(path)

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"aliases": {}}, "Unknown vocabulary keys: aliases"),
            ({"header_aliases": {"invoice_no": ["Inv #"]}}, "Unknown field 'invoice_no'"),
            ({"section_keywords": {"Other": "elsewhere"}}, "Unknown section 'elsewhere'"),
            ({"header_aliases": ["amount_due"]}, "'header_aliases' must be a mapping, got list"),
            ({"section_keywords": ["Capital Projects"]}, "'section_keywords' must be a mapping"),
            ({"skip_labels": 5}, "'skip_labels' must be a list, got int"),
            ({"header_aliases": {"title": {"x": 1}}}, "'header_aliases.title' must be a list"),
            ({"bills": ["Inv"]}, "Vocabulary overrides must be a mapping"),
        ],
    )
    def test_invalid_overrides(self, overrides, message):
        with pytest.raises(ValueError, match=message):
            build_vocabulary(ParserKind.BILLS, overrides)

    def test_string_skip_label_is_one_label(self):
        vocab = build_vocabulary(ParserKind.BILLS, {"skip_labels": "Running Balance"})
        assert vocab.is_skipped("Running Balance")
        assert not vocab.is_skipped("R")

    def test_skip_contains_override(self):
        vocab = build_vocabulary(ParserKind.BILLS, {"skip_contains": [["carried", "forward"]]})
        assert vocab.is_skipped("Amount Carried Forward")
        assert not vocab.is_skipped("Carried Items")

    def test_cash_flow_label_aliases(self):
        vocab = build_vocabulary(ParserKind.CASH_FLOW, {"header_aliases": {"line_item": "Account"}})
        assert vocab.resolve_header("Account") == CashFlowField.LINE_ITEM
