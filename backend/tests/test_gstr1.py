"""Tests for GSTR-1 section operations."""
from datetime import date

import pytest

from gstprep.core.errors import BackendError, RecordNotFound, ValidationError
from gstprep.engine import gstr1
from gstprep.engine.tax import INTER_STATE, INTRA_STATE
from gstprep.models.gstr1 import B2BInvoice, DocumentIssued, NilRatedSupply
from gstprep.schemas.requests import (
    B2BInvoiceIn,
    B2CSRowIn,
    DocumentRangeIn,
    HsnRowIn,
    NilRatedIn,
    RateLine,
)


def b2b_invoice(**overrides) -> B2BInvoiceIn:
    data = dict(
        gstin="27AAACR5055K1Z7",
        recipient_name="Reliance Retail",
        invoice_number="INV-001",
        invoice_date=date(2024, 4, 5),
        total_invoice_value=59000,
        pos_code="29",
        rate_lines=[RateLine(rate=18, taxable_value=50000)],
    )
    data.update(overrides)
    return B2BInvoiceIn(**data)


class TestB2B:
    def test_create_inter_state(self, store, ctx):
        record, total = gstr1.b2b.create(store, ctx, b2b_invoice())
        assert record.id is not None
        assert record.supply_type == INTER_STATE
        assert record.pos_name == "Karnataka"
        assert record.igst == 9000.0
        assert record.cgst == 0.0
        assert total.count == 1
        assert total.taxable_value == 50000.0
        assert total.igst == 9000.0

    def test_pos_in_recipient_state_is_intra(self, store, ctx):
        record, _ = gstr1.b2b.create(store, ctx, b2b_invoice(pos_code="27"))
        assert record.supply_type == INTRA_STATE
        assert record.cgst == 4500.0
        assert record.sgst == 4500.0
        assert record.igst == 0.0

    def test_rate_lines_are_summed(self, store, ctx):
        invoice = b2b_invoice(rate_lines=[
            RateLine(rate=5, taxable_value=10000),
            RateLine(rate=12, taxable_value=20000),
        ])
        record, _ = gstr1.b2b.create(store, ctx, invoice)
        assert record.taxable_value == 30000.0
        assert record.igst == 2900.0

    def test_gstin_normalised(self, store, ctx):
        record, _ = gstr1.b2b.create(store, ctx, b2b_invoice(gstin=" 27aaacr5055k1z7 "))
        assert record.gstin == "27AAACR5055K1Z7"

    def test_missing_fields_rejected_without_write(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.b2b.create(store, ctx, B2BInvoiceIn())
        assert {"gstin", "recipient_name", "invoice_number", "pos_code", "invoice_date",
                "total_invoice_value"} <= exc.value.fields()
        assert store.count(B2BInvoice, ctx) == 0

    def test_bad_rate_rejected(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.b2b.create(store, ctx, b2b_invoice(rate_lines=[RateLine(rate=7, taxable_value=100)]))
        assert exc.value.fields() == {"rate_lines[0].rate"}

    def test_short_gstin_rejected(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.b2b.create(store, ctx, b2b_invoice(gstin="27AAACR"))
        assert "gstin" in exc.value.fields()

    def test_update_recomputes_total(self, store, ctx):
        record, _ = gstr1.b2b.create(store, ctx, b2b_invoice())
        gstr1.b2b.create(store, ctx, b2b_invoice(invoice_number="INV-002"))
        updated, total = gstr1.b2b.update(
            store, ctx, record.id, b2b_invoice(rate_lines=[RateLine(rate=18, taxable_value=10000)])
        )
        assert updated.igst == 1800.0
        assert total.count == 2
        assert total.taxable_value == 60000.0
        assert total.igst == 10800.0

    def test_update_missing_raises_not_found(self, store, ctx):
        with pytest.raises(RecordNotFound):
            gstr1.b2b.update(store, ctx, 999, b2b_invoice())

    def test_delete(self, store, ctx):
        record, _ = gstr1.b2b.create(store, ctx, b2b_invoice())
        total = gstr1.b2b.delete(store, ctx, record.id)
        assert total.count == 0
        assert total.igst == 0.0
        with pytest.raises(RecordNotFound):
            gstr1.b2b.delete(store, ctx, record.id)

    def test_scoped_to_period(self, store, ctx, other_ctx):
        gstr1.b2b.create(store, ctx, b2b_invoice())
        assert gstr1.b2b.list(store, other_ctx) == []
        assert gstr1.b2b.total(store, other_ctx).count == 0

    def test_recipients_grouped_by_gstin(self, store, ctx):
        gstr1.b2b.create(store, ctx, b2b_invoice())
        gstr1.b2b.create(store, ctx, b2b_invoice(
            gstin="29AAGCB7383J1Z4", recipient_name="Bharat Traders", invoice_number="INV-002"
        ))
        gstr1.b2b.create(store, ctx, b2b_invoice(invoice_number="INV-003"))

        groups = gstr1.b2b_recipients(gstr1.b2b.list(store, ctx))
        assert [g["gstin"] for g in groups] == ["27AAACR5055K1Z7", "29AAGCB7383J1Z4"]
        assert groups[0]["trade_name"] == "RELIANCE RETAIL"
        assert [i.invoice_number for i in groups[0]["invoices"]] == ["INV-001", "INV-003"]


class TestB2CS:
    def test_home_state_is_intra(self, store, ctx):
        record, total = gstr1.b2cs.create(store, ctx, B2CSRowIn(pos_code="33", taxable_value=20000, rate=18))
        assert record.supply_type == INTRA_STATE
        assert record.pos_name == "Tamil Nadu"
        assert record.cgst == 1800.0
        assert record.sgst == 1800.0
        assert total.cgst == 1800.0

    def test_other_state_is_inter(self, store, ctx):
        record, _ = gstr1.b2cs.create(store, ctx, B2CSRowIn(pos_code="29", taxable_value=20000, rate=18))
        assert record.supply_type == INTER_STATE
        assert record.igst == 3600.0

    def test_zero_rate_allowed(self, store, ctx):
        record, _ = gstr1.b2cs.create(store, ctx, B2CSRowIn(pos_code="33", taxable_value=500, rate=0))
        assert (record.igst, record.cgst, record.sgst) == (0.0, 0.0, 0.0)

    def test_invalid_rows_rejected(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.b2cs.create(store, ctx, B2CSRowIn(pos_code="99", taxable_value=0, rate=8))
        assert exc.value.fields() == {"pos_code", "taxable_value", "rate"}


class TestHsn:
    def test_create_with_description(self, store, ctx):
        record, total = gstr1.hsn.create(store, ctx, HsnRowIn(
            hsn_code="8517", uqc="NOS", total_quantity=10, taxable_value=1000, rate=12,
            category="B2C", supply_type=INTER_STATE,
        ))
        assert record.description.startswith("Telephone sets")
        assert record.igst == 120.0
        assert total.count == 1

    def test_unknown_code_description(self):
        assert gstr1.hsn_description("1234") == "Unknown HSN Code"
        assert gstr1.hsn_description("") == ""

    def test_invalid_row_rejected(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.hsn.create(store, ctx, HsnRowIn(hsn_code="8517", uqc="BOX", taxable_value=100, rate=18))
        assert exc.value.fields() == {"uqc", "rate"}

    def test_filter_by_category(self, store, ctx):
        gstr1.hsn.create(store, ctx, HsnRowIn(hsn_code="2523", uqc="KGS", taxable_value=100, rate=28, category="B2B"))
        gstr1.hsn.create(store, ctx, HsnRowIn(hsn_code="9401", uqc="PCS", taxable_value=200, rate=12, category="B2C"))
        assert gstr1.hsn.total(store, ctx, category="B2C").taxable_value == 200.0
        assert len(gstr1.hsn.list(store, ctx)) == 2


class TestDocuments:
    def test_save_and_totals(self, store, ctx):
        totals = gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=100, total=100, cancelled=5)])
        assert totals.count == 1
        assert totals.net_issued == 95
        assert gstr1.list_documents(store, ctx)[0].net_issued == 95

    def test_save_replaces_previous_rows(self, store, ctx):
        gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=10, total=10, cancelled=0)])
        gstr1.save_documents(store, ctx, [
            DocumentRangeIn(sr_from=1, sr_to=50, total=50, cancelled=1),
            DocumentRangeIn(sr_from=51, sr_to=60, total=10, cancelled=0),
        ])
        assert len(gstr1.list_documents(store, ctx)) == 2

    def test_document_types_kept_apart(self, store, ctx):
        gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=10, total=10, cancelled=0)])
        gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=3, total=3, cancelled=0)], "Credit Note")
        assert len(gstr1.list_documents(store, ctx)) == 1
        assert len(gstr1.list_documents(store, ctx, "Credit Note")) == 1

    def test_cancelled_above_total(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=10, total=10, cancelled=11)])
        assert str(exc.value) == "Row 1: Cancelled cannot be greater than Total number."

    def test_blank_and_negative_rows(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.save_documents(store, ctx, [
                DocumentRangeIn(sr_from=1, sr_to=10, total=None, cancelled=0),
                DocumentRangeIn(sr_from=1, sr_to=10, total=-1, cancelled=0),
            ])
        messages = [v.message for v in exc.value.violations]
        assert "Row 1: All fields are mandatory." in messages
        assert "Row 2: Values cannot be negative." in messages

    def test_unknown_document_type(self, store, ctx):
        with pytest.raises(ValidationError):
            gstr1.save_documents(store, ctx, [], "Gift Voucher")

    def test_failure_after_delete_leaves_rows_removed(self, store, ctx, monkeypatch):
        # Delete and insert are separate commits; a failed insert is not rolled back into the old rows
        gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=10, total=10, cancelled=0)])

        def broken_insert(objs):
            raise BackendError("insert rejected")

        monkeypatch.setattr(store, "insert_many", broken_insert)
        with pytest.raises(BackendError):
            gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=20, total=20, cancelled=0)])
        assert store.count(DocumentIssued, ctx) == 0


class TestNilRated:
    def test_save_and_reload(self, store, ctx):
        totals = gstr1.save_nil_rated(store, ctx, NilRatedIn(
            intra_reg_nil=100, intra_unreg_exempted=50, inter_reg_non_gst=25,
        ))
        assert (totals.records, totals.nil, totals.exempted, totals.non_gst) == (1, 100.0, 50.0, 25.0)
        assert gstr1.load_nil_rated(store, ctx).intra_reg_nil == 100.0

    def test_single_row_per_period(self, store, ctx):
        gstr1.save_nil_rated(store, ctx, NilRatedIn(intra_reg_nil=1))
        gstr1.save_nil_rated(store, ctx, NilRatedIn(intra_reg_nil=2))
        assert store.count(NilRatedSupply, ctx) == 1

    def test_negative_rejected(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            gstr1.save_nil_rated(store, ctx, NilRatedIn(inter_unreg_nil=-1))
        assert exc.value.fields() == {"inter_unreg_nil"}
        assert gstr1.load_nil_rated(store, ctx) is None


class TestOverview:
    def test_summary_and_counts(self, store, ctx):
        gstr1.b2b.create(store, ctx, b2b_invoice())
        gstr1.b2cs.create(store, ctx, B2CSRowIn(pos_code="33", taxable_value=20000, rate=18))
        gstr1.hsn.create(store, ctx, HsnRowIn(hsn_code="8517", uqc="NOS", taxable_value=1000, rate=12, category="B2C"))
        gstr1.save_documents(store, ctx, [DocumentRangeIn(sr_from=1, sr_to=10, total=10, cancelled=0)])

        summary = gstr1.gstr1_summary(store, ctx)
        assert summary.b2b.igst == 9000.0
        assert summary.b2cs.cgst == 1800.0
        assert summary.hsn_b2c.count == 1
        assert summary.hsn_b2b.count == 0
        assert summary.documents.net_issued == 10

        assert gstr1.section_counts(store, ctx) == {"4A": 1, "7B2C": 1, "8A": 0, "12HSN": 1, "13": 1}
