"""Tests for the eligible-ITC and payment-of-tax worksheets."""
import pytest

from gstprep.core.errors import ValidationError
from gstprep.engine import itc, payment
from gstprep.engine.section31 import Section31Worksheet
from gstprep.engine.summary import load_summary
from gstprep.models.gstr3b import EligibleItc, PaymentOfTax
from gstprep.schemas.requests import EligibleItcIn, PaymentIn, TaxHeads


class TestNetItc:
    def test_available_less_reversed(self):
        data = EligibleItcIn(
            a3=TaxHeads(igst=100),
            a5=TaxHeads(igst=500),
            b1=TaxHeads(igst=50),
            b2=TaxHeads(igst=25),
        )
        assert itc.net_itc(data).igst == 525.0

    def test_negative_net_is_kept(self):
        data = EligibleItcIn(a5=TaxHeads(cgst=10), b1=TaxHeads(cgst=40))
        assert itc.net_itc(data).cgst == -30.0

    def test_available_credit_clamps_negative(self):
        credit = itc.available_credit(TaxHeads(igst=525, cgst=-30))
        assert credit.igst == 525.0
        assert credit.cgst == 0.0


class TestItcWorksheet:
    def test_load_empty(self, store, ctx):
        assert itc.load(store, ctx) == itc.ItcWorksheet()

    def test_save_merges_sec_4(self, store, ctx):
        sheet, synced = itc.save(store, ctx, EligibleItcIn(
            a5=TaxHeads(igst=1000, cgst=10), b1=TaxHeads(cgst=40),
        ))
        assert synced is True
        assert sheet.c.igst == 1000.0
        assert sheet.c.cgst == -30.0

        sec_4 = load_summary(store, ctx)["sec_4"]
        assert sec_4.igst == 1000.0
        assert sec_4.cgst == -30.0
        assert sec_4.count == 0

    def test_save_then_load(self, store, ctx):
        itc.save(store, ctx, EligibleItcIn(a3=TaxHeads(sgst=12.5)))
        itc.save(store, ctx, EligibleItcIn(a3=TaxHeads(sgst=20)))
        loaded = itc.load(store, ctx)
        assert loaded.a3.sgst == 20.0
        assert loaded.c.sgst == 20.0
        assert store.count(EligibleItc, ctx) == 1

    def test_negative_input_rejected(self, store, ctx):
        with pytest.raises(ValidationError) as exc:
            itc.save(store, ctx, EligibleItcIn(b2=TaxHeads(cess=-1)))
        assert exc.value.violations[0].row == "b2"
        assert store.count(EligibleItc, ctx) == 0


PAYABLE_OTHER = TaxHeads(igst=9000, cgst=1800, sgst=1800)
PAYABLE_RC = TaxHeads(igst=500)


class TestPaymentCompute:
    def test_cash_paid_and_additional_cash(self):
        inputs = PaymentIn(
            itc_igst_used=TaxHeads(igst=6000, cgst=1000),
            itc_cgst_used=TaxHeads(cgst=500),
            utilizable_cash_balance=TaxHeads(igst=2000),
        )
        sheet = payment.compute(PAYABLE_RC, PAYABLE_OTHER, inputs)

        assert sheet.cash_paid_other == TaxHeads(igst=3000, cgst=300, sgst=1800)
        assert sheet.cash_paid_reverse_charge == TaxHeads(igst=500)
        assert sheet.additional_cash_required == TaxHeads(igst=1500, cgst=300, sgst=1800)

    def test_reverse_charge_never_offset_by_itc(self):
        inputs = PaymentIn(itc_igst_used=TaxHeads(igst=50000))
        sheet = payment.compute(PAYABLE_RC, PAYABLE_OTHER, inputs)
        assert sheet.cash_paid_other.igst == 0.0
        assert sheet.cash_paid_reverse_charge.igst == 500.0

    def test_additional_cash_never_negative(self):
        inputs = PaymentIn(utilizable_cash_balance=TaxHeads(sgst=99999))
        sheet = payment.compute(PAYABLE_RC, PAYABLE_OTHER, inputs)
        assert sheet.additional_cash_required.sgst == 0.0

    def test_cess_credit_column_is_always_zero(self):
        inputs = PaymentIn(itc_cess_used=TaxHeads(igst=100, cess=500))
        sheet = payment.compute(PAYABLE_RC, PAYABLE_OTHER, inputs)
        assert sheet.itc_cess_used == TaxHeads()
        assert sheet.cash_paid_other == PAYABLE_OTHER

    def test_negative_inputs_rejected(self):
        with pytest.raises(ValidationError) as exc:
            payment.validate_inputs(PaymentIn(itc_sgst_used=TaxHeads(sgst=-1)))
        assert exc.value.fields() == {"itc_sgst_used"}


class TestProceedGate:
    def _sheet(self, balance_igst: float, itc_available: TaxHeads = TaxHeads(igst=7000, cgst=500)):
        inputs = PaymentIn(
            itc_igst_used=TaxHeads(igst=6000, cgst=1000),
            itc_cgst_used=TaxHeads(cgst=500),
            utilizable_cash_balance=TaxHeads(igst=balance_igst),
        )
        return payment.compute(PAYABLE_RC, PAYABLE_OTHER, inputs, itc_available)

    def test_balance_equal_to_liability_passes(self):
        payment.validate_proceed(self._sheet(3500))

    def test_balance_above_liability_blocks(self):
        with pytest.raises(ValidationError) as exc:
            payment.validate_proceed(self._sheet(3500.01))
        assert str(exc.value) == "Utilizable Cash Balance for IGST cannot exceed Tax Liability"
        assert exc.value.violations[0].row == "igst"

    def test_credit_used_beyond_net_itc_does_not_block(self):
        sheet = self._sheet(3500, itc_available=TaxHeads())
        assert sheet.itc_available == TaxHeads()
        payment.validate_proceed(sheet)

    def test_balance_equal_to_cash_paid_without_saved_itc(self):
        inputs = PaymentIn(
            itc_igst_used=TaxHeads(igst=1000),
            utilizable_cash_balance=TaxHeads(igst=8000),
        )
        sheet = payment.compute(TaxHeads(), TaxHeads(igst=9000), inputs)
        assert sheet.cash_paid_other.igst == 8000.0
        payment.validate_proceed(sheet)


class TestPaymentWorksheet:
    @pytest.fixture
    def upstream(self, store, ctx, seed_gstr1):
        seed_gstr1(store, ctx, nil=False)
        sheet31 = Section31Worksheet.load(store, ctx)
        sheet31.edit("d", "igst", 500)
        sheet31.save(store, ctx)
        itc.save(store, ctx, EligibleItcIn(a5=TaxHeads(igst=10000, cgst=2000, sgst=2000)))

    def test_load_reads_liability_and_itc(self, store, ctx, upstream):
        sheet = payment.load(store, ctx)
        assert sheet.tax_payable_other == TaxHeads(igst=9000, cgst=1800, sgst=1800)
        assert sheet.tax_payable_reverse_charge == TaxHeads(igst=500)
        assert sheet.itc_available == TaxHeads(igst=10000, cgst=2000, sgst=2000)
        assert sheet.cash_paid_other == TaxHeads(igst=9000, cgst=1800, sgst=1800)

    def test_save_merges_additional_cash(self, store, ctx, upstream):
        inputs = PaymentIn(
            itc_igst_used=TaxHeads(igst=9000),
            itc_cgst_used=TaxHeads(cgst=1800),
            itc_sgst_used=TaxHeads(sgst=1800),
            utilizable_cash_balance=TaxHeads(igst=200),
        )
        sheet, synced = payment.save(store, ctx, inputs)
        assert synced is True
        assert sheet.additional_cash_required == TaxHeads(igst=300)
        assert load_summary(store, ctx)["sec_6_1"].igst == 300.0

        reloaded = payment.load(store, ctx)
        assert reloaded.utilizable_cash_balance.igst == 200.0
        assert reloaded.additional_cash_required.igst == 300.0

    def test_proceed_blocked_writes_nothing(self, store, ctx, upstream):
        with pytest.raises(ValidationError):
            payment.proceed(store, ctx, PaymentIn(utilizable_cash_balance=TaxHeads(cgst=1800.5)))
        assert store.count(PaymentOfTax, ctx) == 0
        assert load_summary(store, ctx)["sec_6_1"].count == 0

    def test_proceed_within_limits_saves(self, store, ctx, upstream):
        sheet, _ = payment.proceed(store, ctx, PaymentIn(
            itc_igst_used=TaxHeads(igst=9000),
            utilizable_cash_balance=TaxHeads(igst=500, cgst=1800, sgst=1800),
        ))
        assert sheet.additional_cash_required == TaxHeads()
        assert store.count(PaymentOfTax, ctx) == 1

    def test_negative_net_itc_reported_as_zero_credit(self, store, ctx, upstream):
        itc.save(store, ctx, EligibleItcIn(a5=TaxHeads(igst=10000), b1=TaxHeads(cgst=100)))
        sheet, _ = payment.proceed(store, ctx, PaymentIn(itc_cgst_used=TaxHeads(cgst=1)))
        assert sheet.itc_available.cgst == 0.0
        assert sheet.cash_paid_other.cgst == 1799.0
