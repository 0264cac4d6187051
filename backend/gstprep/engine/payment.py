"""
GSTR-3B table 6.1 – payment of tax.

Per tax head:
  cash paid (other)     = max(0, payable other − ITC used from all credit heads)
  cash paid (rev. chg.) = payable reverse charge, never offset by ITC
  additional cash       = max(0, cash other + cash RC − utilizable cash balance)

Liability comes from 3.1 rows a (other) and d (reverse charge). The eligible-ITC
net figure is reported as ITC available; it does not gate proceeding. ITC paid
from the CESS credit head is always zero.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from loguru import logger
from pydantic import BaseModel, Field

from gstprep.core.errors import ValidationError, Violation
from gstprep.engine import itc
from gstprep.engine.aggregate import SectionTotal
from gstprep.engine.context import FilingContext
from gstprep.engine.section31 import Row31, Section31Worksheet
from gstprep.engine.store import RecordStore
from gstprep.engine.summary import merge_section
from gstprep.engine.tax import TAX_HEADS, heads, round2
from gstprep.models.gstr3b import PaymentOfTax
from gstprep.schemas.requests import PaymentIn, TaxHeads

ITC_COLUMNS = ("itc_igst_used", "itc_cgst_used", "itc_sgst_used", "itc_cess_used")
INPUT_COLUMNS = (*ITC_COLUMNS, "utilizable_cash_balance")
STORED_COLUMNS = (
    "tax_payable_reverse_charge",
    "tax_payable_other",
    *INPUT_COLUMNS,
    "cash_paid_other",
    "cash_paid_reverse_charge",
    "additional_cash_required",
)


class PaymentWorksheet(BaseModel):
    tax_payable_reverse_charge: TaxHeads = Field(default_factory=TaxHeads)
    tax_payable_other: TaxHeads = Field(default_factory=TaxHeads)
    itc_available: TaxHeads = Field(default_factory=TaxHeads)
    itc_igst_used: TaxHeads = Field(default_factory=TaxHeads)
    itc_cgst_used: TaxHeads = Field(default_factory=TaxHeads)
    itc_sgst_used: TaxHeads = Field(default_factory=TaxHeads)
    itc_cess_used: TaxHeads = Field(default_factory=TaxHeads)
    cash_paid_other: TaxHeads = Field(default_factory=TaxHeads)
    cash_paid_reverse_charge: TaxHeads = Field(default_factory=TaxHeads)
    utilizable_cash_balance: TaxHeads = Field(default_factory=TaxHeads)
    additional_cash_required: TaxHeads = Field(default_factory=TaxHeads)

    def inputs(self) -> PaymentIn:
        return PaymentIn(**{c: getattr(self, c) for c in INPUT_COLUMNS})


def _d(value: float) -> Decimal:
    return Decimal(str(value))


def _liability(row: Row31) -> TaxHeads:
    return TaxHeads(**{h: getattr(row, h) for h in TAX_HEADS})


def compute(
    payable_reverse_charge: TaxHeads,
    payable_other: TaxHeads,
    inputs: PaymentIn,
    itc_available: Optional[TaxHeads] = None,
) -> PaymentWorksheet:
    inputs = inputs.model_copy(update={"itc_cess_used": TaxHeads()})
    cash_other, cash_rc, additional = {}, {}, {}
    for h in TAX_HEADS:
        used = sum((_d(getattr(getattr(inputs, c), h)) for c in ITC_COLUMNS), Decimal("0"))
        cash_other[h] = max(0.0, round2(_d(getattr(payable_other, h)) - used))
        cash_rc[h] = round2(getattr(payable_reverse_charge, h))
        balance = _d(getattr(inputs.utilizable_cash_balance, h))
        additional[h] = max(0.0, round2(_d(cash_other[h]) + _d(cash_rc[h]) - balance))
    return PaymentWorksheet(
        tax_payable_reverse_charge=payable_reverse_charge,
        tax_payable_other=payable_other,
        itc_available=itc_available or TaxHeads(),
        **{c: getattr(inputs, c) for c in INPUT_COLUMNS},
        cash_paid_other=TaxHeads(**cash_other),
        cash_paid_reverse_charge=TaxHeads(**cash_rc),
        additional_cash_required=TaxHeads(**additional),
    )


def validate_inputs(inputs: PaymentIn) -> None:
    violations = [
        Violation(field=c, row=h, message=f"{c} {h.upper()}: values cannot be negative")
        for c in INPUT_COLUMNS
        for h in TAX_HEADS
        if getattr(getattr(inputs, c), h) < 0
    ]
    if violations:
        raise ValidationError(violations)


def validate_proceed(sheet: PaymentWorksheet) -> None:
    """Gate for the proceed-to-file action; reports every failing head."""
    violations: list[Violation] = []
    for h in TAX_HEADS:
        liability = round2(_d(getattr(sheet.cash_paid_other, h)) + _d(getattr(sheet.cash_paid_reverse_charge, h)))
        if round2(getattr(sheet.utilizable_cash_balance, h)) > liability:
            violations.append(Violation(
                field="utilizable_cash_balance", row=h,
                message=f"Utilizable Cash Balance for {h.upper()} cannot exceed Tax Liability",
            ))
    if violations:
        raise ValidationError(violations)


def _upstream(store: RecordStore, ctx: FilingContext) -> tuple[TaxHeads, TaxHeads, TaxHeads]:
    sheet31 = Section31Worksheet.load(store, ctx)
    net = itc.load(store, ctx).c
    return _liability(sheet31.rows["d"]), _liability(sheet31.rows["a"]), itc.available_credit(net)


def load(store: RecordStore, ctx: FilingContext) -> PaymentWorksheet:
    """Liability and ITC capacity re-read every time; user inputs from the saved row."""
    rc, other, available = _upstream(store, ctx)
    saved = store.first(PaymentOfTax, ctx)
    if saved is not None:
        inputs = PaymentIn(**{c: heads(getattr(saved, c)) for c in INPUT_COLUMNS})
    else:
        inputs = PaymentIn()
    return compute(rc, other, inputs, available)


def save(store: RecordStore, ctx: FilingContext, inputs: PaymentIn) -> tuple[PaymentWorksheet, bool]:
    """Validate, upsert the worksheet, merge sec_6_1. Returns (sheet, summary_synced)."""
    try:
        validate_inputs(inputs)
    except ValidationError as exc:
        logger.info(f"payment: save rejected for user={ctx.user_id}: {exc}")
        raise
    rc, other, available = _upstream(store, ctx)
    sheet = compute(rc, other, inputs, available)
    store.upsert(
        PaymentOfTax,
        ctx,
        {name: getattr(sheet, name).model_dump() for name in STORED_COLUMNS},
    )
    logger.info(f"payment: saved payment of tax for user={ctx.user_id} period={ctx.period.label()}")
    synced = merge_section(
        store, ctx, "sec_6_1", SectionTotal(**sheet.additional_cash_required.model_dump())
    ) is not None
    return sheet, synced


def proceed(store: RecordStore, ctx: FilingContext, inputs: PaymentIn) -> tuple[PaymentWorksheet, bool]:
    """Run the proceed gate against fresh upstream figures, then save."""
    validate_inputs(inputs)
    rc, other, available = _upstream(store, ctx)
    sheet = compute(rc, other, inputs, available)
    try:
        validate_proceed(sheet)
    except ValidationError as exc:
        logger.info(f"payment: proceed blocked for user={ctx.user_id}: {exc}")
        raise
    return save(store, ctx, inputs)
