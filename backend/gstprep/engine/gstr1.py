"""
GSTR-1 section operations.

Line-item sections (B2B, B2CS, HSN) store one record per item and share one
CRUD path through LineItemSection; every write returns the section total
recomputed from the store. Documents issued and nil-rated keep their own
persistence shapes (row set per document type, single row per period).
"""
from __future__ import annotations

import json
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Callable, Optional, Type

from loguru import logger
from pydantic import BaseModel
from sqlmodel import SQLModel

from gstprep.core.config import settings
from gstprep.core.errors import RecordNotFound, ValidationError, Violation
from gstprep.engine.aggregate import (
    DocumentTotals,
    NilTotals,
    SectionTotal,
    aggregate_documents,
    aggregate_nil_rated,
    aggregate_section,
    net_issued,
)
from gstprep.engine.context import FilingContext
from gstprep.engine.store import RecordStore
from gstprep.engine.tax import (
    B2B_RATES,
    B2CS_RATES,
    HSN_RATES,
    SUPPLY_TYPES,
    round2,
    split_tax,
    state_name,
    supply_type_for,
)
from gstprep.models.gstr1 import (
    B2BInvoice,
    B2CSRow,
    DocumentIssued,
    HsnRow,
    NilRatedSupply,
)
from gstprep.schemas.requests import (
    B2BInvoiceIn,
    B2CSRowIn,
    DocumentRangeIn,
    HsnRowIn,
    NilRatedIn,
)

OUTWARD_INVOICES = "Invoices for outward supply"

DOCUMENT_TYPES = (
    OUTWARD_INVOICES,
    "Invoices for inward supply from unregistered person",
    "Revised Invoice",
    "Debit Note",
    "Credit Note",
    "Receipt Voucher",
    "Payment Voucher",
    "Refund Voucher",
    "Delivery Challan for job work",
    "Delivery Challan for supply on approval",
    "Delivery Challan in case of liquid gas",
    "Delivery Challan in cases other than by way of supply",
)

UQC_OPTIONS = ("NOS", "KGS", "PCS", "NA")

HSN_DESCRIPTIONS = {
    "6103": (
        "Men's or boys' suits, ensembles, jackets, blazers, trousers, bib and brace "
        "overalls, breeches and shorts (other than swimwear), knitted or crocheted"
    ),
    "2523": (
        "Portland cement, aluminous cement, slag cement, supersulphate cement and similar "
        "hydraulic cements, whether or not coloured or in the form of clinkers"
    ),
    "9401": "Seats (other than those of heading 9402), whether or not convertible into beds, and parts thereof",
    "8517": (
        "Telephone sets, including smartphones and other telephones for cellular networks "
        "or for other wireless networks; other apparatus for transmission or reception of "
        "voice, images, or other data"
    ),
}


def hsn_description(code: str) -> str:
    if not code:
        return ""
    return HSN_DESCRIPTIONS.get(code, "Unknown HSN Code")


# ── Row builders: request body → stored column values ────────────────────────


def _check_rate(violations: list[Violation], rate: float, allowed: tuple, field: str = "rate") -> None:
    if rate not in allowed:
        violations.append(Violation(field=field, message=f"Rate {rate:g} is not one of {list(allowed)}"))


def build_b2b(data: B2BInvoiceIn) -> dict:
    violations: list[Violation] = []
    for name in ("gstin", "recipient_name", "invoice_number", "pos_code"):
        if not (getattr(data, name) or "").strip():
            violations.append(Violation(field=name, message="Please fill all required fields."))
    if data.invoice_date is None:
        violations.append(Violation(field="invoice_date", message="Please fill all required fields."))
    if data.total_invoice_value <= 0:
        violations.append(Violation(
            field="total_invoice_value", message="Total Invoice Value must be a positive number."
        ))
    gstin = (data.gstin or "").strip().upper()
    if gstin and len(gstin) != 15:
        violations.append(Violation(field="gstin", message="GSTIN must be 15 characters."))
    if data.pos_code and state_name(data.pos_code) is None:
        violations.append(Violation(field="pos_code", message=f"Unknown place of supply '{data.pos_code}'"))
    for i, line in enumerate(data.rate_lines):
        _check_rate(violations, line.rate, B2B_RATES, field=f"rate_lines[{i}].rate")
        if line.taxable_value < 0:
            violations.append(Violation(
                field=f"rate_lines[{i}].taxable_value", message="Taxable value cannot be negative"
            ))
    if data.cess < 0:
        violations.append(Violation(field="cess", message="Cess cannot be negative"))
    if violations:
        raise ValidationError(violations)

    supply_type = supply_type_for(data.pos_code, gstin[:2])
    taxable = Decimal("0")
    igst = cgst = sgst = Decimal("0")
    for line in data.rate_lines:
        split = split_tax(line.taxable_value, line.rate, supply_type)
        taxable += Decimal(str(line.taxable_value))
        igst += Decimal(str(split.igst))
        cgst += Decimal(str(split.cgst))
        sgst += Decimal(str(split.sgst))
    return {
        "gstin": gstin,
        "recipient_name": data.recipient_name.strip(),
        "invoice_number": data.invoice_number.strip(),
        "invoice_date": data.invoice_date,
        "total_invoice_value": round2(data.total_invoice_value),
        "pos_code": data.pos_code,
        "pos_name": state_name(data.pos_code),
        "supply_type": supply_type,
        "taxable_value": round2(taxable),
        "igst": round2(igst),
        "cgst": round2(cgst),
        "sgst": round2(sgst),
        "cess": round2(data.cess),
        "rate_breakdown": json.dumps([line.model_dump() for line in data.rate_lines]),
    }


def build_b2cs(data: B2CSRowIn) -> dict:
    violations: list[Violation] = []
    if not data.pos_code:
        violations.append(Violation(field="pos_code", message="Please fill all mandatory fields."))
    elif state_name(data.pos_code) is None:
        violations.append(Violation(field="pos_code", message=f"Unknown place of supply '{data.pos_code}'"))
    if data.taxable_value <= 0:
        violations.append(Violation(field="taxable_value", message="Taxable value must be a positive number."))
    _check_rate(violations, data.rate, B2CS_RATES)
    if data.cess < 0:
        violations.append(Violation(field="cess", message="Cess cannot be negative"))
    if violations:
        raise ValidationError(violations)

    supply_type = supply_type_for(data.pos_code, settings.HOME_STATE_CODE)
    split = split_tax(data.taxable_value, data.rate, supply_type)
    return {
        "pos_code": data.pos_code,
        "pos_name": state_name(data.pos_code),
        "supply_type": supply_type,
        "rate": data.rate,
        "taxable_value": round2(data.taxable_value),
        "cess": round2(data.cess),
        **split.as_dict(),
    }


def build_hsn(data: HsnRowIn) -> dict:
    violations: list[Violation] = []
    if not data.hsn_code.strip():
        violations.append(Violation(field="hsn_code", message="Please fill all mandatory fields."))
    if data.uqc not in UQC_OPTIONS:
        violations.append(Violation(field="uqc", message=f"UQC must be one of {list(UQC_OPTIONS)}"))
    if data.taxable_value <= 0:
        violations.append(Violation(field="taxable_value", message="Taxable value must be a positive number."))
    if data.total_quantity < 0:
        violations.append(Violation(field="total_quantity", message="Quantity cannot be negative"))
    if data.supply_type not in SUPPLY_TYPES:
        violations.append(Violation(field="supply_type", message=f"Supply type must be one of {list(SUPPLY_TYPES)}"))
    _check_rate(violations, data.rate, HSN_RATES)
    if data.cess < 0:
        violations.append(Violation(field="cess", message="Cess cannot be negative"))
    if violations:
        raise ValidationError(violations)

    code = data.hsn_code.strip()
    split = split_tax(data.taxable_value, data.rate, data.supply_type)
    return {
        "hsn_code": code,
        "product_name": data.product_name,
        "description": hsn_description(code),
        "uqc": data.uqc,
        "total_quantity": data.total_quantity,
        "category": data.category,
        "supply_type": data.supply_type,
        "rate": data.rate,
        "taxable_value": round2(data.taxable_value),
        "cess": round2(data.cess),
        **split.as_dict(),
    }


# ── Shared CRUD for line-item sections ───────────────────────────────────────


class LineItemSection:
    def __init__(
        self,
        key: str,
        model: Type[SQLModel],
        build: Callable[[Any], dict],
        field_map: Optional[dict] = None,
    ):
        self.key = key
        self.model = model
        self.build = build
        self.field_map = field_map or {}

    def list(self, store: RecordStore, ctx: FilingContext, **filters: Any) -> list:
        return store.select(self.model, ctx, order_by="id", **filters)

    def get(self, store: RecordStore, ctx: FilingContext, record_id: int):
        return store.get(self.model, ctx, record_id)

    def total(self, store: RecordStore, ctx: FilingContext, **filters: Any) -> SectionTotal:
        return aggregate_section(self.list(store, ctx, **filters), self.field_map)

    def create(self, store: RecordStore, ctx: FilingContext, data: BaseModel):
        values = self.build(data)
        record = store.insert(self.model(**ctx.scope(), **values))
        logger.info(f"gstr1: {self.key} record {record.id} created for user={ctx.user_id}")
        return record, self.total(store, ctx)

    def update(self, store: RecordStore, ctx: FilingContext, record_id: int, data: BaseModel):
        values = self.build(data)
        record = store.update(self.model, ctx, record_id, values)
        logger.info(f"gstr1: {self.key} record {record_id} updated for user={ctx.user_id}")
        return record, self.total(store, ctx)

    def delete(self, store: RecordStore, ctx: FilingContext, record_id: int) -> SectionTotal:
        if store.delete(self.model, ctx, id=record_id) == 0:
            raise RecordNotFound(f"{self.model.__tablename__} record {record_id} not found")
        logger.info(f"gstr1: {self.key} record {record_id} deleted for user={ctx.user_id}")
        return self.total(store, ctx)


b2b = LineItemSection("4A", B2BInvoice, build_b2b)
b2cs = LineItemSection("7", B2CSRow, build_b2cs)
hsn = LineItemSection("12", HsnRow, build_hsn)


def b2b_recipients(invoices: list[B2BInvoice]) -> list[dict]:
    """Group B2B invoices by recipient GSTIN, in first-seen order."""
    by_gstin: "OrderedDict[str, dict]" = OrderedDict()
    for inv in invoices:
        entry = by_gstin.get(inv.gstin)
        if entry is None:
            entry = by_gstin[inv.gstin] = {
                "gstin": inv.gstin,
                "trade_name": (inv.recipient_name or "").upper(),
                "taxpayer_type": "Regular taxpayer",
                "invoices": [],
            }
        entry["invoices"].append(inv)
    return list(by_gstin.values())


# ── Documents issued (13) ────────────────────────────────────────────────────


def validate_documents(rows: list[DocumentRangeIn]) -> None:
    violations: list[Violation] = []
    for i, r in enumerate(rows, start=1):
        label = f"Row {i}"
        values = (r.sr_from, r.sr_to, r.total, r.cancelled)
        if any(v is None for v in values):
            violations.append(Violation(field="rows", row=str(i), message=f"{label}: All fields are mandatory."))
            continue
        if any(v < 0 for v in values):
            violations.append(Violation(field="rows", row=str(i), message=f"{label}: Values cannot be negative."))
        if r.cancelled > r.total:
            violations.append(Violation(
                field="cancelled", row=str(i),
                message=f"{label}: Cancelled cannot be greater than Total number.",
            ))
    if violations:
        raise ValidationError(violations)


def list_documents(
    store: RecordStore, ctx: FilingContext, document_type: str = OUTWARD_INVOICES
) -> list[DocumentIssued]:
    return store.select(DocumentIssued, ctx, order_by="id", document_type=document_type)


def save_documents(
    store: RecordStore,
    ctx: FilingContext,
    rows: list[DocumentRangeIn],
    document_type: str = OUTWARD_INVOICES,
) -> DocumentTotals:
    """Replace the period's rows for one document type (delete, then insert)."""
    if document_type not in DOCUMENT_TYPES:
        raise ValidationError.single("document_type", f"Unknown document type '{document_type}'")
    validate_documents(rows)

    store.delete(DocumentIssued, ctx, document_type=document_type)
    store.insert_many([
        DocumentIssued(
            **ctx.scope(),
            document_type=document_type,
            sr_from=r.sr_from,
            sr_to=r.sr_to,
            total=r.total,
            cancelled=r.cancelled,
            net_issued=net_issued(r.total, r.cancelled),
        )
        for r in rows
    ])
    logger.info(f"gstr1: saved {len(rows)} document range(s) '{document_type}' for user={ctx.user_id}")
    return aggregate_documents(list_documents(store, ctx, document_type))


# ── Nil rated, exempted, non-GST (8) ─────────────────────────────────────────


def load_nil_rated(store: RecordStore, ctx: FilingContext) -> Optional[NilRatedSupply]:
    return store.first(NilRatedSupply, ctx)


def save_nil_rated(store: RecordStore, ctx: FilingContext, data: NilRatedIn) -> NilTotals:
    values = data.model_dump()
    violations = [
        Violation(field=name, message="Values cannot be negative")
        for name, value in values.items()
        if value < 0
    ]
    if violations:
        raise ValidationError(violations)
    row = store.upsert(NilRatedSupply, ctx, {k: round2(v) for k, v in values.items()})
    logger.info(f"gstr1: nil-rated supplies saved for user={ctx.user_id}")
    return aggregate_nil_rated(row)


# ── GSTR-1 overview ──────────────────────────────────────────────────────────


class Gstr1Summary(BaseModel):
    b2b: SectionTotal
    b2cs: SectionTotal
    nil_rated: NilTotals
    hsn: SectionTotal
    hsn_b2b: SectionTotal
    hsn_b2c: SectionTotal
    documents: DocumentTotals


def gstr1_summary(store: RecordStore, ctx: FilingContext) -> Gstr1Summary:
    hsn_rows = hsn.list(store, ctx)
    return Gstr1Summary(
        b2b=b2b.total(store, ctx),
        b2cs=b2cs.total(store, ctx),
        nil_rated=aggregate_nil_rated(load_nil_rated(store, ctx)),
        hsn=aggregate_section(hsn_rows),
        hsn_b2b=aggregate_section(r for r in hsn_rows if r.category == "B2B"),
        hsn_b2c=aggregate_section(r for r in hsn_rows if r.category == "B2C"),
        documents=aggregate_documents(store.select(DocumentIssued, ctx)),
    )


def section_counts(store: RecordStore, ctx: FilingContext) -> dict[str, int]:
    """Record counts shown on the prepare-online tiles."""
    nil = aggregate_nil_rated(load_nil_rated(store, ctx))
    return {
        "4A": store.count(B2BInvoice, ctx),
        "7B2C": store.count(B2CSRow, ctx),
        "8A": 1 if nil.total > 0 else 0,
        "12HSN": store.count(HsnRow, ctx),
        "13": 1 if store.count(DocumentIssued, ctx) > 0 else 0,
    }
