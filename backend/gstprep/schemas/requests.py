"""Pydantic request bodies accepted by the engine and the API."""
from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field


# ── GSTR-1 ───────────────────────────────────────────────────────────────────


class RateLine(BaseModel):
    rate: float
    taxable_value: float = 0.0


class B2BInvoiceIn(BaseModel):
    gstin: str = ""
    recipient_name: str = ""
    invoice_number: str = ""
    invoice_date: Optional[date] = None
    total_invoice_value: float = 0.0
    pos_code: str = ""
    rate_lines: list[RateLine] = []
    cess: float = 0.0


class B2CSRowIn(BaseModel):
    pos_code: str = ""
    taxable_value: float = 0.0
    rate: float = 0.0
    cess: float = 0.0


class HsnRowIn(BaseModel):
    hsn_code: str = ""
    product_name: Optional[str] = None
    uqc: str = ""
    total_quantity: float = 0.0
    taxable_value: float = 0.0
    rate: float = 0.0
    category: Literal["B2B", "B2C"] = "B2B"
    supply_type: str = "Intra-State"
    cess: float = 0.0


class DocumentRangeIn(BaseModel):
    # Optional so blank cells reach the mandatory-field check
    sr_from: Optional[int] = None
    sr_to: Optional[int] = None
    total: Optional[int] = None
    cancelled: Optional[int] = None


class DocumentsIn(BaseModel):
    document_type: str = "Invoices for outward supply"
    rows: list[DocumentRangeIn] = []


class NilRatedIn(BaseModel):
    intra_reg_nil: float = 0.0
    intra_reg_exempted: float = 0.0
    intra_reg_non_gst: float = 0.0
    intra_unreg_nil: float = 0.0
    intra_unreg_exempted: float = 0.0
    intra_unreg_non_gst: float = 0.0
    inter_reg_nil: float = 0.0
    inter_reg_exempted: float = 0.0
    inter_reg_non_gst: float = 0.0
    inter_unreg_nil: float = 0.0
    inter_unreg_exempted: float = 0.0
    inter_unreg_non_gst: float = 0.0


# ── GSTR-3B ──────────────────────────────────────────────────────────────────


class TaxHeads(BaseModel):
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    cess: float = 0.0


class Section31RowIn(BaseModel):
    taxable_value: float = 0.0
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    cess: float = 0.0
    source: Literal["AUTO", "MANUAL"] = "AUTO"


class Section31In(BaseModel):
    rows: dict[str, Section31RowIn] = Field(default_factory=dict)


class Section31EditIn(Section31In):
    row_code: str
    field: str
    value: float


class EligibleItcIn(BaseModel):
    a3: TaxHeads = Field(default_factory=TaxHeads)
    a5: TaxHeads = Field(default_factory=TaxHeads)
    b1: TaxHeads = Field(default_factory=TaxHeads)
    b2: TaxHeads = Field(default_factory=TaxHeads)


class PaymentIn(BaseModel):
    itc_igst_used: TaxHeads = Field(default_factory=TaxHeads)
    itc_cgst_used: TaxHeads = Field(default_factory=TaxHeads)
    itc_sgst_used: TaxHeads = Field(default_factory=TaxHeads)
    itc_cess_used: TaxHeads = Field(default_factory=TaxHeads)
    utilizable_cash_balance: TaxHeads = Field(default_factory=TaxHeads)
