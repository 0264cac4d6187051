"""Pydantic response schemas for API endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel

from gstprep.engine.aggregate import DocumentTotals, NilTotals, SectionTotal
from gstprep.engine.itc import ItcWorksheet
from gstprep.engine.payment import PaymentWorksheet
from gstprep.engine.section31 import Row31
from gstprep.schemas.requests import NilRatedIn


class HealthResponse(BaseModel):
    status: str
    db: str
    version: str = "1.0.0"


class ErrorItem(BaseModel):
    field: str
    message: str
    row: Optional[str] = None


class ErrorResponse(BaseModel):
    detail: str
    errors: list[ErrorItem] = []


# ── GSTR-1 ───────────────────────────────────────────────────────────────────


class B2BInvoiceRead(BaseModel):
    id: int
    gstin: str
    recipient_name: str
    invoice_number: str
    invoice_date: date
    total_invoice_value: float
    pos_code: str
    pos_name: Optional[str]
    supply_type: str
    taxable_value: float
    igst: float
    cgst: float
    sgst: float
    cess: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class B2CSRowRead(BaseModel):
    id: int
    pos_code: str
    pos_name: Optional[str]
    supply_type: str
    rate: float
    taxable_value: float
    igst: float
    cgst: float
    sgst: float
    cess: float

    class Config:
        from_attributes = True


class HsnRowRead(BaseModel):
    id: int
    hsn_code: str
    product_name: Optional[str]
    description: Optional[str]
    uqc: str
    total_quantity: float
    category: str
    supply_type: str
    rate: float
    taxable_value: float
    igst: float
    cgst: float
    sgst: float
    cess: float

    class Config:
        from_attributes = True


class B2BListResponse(BaseModel):
    items: list[B2BInvoiceRead]
    total: SectionTotal


class B2BWriteResponse(BaseModel):
    record: B2BInvoiceRead
    total: SectionTotal


class B2BRecipient(BaseModel):
    gstin: str
    trade_name: str
    taxpayer_type: str
    invoices: list[B2BInvoiceRead]


class B2CSListResponse(BaseModel):
    items: list[B2CSRowRead]
    total: SectionTotal


class B2CSWriteResponse(BaseModel):
    record: B2CSRowRead
    total: SectionTotal


class HsnListResponse(BaseModel):
    items: list[HsnRowRead]
    total: SectionTotal


class HsnWriteResponse(BaseModel):
    record: HsnRowRead
    total: SectionTotal


class DeleteResponse(BaseModel):
    status: str = "deleted"
    id: int
    total: SectionTotal


class DocumentRangeRead(BaseModel):
    id: int
    sr_from: int
    sr_to: int
    total: int
    cancelled: int
    net_issued: int

    class Config:
        from_attributes = True


class DocumentsResponse(BaseModel):
    document_type: str
    rows: list[DocumentRangeRead]
    totals: DocumentTotals


class NilRatedResponse(BaseModel):
    values: NilRatedIn
    totals: NilTotals


class Gstr1SummaryResponse(BaseModel):
    b2b: SectionTotal
    b2cs: SectionTotal
    nil_rated: NilTotals
    hsn: SectionTotal
    hsn_b2b: SectionTotal
    hsn_b2c: SectionTotal
    documents: DocumentTotals
    counts: dict[str, int]


# ── GSTR-3B ──────────────────────────────────────────────────────────────────


class Gstr3bSummaryResponse(BaseModel):
    sections: dict[str, SectionTotal]
    titles: dict[str, str]


class ResetResponse(BaseModel):
    status: str = "reset"
    deleted: dict[str, int]


class Section31Response(BaseModel):
    rows: dict[str, Row31]
    total: SectionTotal
    inter_taxable: float = 0.0
    intra_taxable: float = 0.0
    inter_share: float = 0.0
    summary_synced: Optional[bool] = None


class ItcResponse(BaseModel):
    worksheet: ItcWorksheet
    summary_synced: Optional[bool] = None


class PaymentResponse(BaseModel):
    worksheet: PaymentWorksheet
    summary_synced: Optional[bool] = None
