"""SQLModel models for GSTR-1 sections (B2B, B2CS, HSN, documents issued, nil-rated)."""
from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field


class PeriodScoped(SQLModel):
    """Columns every return record carries: owner plus filing period."""

    user_id: str = Field(index=True)
    filing_year: str = Field(index=True)
    quarter: str = Field(index=True)
    period: str = Field(index=True)


class B2BInvoice(PeriodScoped, table=True):
    """4A – one invoice issued to a registered recipient."""

    __tablename__ = "gstr1_b2b"

    id: Optional[int] = Field(default=None, primary_key=True)
    gstin: str = Field(index=True)
    recipient_name: str
    invoice_number: str = Field(index=True)
    invoice_date: date
    total_invoice_value: float = Field(default=0.0)
    pos_code: str
    pos_name: Optional[str] = None
    supply_type: str  # Intra-State | Inter-State

    # Derived from the per-rate breakdown
    taxable_value: float = Field(default=0.0)
    igst: float = Field(default=0.0)
    cgst: float = Field(default=0.0)
    sgst: float = Field(default=0.0)
    cess: float = Field(default=0.0)
    # JSON list of {"rate": .., "taxable_value": ..}
    rate_breakdown: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class B2CSRow(PeriodScoped, table=True):
    """7 – consolidated supplies to unregistered persons for one POS and rate."""

    __tablename__ = "gstr1_b2cs"

    id: Optional[int] = Field(default=None, primary_key=True)
    pos_code: str
    pos_name: Optional[str] = None
    supply_type: str
    rate: float
    taxable_value: float = Field(default=0.0)
    igst: float = Field(default=0.0)
    cgst: float = Field(default=0.0)
    sgst: float = Field(default=0.0)
    cess: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class HsnRow(PeriodScoped, table=True):
    """12 – HSN-wise summary of outward supplies."""

    __tablename__ = "gstr1_hsn"

    id: Optional[int] = Field(default=None, primary_key=True)
    hsn_code: str = Field(index=True)
    product_name: Optional[str] = None
    description: Optional[str] = None
    uqc: str
    total_quantity: float = Field(default=0.0)
    category: str = Field(default="B2B", index=True)  # B2B | B2C
    supply_type: str = Field(default="Intra-State")
    rate: float
    taxable_value: float = Field(default=0.0)
    igst: float = Field(default=0.0)
    cgst: float = Field(default=0.0)
    sgst: float = Field(default=0.0)
    cess: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class DocumentIssued(PeriodScoped, table=True):
    """13 – a serial-number range of documents issued during the period."""

    __tablename__ = "gstr1_documents_issued"

    id: Optional[int] = Field(default=None, primary_key=True)
    document_type: str = Field(index=True)
    sr_from: int
    sr_to: int
    total: int = Field(default=0)
    cancelled: int = Field(default=0)
    net_issued: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class NilRatedSupply(PeriodScoped, table=True):
    """8 – nil rated, exempted and non-GST supplies; one row per period."""

    __tablename__ = "gstr1_nil_rated"

    id: Optional[int] = Field(default=None, primary_key=True)
    intra_reg_nil: float = Field(default=0.0)
    intra_reg_exempted: float = Field(default=0.0)
    intra_reg_non_gst: float = Field(default=0.0)
    intra_unreg_nil: float = Field(default=0.0)
    intra_unreg_exempted: float = Field(default=0.0)
    intra_unreg_non_gst: float = Field(default=0.0)
    inter_reg_nil: float = Field(default=0.0)
    inter_reg_exempted: float = Field(default=0.0)
    inter_reg_non_gst: float = Field(default=0.0)
    inter_unreg_nil: float = Field(default=0.0)
    inter_unreg_exempted: float = Field(default=0.0)
    inter_unreg_non_gst: float = Field(default=0.0)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
