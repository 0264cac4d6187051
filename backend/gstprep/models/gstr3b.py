"""SQLModel models for GSTR-3B worksheets and the consolidated summary."""
from typing import Optional
from datetime import datetime
from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from gstprep.models.gstr1 import PeriodScoped


class Section31Row(PeriodScoped, table=True):
    """One row (a..e) of the 3.1 outward/reverse-charge worksheet."""

    __tablename__ = "gstr3b_section_3_1"

    id: Optional[int] = Field(default=None, primary_key=True)
    row_code: str = Field(index=True)
    taxable_value: float = Field(default=0.0)
    igst: float = Field(default=0.0)
    cgst: float = Field(default=0.0)
    sgst: float = Field(default=0.0)
    cess: float = Field(default=0.0)
    source: str = Field(default="AUTO")  # AUTO | MANUAL
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class EligibleItc(PeriodScoped, table=True):
    """Table 4 – eligible ITC. Each column holds {igst, cgst, sgst, cess}."""

    __tablename__ = "gstr3b_eligible_itc"

    id: Optional[int] = Field(default=None, primary_key=True)
    a3: dict = Field(default_factory=dict, sa_column=Column(JSON))  # reverse charge inward
    a5: dict = Field(default_factory=dict, sa_column=Column(JSON))  # all other ITC
    b1: dict = Field(default_factory=dict, sa_column=Column(JSON))  # rules 38, 42, 43 and 17(5)
    b2: dict = Field(default_factory=dict, sa_column=Column(JSON))  # other reversals
    c: dict = Field(default_factory=dict, sa_column=Column(JSON))   # net ITC available
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PaymentOfTax(PeriodScoped, table=True):
    """Table 6.1 – payment of tax. Each column holds {igst, cgst, sgst, cess}."""

    __tablename__ = "gstr3b_payment_tax"

    id: Optional[int] = Field(default=None, primary_key=True)
    tax_payable_reverse_charge: dict = Field(default_factory=dict, sa_column=Column(JSON))
    tax_payable_other: dict = Field(default_factory=dict, sa_column=Column(JSON))
    itc_igst_used: dict = Field(default_factory=dict, sa_column=Column(JSON))
    itc_cgst_used: dict = Field(default_factory=dict, sa_column=Column(JSON))
    itc_sgst_used: dict = Field(default_factory=dict, sa_column=Column(JSON))
    itc_cess_used: dict = Field(default_factory=dict, sa_column=Column(JSON))
    cash_paid_other: dict = Field(default_factory=dict, sa_column=Column(JSON))
    cash_paid_reverse_charge: dict = Field(default_factory=dict, sa_column=Column(JSON))
    utilizable_cash_balance: dict = Field(default_factory=dict, sa_column=Column(JSON))
    additional_cash_required: dict = Field(default_factory=dict, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Gstr3bSummary(PeriodScoped, table=True):
    """
    Consolidated per-period summary read by the GSTR-3B overview tiles.
    A cache over the detail tables: each section column holds a SectionTotal dict.
    """

    __tablename__ = "gstr3b_summary"

    id: Optional[int] = Field(default=None, primary_key=True)
    sec_3_1: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    sec_3_1_1: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    sec_3_2: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    sec_4: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    sec_5: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    sec_5_1: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    sec_6_1: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=datetime.utcnow)
