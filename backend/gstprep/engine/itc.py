"""
GSTR-3B table 4 – eligible ITC.

Net ITC (row c) per tax head = (a3 + a5) − (b1 + b2). It is stored as
computed, negative included; consumers that use it as a cash substitute
treat a negative figure as zero (see available_credit).
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from loguru import logger
from pydantic import BaseModel, Field

from gstprep.core.errors import ValidationError, Violation
from gstprep.engine.aggregate import SectionTotal
from gstprep.engine.context import FilingContext
from gstprep.engine.store import RecordStore
from gstprep.engine.summary import merge_section
from gstprep.engine.tax import TAX_HEADS, heads, round2
from gstprep.models.gstr3b import EligibleItc
from gstprep.schemas.requests import EligibleItcIn, TaxHeads

INPUT_ROWS = ("a3", "a5", "b1", "b2")


class ItcWorksheet(BaseModel):
    a3: TaxHeads = Field(default_factory=TaxHeads)
    a5: TaxHeads = Field(default_factory=TaxHeads)
    b1: TaxHeads = Field(default_factory=TaxHeads)
    b2: TaxHeads = Field(default_factory=TaxHeads)
    c: TaxHeads = Field(default_factory=TaxHeads)


def net_itc(data: EligibleItcIn) -> TaxHeads:
    net = {}
    for h in TAX_HEADS:
        available = Decimal(str(getattr(data.a3, h))) + Decimal(str(getattr(data.a5, h)))
        reversed_ = Decimal(str(getattr(data.b1, h))) + Decimal(str(getattr(data.b2, h)))
        net[h] = round2(available - reversed_)
    return TaxHeads(**net)


def compute(data: EligibleItcIn) -> ItcWorksheet:
    return ItcWorksheet(**data.model_dump(), c=net_itc(data))


def available_credit(net: TaxHeads) -> TaxHeads:
    """Net ITC usable against liability; negative heads count as zero."""
    return TaxHeads(**{h: max(0.0, getattr(net, h)) for h in TAX_HEADS})


def validate(data: EligibleItcIn) -> None:
    violations = [
        Violation(field=h, row=row, message=f"{row.upper()} {h.upper()}: values cannot be negative")
        for row in INPUT_ROWS
        for h in TAX_HEADS
        if getattr(getattr(data, row), h) < 0
    ]
    if violations:
        raise ValidationError(violations)


def load(store: RecordStore, ctx: FilingContext) -> ItcWorksheet:
    saved: Optional[EligibleItc] = store.first(EligibleItc, ctx)
    if saved is None:
        return ItcWorksheet()
    return compute(EligibleItcIn(**{row: heads(getattr(saved, row)) for row in INPUT_ROWS}))


def save(store: RecordStore, ctx: FilingContext, data: EligibleItcIn) -> tuple[ItcWorksheet, bool]:
    """Validate, upsert the worksheet, merge sec_4. Returns (sheet, summary_synced)."""
    try:
        validate(data)
    except ValidationError as exc:
        logger.info(f"itc: save rejected for user={ctx.user_id}: {exc}")
        raise
    sheet = compute(data)
    store.upsert(
        EligibleItc,
        ctx,
        {row: getattr(sheet, row).model_dump() for row in (*INPUT_ROWS, "c")},
    )
    logger.info(f"itc: saved eligible ITC for user={ctx.user_id} period={ctx.period.label()}")
    synced = merge_section(store, ctx, "sec_4", SectionTotal(**sheet.c.model_dump())) is not None
    return sheet, synced
