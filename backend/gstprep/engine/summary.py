"""
Consolidated GSTR-3B summary.

The summary is a read cache over the worksheet tables: one row per user and
period, one SectionTotal per section. Writers merge their own section and
carry every other section over unchanged. A failed merge never undoes the
worksheet write that preceded it.
"""
from __future__ import annotations

from typing import Optional, Union

from loguru import logger

from gstprep.core.errors import BackendError, ValidationError
from gstprep.engine.aggregate import SectionTotal
from gstprep.engine.context import FilingContext
from gstprep.engine.store import RecordStore
from gstprep.models.gstr3b import (
    EligibleItc,
    Gstr3bSummary,
    PaymentOfTax,
    Section31Row,
)

SECTION_KEYS = ("sec_3_1", "sec_3_1_1", "sec_3_2", "sec_4", "sec_5", "sec_5_1", "sec_6_1")

SECTION_TITLES = {
    "sec_3_1": "3.1 Tax on outward and reverse charge inward supplies",
    "sec_3_1_1": "3.1.1 Supplies notified under section 9(5)",
    "sec_3_2": "3.2 Inter-state supplies",
    "sec_4": "4. Eligible ITC",
    "sec_5": "5. Exempt, nil and Non-GST inward supplies",
    "sec_5_1": "5.1 Interest and late fee",
    "sec_6_1": "6.1 Payment of tax",
}


def build_merged(
    existing: Optional[Gstr3bSummary],
    section_key: str,
    total: SectionTotal,
) -> dict[str, dict]:
    """New section values: section_key replaced, everything else carried over."""
    if section_key not in SECTION_KEYS:
        raise ValidationError.single("section_key", f"Unknown summary section '{section_key}'")
    merged = {}
    for key in SECTION_KEYS:
        previous = getattr(existing, key, None) if existing is not None else None
        merged[key] = SectionTotal.from_dict(previous).model_dump()
    merged[section_key] = total.model_dump()
    return merged


def merge_section(
    store: RecordStore,
    ctx: FilingContext,
    section_key: str,
    total: Union[SectionTotal, dict],
) -> Optional[Gstr3bSummary]:
    """
    Read-modify-write one section into the summary.

    Returns the stored summary, or None when the write failed; the failure is
    logged as a warning and not raised.
    """
    if isinstance(total, dict):
        total = SectionTotal.from_dict(total)
    try:
        existing = store.first(Gstr3bSummary, ctx)
        values = build_merged(existing, section_key, total)
        summary = store.upsert(Gstr3bSummary, ctx, values)
    except BackendError as exc:
        logger.warning(
            f"summary: merge of {section_key} for user={ctx.user_id} "
            f"period={ctx.period.label()} failed, detail rows kept: {exc}"
        )
        return None
    logger.info(f"summary: merged {section_key} for user={ctx.user_id} period={ctx.period.label()}")
    return summary


def load_summary(store: RecordStore, ctx: FilingContext) -> dict[str, SectionTotal]:
    """Every section of the period's summary; absent sections read as zero."""
    existing = store.first(Gstr3bSummary, ctx)
    return {
        key: SectionTotal.from_dict(getattr(existing, key, None) if existing else None)
        for key in SECTION_KEYS
    }


def reset_period(store: RecordStore, ctx: FilingContext) -> dict[str, int]:
    """Delete the summary and every GSTR-3B worksheet row for the period."""
    deleted = {}
    for model in (Gstr3bSummary, Section31Row, EligibleItc, PaymentOfTax):
        deleted[model.__tablename__] = store.delete(model, ctx)
    logger.warning(f"summary: reset GSTR-3B data for user={ctx.user_id} period={ctx.period.label()}")
    return deleted
