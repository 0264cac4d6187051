"""
GSTR-3B routes — /api/gstr3b/*

Endpoints:
  GET    /api/gstr3b/summary                consolidated section totals
  DELETE /api/gstr3b/summary                wipe the period's GSTR-3B data
  GET    /api/gstr3b/section-3-1            worksheet (AUTO rows re-derived)
  PUT    /api/gstr3b/section-3-1            validate + save, merge sec_3_1
  POST   /api/gstr3b/section-3-1/edit       apply one cell edit, not saved
  POST   /api/gstr3b/section-3-1/reset      drop manual rows, re-derive
  GET    /api/gstr3b/eligible-itc
  PUT    /api/gstr3b/eligible-itc           merge sec_4
  GET    /api/gstr3b/payment
  PUT    /api/gstr3b/payment                merge sec_6_1
  POST   /api/gstr3b/payment/proceed        proceed gate, then save
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from gstprep.api.deps import get_context, get_store
from gstprep.engine import itc, payment
from gstprep.engine.context import FilingContext
from gstprep.engine.section31 import Section31Worksheet
from gstprep.engine.store import RecordStore
from gstprep.engine.summary import SECTION_TITLES, load_summary, reset_period
from gstprep.schemas.requests import (
    EligibleItcIn,
    PaymentIn,
    Section31EditIn,
    Section31In,
)
from gstprep.schemas.responses import (
    Gstr3bSummaryResponse,
    ItcResponse,
    PaymentResponse,
    ResetResponse,
    Section31Response,
)

gstr3b_router = APIRouter(prefix="/api/gstr3b", tags=["gstr3b"])


def _section31_response(sheet: Section31Worksheet, synced=None) -> Section31Response:
    return Section31Response(
        rows=sheet.rows,
        total=sheet.total(),
        inter_taxable=sheet.split.inter_taxable,
        intra_taxable=sheet.split.intra_taxable,
        inter_share=sheet.split.inter_share,
        summary_synced=synced,
    )


# ── Consolidated summary ──────────────────────────────────────────────────────


@gstr3b_router.get("/summary", response_model=Gstr3bSummaryResponse)
def get_summary(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return Gstr3bSummaryResponse(sections=load_summary(store, ctx), titles=SECTION_TITLES)


@gstr3b_router.delete("/summary", response_model=ResetResponse)
def delete_summary(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return ResetResponse(deleted=reset_period(store, ctx))


# ── 3.1 Outward and reverse charge supplies ───────────────────────────────────


@gstr3b_router.get("/section-3-1", response_model=Section31Response)
def get_section31(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return _section31_response(Section31Worksheet.load(store, ctx))


@gstr3b_router.put("/section-3-1", response_model=Section31Response)
def save_section31(
    body: Section31In,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    sheet = Section31Worksheet.load(store, ctx).overlay(body.rows)
    synced = sheet.save(store, ctx)
    return _section31_response(sheet, synced)


@gstr3b_router.post("/section-3-1/edit", response_model=Section31Response)
def edit_section31(
    body: Section31EditIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    """Apply one cell edit on top of the stored sheet and any posted MANUAL rows. Nothing is saved."""
    sheet = Section31Worksheet.load(store, ctx).overlay(body.rows)
    sheet.edit(body.row_code, body.field, body.value)
    return _section31_response(sheet)


@gstr3b_router.post("/section-3-1/reset", response_model=Section31Response)
def reset_section31(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return _section31_response(Section31Worksheet().reset(store, ctx))


# ── 4 Eligible ITC ────────────────────────────────────────────────────────────


@gstr3b_router.get("/eligible-itc", response_model=ItcResponse)
def get_eligible_itc(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return ItcResponse(worksheet=itc.load(store, ctx))


@gstr3b_router.put("/eligible-itc", response_model=ItcResponse)
def save_eligible_itc(
    body: EligibleItcIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    sheet, synced = itc.save(store, ctx, body)
    return ItcResponse(worksheet=sheet, summary_synced=synced)


# ── 6.1 Payment of tax ────────────────────────────────────────────────────────


@gstr3b_router.get("/payment", response_model=PaymentResponse)
def get_payment(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return PaymentResponse(worksheet=payment.load(store, ctx))


@gstr3b_router.put("/payment", response_model=PaymentResponse)
def save_payment(
    body: PaymentIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    sheet, synced = payment.save(store, ctx, body)
    return PaymentResponse(worksheet=sheet, summary_synced=synced)


@gstr3b_router.post("/payment/proceed", response_model=PaymentResponse)
def proceed_payment(
    body: PaymentIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    sheet, synced = payment.proceed(store, ctx, body)
    return PaymentResponse(worksheet=sheet, summary_synced=synced)
