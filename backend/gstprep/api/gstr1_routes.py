"""
GSTR-1 routes — /api/gstr1/*

Every endpoint is scoped by the X-User-Id header and the fy/q/p query triple.

Endpoints:
  GET    /api/gstr1/b2b              list B2B invoices + section total
  POST   /api/gstr1/b2b              add an invoice
  GET    /api/gstr1/b2b/recipients   invoices grouped by recipient GSTIN
  GET    /api/gstr1/b2b/{id}
  PUT    /api/gstr1/b2b/{id}
  DELETE /api/gstr1/b2b/{id}
  (same CRUD for /b2cs and /hsn; /hsn accepts ?category=B2B|B2C)
  GET    /api/gstr1/documents        ?document_type=...
  PUT    /api/gstr1/documents        replace the ranges for one document type
  GET    /api/gstr1/nil-rated
  PUT    /api/gstr1/nil-rated
  GET    /api/gstr1/summary          section totals + tile counts
"""
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from gstprep.api.deps import get_context, get_store
from gstprep.engine import gstr1
from gstprep.engine.aggregate import aggregate_documents, aggregate_nil_rated
from gstprep.engine.context import FilingContext
from gstprep.engine.store import RecordStore
from gstprep.schemas.requests import (
    B2BInvoiceIn,
    B2CSRowIn,
    DocumentsIn,
    HsnRowIn,
    NilRatedIn,
)
from gstprep.schemas.responses import (
    B2BInvoiceRead,
    B2BListResponse,
    B2BRecipient,
    B2BWriteResponse,
    B2CSListResponse,
    B2CSRowRead,
    B2CSWriteResponse,
    DeleteResponse,
    DocumentRangeRead,
    DocumentsResponse,
    Gstr1SummaryResponse,
    HsnListResponse,
    HsnRowRead,
    HsnWriteResponse,
    NilRatedResponse,
)

gstr1_router = APIRouter(prefix="/api/gstr1", tags=["gstr1"])


# ── 4A B2B invoices ───────────────────────────────────────────────────────────


@gstr1_router.get("/b2b", response_model=B2BListResponse)
def list_b2b(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    items = gstr1.b2b.list(store, ctx)
    return B2BListResponse(
        items=[B2BInvoiceRead.model_validate(r) for r in items],
        total=gstr1.b2b.total(store, ctx),
    )


@gstr1_router.post("/b2b", response_model=B2BWriteResponse, status_code=201)
def create_b2b(
    body: B2BInvoiceIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    record, total = gstr1.b2b.create(store, ctx, body)
    return B2BWriteResponse(record=B2BInvoiceRead.model_validate(record), total=total)


@gstr1_router.get("/b2b/recipients", response_model=list[B2BRecipient])
def list_b2b_recipients(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    """Recipient-wise view of 4A: one entry per GSTIN, invoices in entry order."""
    return [
        B2BRecipient(
            gstin=entry["gstin"],
            trade_name=entry["trade_name"],
            taxpayer_type=entry["taxpayer_type"],
            invoices=[B2BInvoiceRead.model_validate(i) for i in entry["invoices"]],
        )
        for entry in gstr1.b2b_recipients(gstr1.b2b.list(store, ctx))
    ]


@gstr1_router.get("/b2b/{record_id}", response_model=B2BInvoiceRead)
def get_b2b(
    record_id: int,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return B2BInvoiceRead.model_validate(gstr1.b2b.get(store, ctx, record_id))


@gstr1_router.put("/b2b/{record_id}", response_model=B2BWriteResponse)
def update_b2b(
    record_id: int,
    body: B2BInvoiceIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    record, total = gstr1.b2b.update(store, ctx, record_id, body)
    return B2BWriteResponse(record=B2BInvoiceRead.model_validate(record), total=total)


@gstr1_router.delete("/b2b/{record_id}", response_model=DeleteResponse)
def delete_b2b(
    record_id: int,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return DeleteResponse(id=record_id, total=gstr1.b2b.delete(store, ctx, record_id))


# ── 7 B2C (others) ────────────────────────────────────────────────────────────


@gstr1_router.get("/b2cs", response_model=B2CSListResponse)
def list_b2cs(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    items = gstr1.b2cs.list(store, ctx)
    return B2CSListResponse(
        items=[B2CSRowRead.model_validate(r) for r in items],
        total=gstr1.b2cs.total(store, ctx),
    )


@gstr1_router.post("/b2cs", response_model=B2CSWriteResponse, status_code=201)
def create_b2cs(
    body: B2CSRowIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    record, total = gstr1.b2cs.create(store, ctx, body)
    return B2CSWriteResponse(record=B2CSRowRead.model_validate(record), total=total)


@gstr1_router.get("/b2cs/{record_id}", response_model=B2CSRowRead)
def get_b2cs(
    record_id: int,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return B2CSRowRead.model_validate(gstr1.b2cs.get(store, ctx, record_id))


@gstr1_router.put("/b2cs/{record_id}", response_model=B2CSWriteResponse)
def update_b2cs(
    record_id: int,
    body: B2CSRowIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    record, total = gstr1.b2cs.update(store, ctx, record_id, body)
    return B2CSWriteResponse(record=B2CSRowRead.model_validate(record), total=total)


@gstr1_router.delete("/b2cs/{record_id}", response_model=DeleteResponse)
def delete_b2cs(
    record_id: int,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return DeleteResponse(id=record_id, total=gstr1.b2cs.delete(store, ctx, record_id))


# ── 12 HSN-wise summary ───────────────────────────────────────────────────────


@gstr1_router.get("/hsn", response_model=HsnListResponse)
def list_hsn(
    category: Optional[Literal["B2B", "B2C"]] = Query(default=None),
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    filters = {"category": category} if category else {}
    items = gstr1.hsn.list(store, ctx, **filters)
    return HsnListResponse(
        items=[HsnRowRead.model_validate(r) for r in items],
        total=gstr1.hsn.total(store, ctx, **filters),
    )


@gstr1_router.post("/hsn", response_model=HsnWriteResponse, status_code=201)
def create_hsn(
    body: HsnRowIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    record, total = gstr1.hsn.create(store, ctx, body)
    return HsnWriteResponse(record=HsnRowRead.model_validate(record), total=total)


@gstr1_router.get("/hsn/{record_id}", response_model=HsnRowRead)
def get_hsn(
    record_id: int,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return HsnRowRead.model_validate(gstr1.hsn.get(store, ctx, record_id))


@gstr1_router.put("/hsn/{record_id}", response_model=HsnWriteResponse)
def update_hsn(
    record_id: int,
    body: HsnRowIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    record, total = gstr1.hsn.update(store, ctx, record_id, body)
    return HsnWriteResponse(record=HsnRowRead.model_validate(record), total=total)


@gstr1_router.delete("/hsn/{record_id}", response_model=DeleteResponse)
def delete_hsn(
    record_id: int,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    return DeleteResponse(id=record_id, total=gstr1.hsn.delete(store, ctx, record_id))


# ── 13 Documents issued ───────────────────────────────────────────────────────


@gstr1_router.get("/documents", response_model=DocumentsResponse)
def get_documents(
    document_type: str = Query(default=gstr1.OUTWARD_INVOICES),
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    rows = gstr1.list_documents(store, ctx, document_type)
    return DocumentsResponse(
        document_type=document_type,
        rows=[DocumentRangeRead.model_validate(r) for r in rows],
        totals=aggregate_documents(rows),
    )


@gstr1_router.put("/documents", response_model=DocumentsResponse)
def save_documents(
    body: DocumentsIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    totals = gstr1.save_documents(store, ctx, body.rows, body.document_type)
    rows = gstr1.list_documents(store, ctx, body.document_type)
    return DocumentsResponse(
        document_type=body.document_type,
        rows=[DocumentRangeRead.model_validate(r) for r in rows],
        totals=totals,
    )


# ── 8 Nil rated, exempted and non-GST ─────────────────────────────────────────


@gstr1_router.get("/nil-rated", response_model=NilRatedResponse)
def get_nil_rated(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    row = gstr1.load_nil_rated(store, ctx)
    values = NilRatedIn()
    if row is not None:
        values = NilRatedIn(**{name: getattr(row, name) or 0.0 for name in NilRatedIn.model_fields})
    return NilRatedResponse(values=values, totals=aggregate_nil_rated(row))


@gstr1_router.put("/nil-rated", response_model=NilRatedResponse)
def save_nil_rated(
    body: NilRatedIn,
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    totals = gstr1.save_nil_rated(store, ctx, body)
    return NilRatedResponse(values=body, totals=totals)


# ── Overview ──────────────────────────────────────────────────────────────────


@gstr1_router.get("/summary", response_model=Gstr1SummaryResponse)
def gstr1_summary(
    ctx: FilingContext = Depends(get_context),
    store: RecordStore = Depends(get_store),
):
    summary = gstr1.gstr1_summary(store, ctx)
    return Gstr1SummaryResponse(**summary.model_dump(), counts=gstr1.section_counts(store, ctx))
