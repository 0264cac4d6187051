"""FastAPI dependencies shared by the GSTR-1 and GSTR-3B routers."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Query
from sqlmodel import Session

from gstprep.core.config import settings
from gstprep.core.database import get_session
from gstprep.engine.context import FilingContext
from gstprep.engine.store import RecordStore


def get_store(session: Session = Depends(get_session)) -> RecordStore:
    return RecordStore(session)


def get_context(
    fy: Optional[str] = Query(default=None, description="Financial year, e.g. 2024-25"),
    q: Optional[str] = Query(default=None, description="Quarter label"),
    p: Optional[str] = Query(default=None, description="Return period (month)"),
    user_id: Optional[str] = Header(default=None, alias=settings.USER_HEADER),
) -> FilingContext:
    """Owning user from the auth header, filing period from the query string."""
    return FilingContext.build(user_id, fy, q, p)
