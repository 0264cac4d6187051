"""
Shared pytest fixtures.

Environment is pinned before anything imports gstprep: settings are read once
at import time, and the app must never touch the developer's database or log
directory. Each test gets its own in-memory SQLite engine.
"""
import os
import sys

# Ensure gstprep package is importable when running pytest from project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""
os.environ["HOME_STATE_CODE"] = "33"

import pytest  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import gstprep.models  # noqa: E402,F401 – registers tables on SQLModel.metadata
from gstprep.engine.context import FilingContext  # noqa: E402
from gstprep.engine.store import RecordStore  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def store(session):
    return RecordStore(session)


@pytest.fixture
def ctx():
    return FilingContext.build("user-1", "2024-25", "Q1 (Apr - Jun)", "April")


@pytest.fixture
def other_ctx():
    return FilingContext.build("user-1", "2024-25", "Q1 (Apr - Jun)", "May")


@pytest.fixture
def seed_gstr1():
    """Seeds B2B 50,000 @ 18% inter-state and B2CS 20,000 @ 18% intra-state (plus section 8 when nil=True)."""
    from datetime import date

    from gstprep.engine import gstr1
    from gstprep.schemas.requests import B2BInvoiceIn, B2CSRowIn, NilRatedIn, RateLine

    def seed(store, ctx, nil=True):
        gstr1.b2b.create(store, ctx, B2BInvoiceIn(
            gstin="27AAACR5055K1Z7",
            recipient_name="Reliance Retail",
            invoice_number="INV-001",
            invoice_date=date(2024, 4, 5),
            total_invoice_value=59000,
            pos_code="29",
            rate_lines=[RateLine(rate=18, taxable_value=50000)],
        ))
        gstr1.b2cs.create(store, ctx, B2CSRowIn(pos_code="33", taxable_value=20000, rate=18))
        if nil:
            gstr1.save_nil_rated(store, ctx, NilRatedIn(
                intra_reg_nil=1000, inter_unreg_exempted=500, intra_unreg_non_gst=200,
            ))

    return seed
