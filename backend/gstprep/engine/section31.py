"""
GSTR-3B table 3.1 – tax on outward and reverse charge inward supplies.

Rows a..e are AUTO (derived from GSTR-1 line items on every load) until the
user edits them, which flips the row to MANUAL. MANUAL rows are persisted as
entered and are not re-derived until an explicit reset.

  a  outward taxable supplies        derived from B2B + B2CS
  b  outward zero rated              always zero, read-only
  c  nil rated / exempted            derived from section 8, taxable editable
  d  inward, reverse charge          zero when AUTO, fully editable
  e  non-GST outward                 derived from section 8, read-only
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from gstprep.core.config import settings
from gstprep.core.errors import DerivationError, ValidationError, Violation
from gstprep.engine.aggregate import AMOUNT_FIELDS, SectionTotal, aggregate_nil_rated
from gstprep.engine.context import FilingContext
from gstprep.engine.store import RecordStore
from gstprep.engine.summary import merge_section
from gstprep.engine.tax import INTER_STATE, clamp2, num, to_amount
from gstprep.models.gstr1 import B2BInvoice, B2CSRow, NilRatedSupply
from gstprep.models.gstr3b import Section31Row

AUTO = "AUTO"
MANUAL = "MANUAL"

ROW_CODES = ("a", "b", "c", "d", "e")
TAX_FIELDS = ("igst", "cgst", "sgst")

EDITABLE = {
    "a": set(AMOUNT_FIELDS),
    "b": set(),
    "c": {"taxable_value"},
    "d": set(AMOUNT_FIELDS),
    "e": set(),
}
NON_NEGATIVE_ROWS = ("a", "c", "d")
MIX_CHECK_ROWS = ("a", "d")
MATCH_CHECK_ROWS = ("a", "c", "d")

# Below this an amount counts as zero for the IGST/CGST+SGST mix check
_EPSILON = 0.0001


class Row31(BaseModel):
    taxable_value: float = 0.0
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    cess: float = 0.0
    source: str = AUTO


class Split31(BaseModel):
    inter_taxable: float = 0.0
    intra_taxable: float = 0.0

    @property
    def inter_share(self) -> float:
        total = self.inter_taxable + self.intra_taxable
        return self.inter_taxable / total if total > 0 else 0.0


def _amount(value, label: str) -> float:
    try:
        return to_amount(value)
    except DerivationError as exc:
        logger.warning(f"section31: {label} unusable, using 0: {exc}")
        return 0.0


def derive_rows(
    b2b_rows: list,
    b2cs_rows: list,
    nil_row: Optional[NilRatedSupply],
) -> dict[str, Row31]:
    """Compute AUTO values for every row from GSTR-1 line items."""
    sums = {f: Decimal("0") for f in AMOUNT_FIELDS}
    for r in list(b2b_rows) + list(b2cs_rows):
        for f in AMOUNT_FIELDS:
            sums[f] += Decimal(str(_amount(getattr(r, f, None), f"{type(r).__name__}.{f}")))
    nil = aggregate_nil_rated(nil_row)
    return {
        "a": Row31(**{f: clamp2(v) for f, v in sums.items()}),
        "b": Row31(),
        "c": Row31(taxable_value=clamp2(Decimal(str(nil.nil)) + Decimal(str(nil.exempted)))),
        "d": Row31(),
        "e": Row31(taxable_value=clamp2(nil.non_gst)),
    }


def derive_split(b2b_rows: list, b2cs_rows: list) -> Split31:
    inter = intra = Decimal("0")
    for r in list(b2b_rows) + list(b2cs_rows):
        taxable = Decimal(str(num(r.taxable_value)))
        if r.supply_type == INTER_STATE:
            inter += taxable
        else:
            intra += taxable
    return Split31(inter_taxable=float(inter), intra_taxable=float(intra))


class Section31Worksheet:
    def __init__(self, rows: Optional[dict[str, Row31]] = None, split: Optional[Split31] = None):
        self.rows = {code: Row31() for code in ROW_CODES}
        for code, row in (rows or {}).items():
            if code not in ROW_CODES:
                raise ValidationError.single("row_code", f"Unknown 3.1 row '{code}'", row=code)
            self.rows[code] = Row31(**row.model_dump()) if isinstance(row, BaseModel) else Row31(**row)
        self.split = split or Split31()

    # ── loading ──────────────────────────────────────────────────────────────

    @staticmethod
    def _upstream(store: RecordStore, ctx: FilingContext):
        return (
            store.select(B2BInvoice, ctx),
            store.select(B2CSRow, ctx),
            store.first(NilRatedSupply, ctx),
        )

    @classmethod
    def derive(cls, store: RecordStore, ctx: FilingContext) -> "Section31Worksheet":
        b2b_rows, b2cs_rows, nil_row = cls._upstream(store, ctx)
        return cls(derive_rows(b2b_rows, b2cs_rows, nil_row), derive_split(b2b_rows, b2cs_rows))

    @classmethod
    def load(cls, store: RecordStore, ctx: FilingContext) -> "Section31Worksheet":
        """Saved MANUAL rows verbatim, every other row freshly derived."""
        sheet = cls.derive(store, ctx)
        for saved in store.select(Section31Row, ctx):
            if saved.source == MANUAL and saved.row_code in ROW_CODES:
                sheet.rows[saved.row_code] = Row31(
                    **{f: clamp2(getattr(saved, f)) for f in AMOUNT_FIELDS},
                    source=MANUAL,
                )
        return sheet

    def reset(self, store: RecordStore, ctx: FilingContext) -> "Section31Worksheet":
        """Discard persisted rows and re-derive everything as AUTO."""
        store.delete(Section31Row, ctx)
        fresh = self.derive(store, ctx)
        self.rows, self.split = fresh.rows, fresh.split
        logger.info(f"section31: reset to derived values for user={ctx.user_id}")
        return self

    # ── editing ──────────────────────────────────────────────────────────────

    def overlay(self, posted: dict) -> "Section31Worksheet":
        """
        Apply client-posted rows. A posted row replaces the current one as
        MANUAL when it is marked MANUAL or any amount differs from the current
        row; otherwise the current (derived) row stays.
        """
        for code, row in posted.items():
            if code not in ROW_CODES:
                raise ValidationError.single("row_code", f"Unknown 3.1 row '{code}'", row=code)
            new = Row31(**(row.model_dump() if isinstance(row, BaseModel) else row))
            current = self.rows[code]
            changed = [f for f in AMOUNT_FIELDS if round(getattr(new, f), 2) != round(getattr(current, f), 2)]
            if not changed and (new.source != MANUAL or not EDITABLE[code]):
                continue
            locked = [f for f in changed if f not in EDITABLE[code]]
            if locked:
                raise ValidationError.single(locked[0], f"Row ({code}) {locked[0]} is not editable", row=code)
            new.source = MANUAL
            self.rows[code] = new
        return self

    def edit(self, row_code: str, field: str, value: float) -> Row31:
        """
        Apply one cell edit. The row becomes MANUAL. IGST clears CGST/SGST;
        CGST and SGST mirror each other.
        """
        if row_code not in ROW_CODES:
            raise ValidationError.single("row_code", f"Unknown 3.1 row '{row_code}'", row=row_code)
        if field not in EDITABLE[row_code]:
            raise ValidationError.single(field, f"Row ({row_code}) {field} is not editable", row=row_code)
        row = self.rows[row_code]
        value = num(value)
        setattr(row, field, value)
        row.source = MANUAL
        if field == "igst":
            row.cgst = 0.0
            row.sgst = 0.0
        elif field == "cgst":
            row.sgst = value
        elif field == "sgst":
            row.cgst = value
        return row

    # ── saving ───────────────────────────────────────────────────────────────

    def validate(self) -> None:
        violations: list[Violation] = []
        for code in NON_NEGATIVE_ROWS:
            r = self.rows[code]
            for f in AMOUNT_FIELDS:
                if getattr(r, f) < 0:
                    violations.append(Violation(field=f, row=code, message=f"Row ({code}): values cannot be negative"))
        # AUTO rows sum per-line splits, so a mixed inter/intra period legitimately carries both
        for code in MIX_CHECK_ROWS:
            r = self.rows[code]
            if r.source == MANUAL and r.igst > _EPSILON and (r.cgst > _EPSILON or r.sgst > _EPSILON):
                violations.append(Violation(
                    field="igst", row=code,
                    message=f"Row ({code}): IGST cannot coexist with CGST/SGST",
                ))
        for code in MATCH_CHECK_ROWS:
            r = self.rows[code]
            if abs(r.cgst - r.sgst) > settings.CGST_SGST_TOLERANCE:
                violations.append(Violation(
                    field="cgst", row=code,
                    message=f"Row ({code}): CGST and SGST must be equal",
                ))
        if violations:
            raise ValidationError(violations)

    def total(self) -> SectionTotal:
        """Sum of all rows; count is the number of rows carrying any amount."""
        sums = {f: Decimal("0") for f in AMOUNT_FIELDS}
        filled = 0
        for r in self.rows.values():
            if any(getattr(r, f) for f in AMOUNT_FIELDS):
                filled += 1
            for f in AMOUNT_FIELDS:
                sums[f] += Decimal(str(getattr(r, f)))
        return SectionTotal(count=filled, **{f: clamp2(v) for f, v in sums.items()})

    def save(self, store: RecordStore, ctx: FilingContext) -> bool:
        """
        Validate, upsert all rows, then merge the 3.1 total into the summary.
        Returns whether the summary merge succeeded.
        """
        try:
            self.validate()
        except ValidationError as exc:
            logger.info(f"section31: save rejected for user={ctx.user_id}: {exc}")
            raise
        store.upsert_many(
            Section31Row,
            ctx,
            [
                {"row_code": code, "source": r.source, **{f: clamp2(getattr(r, f)) for f in AMOUNT_FIELDS}}
                for code, r in self.rows.items()
            ],
            key=("row_code",),
        )
        logger.info(f"section31: saved rows for user={ctx.user_id} period={ctx.period.label()}")
        return merge_section(store, ctx, "sec_3_1", self.total()) is not None
