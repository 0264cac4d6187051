"""Section reducers: line-item collections → SectionTotal."""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel

from gstprep.engine.tax import num, round2

AMOUNT_FIELDS = ("taxable_value", "igst", "cgst", "sgst", "cess")


class SectionTotal(BaseModel):
    count: int = 0
    taxable_value: float = 0.0
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    cess: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SectionTotal":
        """Tolerant load of a stored section; missing or junk values become 0."""
        data = data or {}
        return cls(
            count=int(num(data.get("count"))),
            **{f: round2(data.get(f)) for f in AMOUNT_FIELDS},
        )

    def __add__(self, other: "SectionTotal") -> "SectionTotal":
        return SectionTotal(
            count=self.count + other.count,
            **{f: round2(Decimal(str(getattr(self, f))) + Decimal(str(getattr(other, f))))
               for f in AMOUNT_FIELDS},
        )


def _read(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def aggregate_section(
    items: Iterable[Any],
    field_map: Optional[Mapping[str, str]] = None,
) -> SectionTotal:
    """
    Sum a collection of line items (models or dicts).

    field_map renames source attributes, e.g. {"taxable_value": "value"}.
    Missing or null amounts count as 0.
    """
    field_map = field_map or {}
    sums = {f: Decimal("0") for f in AMOUNT_FIELDS}
    count = 0
    for item in items:
        count += 1
        for f in AMOUNT_FIELDS:
            sums[f] += Decimal(str(num(_read(item, field_map.get(f, f)))))
    return SectionTotal(count=count, **{f: round2(v) for f, v in sums.items()})


# ── Nil rated / exempted / non-GST ───────────────────────────────────────────

NIL_BUCKETS = ("intra_reg", "intra_unreg", "inter_reg", "inter_unreg")
NIL_COLUMNS = ("nil", "exempted", "non_gst")


class NilTotals(BaseModel):
    records: int = 0
    nil: float = 0.0
    exempted: float = 0.0
    non_gst: float = 0.0

    @property
    def total(self) -> float:
        return round2(Decimal(str(self.nil)) + Decimal(str(self.exempted)) + Decimal(str(self.non_gst)))


def aggregate_nil_rated(row: Any) -> NilTotals:
    if row is None:
        return NilTotals()
    sums = {}
    for column in NIL_COLUMNS:
        sums[column] = round2(
            sum((Decimal(str(num(_read(row, f"{b}_{column}")))) for b in NIL_BUCKETS), Decimal("0"))
        )
    return NilTotals(records=1, **sums)


# ── Documents issued ─────────────────────────────────────────────────────────


class DocumentTotals(BaseModel):
    count: int = 0
    total: int = 0
    cancelled: int = 0
    net_issued: int = 0


def net_issued(total: Any, cancelled: Any) -> int:
    return max(0, int(num(total)) - int(num(cancelled)))


def aggregate_documents(rows: Iterable[Any]) -> DocumentTotals:
    count = total = cancelled = 0
    for row in rows:
        count += 1
        total += int(num(_read(row, "total")))
        cancelled += int(num(_read(row, "cancelled")))
    return DocumentTotals(
        count=count,
        total=total,
        cancelled=cancelled,
        net_issued=max(0, total - cancelled),
    )
