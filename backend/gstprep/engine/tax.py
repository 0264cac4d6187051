"""
Rate-based tax splitter.

One formula for every section:
  Inter-State → igst = taxable × rate / 100, cgst = sgst = 0
  Intra-State → cgst = sgst = taxable × (rate / 2) / 100, igst = 0
Amounts are rounded half-up to 2 places and never negative.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from gstprep.core.errors import DerivationError, ValidationError

INTRA_STATE = "Intra-State"
INTER_STATE = "Inter-State"
SUPPLY_TYPES = (INTRA_STATE, INTER_STATE)

ALLOWED_RATES = (0, 0.1, 3, 5, 8, 12, 18, 28, 48)
# Rate menus offered per section
B2B_RATES = (3, 5, 12, 18, 28, 48)
B2CS_RATES = (0, 0.1, 3, 5, 12, 18, 28)
HSN_RATES = (5, 8, 12, 28)

TAX_HEADS = ("igst", "cgst", "sgst", "cess")

STATE_CODES: dict[str, str] = {
    "01": "Jammu & Kashmir",
    "02": "Himachal Pradesh",
    "03": "Punjab",
    "04": "Chandigarh",
    "05": "Uttarakhand",
    "06": "Haryana",
    "07": "Delhi",
    "08": "Rajasthan",
    "09": "Uttar Pradesh",
    "10": "Bihar",
    "11": "Sikkim",
    "12": "Arunachal Pradesh",
    "13": "Nagaland",
    "14": "Manipur",
    "15": "Mizoram",
    "16": "Tripura",
    "17": "Meghalaya",
    "18": "Assam",
    "19": "West Bengal",
    "20": "Jharkhand",
    "21": "Odisha",
    "22": "Chhattisgarh",
    "23": "Madhya Pradesh",
    "24": "Gujarat",
    "25": "Daman & Diu",
    "26": "Dadra & Nagar Haveli",
    "27": "Maharashtra",
    "28": "Andhra Pradesh (Old)",
    "29": "Karnataka",
    "30": "Goa",
    "31": "Lakshadweep",
    "32": "Kerala",
    "33": "Tamil Nadu",
    "34": "Puducherry",
    "35": "Andaman & Nicobar Islands",
    "36": "Telangana",
    "37": "Andhra Pradesh",
    "38": "Ladakh",
    "97": "Other Territory",
}

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class TaxSplit:
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {"igst": self.igst, "cgst": self.cgst, "sgst": self.sgst}


def to_amount(value: Any) -> float:
    """Strict numeric coercion; None and blank mean 0."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise DerivationError(f"Not a number: {value!r}")
    if result != result or result in (float("inf"), float("-inf")):
        raise DerivationError(f"Not a finite number: {value!r}")
    return result


def num(value: Any) -> float:
    """Lenient coercion used by reducers: anything unusable counts as 0."""
    try:
        return to_amount(value)
    except DerivationError:
        return 0.0


def round2(value: Any) -> float:
    """Round half-up to 2 decimal places."""
    d = value if isinstance(value, Decimal) else Decimal(str(num(value)))
    try:
        return float(d.quantize(_CENT, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0.0


def clamp2(value: Any) -> float:
    """round2, floored at zero."""
    return max(0.0, round2(value))


def check_rate(rate: Any, allowed: Iterable[float] = ALLOWED_RATES, field: str = "rate") -> float:
    r = num(rate)
    if r not in tuple(allowed):
        raise ValidationError.single(field, f"Rate {rate} is not one of {list(allowed)}")
    return r


def check_supply_type(supply_type: str) -> str:
    if supply_type not in SUPPLY_TYPES:
        raise ValidationError.single(
            "supply_type", f"Supply type must be one of {list(SUPPLY_TYPES)}"
        )
    return supply_type


def split_tax(taxable_value: Any, rate: Any, supply_type: str) -> TaxSplit:
    """Split tax on a taxable value into IGST or CGST+SGST by supply type."""
    check_supply_type(supply_type)
    check_rate(rate)
    taxable = num(taxable_value)
    if taxable < 0:
        raise ValidationError.single("taxable_value", "Taxable value cannot be negative")
    r = Decimal(str(num(rate)))
    base = Decimal(str(taxable))
    if supply_type == INTER_STATE:
        return TaxSplit(igst=clamp2(base * r / 100))
    half = clamp2(base * (r / 2) / 100)
    return TaxSplit(cgst=half, sgst=half)


def supply_type_for(pos_code: str, origin_state_code: Optional[str]) -> str:
    """Intra-State when the place of supply matches the origin jurisdiction."""
    return INTRA_STATE if pos_code and pos_code == origin_state_code else INTER_STATE


def state_name(pos_code: str) -> Optional[str]:
    return STATE_CODES.get(pos_code)


def zero_heads() -> dict[str, float]:
    return {h: 0.0 for h in TAX_HEADS}


def heads(values: Optional[dict]) -> dict[str, float]:
    """Normalise a {igst, cgst, sgst, cess} dict, missing heads as 0."""
    values = values or {}
    return {h: round2(values.get(h)) for h in TAX_HEADS}
