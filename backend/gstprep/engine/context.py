"""
Filing period and the explicit session context passed into every engine call.

The engine has no notion of a "current user": callers build a FilingContext
from the authenticated request and hand it down.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from gstprep.core.errors import ValidationError, Violation


class FilingPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    financial_year: str
    quarter: str
    period: str

    @field_validator("financial_year", "quarter", "period")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return (v or "").strip()

    @classmethod
    def parse(cls, fy: Optional[str], q: Optional[str], p: Optional[str]) -> "FilingPeriod":
        """Build a period, rejecting any missing part of the triple."""
        violations = [
            Violation(field=name, message=f"Filing period is missing '{name}'")
            for name, value in (("fy", fy), ("q", q), ("p", p))
            if not (value or "").strip()
        ]
        if violations:
            raise ValidationError(violations)
        return cls(financial_year=fy, quarter=q, period=p)

    def label(self) -> str:
        return f"{self.financial_year} – {self.period}"


class FilingContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    period: FilingPeriod

    @classmethod
    def build(cls, user_id: Optional[str], fy: Optional[str], q: Optional[str], p: Optional[str]) -> "FilingContext":
        if not (user_id or "").strip():
            raise ValidationError.single("user_id", "Missing owning-user identifier")
        return cls(user_id=user_id.strip(), period=FilingPeriod.parse(fy, q, p))

    def scope(self) -> dict[str, str]:
        """Column filters identifying this user's records for this period."""
        return {
            "user_id": self.user_id,
            "filing_year": self.period.financial_year,
            "quarter": self.period.quarter,
            "period": self.period.period,
        }
