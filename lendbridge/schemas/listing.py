"""Listing Schemas — Pydantic models with field-level validation for listing endpoints.

Invariants:
    - max_amount > 0 for both kinds
    - BorrowCreate.max_rate within 0-100 (percent)
    - Free-text fields stripped; whitespace-only becomes None
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from lendbridge.core.records import Listing


class LendCreate(BaseModel):
    """Loan offer — amount ceiling and how long the money is available."""
    max_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    loan_deadline: date


class BorrowCreate(LendCreate):
    """Loan request — adds rate ceiling and descriptive risk fields."""
    max_rate: Decimal | None = Field(None, ge=0, le=100)
    city: str | None = Field(None, max_length=100)
    project: str | None = Field(None, max_length=200)
    reason: str | None = Field(None, max_length=5_000)
    risk_factor: int | None = Field(None, ge=0, le=100)

    @field_validator("city", "project", "reason")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ListingResponse(BaseModel):
    """Public listing data."""
    id: UUID
    kind: str
    owner_id: UUID
    loan_deadline: date
    max_amount: Decimal
    max_rate: Decimal | None = None
    city: str | None = None
    project: str | None = None
    reason: str | None = None
    risk_factor: int | None = None
    created_at: datetime

    @classmethod
    def from_record(cls, listing: Listing) -> "ListingResponse":
        return cls(
            id=listing.id,
            kind=listing.kind.value,
            owner_id=listing.owner_id,
            loan_deadline=listing.deadline,
            max_amount=listing.max_amount,
            max_rate=listing.max_rate,
            city=listing.city,
            project=listing.project,
            reason=listing.reason,
            risk_factor=listing.risk_factor,
            created_at=listing.created_at,
        )
