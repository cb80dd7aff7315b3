"""Billing domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator


class QuoteRequest(BaseModel):
    """Price check before showing the card form"""

    amount: Optional[int] = None  # cents; defaults to PAYMENT_BASE_AMOUNT
    discountCode: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("amount must not be negative")
        return v


class QuoteResponse(BaseModel):
    originalAmount: int
    finalAmount: int
    discountCode: Optional[str] = None
    discountApplied: bool
    discountPercent: int
    originalDisplay: str
    finalDisplay: str


class ProcessPaymentRequest(BaseModel):
    """Card token from the Web Payments SDK plus the amount to charge"""

    sourceId: str
    amount: int
    discountCode: Optional[str] = None

    @field_validator("sourceId")
    @classmethod
    def validate_source_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("sourceId is required")
        return v.strip()

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("amount must be greater than zero")
        return v


class DraftPaymentRequest(BaseModel):
    """Payment for a draft; the amount is computed server-side"""

    sourceId: Optional[str] = None
    discountCode: Optional[str] = None


class PaymentConfigResponse(BaseModel):
    applicationId: Optional[str] = None
    locationId: Optional[str] = None
    environment: str
    sdkUrl: str
    baseAmount: int
    baseDisplay: str
    currency: str
