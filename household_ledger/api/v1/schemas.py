"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from household_ledger.config import settings
from household_ledger.utils.date_utils import MONTH_TOKEN_PATTERN

CURRENCY_PATTERN = r"^[A-Z]{3}$"


class BillCreateRequest(BaseModel):
    """Request body for POST /v1/households/{household_id}/bills"""

    owner_id: str = Field(..., min_length=1, description="Member responsible for the bill")
    name: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0, description="Monthly amount in minor units")
    currency: str = Field(settings.default_currency, pattern=CURRENCY_PATTERN)
    category: str = Field("Other", min_length=1)
    day_of_month: int = Field(..., ge=1, le=31)


class BillUpdateRequest(BaseModel):
    """Request body for PATCH /v1/bills/{bill_id}; omitted fields are unchanged"""

    owner_id: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    amount_cents: Optional[int] = Field(None, gt=0)
    currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN)
    category: Optional[str] = Field(None, min_length=1)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)


class BillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    household_id: str
    owner_id: str
    name: str
    amount_cents: int
    currency: str
    category: str
    day_of_month: int
    is_active: bool
    created_at: datetime


class PaidStatusRequest(BaseModel):
    """Request body for marking a bill record or due item paid/unpaid"""

    is_paid: bool


class BillPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    bill_id: str
    household_id: str
    amount_cents: int
    currency: str
    month_year: str
    is_paid: bool
    paid_at: Optional[datetime] = None


class LoanCreateRequest(BaseModel):
    """Request body for POST /v1/households/{household_id}/loans"""

    owner_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    lender: str = ""
    original_cents: int = Field(..., gt=0)
    currency: str = Field(settings.default_currency, pattern=CURRENCY_PATTERN)
    interest_rate: float = Field(0.0, ge=0)
    monthly_installment_cents: Optional[int] = Field(None, gt=0)
    payment_day: Optional[int] = Field(None, ge=1, le=31)


class LoanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    household_id: str
    owner_id: str
    name: str
    lender: str
    original_cents: int
    remaining_cents: int
    currency: str
    interest_rate: float
    monthly_installment_cents: Optional[int] = None
    payment_day: Optional[int] = None
    created_at: datetime


class LoanPaymentRequest(BaseModel):
    """Request body for POST /v1/loans/{loan_id}/payments"""

    amount_cents: int = Field(..., gt=0)
    currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN, description="Defaults to the loan currency")
    note: str = ""
    month_year: Optional[str] = Field(
        None, pattern=MONTH_TOKEN_PATTERN, description="Marks the payment as this month's installment"
    )


class LoanPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    loan_id: str
    household_id: str
    amount_cents: int
    currency: str
    note: str
    month_year: Optional[str] = None
    paid_at: datetime


class WithdrawalCreateRequest(BaseModel):
    """Request body for POST /v1/households/{household_id}/savings"""

    owner_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    withdrawn_cents: int = Field(..., gt=0)
    currency: str = Field(settings.default_currency, pattern=CURRENCY_PATTERN)


class WithdrawalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    household_id: str
    owner_id: str
    description: str
    withdrawn_cents: int
    paid_back_cents: int
    currency: str
    is_fully_paid_back: bool
    withdrawn_at: datetime
    progress_percent: int = 0


class PaybackRequest(BaseModel):
    """Request body for POST /v1/savings/{withdrawal_id}/paybacks"""

    amount_cents: int = Field(..., gt=0)
    currency: Optional[str] = Field(None, pattern=CURRENCY_PATTERN, description="Defaults to the withdrawal currency")


class PaybackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    withdrawal_id: str
    household_id: str
    amount_cents: int
    currency: str
    paid_at: datetime


class DueItemSchema(BaseModel):
    """Single bill or loan installment in a settlement view"""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["bill", "loan"]
    item_id: str
    payment_id: Optional[str] = None
    household_id: str
    owner_id: str
    name: str
    amount_cents: int
    currency: str
    category: str
    due_day: int
    due_date: date
    is_paid: bool
    paid_at: Optional[datetime] = None


class SettlementResponse(BaseModel):
    """Response for GET /v1/households/{household_id}/settlement"""

    household_id: str
    month_year: str
    month_name: str
    items: List[DueItemSchema]


class SummaryResponse(BaseModel):
    """Response for GET /v1/households/{household_id}/summary"""

    household_id: str
    month_year: str
    loans_outstanding_cents: Dict[str, int]
    owed_to_savings_cents: Dict[str, int]
    due_this_month_cents: Dict[str, int]
    unpaid_this_month_cents: Dict[str, int]
    unpaid_item_count: int
