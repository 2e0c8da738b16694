"""Monthly settlement view and household summary endpoints"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query

from household_ledger.api.v1.schemas import DueItemSchema, PaidStatusRequest, SettlementResponse, SummaryResponse
from household_ledger.api.dependencies import get_settlement_service
from household_ledger.domain.models import DueItem
from household_ledger.services.settlement import SettlementService
from household_ledger.utils.date_utils import MONTH_TOKEN_PATTERN, current_month_year, month_name

router = APIRouter()


def _settlement_response(household_id: str, month_year: str, items: List[DueItem]) -> SettlementResponse:
    return SettlementResponse(
        household_id=household_id,
        month_year=month_year,
        month_name=month_name(month_year),
        items=[DueItemSchema.model_validate(item) for item in items],
    )


@router.get("/households/{household_id}/settlement", response_model=SettlementResponse)
def get_settlement_view(
    household_id: str,
    month: Optional[str] = Query(None, pattern=MONTH_TOKEN_PATTERN, description="YYYY-MM, defaults to this month"),
    settlement_service: SettlementService = Depends(get_settlement_service),
):
    """
    Everything the household owes in the month.

    Returns:
        Bills and loan installments sorted by due day, each with its paid status
    """
    month_year = month or current_month_year()
    items = settlement_service.get_settlement_view(household_id, month_year)
    return _settlement_response(household_id, month_year, items)


@router.put(
    "/households/{household_id}/settlement/{month}/items/{kind}/{item_id}",
    response_model=SettlementResponse,
)
def set_due_item_paid(
    household_id: str,
    item_id: str,
    request_body: PaidStatusRequest,
    kind: str = Path(..., pattern=r"^(bill|loan)$"),
    month: str = Path(..., pattern=MONTH_TOKEN_PATTERN),
    settlement_service: SettlementService = Depends(get_settlement_service),
):
    """
    Mark a due item paid or unpaid.

    Bills toggle. Loan installments can only be paid (409 on unpay or double pay).
    """
    items = settlement_service.set_item_paid(household_id, month, kind, item_id, request_body.is_paid)
    return _settlement_response(household_id, month, items)


@router.get("/households/{household_id}/summary", response_model=SummaryResponse)
def get_summary(
    household_id: str,
    month: Optional[str] = Query(None, pattern=MONTH_TOKEN_PATTERN),
    settlement_service: SettlementService = Depends(get_settlement_service),
):
    """Per-currency dashboard totals"""
    month_year = month or current_month_year()
    summary = settlement_service.get_summary(household_id, month_year)
    return SummaryResponse(
        household_id=household_id,
        month_year=summary.month_year,
        loans_outstanding_cents=summary.loans_outstanding_cents,
        owed_to_savings_cents=summary.owed_to_savings_cents,
        due_this_month_cents=summary.due_this_month_cents,
        unpaid_this_month_cents=summary.unpaid_this_month_cents,
        unpaid_item_count=summary.unpaid_item_count,
    )
