"""Savings withdrawal and payback endpoints"""

from typing import List
from fastapi import APIRouter, Depends, Response

from household_ledger.api.v1.schemas import (
    PaybackRequest,
    PaybackResponse,
    WithdrawalCreateRequest,
    WithdrawalResponse,
)
from household_ledger.api.dependencies import get_savings_service
from household_ledger.domain.summary import payback_progress
from household_ledger.services.savings import SavingsService

router = APIRouter()


def _withdrawal_response(withdrawal) -> WithdrawalResponse:
    response = WithdrawalResponse.model_validate(withdrawal)
    response.progress_percent = payback_progress(withdrawal)
    return response


@router.post("/households/{household_id}/savings", response_model=WithdrawalResponse, status_code=201)
def create_withdrawal(
    household_id: str,
    request_body: WithdrawalCreateRequest,
    savings_service: SavingsService = Depends(get_savings_service),
):
    withdrawal = savings_service.create_withdrawal(household_id=household_id, **request_body.model_dump())
    return _withdrawal_response(withdrawal)


@router.get("/households/{household_id}/savings", response_model=List[WithdrawalResponse])
def list_outstanding_withdrawals(household_id: str, savings_service: SavingsService = Depends(get_savings_service)):
    """Withdrawals still owed back, most recent first"""
    return [_withdrawal_response(w) for w in savings_service.list_outstanding_withdrawals(household_id)]


@router.get("/households/{household_id}/savings/all", response_model=List[WithdrawalResponse])
def list_all_withdrawals(household_id: str, savings_service: SavingsService = Depends(get_savings_service)):
    return [_withdrawal_response(w) for w in savings_service.list_all_withdrawals(household_id)]


@router.get("/savings/{withdrawal_id}", response_model=WithdrawalResponse)
def get_withdrawal(withdrawal_id: str, savings_service: SavingsService = Depends(get_savings_service)):
    return _withdrawal_response(savings_service.get_withdrawal(withdrawal_id))


@router.delete("/savings/{withdrawal_id}", status_code=204)
def delete_withdrawal(withdrawal_id: str, savings_service: SavingsService = Depends(get_savings_service)):
    savings_service.delete_withdrawal(withdrawal_id)
    return Response(status_code=204)


@router.post("/savings/{withdrawal_id}/paybacks", response_model=PaybackResponse, status_code=201)
def record_payback(
    withdrawal_id: str,
    request_body: PaybackRequest,
    savings_service: SavingsService = Depends(get_savings_service),
):
    withdrawal = savings_service.get_withdrawal(withdrawal_id)
    payback = savings_service.record_payback(
        withdrawal_id=withdrawal_id,
        household_id=withdrawal.household_id,
        amount_cents=request_body.amount_cents,
        currency=request_body.currency or withdrawal.currency,
    )
    return PaybackResponse.model_validate(payback)


@router.get("/savings/{withdrawal_id}/paybacks", response_model=List[PaybackResponse])
def list_paybacks(withdrawal_id: str, savings_service: SavingsService = Depends(get_savings_service)):
    return [PaybackResponse.model_validate(p) for p in savings_service.list_paybacks(withdrawal_id)]
