"""Loan endpoints and the loan payment ledger"""

from typing import List
from fastapi import APIRouter, Depends, Response

from household_ledger.api.v1.schemas import (
    LoanCreateRequest,
    LoanPaymentRequest,
    LoanPaymentResponse,
    LoanResponse,
)
from household_ledger.api.dependencies import get_loan_service
from household_ledger.services.loans import LoanService

router = APIRouter()


@router.post("/households/{household_id}/loans", response_model=LoanResponse, status_code=201)
def create_loan(
    household_id: str,
    request_body: LoanCreateRequest,
    loan_service: LoanService = Depends(get_loan_service),
):
    loan = loan_service.create_loan(household_id=household_id, **request_body.model_dump())
    return LoanResponse.model_validate(loan)


@router.get("/households/{household_id}/loans", response_model=List[LoanResponse])
def list_active_loans(household_id: str, loan_service: LoanService = Depends(get_loan_service)):
    """Loans with a balance left, largest first"""
    return [LoanResponse.model_validate(loan) for loan in loan_service.list_active_loans(household_id)]


@router.get("/households/{household_id}/loans/all", response_model=List[LoanResponse])
def list_all_loans(household_id: str, loan_service: LoanService = Depends(get_loan_service)):
    """Every loan including paid-off ones, newest first"""
    return [LoanResponse.model_validate(loan) for loan in loan_service.list_all_loans(household_id)]


@router.get("/loans/{loan_id}", response_model=LoanResponse)
def get_loan(loan_id: str, loan_service: LoanService = Depends(get_loan_service)):
    return LoanResponse.model_validate(loan_service.get_loan(loan_id))


@router.delete("/loans/{loan_id}", status_code=204)
def delete_loan(loan_id: str, loan_service: LoanService = Depends(get_loan_service)):
    """Hard delete; the payment history is kept"""
    loan_service.delete_loan(loan_id)
    return Response(status_code=204)


@router.post("/loans/{loan_id}/payments", response_model=LoanPaymentResponse, status_code=201)
def record_loan_payment(
    loan_id: str,
    request_body: LoanPaymentRequest,
    loan_service: LoanService = Depends(get_loan_service),
):
    """
    Record a payment and pay the balance down.

    With month_year the payment settles that month's installment; without it
    it is an extra payment towards the principal.
    """
    loan = loan_service.get_loan(loan_id)
    payment = loan_service.record_loan_payment(
        loan_id=loan_id,
        household_id=loan.household_id,
        amount_cents=request_body.amount_cents,
        currency=request_body.currency or loan.currency,
        note=request_body.note,
        month_year=request_body.month_year,
    )
    return LoanPaymentResponse.model_validate(payment)


@router.get("/loans/{loan_id}/payments", response_model=List[LoanPaymentResponse])
def list_loan_payments(loan_id: str, loan_service: LoanService = Depends(get_loan_service)):
    """Payment history, newest first"""
    return [LoanPaymentResponse.model_validate(p) for p in loan_service.list_loan_payments(loan_id)]
