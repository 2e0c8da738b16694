"""Recurring bill endpoints and per-month bill payment records"""

from typing import List
from fastapi import APIRouter, Depends, Response

from household_ledger.api.v1.schemas import (
    BillCreateRequest,
    BillPaymentResponse,
    BillResponse,
    BillUpdateRequest,
    PaidStatusRequest,
)
from household_ledger.api.dependencies import get_bill_service, get_payment_tracker
from household_ledger.services.bills import BillService, PaymentTrackerService

router = APIRouter()


@router.post("/households/{household_id}/bills", response_model=BillResponse, status_code=201)
def create_bill(
    household_id: str,
    request_body: BillCreateRequest,
    bill_service: BillService = Depends(get_bill_service),
):
    """
    Create a recurring bill.

    The current month's payment record is created with it, so the bill is
    immediately part of this month's settlement view.
    """
    bill = bill_service.create_bill(
        household_id=household_id,
        owner_id=request_body.owner_id,
        name=request_body.name,
        amount_cents=request_body.amount_cents,
        currency=request_body.currency,
        category=request_body.category,
        day_of_month=request_body.day_of_month,
    )
    return BillResponse.model_validate(bill)


@router.get("/households/{household_id}/bills", response_model=List[BillResponse])
def list_active_bills(household_id: str, bill_service: BillService = Depends(get_bill_service)):
    """Active bills ordered by due day"""
    return [BillResponse.model_validate(b) for b in bill_service.list_active_bills(household_id)]


@router.get("/bills/{bill_id}", response_model=BillResponse)
def get_bill(bill_id: str, bill_service: BillService = Depends(get_bill_service)):
    """Fetch a bill by ID, including deactivated ones"""
    return BillResponse.model_validate(bill_service.get_bill(bill_id))


@router.patch("/bills/{bill_id}", response_model=BillResponse)
def update_bill(
    bill_id: str,
    request_body: BillUpdateRequest,
    bill_service: BillService = Depends(get_bill_service),
):
    bill = bill_service.update_bill(bill_id, **request_body.model_dump(exclude_unset=True, exclude_none=True))
    return BillResponse.model_validate(bill)


@router.delete("/bills/{bill_id}", status_code=204)
def deactivate_bill(bill_id: str, bill_service: BillService = Depends(get_bill_service)):
    """Soft delete; past payment records are kept"""
    bill_service.deactivate_bill(bill_id)
    return Response(status_code=204)


@router.patch("/bill-payments/{payment_id}", response_model=BillPaymentResponse)
def set_bill_payment_status(
    payment_id: str,
    request_body: PaidStatusRequest,
    tracker: PaymentTrackerService = Depends(get_payment_tracker),
):
    payment = tracker.set_paid_status(payment_id, request_body.is_paid)
    return BillPaymentResponse.model_validate(payment)
