"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from household_ledger.infrastructure.database.session import get_db
from household_ledger.services.bills import BillService, PaymentTrackerService
from household_ledger.services.loans import LoanService
from household_ledger.services.savings import SavingsService
from household_ledger.services.settlement import SettlementService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_bill_service(db: Session = Depends(get_db)) -> BillService:
    return BillService(db)


def get_payment_tracker(db: Session = Depends(get_db)) -> PaymentTrackerService:
    return PaymentTrackerService(db)


def get_loan_service(db: Session = Depends(get_db)) -> LoanService:
    return LoanService(db)


def get_savings_service(db: Session = Depends(get_db)) -> SavingsService:
    return SavingsService(db)


def get_settlement_service(db: Session = Depends(get_db)) -> SettlementService:
    return SettlementService(db)
