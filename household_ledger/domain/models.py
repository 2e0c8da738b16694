"""Domain models - pure Python dataclasses for computed views"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional

BILL = "bill"
LOAN = "loan"


@dataclass
class DueItem:
    """One bill or loan installment owed in a given month"""

    kind: str  # "bill" or "loan"
    item_id: str  # bill id or loan id
    payment_id: Optional[str]  # bill payment record id, or the matching loan payment id
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


@dataclass
class HouseholdSummary:
    """Per-currency totals shown on the household dashboard"""

    month_year: str
    loans_outstanding_cents: Dict[str, int] = field(default_factory=dict)
    owed_to_savings_cents: Dict[str, int] = field(default_factory=dict)
    due_this_month_cents: Dict[str, int] = field(default_factory=dict)
    unpaid_this_month_cents: Dict[str, int] = field(default_factory=dict)
    unpaid_item_count: int = 0
