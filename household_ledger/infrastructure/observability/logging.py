"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from household_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_settlement_view(
    household_id: str,
    month_year: str,
    item_count: int,
    unpaid_count: int,
    duration_ms: float,
) -> None:
    """Log structured settlement outcome for analysis"""
    logging.info(
        "Settlement view computed",
        extra={
            "household_id": household_id,
            "month_year": month_year,
            "step": "settlement_view",
            "item_count": item_count,
            "unpaid_count": unpaid_count,
            "duration_ms": duration_ms,
        },
    )


def log_due_item_paid(household_id: str, month_year: str, kind: str, item_id: str, is_paid: bool) -> None:
    """Log a paid-status transition on a settlement item"""
    logging.info(
        "Due item status changed",
        extra={
            "household_id": household_id,
            "month_year": month_year,
            "step": "due_item_paid",
            "kind": kind,
            "item_id": item_id,
            "is_paid": is_paid,
        },
    )
