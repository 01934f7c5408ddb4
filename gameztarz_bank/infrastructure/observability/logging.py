"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from gameztarz_bank.config import settings


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


def log_settlement(
    request_id: str,
    account_id: str,
    simulated_now: datetime,
    modified: bool,
    summary,
    duration_ms: float,
) -> None:
    """Log structured settlement outcome for analysis"""
    logging.info(
        "Settlement completed",
        extra={
            "request_id": request_id,
            "account_id": account_id,
            "step": "settlement_complete",
            "simulated_now": simulated_now.isoformat(),
            "modified": modified,
            "salary_cycles": summary.salary_cycles,
            "obligations_paid": summary.obligations_paid,
            "obligations_missed": summary.obligations_missed,
            "flat_fees": summary.flat_fees,
            "courses_completed": summary.courses_completed,
            "fee_credit_failures": summary.fee_credit_failures,
            "duration_ms": duration_ms,
        },
    )


def log_transfer(
    request_id: str,
    sender_id: str,
    recipient_id: str,
    amount: float,
    currency: str,
    fee: float,
) -> None:
    """Log structured transfer outcome"""
    logging.info(
        "Transfer completed",
        extra={
            "request_id": request_id,
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "step": "transfer_complete",
            "amount": amount,
            "currency": currency,
            "fee": fee,
        },
    )
