"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from bizcredit.config import settings


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


def log_score(business_id: str, score: int, rating: str, duration_ms: float) -> None:
    """Log a credit score computation"""
    logging.info(
        "Credit score computed",
        extra={
            "business_id": business_id,
            "step": "credit_score",
            "score": score,
            "rating": rating,
            "duration_ms": duration_ms,
        },
    )


def log_pre_qualification(
    business_id: str,
    product_id: str,
    requested_amount: str,
    qualified: bool,
    credit_score: int,
) -> None:
    """Log a pre-qualification outcome for analysis"""
    logging.info(
        "Pre-qualification completed",
        extra={
            "business_id": business_id,
            "product_id": product_id,
            "step": "pre_qualification",
            "requested_amount": requested_amount,
            "outcome": "qualified" if qualified else "not_qualified",
            "credit_score": credit_score,
        },
    )


def log_fulfillment(
    application_number: str,
    applied: int,
    skipped: int,
    failed: int,
) -> None:
    """Log the per-application restock summary; partial failures at WARNING"""
    level = logging.WARNING if failed else logging.INFO
    message = "Fulfillment partially failed" if failed else "Fulfillment completed"
    logging.log(
        level,
        message,
        extra={
            "application_number": application_number,
            "step": "fulfillment",
            "items_applied": applied,
            "items_skipped": skipped,
            "items_failed": failed,
        },
    )
