"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from donor_ledger.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        json_default=str,  # Decimal and date values
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_bonus_outcome(
    request_id: str,
    action: str,
    payment_id: int,
    solicitor_id: int,
    bonus_rule_id: Optional[int],
    bonus_amount: Decimal,
) -> None:
    """Log which rule paid what on an assign or recalculate"""
    logging.info(
        "Bonus calculated",
        extra={
            "request_id": request_id,
            "step": f"bonus_{action}",
            "payment_id": payment_id,
            "solicitor_id": solicitor_id,
            "bonus_rule_id": bonus_rule_id,
            "bonus_amount": str(bonus_amount),
        },
    )


def log_plan_created(
    request_id: str,
    plan_id: int,
    pledge_id: int,
    distribution_type: str,
    number_of_installments: int,
    duration_ms: float,
) -> None:
    logging.info(
        "Payment plan created",
        extra={
            "request_id": request_id,
            "step": "plan_created",
            "plan_id": plan_id,
            "pledge_id": pledge_id,
            "distribution_type": distribution_type,
            "number_of_installments": number_of_installments,
            "duration_ms": duration_ms,
        },
    )


def log_rollback(entity: str, entity_id: Any, succeeded: bool, error: Optional[BaseException] = None) -> None:
    """
    Log a compensating delete.

    A failed compensation leaves persisted data inconsistent, so it is logged
    at CRITICAL for operator follow-up.
    """
    if succeeded:
        logging.warning(
            f"Rolled back {entity} {entity_id}",
            extra={"step": "compensation", "entity": entity, "entity_id": entity_id, "rollback": "succeeded"},
        )
    else:
        logging.critical(
            f"Failed to roll back {entity} {entity_id}. Data inconsistency possible!",
            extra={
                "step": "compensation",
                "entity": entity,
                "entity_id": entity_id,
                "rollback": "failed",
                "error": repr(error),
            },
        )
