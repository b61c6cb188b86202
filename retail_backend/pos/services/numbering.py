# pos/services/numbering.py

"""
TRANSACTION NUMBER ISSUANCE

Format: YYYYMMDD + 4-digit daily sequence (e.g. 202610160001).

Rules:
- The per-day counter row is locked while incremented (select_for_update)
- A concurrent first-of-day insert surfaces as IntegrityError; retried up to
  POS["TRANSACTION_NUMBER_MAX_RETRIES"] times
- Sequence exhaustion (> 9999 in one day) is not retried
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from pos.models import DailyTransactionCounter
from pos.services.exceptions import TransactionNumberError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 10


def _configured_max_retries() -> int:
    pos_settings = getattr(settings, "POS", {}) or {}
    return int(pos_settings.get("TRANSACTION_NUMBER_MAX_RETRIES", DEFAULT_MAX_RETRIES))


def format_transaction_number(business_date, sequence: int) -> str:
    return f"{business_date:%Y%m%d}{sequence:04d}"


def issue_transaction_number(*, today=None, max_retries: int | None = None) -> str:
    business_date = today or timezone.localdate()
    attempts = max(1, max_retries or _configured_max_retries())

    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                counter, _ = (
                    DailyTransactionCounter.objects.select_for_update()
                    .get_or_create(business_date=business_date)
                )
                counter.last_sequence += 1
                counter.save(update_fields=["last_sequence", "updated_at"])
        except IntegrityError:
            logger.warning(
                "Transaction number collision, retrying",
                extra={"business_date": str(business_date), "attempt": attempt},
            )
            continue
        except ValidationError as exc:
            raise TransactionNumberError(
                f"Daily transaction sequence exhausted for {business_date}"
            ) from exc

        number = format_transaction_number(business_date, counter.last_sequence)
        logger.info("Transaction number issued", extra={"transaction_number": number})
        return number

    raise TransactionNumberError(
        f"Unable to issue a transaction number after {attempts} attempts"
    )


class DjangoTransactionNumbering:
    def __init__(self, max_retries: int | None = None):
        self.max_retries = max_retries

    def issue_number(self) -> str:
        return issue_transaction_number(max_retries=self.max_retries)
