"""Credit score computation over the live business ledgers"""

import time
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from bizcredit.domain.models import CreditScore
from bizcredit.domain.scoring import calculate_credit_score
from bizcredit.infrastructure.database.repositories import ActivityRepository
from bizcredit.infrastructure.observability.logging import log_score
from bizcredit.infrastructure.observability.metrics import credit_score_histogram
from bizcredit.utils.date_utils import utc_now


class CreditScoreService:
    """Recomputes a business's credit score from a fresh ledger snapshot on every call"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def get_credit_score(self, business_id: str) -> CreditScore:
        start_time = time.time()

        snapshot = ActivityRepository(self.db).load_snapshot(business_id)
        credit_score = calculate_credit_score(snapshot, now=self.clock())

        duration_ms = (time.time() - start_time) * 1000
        credit_score_histogram.observe(credit_score.score)
        log_score(business_id, credit_score.score, credit_score.rating.value, duration_ms)

        return credit_score
