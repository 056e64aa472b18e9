"""
In-memory exam session store.

Holds generated exams under opaque identifiers until they expire. Expired
records are evicted lazily, on lookup and whenever a new exam is stored;
there is no background sweeper.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from skill_exam.models import Exam, ExamRecord

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=1)


class StoreNotFoundError(Exception):
    """Raised when an exam id is unknown or has expired."""

    def __init__(self, exam_id: str):
        self.exam_id = exam_id
        super().__init__(f"Exam not found: {exam_id}")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExamSessionStore:
    """
    Expiring map of exam id to ExamRecord.

    Records are never mutated once stored, only read or removed. A single
    lock makes each operation one critical section, so the store can be
    shared across threads and asyncio tasks.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the store.

        Args:
            ttl: How long a record stays retrievable after creation.
            clock: Source of the current time.
        """
        if ttl <= timedelta(0):
            raise ValueError(f"TTL must be positive, got {ttl}")
        self._ttl = ttl
        self._clock = clock
        self._records: dict[str, ExamRecord] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def create(self, exam: Exam) -> ExamRecord:
        """
        Store an exam under a fresh identifier.

        Also purges every expired record.

        Returns:
            The stored record, carrying the new id and creation time.
        """
        with self._lock:
            exam_id = uuid4().hex
            while exam_id in self._records:
                exam_id = uuid4().hex

            now = self._clock()
            record = ExamRecord(exam_id=exam_id, exam=exam, created_at=now)
            self._records[exam_id] = record
            self._purge_locked(now)
            return record

    def find(self, exam_id: str) -> ExamRecord | None:
        """Return the live record for `exam_id`, or None if unknown or expired."""
        with self._lock:
            record = self._records.get(exam_id)
            if record is None:
                return None
            if self._is_expired(record, self._clock()):
                del self._records[exam_id]
                logger.debug("Evicted expired exam %s on lookup", exam_id)
                return None
            return record

    def get(self, exam_id: str) -> ExamRecord:
        """
        Return the live record for `exam_id`.

        Raises:
            StoreNotFoundError: If the id is unknown or the record has expired.
        """
        record = self.find(exam_id)
        if record is None:
            raise StoreNotFoundError(exam_id)
        return record

    def delete(self, exam_id: str) -> None:
        """Remove a record. Unknown ids are ignored."""
        with self._lock:
            self._records.pop(exam_id, None)

    def purge_expired(self) -> int:
        """Remove every expired record and return how many were removed."""
        with self._lock:
            return self._purge_locked(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _purge_locked(self, now: datetime) -> int:
        expired = [
            exam_id for exam_id, record in self._records.items() if self._is_expired(record, now)
        ]
        for exam_id in expired:
            del self._records[exam_id]
        if expired:
            logger.debug("Purged %d expired exams", len(expired))
        return len(expired)

    def _is_expired(self, record: ExamRecord, now: datetime) -> bool:
        return now - record.created_at > self._ttl
