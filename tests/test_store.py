"""
Unit tests for the exam session store.

Time is controlled through an injected clock.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from skill_exam.models import Exam
from skill_exam.store import DEFAULT_TTL, ExamSessionStore, StoreNotFoundError

START = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> ExamSessionStore:
    return ExamSessionStore(ttl=timedelta(minutes=10), clock=clock)


class TestExamSessionStore:
    """Tests for ExamSessionStore."""

    def test_default_ttl(self) -> None:
        """Test the default TTL is one hour."""
        assert ExamSessionStore().ttl == DEFAULT_TTL == timedelta(hours=1)

    @pytest.mark.parametrize("ttl", [timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_ttl_rejected(self, ttl: timedelta) -> None:
        """Test the TTL must be positive."""
        with pytest.raises(ValueError, match="TTL must be positive"):
            ExamSessionStore(ttl=ttl)

    def test_create_and_get(self, store: ExamSessionStore, sample_exam: Exam) -> None:
        """Test a stored exam is retrievable by its id."""
        record = store.create(sample_exam)

        assert record.exam_id
        assert record.exam is sample_exam
        assert record.created_at == START
        assert store.get(record.exam_id) == record
        assert len(store) == 1

    def test_ids_are_unique(self, store: ExamSessionStore, sample_exam: Exam) -> None:
        """Test every create assigns a fresh id."""
        ids = {store.create(sample_exam).exam_id for _ in range(50)}

        assert len(ids) == 50

    def test_unknown_id(self, store: ExamSessionStore) -> None:
        """Test unknown ids are reported as not found."""
        assert store.find("missing") is None

        with pytest.raises(StoreNotFoundError, match="missing") as exc_info:
            store.get("missing")

        assert exc_info.value.exam_id == "missing"

    def test_retrievable_just_before_expiry(
        self, store: ExamSessionStore, clock: FakeClock, sample_exam: Exam
    ) -> None:
        """Test a record is live up to and including the TTL."""
        record = store.create(sample_exam)

        clock.advance(timedelta(minutes=10) - timedelta(milliseconds=1))
        assert store.get(record.exam_id) == record

        clock.advance(timedelta(milliseconds=1))
        assert store.get(record.exam_id) == record

    def test_expired_behaves_like_unknown(
        self, store: ExamSessionStore, clock: FakeClock, sample_exam: Exam
    ) -> None:
        """Test an expired record is indistinguishable from an unknown id."""
        record = store.create(sample_exam)
        clock.advance(timedelta(minutes=10, milliseconds=1))

        assert store.find(record.exam_id) is None
        with pytest.raises(StoreNotFoundError):
            store.get(record.exam_id)
        assert len(store) == 0

    def test_create_purges_expired(
        self, store: ExamSessionStore, clock: FakeClock, sample_exam: Exam
    ) -> None:
        """Test storing a new exam evicts expired ones."""
        old = store.create(sample_exam)
        clock.advance(timedelta(minutes=5))
        middle = store.create(sample_exam)
        clock.advance(timedelta(minutes=6))

        new = store.create(sample_exam)

        assert len(store) == 2
        assert store.find(old.exam_id) is None
        assert store.find(middle.exam_id) is not None
        assert store.find(new.exam_id) is not None

    def test_purge_expired(
        self, store: ExamSessionStore, clock: FakeClock, sample_exam: Exam
    ) -> None:
        """Test explicit purging reports how many records were removed."""
        store.create(sample_exam)
        store.create(sample_exam)
        clock.advance(timedelta(minutes=11))

        assert store.purge_expired() == 2
        assert store.purge_expired() == 0

    def test_delete(self, store: ExamSessionStore, sample_exam: Exam) -> None:
        """Test deleted records are gone and unknown deletes are ignored."""
        record = store.create(sample_exam)

        store.delete(record.exam_id)
        store.delete(record.exam_id)

        assert store.find(record.exam_id) is None

    def test_concurrent_creates(self, sample_exam: Exam) -> None:
        """Test creates from many threads all land."""
        store = ExamSessionStore()
        ids: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(25):
                exam_id = store.create(sample_exam).exam_id
                with lock:
                    ids.append(exam_id)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(ids)) == 200
        assert len(store) == 200
        assert all(store.find(exam_id) is not None for exam_id in ids)
