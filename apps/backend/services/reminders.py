"""
Lesson reminder loop.

Every tick looks for lessons whose start falls in the window that moved
past each threshold (30 and 10 minutes ahead) since the previous tick, and
dispatches one reminder per (lesson, threshold). The dispatch ledger is the
record of what has already fired, so overlapping windows, tick jitter and
restarts of the loop never produce a second reminder for the same pair.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from database import LessonDB
from services.errors import DeliveryError
from services.lesson_store import LessonStore
from services.notifications import NotificationSink
from services.notifier import Notifier
from services.timetable import split_by_date
from utils.logger import mask_email

logger = logging.getLogger(__name__)

THRESHOLDS_MINUTES = (30, 10)
DEFAULT_PERIOD = timedelta(seconds=60)
DEFAULT_RETENTION = timedelta(hours=2)


class ReminderState(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"


@dataclass(frozen=True)
class DispatchRecord:
    lesson_id: int
    threshold: int
    lesson_start: datetime
    dispatched_at: datetime


class DispatchLedger:
    """
    Thread-safe set of dispatch records keyed by (lesson_id, threshold).

    `claim` is the atomic test-and-set: exactly one caller wins for a given
    key and lesson start. A record whose lesson start no longer matches the
    lesson (it was rescheduled) is stale and can be claimed again.
    """

    def __init__(self):
        self._records: Dict[Tuple[int, int], DispatchRecord] = {}
        self._lock = threading.Lock()

    def claim(self, lesson_id: int, threshold: int, lesson_start: datetime, now: datetime) -> bool:
        key = (lesson_id, threshold)
        with self._lock:
            existing = self._records.get(key)
            if existing is not None and existing.lesson_start == lesson_start:
                return False
            self._records[key] = DispatchRecord(lesson_id, threshold, lesson_start, now)
            return True

    def get(self, lesson_id: int, threshold: int) -> Optional[DispatchRecord]:
        with self._lock:
            return self._records.get((lesson_id, threshold))

    def state(self, lesson_id: int, threshold: int) -> ReminderState:
        if self.get(lesson_id, threshold) is None:
            return ReminderState.PENDING
        return ReminderState.DISPATCHED

    def purge(self, now: datetime, retention: timedelta = DEFAULT_RETENTION) -> int:
        """Drops records whose lesson started more than `retention` ago."""
        with self._lock:
            expired = [key for key, record in self._records.items()
                       if record.lesson_start + retention < now]
            for key in expired:
                del self._records[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


@dataclass
class TickReport:
    now: datetime
    candidates: int = 0
    dispatched: int = 0
    skipped: int = 0
    failed: int = 0
    purged: int = 0


def lesson_start(lesson: LessonDB) -> datetime:
    return datetime.combine(lesson.date, lesson.start_time)


def build_reminder_model(lesson: LessonDB, minutes_left: int) -> Dict[str, Any]:
    teacher = lesson.teacher
    return {
        "name": teacher.username if teacher else "",
        "subject": lesson.subject,
        "description": lesson.description,
        "date": lesson.date.isoformat(),
        "time": lesson.start_time.strftime("%H:%M"),
        "endTime": lesson.end_time.strftime("%H:%M"),
        "classroom": lesson.classroom,
        "minutesLeft": minutes_left,
    }


def reminder_message(lesson: LessonDB, minutes_left: int) -> str:
    return f"You have a lesson on {lesson.subject} in {minutes_left} minutes"


class ReminderScheduler:
    """
    Periodic reminder dispatch.

    Args:
        session_factory: Callable returning a new SQLAlchemy session; one is
            opened per tick and closed afterwards.
        ledger: Shared dispatch ledger.
        sink: Notification sink receiving the in-app message.
        notifier: Delivery channel (e-mail).
        thresholds: Lead times in minutes.
        period: Tick period. Must not exceed the smallest threshold, or a
            lesson could slip between two ticks.
        retention: How long a record is kept after its lesson started.
        notifier_timeout: Seconds to wait for a single notifier call.
        clock: Returns the current local time.
    """

    def __init__(
        self,
        session_factory: Callable,
        ledger: DispatchLedger,
        sink: NotificationSink,
        notifier: Notifier,
        thresholds: Sequence[int] = THRESHOLDS_MINUTES,
        period: timedelta = DEFAULT_PERIOD,
        retention: timedelta = DEFAULT_RETENTION,
        notifier_timeout: float = 10.0,
        clock: Callable[[], datetime] = datetime.now,
        max_workers: int = 4,
    ):
        if not thresholds:
            raise ValueError("At least one reminder threshold is required")
        if period <= timedelta(0):
            raise ValueError("Tick period must be positive")
        if period > timedelta(minutes=min(thresholds)):
            raise ValueError(
                f"Tick period {period} exceeds the smallest threshold ({min(thresholds)} minutes)"
            )

        self.session_factory = session_factory
        self.ledger = ledger
        self.sink = sink
        self.notifier = notifier
        self.thresholds = tuple(sorted(set(thresholds), reverse=True))
        self.period = period
        self.retention = retention
        self.notifier_timeout = notifier_timeout
        self.clock = clock

        self.max_workers = max_workers

        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._last_now: Optional[datetime] = None
        self._tick_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def window(self, now: datetime, threshold: int) -> Tuple[datetime, datetime]:
        """
        Instants whose lessons become due for `threshold` on this tick.

        The window starts where the previous tick's window ended, so late or
        irregular ticks never leave a gap; the ledger absorbs the shared
        boundary. Lessons that have already started are left out.
        """
        lead = timedelta(minutes=threshold)
        end = now + lead
        if self._last_now is None:
            start = end - self.period
        else:
            start = self._last_now + lead
        return max(start, now), end

    def tick(self, now: Optional[datetime] = None) -> TickReport:
        with self._tick_lock:
            now = now or self.clock()
            report = TickReport(now=now)
            logger.debug(f"Running lesson reminder scan at {now}")

            db = self.session_factory()
            try:
                store = LessonStore(db)
                for threshold in self.thresholds:
                    start, end = self.window(now, threshold)
                    due = []
                    for day, start_time, end_time in split_by_date(start, end):
                        due.extend(store.find_starting_between(day, start_time, end_time))
                    if due:
                        logger.info(f"Found {len(due)} lessons starting in {threshold} minutes")
                    for lesson in due:
                        report.candidates += 1
                        try:
                            self._process(lesson, threshold, now, report)
                        except Exception as e:
                            report.failed += 1
                            logger.exception(f"Reminder for lesson {lesson.id} ({threshold} min) failed: {e}")
            finally:
                db.close()

            # Only advance after a complete scan so a failed tick is re-covered.
            self._last_now = now
            report.purged = self.ledger.purge(now, self.retention)
            return report

    def _process(self, lesson: LessonDB, threshold: int, now: datetime, report: TickReport) -> None:
        if not self.ledger.claim(lesson.id, threshold, lesson_start(lesson), now):
            report.skipped += 1
            return

        logger.info(f"Sending {threshold}-min reminder for lesson id {lesson.id}")
        model = build_reminder_model(lesson, threshold)
        email = lesson.teacher.email if lesson.teacher else ""

        self.sink.create_notification(lesson.teacher_id, reminder_message(lesson, threshold))

        if self._deliver(email, f"Lesson in {threshold} minutes", model, lesson.id):
            report.dispatched += 1
        else:
            report.failed += 1

    def _deliver(self, email: str, subject: str, model: Dict[str, Any], lesson_id: int) -> bool:
        """Best-effort delivery; the record stays claimed whatever happens here."""
        try:
            future = self._get_executor().submit(self.notifier.send, email, subject, model)
            future.result(timeout=self.notifier_timeout)
            return True
        except TimeoutError:
            future.cancel()
            logger.error(f"Reminder for lesson {lesson_id} to {mask_email(email)} timed out "
                         f"after {self.notifier_timeout}s")
        except DeliveryError as e:
            logger.error(f"Reminder for lesson {lesson_id} to {mask_email(email)} failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected notifier error for lesson {lesson_id}: {e}")
        return False

    def _get_executor(self) -> ThreadPoolExecutor:
        """Notifier pool, created on first use and again after `stop()` shut it down."""
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="reminder-notify"
                )
            return self._executor

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="reminder-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Reminder scheduler started (period={self.period.total_seconds():.0f}s, "
                    f"thresholds={list(self.thresholds)})")

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                report = self.tick()
                if report.candidates:
                    logger.info(f"Reminder tick: {report}")
            except Exception as e:
                logger.exception(f"Reminder tick failed: {e}")
            self._stop.wait(self.period.total_seconds())

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
        logger.info("Reminder scheduler stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
