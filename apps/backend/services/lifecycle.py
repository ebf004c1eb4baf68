import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Callable, Dict

from database import LessonDB
from models.schemas import LessonCreate, LessonStatus
from services.errors import AuthorizationError, NotFoundError, ValidationError
from services.lesson_store import LessonStore
from services.timetable import TimetableModel

logger = logging.getLogger(__name__)

class BookingLocks:
    """
    One lock per teacher, serializing conflict-check-then-write sequences.

    Locking per teacher rather than per (teacher, date) is coarser than
    needed but keeps updates that move a lesson to another date covered.
    """
    def __init__(self):
        self._locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def for_teacher(self, teacher_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(teacher_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[teacher_id] = lock
            return lock

    @contextmanager
    def hold(self, teacher_id: int):
        lock = self.for_teacher(teacher_id)
        with lock:
            yield

def check_ownership(lesson: LessonDB, actor_id: int) -> bool:
    """Allow (True) only when the acting teacher owns the lesson."""
    return lesson.teacher_id == actor_id

def ensure_owner(lesson: LessonDB, actor_id: int, action: str = "modify") -> None:
    if not check_ownership(lesson, actor_id):
        logger.warning(f"Teacher {actor_id} denied to {action} lesson {lesson.id}")
        raise AuthorizationError(f"You are not authorized to {action} this lesson")

class LessonLifecycle:
    """
    Create, update, status change and delete for lessons.

    Every operation on an existing lesson goes through the same ownership
    gate. Status is caller-supplied from the closed LessonStatus enumeration;
    no transition graph is enforced and lessons stay editable in any status.
    """
    def __init__(
        self,
        store: LessonStore,
        locks: BookingLocks,
        timetable: TimetableModel = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.locks = locks
        self.timetable = timetable or TimetableModel(store)
        self.today = today

    def _load(self, lesson_id: int) -> LessonDB:
        lesson = self.store.find_by_id(lesson_id)
        if lesson is None:
            raise NotFoundError(f"Lesson not found with ID: {lesson_id}")
        return lesson

    def _check_not_past(self, day: date) -> None:
        if day < self.today():
            raise ValidationError("Lesson date must be today or in the future")

    def get_lesson(self, lesson_id: int, teacher_id: int) -> LessonDB:
        lesson = self._load(lesson_id)
        ensure_owner(lesson, teacher_id, action="view")
        return lesson

    def create_lesson(self, teacher_id: int, fields: LessonCreate) -> LessonDB:
        if self.store.find_teacher(teacher_id) is None:
            raise NotFoundError("Teacher not found")
        self._check_not_past(fields.date)

        with self.locks.hold(teacher_id):
            self.timetable.validate_slot(teacher_id, fields.date, fields.start_time, fields.end_time)
            lesson = LessonDB(
                subject=fields.subject,
                description=fields.description,
                date=fields.date,
                start_time=fields.start_time,
                end_time=fields.end_time,
                classroom=fields.classroom,
                type=fields.type,
                status=LessonStatus.SCHEDULED,
                teacher_id=teacher_id,
            )
            lesson = self.store.save(lesson)

        logger.info(f"Lesson {lesson.id} created for teacher {teacher_id} on {lesson.date} {lesson.start_time}")
        return lesson

    def update_status(self, lesson_id: int, new_status: LessonStatus, teacher_id: int) -> LessonDB:
        lesson = self._load(lesson_id)
        ensure_owner(lesson, teacher_id, action="update")

        # Date and time are untouched, so no conflict check.
        lesson.status = new_status
        lesson = self.store.save(lesson)
        logger.info(f"Lesson {lesson_id} status set to {new_status.value}")
        return lesson

    def update_lesson(self, lesson_id: int, fields: LessonCreate, teacher_id: int) -> LessonDB:
        lesson = self._load(lesson_id)
        ensure_owner(lesson, teacher_id, action="update")
        self._check_not_past(fields.date)

        with self.locks.hold(teacher_id):
            self.timetable.validate_slot(
                teacher_id, fields.date, fields.start_time, fields.end_time,
                exclude_lesson_id=lesson.id,
            )
            lesson.subject = fields.subject
            lesson.description = fields.description
            lesson.date = fields.date
            lesson.start_time = fields.start_time
            lesson.end_time = fields.end_time
            lesson.classroom = fields.classroom
            lesson.type = fields.type
            lesson = self.store.save(lesson)

        logger.info(f"Lesson {lesson_id} updated")
        return lesson

    def delete_lesson(self, lesson_id: int, teacher_id: int) -> None:
        lesson = self._load(lesson_id)
        ensure_owner(lesson, teacher_id, action="delete")
        # Pending reminders go inert: the reminder loop re-reads the store every tick.
        self.store.delete_by_id(lesson_id)
        logger.info(f"Lesson {lesson_id} deleted")
