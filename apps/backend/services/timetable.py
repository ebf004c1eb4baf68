from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from database import LessonDB
from services.errors import ConflictError, ValidationError
from services.lesson_store import LessonStore

UPCOMING_WINDOW = timedelta(minutes=30)

def intervals_overlap(s1: time, e1: time, s2: time, e2: time) -> bool:
    """Half-open intervals [s1, e1) and [s2, e2) intersect."""
    return s1 < e2 and s2 < e1

def split_by_date(start: datetime, end: datetime) -> List[Tuple[date, time, time]]:
    """
    Splits the closed instant range [start, end] into per-date time ranges.

    Store queries filter on (date, start_time), so a window such as
    23:50 -> 00:20 becomes two lookups, one per calendar date.
    """
    if end < start:
        return []

    segments = []
    cursor = start
    while cursor.date() < end.date():
        segments.append((cursor.date(), cursor.time(), time.max))
        cursor = datetime.combine(cursor.date() + timedelta(days=1), time.min)
    segments.append((end.date(), cursor.time(), end.time()))
    return segments

class TimetableModel:
    """
    Conflict detection and timetable queries for a single teacher.

    Pure reads over the lesson store: nothing here writes. Create and update
    paths must call `validate_slot` while holding the teacher's booking lock
    so that the check and the write form one unit.
    """
    def __init__(self, store: LessonStore):
        self.store = store

    def validate_slot(
        self,
        teacher_id: int,
        day: date,
        start_time: time,
        end_time: time,
        exclude_lesson_id: Optional[int] = None,
    ) -> None:
        """
        Checks that [start_time, end_time) is a well-formed, free slot.

        Raises:
            ValidationError: end_time is not after start_time.
            ConflictError: another lesson of the teacher intersects the slot.
        """
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")

        overlapping = [
            lesson for lesson in self.store.find_overlapping(teacher_id, day, start_time, end_time)
            if lesson.id != exclude_lesson_id
            and intervals_overlap(lesson.start_time, lesson.end_time, start_time, end_time)
        ]
        if overlapping:
            raise ConflictError(
                "Time slot conflicts with existing lesson",
                conflicting_ids=[lesson.id for lesson in overlapping],
            )

    def weekly_timetable(self, teacher_id: int, week_start_date: date) -> List[LessonDB]:
        """Lessons dated week_start_date .. week_start_date + 6 days, by (date, start_time)."""
        week_end_date = week_start_date + timedelta(days=6)
        lessons = self.store.find_by_teacher_and_date_range(teacher_id, week_start_date, week_end_date)
        return sorted(lessons, key=lambda l: (l.date, l.start_time))

    def lessons_starting_soon(self, teacher_id: int, now_date: date, now_time: time) -> List[LessonDB]:
        """
        Lessons starting within the next 30 minutes, bounds inclusive.

        This is the "upcoming" view for the UI; reminder dispatch uses its
        own windows (see services/reminders.py).
        """
        now = datetime.combine(now_date, now_time)
        lessons = []
        for day, start, end in split_by_date(now, now + UPCOMING_WINDOW):
            lessons.extend(self.store.find_by_teacher_starting_between(teacher_id, day, start, end))
        return sorted(lessons, key=lambda l: (l.date, l.start_time))

    def all_lessons(self, teacher_id: int) -> List[LessonDB]:
        return self.store.find_all_by_teacher(teacher_id)
