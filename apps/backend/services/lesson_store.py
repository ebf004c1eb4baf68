from datetime import date, time
from typing import List, Optional

from sqlalchemy.orm import Session

from database import LessonDB, TeacherDB

class LessonStore:
    """
    SQLAlchemy-backed lesson queries used by the timetable, the lifecycle
    operations and the reminder loop.

    Every query returns ORM rows bound to the given session; callers that
    keep rows around (the reminder loop) must read them before the session
    closes.
    """
    def __init__(self, db: Session):
        self.db = db

    def find_overlapping(self, teacher_id: int, day: date, start_time: time, end_time: time) -> List[LessonDB]:
        """Lessons of the teacher on `day` whose [start, end) intersects the given interval."""
        return (
            self.db.query(LessonDB)
            .filter(
                LessonDB.teacher_id == teacher_id,
                LessonDB.date == day,
                LessonDB.start_time < end_time,
                LessonDB.end_time > start_time,
            )
            .all()
        )

    def find_by_teacher_and_date_range(self, teacher_id: int, start_date: date, end_date: date) -> List[LessonDB]:
        return (
            self.db.query(LessonDB)
            .filter(
                LessonDB.teacher_id == teacher_id,
                LessonDB.date >= start_date,
                LessonDB.date <= end_date,
            )
            .order_by(LessonDB.date.asc(), LessonDB.start_time.asc())
            .all()
        )

    def find_starting_between(self, day: date, start_time: time, end_time: time) -> List[LessonDB]:
        """All lessons on `day` starting within [start_time, end_time], bounds inclusive."""
        return (
            self.db.query(LessonDB)
            .filter(
                LessonDB.date == day,
                LessonDB.start_time >= start_time,
                LessonDB.start_time <= end_time,
            )
            .order_by(LessonDB.start_time.asc())
            .all()
        )

    def find_by_teacher_starting_between(self, teacher_id: int, day: date, start_time: time, end_time: time) -> List[LessonDB]:
        return (
            self.db.query(LessonDB)
            .filter(
                LessonDB.teacher_id == teacher_id,
                LessonDB.date == day,
                LessonDB.start_time >= start_time,
                LessonDB.start_time <= end_time,
            )
            .order_by(LessonDB.start_time.asc())
            .all()
        )

    def find_all_by_teacher(self, teacher_id: int) -> List[LessonDB]:
        return (
            self.db.query(LessonDB)
            .filter(LessonDB.teacher_id == teacher_id)
            .order_by(LessonDB.date.asc(), LessonDB.start_time.asc())
            .all()
        )

    def find_by_id(self, lesson_id: int) -> Optional[LessonDB]:
        return self.db.query(LessonDB).filter(LessonDB.id == lesson_id).first()

    def save(self, lesson: LessonDB) -> LessonDB:
        self.db.add(lesson)
        self.db.commit()
        self.db.refresh(lesson)
        return lesson

    def delete_by_id(self, lesson_id: int) -> None:
        lesson = self.find_by_id(lesson_id)
        if lesson is not None:
            self.db.delete(lesson)
            self.db.commit()

    def find_teacher(self, teacher_id: int) -> Optional[TeacherDB]:
        return self.db.query(TeacherDB).filter(TeacherDB.id == teacher_id).first()

    def find_teacher_by_username(self, username: str) -> Optional[TeacherDB]:
        return self.db.query(TeacherDB).filter(TeacherDB.username == username).first()
