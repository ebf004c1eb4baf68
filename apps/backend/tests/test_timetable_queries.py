from datetime import date, time

from services.lesson_store import LessonStore
from services.timetable import TimetableModel

def test_find_overlapping_uses_half_open_intervals(db_session, make_lesson, teacher):
    make_lesson(date(2024, 1, 1), time(9, 0), time(10, 0))
    store = LessonStore(db_session)

    assert len(store.find_overlapping(teacher.id, date(2024, 1, 1), time(9, 30), time(10, 30))) == 1
    assert store.find_overlapping(teacher.id, date(2024, 1, 1), time(10, 0), time(11, 0)) == []
    assert store.find_overlapping(teacher.id, date(2024, 1, 1), time(8, 0), time(9, 0)) == []
    # Other dates and other teachers never conflict
    assert store.find_overlapping(teacher.id, date(2024, 1, 2), time(9, 30), time(10, 30)) == []
    assert store.find_overlapping(teacher.id + 1000, date(2024, 1, 1), time(9, 30), time(10, 30)) == []

def test_weekly_timetable_window_and_order(db_session, make_lesson, teacher, other_teacher):
    make_lesson(date(2023, 12, 31), time(9, 0), time(10, 0), subject="Before")
    make_lesson(date(2024, 1, 7), time(8, 0), time(9, 0), subject="Sunday")
    make_lesson(date(2024, 1, 3), time(14, 0), time(15, 0), subject="Wed late")
    make_lesson(date(2024, 1, 3), time(8, 0), time(9, 0), subject="Wed early")
    make_lesson(date(2024, 1, 1), time(11, 0), time(12, 0), subject="Monday")
    make_lesson(date(2024, 1, 8), time(9, 0), time(10, 0), subject="After")
    make_lesson(date(2024, 1, 2), time(9, 0), time(10, 0), teacher_id=other_teacher.id, subject="Not mine")

    lessons = TimetableModel(LessonStore(db_session)).weekly_timetable(teacher.id, date(2024, 1, 1))

    assert [l.subject for l in lessons] == ["Monday", "Wed early", "Wed late", "Sunday"]
    assert all(date(2024, 1, 1) <= l.date <= date(2024, 1, 7) for l in lessons)

def test_weekly_timetable_empty_window(db_session, teacher):
    assert TimetableModel(LessonStore(db_session)).weekly_timetable(teacher.id, date(2024, 1, 1)) == []

def test_lessons_starting_soon_window(db_session, make_lesson, teacher):
    make_lesson(date(2024, 1, 1), time(9, 0), time(9, 45), subject="Now")
    make_lesson(date(2024, 1, 1), time(9, 30), time(10, 0), subject="Edge")
    make_lesson(date(2024, 1, 1), time(9, 31), time(10, 0), subject="Too late")
    make_lesson(date(2024, 1, 1), time(8, 59), time(9, 0), subject="Started")

    lessons = TimetableModel(LessonStore(db_session)).lessons_starting_soon(teacher.id, date(2024, 1, 1), time(9, 0))

    assert [l.subject for l in lessons] == ["Now", "Edge"]

def test_lessons_starting_soon_across_midnight(db_session, make_lesson, teacher):
    make_lesson(date(2024, 1, 1), time(23, 55), time(23, 59), subject="Late night")
    make_lesson(date(2024, 1, 2), time(0, 10), time(1, 0), subject="After midnight")
    make_lesson(date(2024, 1, 2), time(0, 30), time(1, 0), subject="Too late")

    lessons = TimetableModel(LessonStore(db_session)).lessons_starting_soon(teacher.id, date(2024, 1, 1), time(23, 50))

    assert [l.subject for l in lessons] == ["Late night", "After midnight"]

def test_find_starting_between_covers_all_teachers(db_session, make_lesson, teacher, other_teacher):
    make_lesson(date(2024, 1, 1), time(10, 0), time(11, 0), subject="Mine")
    make_lesson(date(2024, 1, 1), time(10, 0), time(11, 0), teacher_id=other_teacher.id, subject="Theirs")

    lessons = LessonStore(db_session).find_starting_between(date(2024, 1, 1), time(9, 59), time(10, 0))

    assert sorted(l.subject for l in lessons) == ["Mine", "Theirs"]
