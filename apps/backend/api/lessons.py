from datetime import date, datetime
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from api.deps import get_current_teacher, get_lifecycle, get_timetable
from database import TeacherDB
from models.schemas import LessonCreate, LessonResponse, MessageResponse, StatusUpdate
from services.lifecycle import LessonLifecycle
from services.pdf_service import generate_weekly_timetable_pdf
from services.timetable import TimetableModel

router = APIRouter(prefix="/lessons", tags=["Lessons"])

@router.post("", response_model=LessonResponse, status_code=201)
def create_lesson(
    payload: LessonCreate,
    teacher: TeacherDB = Depends(get_current_teacher),
    lifecycle: LessonLifecycle = Depends(get_lifecycle),
):
    """
    Books a new lesson for the calling teacher.

    Fails with 400 when the end is not after the start or the date is in
    the past, and with 409 when the slot overlaps another lesson.
    """
    return lifecycle.create_lesson(teacher.id, payload)

@router.get("", response_model=List[LessonResponse])
def list_lessons(
    teacher: TeacherDB = Depends(get_current_teacher),
    timetable: TimetableModel = Depends(get_timetable),
):
    return timetable.all_lessons(teacher.id)

@router.get("/week", response_model=List[LessonResponse])
def get_weekly_timetable(
    week_start_date: date = Query(..., alias="weekStartDate"),
    teacher: TeacherDB = Depends(get_current_teacher),
    timetable: TimetableModel = Depends(get_timetable),
):
    """Lessons from weekStartDate through the following six days, by date and start time."""
    return timetable.weekly_timetable(teacher.id, week_start_date)

@router.get("/week/pdf")
def get_weekly_timetable_pdf(
    week_start_date: date = Query(..., alias="weekStartDate"),
    teacher: TeacherDB = Depends(get_current_teacher),
    timetable: TimetableModel = Depends(get_timetable),
):
    lessons = timetable.weekly_timetable(teacher.id, week_start_date)
    pdf_buffer = generate_weekly_timetable_pdf(teacher.username, week_start_date, lessons)

    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=Timetable_{week_start_date.isoformat()}.pdf"}
    )

@router.get("/upcoming", response_model=List[LessonResponse])
def get_lessons_starting_soon(
    teacher: TeacherDB = Depends(get_current_teacher),
    timetable: TimetableModel = Depends(get_timetable),
):
    now = datetime.now()
    return timetable.lessons_starting_soon(teacher.id, now.date(), now.time())

@router.get("/{lesson_id}", response_model=LessonResponse)
def get_lesson(
    lesson_id: int,
    teacher: TeacherDB = Depends(get_current_teacher),
    lifecycle: LessonLifecycle = Depends(get_lifecycle),
):
    return lifecycle.get_lesson(lesson_id, teacher.id)

@router.put("/{lesson_id}", response_model=LessonResponse)
def update_lesson(
    lesson_id: int,
    payload: LessonCreate,
    teacher: TeacherDB = Depends(get_current_teacher),
    lifecycle: LessonLifecycle = Depends(get_lifecycle),
):
    return lifecycle.update_lesson(lesson_id, payload, teacher.id)

@router.patch("/{lesson_id}/status", response_model=LessonResponse)
def update_lesson_status(
    lesson_id: int,
    payload: StatusUpdate,
    teacher: TeacherDB = Depends(get_current_teacher),
    lifecycle: LessonLifecycle = Depends(get_lifecycle),
):
    return lifecycle.update_status(lesson_id, payload.status, teacher.id)

@router.delete("/{lesson_id}", response_model=MessageResponse)
def delete_lesson(
    lesson_id: int,
    teacher: TeacherDB = Depends(get_current_teacher),
    lifecycle: LessonLifecycle = Depends(get_lifecycle),
):
    lifecycle.delete_lesson(lesson_id, teacher.id)
    return {"message": "Lesson deleted successfully", "id": lesson_id}
