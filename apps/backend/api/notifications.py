from fastapi import APIRouter, Depends

from api.deps import get_context, get_current_teacher
from database import TeacherDB
from models.schemas import NotificationList
from services.context import ServiceContext

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("", response_model=NotificationList)
def get_notifications(
    teacher: TeacherDB = Depends(get_current_teacher),
    ctx: ServiceContext = Depends(get_context),
):
    messages = ctx.sink.get_notifications(teacher.id)
    return {"notifications": messages, "count": len(messages)}

@router.delete("")
def clear_notifications(
    teacher: TeacherDB = Depends(get_current_teacher),
    ctx: ServiceContext = Depends(get_context),
):
    ctx.sink.clear_notifications(teacher.id)
    return {"status": "cleared"}
