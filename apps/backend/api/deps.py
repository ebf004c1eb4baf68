from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db, TeacherDB
from services.context import ServiceContext
from services.errors import AuthTokenError
from services.lesson_store import LessonStore
from services.lifecycle import LessonLifecycle
from services.timetable import TimetableModel

TEACHER_ROLE = "TEACHER"

def get_context(request: Request) -> ServiceContext:
    return request.app.state.context

def get_store(db: Session = Depends(get_db)) -> LessonStore:
    return LessonStore(db)

def get_timetable(store: LessonStore = Depends(get_store)) -> TimetableModel:
    return TimetableModel(store)

def get_lifecycle(
    store: LessonStore = Depends(get_store),
    ctx: ServiceContext = Depends(get_context),
) -> LessonLifecycle:
    return LessonLifecycle(store, ctx.locks)

def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthTokenError("Authorization header missing or invalid")
    return authorization[len("Bearer "):]

def get_current_teacher(
    token: str = Depends(get_bearer_token),
    ctx: ServiceContext = Depends(get_context),
    store: LessonStore = Depends(get_store),
) -> TeacherDB:
    """
    Resolves the bearer token to a teacher account.

    401 for missing, malformed or expired tokens and unknown users;
    403 when the token is valid but not issued to a teacher.
    """
    role = ctx.verifier.extract_role(token)
    if role.upper() != TEACHER_ROLE:
        raise HTTPException(status_code=403, detail="Access denied: TEACHER role required")

    username = ctx.verifier.extract_username(token)
    teacher = store.find_teacher_by_username(username)
    if teacher is None:
        raise AuthTokenError("User not found")
    return teacher
