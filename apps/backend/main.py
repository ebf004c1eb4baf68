from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import os
from api import lessons, notifications
from database import init_db, SessionLocal, TeacherDB
from services.context import build_context
from services.errors import AuthTokenError, SchedulingError
from utils.config import Settings
from utils.logger import setup_logger

settings = Settings()
logger = setup_logger("lesson_scheduler", level=settings.log_level, log_file=settings.log_file)

app = FastAPI(title="Teacher Lesson Scheduler API")
app.state.context = build_context(settings)

@app.on_event("startup")
def on_startup():
    settings.validate()
    init_db()
    seed_data()
    if settings.reminders_enabled:
        app.state.context.build_scheduler(SessionLocal).start()
    else:
        logger.info("Reminder scheduler disabled (REMINDERS_ENABLED=false)")

@app.on_event("shutdown")
def on_shutdown():
    scheduler = app.state.context.scheduler
    if scheduler is not None:
        scheduler.stop()

def seed_data():
    username = settings.default_teacher_username
    if not username:
        return
    db = SessionLocal()
    try:
        if not db.query(TeacherDB).filter(TeacherDB.username == username).first():
            logger.info(f"Seeding default teacher account '{username}'")
            db.add(TeacherDB(username=username, email=settings.default_teacher_email, role="TEACHER"))
            db.commit()
    finally:
        db.close()

@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(AuthTokenError)
async def auth_token_error_handler(request: Request, exc: AuthTokenError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(lessons.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")

@app.get("/health")
async def health_check():
    scheduler = app.state.context.scheduler
    return {
        "status": "ok",
        "version": "0.1.0",
        "reminders": "running" if scheduler is not None and scheduler.running else "stopped",
    }

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8765))
    uvicorn.run("main:app", host="127.0.0.1", port=port, reload=True)
