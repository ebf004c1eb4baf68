from sqlalchemy import create_engine, Column, Integer, String, Text, Date, Time, Enum, ForeignKey
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from models.schemas import LessonStatus, LessonType
from utils.config import Settings

DATABASE_URL = Settings().database_url

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

class TeacherDB(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, nullable=False)
    role = Column(String, default="TEACHER")

    lessons = relationship("LessonDB", back_populates="teacher", cascade="all, delete-orphan")

class LessonDB(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    subject = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    classroom = Column(String, nullable=False)
    type = Column(Enum(LessonType), nullable=False)
    status = Column(Enum(LessonStatus), nullable=False, default=LessonStatus.SCHEDULED)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)

    # Eager so the reminder loop can read teacher details off a lesson row
    teacher = relationship("TeacherDB", back_populates="lessons", lazy="joined")

def init_db():
    Base.metadata.create_all(bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
