import pytest
import sys
import os
import time
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure backend path is in sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from database import Base, get_db, LessonDB, TeacherDB
from main import app
from models.schemas import LessonStatus, LessonType
from services.auth import create_access_token
from services.context import build_context
from services.errors import DeliveryError
from services.notifier import Notifier
from utils.config import Settings

# Use in-memory DB for tests with StaticPool to share connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class RecordingNotifier(Notifier):
    """Notifier fake: records calls, optionally fails or stalls."""
    def __init__(self, fail_for=(), delay=0.0):
        self.sent = []
        self.fail_for = set(fail_for)
        self.delay = delay

    def send(self, teacher_email, subject, template_model):
        if self.delay:
            time.sleep(self.delay)
        if template_model.get("subject") in self.fail_for:
            raise DeliveryError("SMTP unavailable")
        self.sent.append((teacher_email, subject, dict(template_model)))

@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create tables before tests run."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def connection():
    """One connection per test inside a transaction that is rolled back afterwards."""
    connection = engine.connect()
    transaction = connection.begin()
    yield connection
    transaction.rollback()
    connection.close()

@pytest.fixture
def db_session(connection):
    session = TestingSessionLocal(bind=connection)
    yield session
    session.close()

@pytest.fixture
def session_factory(connection):
    """Fresh sessions on the test connection, as the reminder loop opens them."""
    return lambda: TestingSessionLocal(bind=connection)

@pytest.fixture
def teacher(db_session):
    t = TeacherDB(username="anna", email="anna@school.edu", role="TEACHER")
    db_session.add(t)
    db_session.commit()
    db_session.refresh(t)
    return t

@pytest.fixture
def other_teacher(db_session):
    t = TeacherDB(username="bob", email="bob@school.edu", role="TEACHER")
    db_session.add(t)
    db_session.commit()
    db_session.refresh(t)
    return t

@pytest.fixture
def make_lesson(db_session, teacher):
    """Inserts a lesson directly, bypassing the lifecycle checks."""
    def _make(day, start, end, teacher_id=None, subject="Math", status=LessonStatus.SCHEDULED):
        lesson = LessonDB(
            subject=subject,
            description="Algebra basics",
            date=day,
            start_time=start,
            end_time=end,
            classroom="101",
            type=LessonType.LECTURE,
            status=status,
            teacher_id=teacher_id or teacher.id,
        )
        db_session.add(lesson)
        db_session.commit()
        db_session.refresh(lesson)
        return lesson
    return _make

@pytest.fixture
def notifier():
    return RecordingNotifier()

@pytest.fixture
def context(notifier):
    return build_context(Settings(load_env_file=False), notifier=notifier)

@pytest.fixture
def client(db_session, context):
    """Test client with overridden dependency."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    previous_context = app.state.context
    app.state.context = context
    app.dependency_overrides[get_db] = override_get_db
    from fastapi.testclient import TestClient
    yield TestClient(app)
    del app.dependency_overrides[get_db]
    app.state.context = previous_context

@pytest.fixture
def token_for(context):
    """Builds Authorization headers signed with the test context secret."""
    def _headers(username, role="TEACHER"):
        secret = context.settings.jwt_secret.get_value()
        token = create_access_token(username, role, secret, context.settings.jwt_algorithm)
        return {"Authorization": f"Bearer {token}"}
    return _headers

@pytest.fixture
def auth_headers(token_for, teacher):
    return token_for(teacher.username)

@pytest.fixture
def other_auth_headers(token_for, other_teacher):
    return token_for(other_teacher.username)
