import threading
from typing import Dict, List

class NotificationSink:
    """
    In-app messages per teacher, kept until the teacher clears them.

    Process-scoped and in-memory: one instance is created on startup and
    shared by the API and the reminder loop. Nothing survives a restart.
    """
    def __init__(self):
        self._messages: Dict[int, List[str]] = {}
        self._lock = threading.Lock()

    def create_notification(self, teacher_id: int, message: str) -> None:
        with self._lock:
            self._messages.setdefault(teacher_id, []).append(message)

    def create_lesson_notification(self, lesson, message: str) -> None:
        teacher_id = getattr(lesson, "teacher_id", None)
        if teacher_id is None:
            raise ValueError("Lesson must have a teacher with an ID")
        self.create_notification(teacher_id, message)

    def get_notifications(self, teacher_id: int) -> List[str]:
        """Snapshot in insertion order; unknown teachers get an empty list."""
        with self._lock:
            return list(self._messages.get(teacher_id, []))

    def clear_notifications(self, teacher_id: int) -> None:
        with self._lock:
            self._messages.pop(teacher_id, None)
