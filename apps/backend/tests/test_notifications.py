import threading
from unittest.mock import MagicMock

import pytest

from services.notifications import NotificationSink

def test_messages_kept_in_order():
    sink = NotificationSink()
    sink.create_notification(1, "first")
    sink.create_notification(1, "second")
    sink.create_notification(2, "other")

    assert sink.get_notifications(1) == ["first", "second"]
    assert sink.get_notifications(2) == ["other"]

def test_unknown_teacher_gets_empty_list():
    assert NotificationSink().get_notifications(404) == []

def test_clear_only_affects_one_teacher():
    sink = NotificationSink()
    sink.create_notification(1, "a")
    sink.create_notification(2, "b")

    sink.clear_notifications(1)
    sink.clear_notifications(99)

    assert sink.get_notifications(1) == []
    assert sink.get_notifications(2) == ["b"]

def test_returned_list_is_a_snapshot():
    sink = NotificationSink()
    sink.create_notification(1, "a")
    messages = sink.get_notifications(1)
    messages.append("tampered")

    assert sink.get_notifications(1) == ["a"]

def test_lesson_notification_uses_lesson_teacher():
    sink = NotificationSink()
    lesson = MagicMock(teacher_id=3)
    sink.create_lesson_notification(lesson, "hello")
    assert sink.get_notifications(3) == ["hello"]

def test_lesson_notification_without_teacher():
    with pytest.raises(ValueError):
        NotificationSink().create_lesson_notification(MagicMock(teacher_id=None), "hello")

def test_concurrent_appends_are_not_lost():
    sink = NotificationSink()

    def writer(n):
        for i in range(200):
            sink.create_notification(1, f"{n}-{i}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    messages = sink.get_notifications(1)
    assert len(messages) == 1600
    # Per-writer order is preserved
    for n in range(8):
        own = [m for m in messages if m.startswith(f"{n}-")]
        assert own == [f"{n}-{i}" for i in range(200)]
