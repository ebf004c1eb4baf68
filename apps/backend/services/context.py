import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

from services.auth import TokenVerifier
from services.lifecycle import BookingLocks
from services.notifications import NotificationSink
from services.notifier import Notifier, build_notifier
from services.reminders import DispatchLedger, ReminderScheduler
from utils.config import Settings

logger = logging.getLogger(__name__)

@dataclass
class ServiceContext:
    """
    Process-scoped state shared by the API handlers and the reminder loop.

    Built once at startup and handed to whoever needs it; tests build their
    own with fakes.
    """
    settings: Settings
    notifier: Notifier
    verifier: TokenVerifier
    sink: NotificationSink = field(default_factory=NotificationSink)
    ledger: DispatchLedger = field(default_factory=DispatchLedger)
    locks: BookingLocks = field(default_factory=BookingLocks)
    scheduler: Optional[ReminderScheduler] = None

    def build_scheduler(self, session_factory: Callable) -> ReminderScheduler:
        self.scheduler = ReminderScheduler(
            session_factory=session_factory,
            ledger=self.ledger,
            sink=self.sink,
            notifier=self.notifier,
            period=timedelta(seconds=self.settings.reminder_period_seconds),
            retention=timedelta(minutes=self.settings.reminder_retention_minutes),
            notifier_timeout=self.settings.notifier_timeout_seconds,
        )
        return self.scheduler

def build_context(settings: Settings, notifier: Optional[Notifier] = None) -> ServiceContext:
    return ServiceContext(
        settings=settings,
        notifier=notifier or build_notifier(settings),
        verifier=TokenVerifier(settings.jwt_secret.get_value(), settings.jwt_algorithm),
    )
