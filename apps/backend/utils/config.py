"""
Environment-driven configuration.

Values come from the process environment, with a local ``.env`` file
loaded first through python-dotenv.
"""

import os
from typing import Optional

from dotenv import load_dotenv


class SecureString:
    """Wraps a secret so it never shows up in logs or reprs."""

    def __init__(self, value: str):
        self._value = value

    def get_value(self) -> str:
        return self._value

    def __str__(self) -> str:
        return "********"

    def __repr__(self) -> str:
        return "SecureString(********)"

    def __eq__(self, other) -> bool:
        if isinstance(other, SecureString):
            return self._value == other._value
        return False


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Application settings.

    Attributes:
        database_url: SQLAlchemy URL of the lesson database
        jwt_secret: HMAC secret used to verify bearer tokens
        jwt_algorithm: JWT signing algorithm
        smtp_host / smtp_port / smtp_user / smtp_password / smtp_sender:
            Outbound mail settings; reminders are only logged when smtp_host is empty
        reminders_enabled: Whether the reminder loop starts with the app
        reminder_period_seconds: Tick period of the reminder loop
        reminder_retention_minutes: How long dispatch records outlive the lesson start
        notifier_timeout_seconds: Upper bound for one notifier call
        log_level / log_file: Logging output
    """

    VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    def __init__(self, load_env_file: bool = True):
        if load_env_file:
            load_dotenv()

        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./teacher_lessons.db")

        secret = os.getenv("JWT_SECRET", "change-me-in-production")
        self._jwt_secret = SecureString(secret)
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")

        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER", "")
        pwd = os.getenv("SMTP_PASSWORD")
        self._smtp_password = SecureString(pwd) if pwd else None
        self.smtp_sender = os.getenv("SMTP_SENDER", "Timeback Scheduler <no-reply@localhost>")
        self.smtp_use_tls = _env_bool("SMTP_USE_TLS", "true")

        self.reminders_enabled = _env_bool("REMINDERS_ENABLED", "true")
        self.reminder_period_seconds = int(os.getenv("REMINDER_PERIOD_SECONDS", "60"))
        self.reminder_retention_minutes = int(os.getenv("REMINDER_RETENTION_MINUTES", "120"))
        self.notifier_timeout_seconds = float(os.getenv("NOTIFIER_TIMEOUT_SECONDS", "10"))

        # Registration lives outside this service; this seeds one account on an empty database.
        self.default_teacher_username = os.getenv("DEFAULT_TEACHER_USERNAME", "")
        self.default_teacher_email = os.getenv("DEFAULT_TEACHER_EMAIL", "")

        self.cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_file = os.getenv("LOG_FILE") or None

    @property
    def jwt_secret(self) -> SecureString:
        return self._jwt_secret

    @property
    def smtp_password(self) -> Optional[SecureString]:
        return self._smtp_password

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host)

    def validate(self) -> bool:
        """
        Validate configuration values.

        Raises:
            ValueError: listing every problem found
        """
        errors = []

        if not self.database_url:
            errors.append("DATABASE_URL is required")

        if not self._jwt_secret.get_value():
            errors.append("JWT_SECRET is required")

        if self.reminder_period_seconds <= 0:
            errors.append("REMINDER_PERIOD_SECONDS must be positive")
        elif self.reminder_period_seconds > 10 * 60:
            # Must not exceed the narrowest reminder threshold.
            errors.append("REMINDER_PERIOD_SECONDS must be at most 600")

        if self.reminder_retention_minutes <= 0:
            errors.append("REMINDER_RETENTION_MINUTES must be positive")

        if self.notifier_timeout_seconds <= 0:
            errors.append("NOTIFIER_TIMEOUT_SECONDS must be positive")

        if self.smtp_port <= 0:
            errors.append("SMTP_PORT must be positive")

        if self.log_level not in self.VALID_LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(self.VALID_LOG_LEVELS)}")

        if errors:
            raise ValueError("Configuration validation failed:\n  - " + "\n  - ".join(errors))

        return True
