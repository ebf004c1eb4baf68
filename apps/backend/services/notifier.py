"""Reminder delivery channels."""

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from services.errors import DeliveryError
from utils.logger import mask_email

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
REMINDER_TEMPLATE = "lesson_reminder.html"


class Notifier:
    """Delivery channel contract: raise DeliveryError when a message cannot be sent."""

    def send(self, teacher_email: str, subject: str, template_model: Dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Logs reminders instead of sending them. Used when no SMTP host is configured."""

    def send(self, teacher_email: str, subject: str, template_model: Dict[str, Any]) -> None:
        logger.info("DRY RUN reminder to %s: %s %s", mask_email(teacher_email), subject, template_model)


class SmtpEmailNotifier(Notifier):
    """
    Sends reminder e-mails rendered from the Jinja2 reminder template.

    `timeout` bounds the SMTP connection and each socket operation, so an
    unreachable mail server fails the call instead of hanging it.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        sender: str = "Timeback Scheduler <no-reply@localhost>",
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 10.0,
        templates_dir: Path = TEMPLATES_DIR,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template_model: Dict[str, Any]) -> str:
        return self.env.get_template(REMINDER_TEMPLATE).render(**template_model)

    def build_message(self, teacher_email: str, subject: str, template_model: Dict[str, Any]) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = teacher_email
        message["Subject"] = subject
        message.set_content(f"{subject}: {template_model.get('subject', '')} at {template_model.get('time', '')}")
        message.add_alternative(self.render(template_model), subtype="html")
        return message

    def send(self, teacher_email: str, subject: str, template_model: Dict[str, Any]) -> None:
        if not teacher_email:
            raise DeliveryError("Teacher has no e-mail address")

        try:
            message = self.build_message(teacher_email, subject, template_model)
        except TemplateError as e:
            raise DeliveryError(f"Failed to render reminder: {e}") from e

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", mask_email(teacher_email), e)
            raise DeliveryError(f"Failed to send email: {e}") from e

        logger.info("Email sent successfully to %s with subject '%s'", mask_email(teacher_email), subject)


def build_notifier(settings) -> Notifier:
    if not settings.smtp_configured:
        logger.warning("SMTP_HOST not set, reminders will only be logged")
        return LoggingNotifier()

    password = settings.smtp_password.get_value() if settings.smtp_password else None
    return SmtpEmailNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.smtp_sender,
        username=settings.smtp_user or None,
        password=password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.notifier_timeout_seconds,
    )
