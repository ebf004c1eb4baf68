"""
Logging setup for the scheduler backend.

Console output by default, optional rotating file, and masking of
e-mail addresses so reminder logs never carry a full address.
"""

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

EMAIL_PATTERN = re.compile(r'([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})')


def mask_email(email: str) -> str:
    """
    Mask an e-mail address for safe logging.

    Examples:
        >>> mask_email("anna@school.edu")
        'a***@school.edu'
        >>> mask_email("invalid")
        '***'
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.split("@", 1)
    masked_local = local[0] + "***" if local else "***"
    return f"{masked_local}@{domain}"


class EmailMaskingFilter(logging.Filter):
    """Masks any e-mail address found in a formatted log message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = EMAIL_PATTERN.sub(r'\1***@\2', message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logger(
    name: str = "lesson_scheduler",
    level: str = "INFO",
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the application logger.

    Module loggers (``logging.getLogger(__name__)``) propagate to the root
    logger, so handlers are attached there and ``name`` is returned for
    application-level messages.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(getattr(h, "_lesson_scheduler", False) for h in root.handlers):
        return logging.getLogger(name)

    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers = [logging.StreamHandler()]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(EmailMaskingFilter())
        handler._lesson_scheduler = True
        root.addHandler(handler)

    return logging.getLogger(name)
