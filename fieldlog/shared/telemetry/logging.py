"""Logging configuration for fieldlog.

Driver errors often embed request URLs (Firebase ``?key=`` and download
``token=`` parameters, File Station ``_sid``/``passwd``, WebDAV
``user:pass@`` URLs). The handler installed by setup_logging() masks
those values before anything is written.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING

from fieldlog.core.config import get_settings

if TYPE_CHECKING:
    from fieldlog.core.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_SECRET_PARAM = re.compile(r"(?i)([?&](?:key|token|access_token|_sid|passwd)=)[^&\s\"']+")
_URL_USERINFO = re.compile(r"(://)[^/@\s:]+:[^/@\s]+@")

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "botocore", "boto3", "urllib3", "PIL", "google.auth")


def redact(text: str) -> str:
    """Mask credential query parameters and URL user info in text."""
    return _URL_USERINFO.sub(r"\1***@", _SECRET_PARAM.sub(r"\1***", text))


class CredentialRedactionFilter(logging.Filter):
    """Rewrites a record's message when it carries credentials."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(settings: Settings | None = None) -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO; library
    loggers stay at WARNING outside debug runs. Output goes to stdout.
    """
    s = settings or get_settings()
    level = logging.DEBUG if s.debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CredentialRedactionFilter())
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if s.debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (usually ``__name__``)."""
    return logging.getLogger(name)
