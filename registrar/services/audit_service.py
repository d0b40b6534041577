"""
Append-only audit trail of state-changing actions.
"""

import logging
from typing import Any, Optional

from ..core.enums import AuditAction
from ..core.interfaces import AuditSink


AUDIT_FORMAT = "%(asctime)s | %(message)s"
AUDIT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _QuietFileHandler(logging.FileHandler):
    """File handler that drops records it cannot write."""

    def handleError(self, record: logging.LogRecord) -> None:
        pass


class AuditTrail(AuditSink):
    """Audit sink backed by its own ``logging.Logger``.

    Entries are written as ``YYYY-mm-dd HH:MM:SS | message``. A failure to
    write is swallowed: auditing never blocks or fails the audited action.
    With ``path=None`` the trail records nothing.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = path
        # Unregistered logger: it lives and dies with this trail.
        self._logger = logging.Logger(__name__, logging.INFO)
        self._logger.propagate = False

        if path is None:
            self._handler: logging.Handler = logging.NullHandler()
        else:
            self._handler = _QuietFileHandler(path, mode="a", encoding="utf-8", delay=True)
            self._handler.setFormatter(logging.Formatter(AUDIT_FORMAT, AUDIT_DATEFMT))
        self._logger.addHandler(self._handler)

    @property
    def path(self) -> Optional[str]:
        return self._path

    def record(self, message: str, **details: Any) -> None:
        """Append an entry. Extra ``details`` are rendered as key=value pairs."""
        try:
            if details:
                rendered = " ".join(f"{key}={value}" for key, value in details.items())
                message = f"{message} ({rendered})"
            self._logger.info(message)
        except Exception:
            pass

    def action(self, action: AuditAction, message: str, **details: Any) -> None:
        self.record(f"[{action.value}] {message}", **details)

    def close(self) -> None:
        try:
            self._logger.removeHandler(self._handler)
            self._handler.close()
        except Exception:
            pass
