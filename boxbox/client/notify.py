"""User-facing notifications (the client's toasts)."""
import itertools
import logging
from typing import List, Optional, Protocol, Tuple

log = logging.getLogger(__name__)


class Notifier(Protocol):
    def loading(self, message: str) -> str: ...

    def success(self, message: str, toast_id: Optional[str] = None) -> None: ...

    def error(self, message: str, toast_id: Optional[str] = None) -> None: ...


class LoggingNotifier:
    """Writes notifications to the log and keeps them in ``history``."""

    def __init__(self):
        self.history: List[Tuple[str, str]] = []
        self._ids = itertools.count(1)

    def loading(self, message: str) -> str:
        toast_id = f"toast-{next(self._ids)}"
        self.history.append(("loading", message))
        log.info("[%s] %s", toast_id, message)
        return toast_id

    def success(self, message: str, toast_id: Optional[str] = None) -> None:
        self.history.append(("success", message))
        log.info("[%s] %s", toast_id or "-", message)

    def error(self, message: str, toast_id: Optional[str] = None) -> None:
        self.history.append(("error", message))
        log.warning("[%s] %s", toast_id or "-", message)

    def messages(self, level: str) -> List[str]:
        return [message for kind, message in self.history if kind == level]
