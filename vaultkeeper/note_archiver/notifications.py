"""
User-facing notifications.

The engine reports every completed relocation (and, when it fails, the
failure) through a Notifier. Hosts decide how to show them.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Anything that can show a short transient message to the user."""

    def notify(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that writes messages to the log."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def notify(self, message: str) -> None:
        logger.log(self.level, message)


class RecordingNotifier:
    """Notifier that keeps recent messages, optionally forwarding them.

    Used by the HTTP layer to return the messages operations produced,
    and by tests. With ``maxlen`` set, only the most recent ``maxlen``
    messages are kept.
    """

    def __init__(
        self,
        forward: Optional[Callable[[str], None]] = None,
        maxlen: Optional[int] = None,
    ) -> None:
        self._messages: Deque[str] = deque(maxlen=maxlen)
        self.forward = forward

    @property
    def maxlen(self) -> Optional[int]:
        return self._messages.maxlen

    @property
    def messages(self) -> List[str]:
        """Buffered messages, oldest first."""
        return list(self._messages)

    def set_maxlen(self, maxlen: Optional[int]) -> None:
        """Change the buffer size, dropping the oldest messages if needed."""
        self._messages = deque(self._messages, maxlen=maxlen)

    def notify(self, message: str) -> None:
        self._messages.append(message)
        if self.forward is not None:
            self.forward(message)

    def drain(self) -> List[str]:
        """Return and forget the buffered messages."""
        messages = list(self._messages)
        self._messages.clear()
        return messages
