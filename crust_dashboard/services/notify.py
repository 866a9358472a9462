"""Notification sinks for transient operability problems."""

import logging

logger = logging.getLogger(__name__)


class LogNotifier:
    """Writes notifications to the log; used when no UI sink is attached."""

    def queue_action(self, message: str, status: str = "error") -> None:
        if status == "error":
            logger.warning(message)
        else:
            logger.info(message)


class MemoryNotifier:
    """Collects notifications so a UI layer (or the API) can drain them."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def queue_action(self, message: str, status: str = "error") -> None:
        self.messages = [*self.messages, (status, message)]

    def drain(self) -> list[tuple[str, str]]:
        messages, self.messages = self.messages, []
        return messages
