"""Abstract base class for result notifiers.

A notifier delivers the itemized results text to the caller's contact
address. Delivery failures raise ``NotificationError``; the dialogue
machine logs them and carries on.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from housing.session import redact_pii

log = logging.getLogger("housing.notify")


class NotificationError(Exception):
    """Raised when a message could not be delivered."""


class Notifier(ABC):
    @abstractmethod
    async def send(self, to: str, body: str) -> None:
        """Deliver ``body`` to the contact address ``to``.

        Raises:
            NotificationError: if the transport rejected the message.
        """


class LoggingNotifier(Notifier):
    """Notifier used when no SMS transport is configured."""

    async def send(self, to: str, body: str) -> None:
        log.info("SMS (not sent) to %s: %s", redact_pii(to), body[:120])
