from __future__ import annotations

import logging


logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Stand-in for outbound email: writes the message to the application log."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info("notification.queued", extra={"recipient": recipient, "subject": subject})
        logger.debug("notification.body", extra={"recipient": recipient, "body": body})
