"""Toast surface used by the sequencer.

Hosts plug in their own Notifier; LoggingNotifier is the default and just
emits structured log events.
"""

from typing import Literal, Protocol

import structlog

logger = structlog.get_logger()

ToastVariant = Literal["default", "destructive"]


class Notifier(Protocol):
    """Anything that can show a toast."""

    def notify(
        self, title: str, description: str, variant: ToastVariant = "default"
    ) -> None: ...


class LoggingNotifier:
    """Notifier that writes toasts to the log."""

    def notify(
        self, title: str, description: str, variant: ToastVariant = "default"
    ) -> None:
        if variant == "destructive":
            logger.warning("Toast", title=title, description=description)
        else:
            logger.info("Toast", title=title, description=description)
