"""Notification senders used by the alert engine."""
import logging
import re
from typing import Protocol, runtime_checkable

from rich.console import Console

from models.alerts import DeliveryResult

logger = logging.getLogger("signalpulse.alerts.channels")

_TAG_RE = re.compile(r"<[^>]+>")


@runtime_checkable
class AlertSender(Protocol):
    def send(self, text: str, chat_id=None) -> DeliveryResult: ...


class TelegramChannel:
    """Deliver formatted alerts through a ``TelegramBot``."""

    def __init__(self, bot, chat_id=None):
        self.bot = bot
        self.chat_id = chat_id

    def send(self, text: str, chat_id=None) -> DeliveryResult:
        result = self.bot.deliver(text, chat_id=chat_id or self.chat_id)
        if result.success:
            logger.info(f"Telegram alert delivered (message {result.message_id})")
        else:
            logger.warning(f"Telegram alert failed: {result.error}")
        return result


class ConsoleChannel:
    """Print alerts to terminal with rich formatting."""

    def __init__(self, console=None):
        self.console = console or Console()
        self._count = 0

    def send(self, text: str, chat_id=None) -> DeliveryResult:
        plain = _TAG_RE.sub("", text).replace("&amp;", "&")
        self.console.rule("[bold]SignalPulse[/]")
        self.console.print(plain, markup=False)
        self._count += 1
        return DeliveryResult(success=True, message_id=f"console-{self._count}")
