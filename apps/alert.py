import asyncio
import logging
from typing import Callable, Optional, Set

from telegram.error import Forbidden, TelegramError

import storage

logger = logging.getLogger(__name__)


class Notifier:
    """
    Fire-and-forget Telegram delivery to the single registered recipient.

    Each send is its own asyncio.Task so a slow Telegram call never holds up
    a poll cycle. Failures are routed, not retried:
      - Forbidden (bot blocked / chat gone)  -> recipient is cleared
      - any other TelegramError              -> logged, next event tries again
    """

    def __init__(
        self,
        bot,
        get_recipient: Callable[[], Optional[str]] = storage.get_recipient,
        clear_recipient: Callable[[], None] = storage.clear_recipient,
    ):
        self._bot = bot
        self._get_recipient = get_recipient
        self._clear_recipient = clear_recipient
        self._tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def notify(self, text: str) -> Optional[asyncio.Task]:
        """Schedule one message. Must be called from inside the running event loop."""
        target = self._get_recipient()
        if target is None:
            logger.debug("No recipient registered – dropping notification")
            return None

        task = asyncio.get_running_loop().create_task(self._deliver(target, text))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def _deliver(self, chat_id: str, text: str) -> bool:
        try:
            await self._bot.send_message(chat_id=chat_id, text=text)
            return True
        except Forbidden as exc:
            logger.warning("Recipient %s revoked access (%s) – clearing it", chat_id, exc)
            # A newer /start may already have replaced the recipient.
            if self._get_recipient() == str(chat_id):
                self._clear_recipient()
            return False
        except TelegramError as exc:
            logger.error("Telegram failed: %s", exc)
            return False

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Notification task crashed", exc_info=exc)

    async def drain(self) -> None:
        """Wait for every in-flight notification (shutdown / tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
