import asyncio
import logging
from typing import Optional, Protocol, Tuple, Union

import aiohttp

from ttt_promo.exceptions import NotificationDeliveryError
from ttt_promo.load_secrets import TELEGRAM_TIMEOUT_SECONDS, bot_token

TELEGRAM_API_URL = "https://api.telegram.org"
QUEUE_SIZE = 50

ChatId = Union[int, str]


class Notifier(Protocol):
    async def notify(self, text: str, chat_id: ChatId) -> None: ...


class TelegramNotifier:
    """Sends plain text messages through the Telegram Bot API."""

    def __init__(self, token: Optional[str] = bot_token, timeout: float = TELEGRAM_TIMEOUT_SECONDS):
        self.token = token
        self.timeout = timeout

    async def notify(self, text: str, chat_id: ChatId) -> None:
        """Send text to chat_id

        Args:
            text (str): Message body
            chat_id (ChatId): Telegram chat or user id

        Raises:
            NotificationDeliveryError: Telegram answered with a non-2xx status
        """
        if not self.token or not chat_id:
            logging.warning("Telegram config is missing; message skipped.")
            return

        url = f"{TELEGRAM_API_URL}/bot{self.token}/sendMessage"
        payload = {"chat_id": str(chat_id), "text": text}
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, data=payload) as response:
                if response.status >= 300:
                    body = await response.text()
                    raise NotificationDeliveryError(f"Telegram API error: {response.status} {body}")


class NotificationQueue:
    """Fire-and-forget delivery: enqueue never blocks, one worker sends."""

    def __init__(self, notifier: Notifier, maxsize: int = QUEUE_SIZE):
        self.notifier = notifier
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._worker: Optional[asyncio.Task] = None

    def enqueue(self, text: Optional[str], chat_id: Optional[ChatId]) -> None:
        if not text or not chat_id:
            return
        try:
            self.queue.put_nowait((text, chat_id))
        except asyncio.QueueFull:
            logging.warning("Notification queue is full; message dropped.")

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def drain(self) -> None:
        """Wait until every queued message has been attempted."""
        await self.queue.join()

    async def _run(self) -> None:
        while True:
            item: Tuple[str, ChatId] = await self.queue.get()
            try:
                await self.deliver(*item)
            finally:
                self.queue.task_done()

    async def deliver(self, text: str, chat_id: ChatId) -> bool:
        try:
            await self.notifier.notify(text, chat_id)
        except Exception as e:
            logging.error(f"Failed to send Telegram message: {e}")
            return False
        return True
