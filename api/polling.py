"""
Long-polling runner for the conversation bot.

Usage:
    python -m api.polling
"""

import asyncio
import logging
from typing import Optional, Set

from config.settings import configure_logging
from llm.orchestrator import ConversationBot, ResultCallback

from .channels.telegram import TelegramAPIError, TelegramChannel
from .services import get_services, initialize_services

logger = logging.getLogger(__name__)


class PollingRunner:
    """Pulls updates from Telegram and processes each message in its own task."""

    def __init__(
        self,
        bot: ConversationBot,
        channel: TelegramChannel,
        callback: Optional[ResultCallback] = None,
        poll_timeout: int = 30,
        retry_delay: float = 5.0,
    ):
        self.bot = bot
        self.channel = channel
        self.callback = callback
        self.poll_timeout = poll_timeout
        self.retry_delay = retry_delay
        self._offset: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()
        self._stop = asyncio.Event()

    def stop(self) -> None:
        self._stop.set()

    async def poll_once(self) -> int:
        """Fetch one batch of updates and dispatch their messages. Returns the number dispatched."""
        updates = await self.channel.get_updates(offset=self._offset, timeout=self.poll_timeout)
        dispatched = 0
        for update in updates:
            self._offset = update.update_id + 1
            if update.message is None:
                continue
            task = asyncio.create_task(self.bot.process_message(update.message, self.callback))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            dispatched += 1
        return dispatched

    async def run(self) -> None:
        logger.info("Starting polling loop")
        await self.channel.delete_webhook()
        while not self._stop.is_set():
            try:
                await self.poll_once()
            except TelegramAPIError as e:
                logger.error(f"Polling failed, retrying in {self.retry_delay}s: {e}")
                await asyncio.sleep(self.retry_delay)
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Polling loop stopped")


async def main() -> None:
    configure_logging()
    initialize_services()
    services = get_services()
    runner = PollingRunner(services.bot, services.channel, services.result_callback)
    await runner.run()


if __name__ == "__main__":
    asyncio.run(main())
