#!/usr/bin/env python3
"""
Telegram gateway - delivers incident messages through the bot API.

Calls may come from nag threads or from handlers on the bot's own loop;
either way the send is scheduled on the loop and the caller returns
immediately. Failures are logged, never retried.
"""

import asyncio
import logging
from concurrent.futures import Future
from typing import Optional

from telegram import Bot
from telegram.constants import ParseMode

from incidentbot.core.gateway import MessagingGateway

logger = logging.getLogger(__name__)

TELEGRAM_MAX_MESSAGE = 3900


class TelegramGateway(MessagingGateway):
    def __init__(self, bot: Bot, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.bot = bot
        self.loop = loop

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def send_message(self, text: str, channel_id: str) -> None:
        t = (text or "").rstrip() or "(empty message)"
        while t:
            chunk, t = t[:TELEGRAM_MAX_MESSAGE], t[TELEGRAM_MAX_MESSAGE:]
            self._submit(
                "send_message",
                channel_id,
                lambda chunk=chunk: self.bot.send_message(
                    chat_id=channel_id, text=chunk, parse_mode=ParseMode.MARKDOWN
                ),
            )

    def upload_file(
        self,
        title: str,
        channel_id: str,
        file_type: str,
        content: str,
        filename: Optional[str] = None,
    ) -> None:
        name = filename or f"{title}.{'md' if file_type == 'markdown' else 'txt'}"
        self._submit(
            "upload_file",
            channel_id,
            lambda: self.bot.send_document(
                chat_id=channel_id,
                document=content.encode("utf-8"),
                filename=name,
                caption=title,
            ),
        )

    def _submit(self, what: str, channel_id: str, make_coro) -> None:
        if self.loop is None or self.loop.is_closed():
            logger.warning("%s to %s dropped: gateway not attached", what, channel_id)
            return
        future = asyncio.run_coroutine_threadsafe(make_coro(), self.loop)
        future.add_done_callback(
            lambda f: self._report(f, what, channel_id)
        )

    @staticmethod
    def _report(future: Future, what: str, channel_id: str) -> None:
        if future.cancelled():
            logger.warning("%s to %s cancelled", what, channel_id)
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("%s to %s failed: %s", what, channel_id, exc)
