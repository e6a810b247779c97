#!/usr/bin/env python3
"""
Incident Telegram Bot
Polls Telegram, routes commands to the incident registry and records every
message seen in a channel with an open incident.
"""

import asyncio
import logging
from typing import Dict, Optional

from telegram import InlineKeyboardMarkup, Update
from telegram.constants import ChatType, ParseMode
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from incidentbot.core.config import BotConfig
from incidentbot.core.incident import ChannelRef, Identity
from incidentbot.core.registry import IncidentRegistry
from incidentbot.tg_bot.commands import (
    Command,
    Invocation,
    Reply,
    build_command_table,
    dispatch,
)
from incidentbot.tg_bot.formatter import TelegramFormatter
from incidentbot.tg_bot.gateway import TelegramGateway
from incidentbot.tg_bot.keyboard import CLAIM_PREFIX, RoleKeyboard

logger = logging.getLogger(__name__)

POLLING_INTERVAL = 2
HISTORY_GROUP = 1


def identity_from(update: Update) -> Identity:
    user = update.effective_user
    if user is None:
        return Identity(name="unknown", display_name="Unknown")
    return Identity(
        name=user.username or str(user.id),
        display_name=user.full_name or user.username or str(user.id),
    )


def channel_from(update: Update) -> ChannelRef:
    chat = update.effective_chat
    name = None if chat.type == ChatType.PRIVATE else chat.title
    return ChannelRef.from_chat(chat.id, name)


class IncidentBot:
    def __init__(
        self,
        config: BotConfig,
        registry: Optional[IncidentRegistry] = None,
        app: Optional[Application] = None,
    ):
        self.config = config
        self.app = app or Application.builder().token(config.bot_token).build()
        self.gateway = TelegramGateway(self.app.bot)
        self.registry = registry or IncidentRegistry(self.gateway, config)
        self.formatter = TelegramFormatter()
        self.commands: Dict[str, Command] = build_command_table(self.registry)
        self._setup_handlers()

    def _setup_handlers(self):
        for name in self.commands:
            self.app.add_handler(CommandHandler(name, self.handle_command))

        self.app.add_handler(
            CallbackQueryHandler(self.handle_callback, pattern=f"^{CLAIM_PREFIX}")
        )

        # separate group so commands are recorded too
        self.app.add_handler(
            MessageHandler(filters.TEXT, self.handle_text), group=HISTORY_GROUP
        )
        self.app.add_error_handler(self.handle_error)

    async def handle_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Run the command named by the message and send its reply."""
        message = update.effective_message
        name = message.text.split()[0][1:].split("@")[0].lower()
        inv = Invocation(
            params=list(context.args or []),
            sender=identity_from(update),
            channel=channel_from(update),
        )
        reply = dispatch(self.commands, name, inv)
        await self.send_reply(update, reply)

    async def send_reply(self, update: Update, reply: Reply) -> None:
        if reply.status is not None:
            text = self.formatter.format_status(reply.status)
        else:
            text = reply.text
        if not text:
            return

        markup = None
        if reply.claim_roles:
            markup = InlineKeyboardMarkup(RoleKeyboard.build(reply.claim_roles))
        await update.effective_message.reply_text(
            text, reply_markup=markup, parse_mode=ParseMode.MARKDOWN
        )

    async def handle_callback(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Claim-button presses assign the pressing user to the role."""
        query = update.callback_query
        role = RoleKeyboard.parse(query.data)
        if role is None:
            await query.answer()
            return

        inv = Invocation(
            params=[], sender=identity_from(update), channel=channel_from(update)
        )
        reply = dispatch(self.commands, role, inv)
        await query.answer(reply.error)
        if not reply.is_error:
            await self.send_reply(update, reply)

    async def handle_text(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Record chat activity for the channel's open incident, if any."""
        message = update.effective_message
        if message is None or not message.text:
            return
        self.registry.observe_message(
            str(update.effective_chat.id), identity_from(update), message.text
        )

    async def handle_error(
        self, update: object, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Log handler failures, e.g. a reply Telegram refused to parse."""
        logger.error(
            "update %r failed: %s", update, context.error, exc_info=context.error
        )

    async def run(self):
        """Start polling."""
        logger.info("Starting incident bot with roles: %s", ", ".join(self.config.roles))
        self.gateway.attach(asyncio.get_running_loop())
        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling(
            poll_interval=POLLING_INTERVAL, allowed_updates=Update.ALL_TYPES
        )

        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            pass
        finally:
            self.registry.close()
            await self.app.updater.stop()
            await self.app.stop()
            await self.app.shutdown()
