#!/usr/bin/env python3
"""
Inline keyboard builders for Telegram bot.
"""

from telegram import InlineKeyboardButton
from typing import List, Optional

from incidentbot.core.incident import role_label

CLAIM_PREFIX = "claim:"


class RoleKeyboard:
    """Build role-claim keyboards."""

    @staticmethod
    def build(roles: List[str], per_row: int = 2) -> List[List[InlineKeyboardButton]]:
        """One "claim" button per role."""
        keyboard = []
        row = []
        for role in roles:
            row.append(
                InlineKeyboardButton(
                    f"🙋 {role_label(role)}", callback_data=f"{CLAIM_PREFIX}{role}"
                )
            )
            if len(row) == per_row:
                keyboard.append(row)
                row = []
        if row:
            keyboard.append(row)
        return keyboard

    @staticmethod
    def parse(data: Optional[str]) -> Optional[str]:
        """Role named by a claim button's callback data."""
        if not data or not data.startswith(CLAIM_PREFIX):
            return None
        return data[len(CLAIM_PREFIX):] or None
