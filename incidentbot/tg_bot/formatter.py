#!/usr/bin/env python3
"""
Telegram message formatter.
"""

from telegram.helpers import escape_markdown

from incidentbot.core.incident import UNASSIGNED
from incidentbot.core.status import IncidentSummary, StatusReport


class TelegramFormatter:
    """Format incident data for Telegram Markdown."""

    COLOR_EMOJI = {"#C0C0C0": "⚪"}

    @staticmethod
    def escape(text: str) -> str:
        return escape_markdown(text, version=1)

    def format_status(self, report: StatusReport) -> str:
        """Format the status of every active incident."""
        if not report.incidents:
            return report.text

        lines = [report.text, ""]
        for summary in report.incidents:
            lines.extend(self.format_summary(summary))
            lines.append("")

        return "\n".join(lines).rstrip()

    def format_summary(self, summary: IncidentSummary) -> list:
        emoji = self.COLOR_EMOJI.get(summary.color, "🔴")
        lines = [f"{emoji} *{self.escape(summary.title)}*", "-" * 40]
        for f in summary.fields:
            value = f.value if f.value == UNASSIGNED else self.escape(f.value)
            lines.append(f"{f.title}: {value}")
        return lines
