#!/usr/bin/env python3
"""
Command table - chat command name -> handler, built once at startup.

Handlers take an Invocation and return a Reply; they never touch Telegram
so the table can be driven from tests or another chat frontend.
"""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, List, Optional

from telegram.helpers import escape_markdown

from incidentbot.core.errors import ConfigError, IncidentBotError
from incidentbot.core.incident import ChannelRef, Identity
from incidentbot.core.registry import IncidentRegistry
from incidentbot.core.status import StatusReport

logger = logging.getLogger(__name__)

# replies go out as legacy Markdown; user-supplied values must be escaped
md = partial(escape_markdown, version=1)


@dataclass
class Invocation:
    params: List[str]
    sender: Identity
    channel: ChannelRef

    @property
    def text(self) -> str:
        return " ".join(self.params)


@dataclass
class Reply:
    text: Optional[str] = None
    status: Optional[StatusReport] = None
    claim_roles: List[str] = field(default_factory=list)
    is_error: bool = False
    error: Optional[str] = None


@dataclass
class Command:
    name: str
    handler: Callable[[Invocation], Reply]
    help: str
    takes_text: bool = False

    @property
    def usage(self) -> str:
        return f"/{self.name} [TITLE]" if self.takes_text else f"/{self.name}"


def cmd_start(registry: IncidentRegistry, inv: Invocation) -> Reply:
    confirmation = registry.start(inv.channel, inv.sender, inv.text)
    return Reply(confirmation.render(md), claim_roles=registry.roles)


def cmd_resolve(registry: IncidentRegistry, inv: Invocation) -> Reply:
    return Reply(registry.resolve(inv.channel.id).render(md))


def cmd_status(registry: IncidentRegistry, inv: Invocation) -> Reply:
    report = registry.status()
    return Reply(report.text, status=report)


def cmd_history(registry: IncidentRegistry, inv: Invocation) -> Reply:
    registry.history(inv.channel.id)
    return Reply("Uploading the incident log so far.")


def cmd_claim(registry: IncidentRegistry, role: str, inv: Invocation) -> Reply:
    confirmation = registry.assign_role(inv.channel.id, role, inv.sender)
    return Reply(confirmation.render(md))


def cmd_help(table: Dict[str, Command], inv: Invocation) -> Reply:
    lines = ["Use the following commands:"]
    for command in table.values():
        lines.append(f"> `{command.usage}` - {md(command.help)}")
    return Reply("\n".join(lines))


def build_command_table(registry: IncidentRegistry) -> Dict[str, Command]:
    table: Dict[str, Command] = {}

    def add(command: Command) -> None:
        if command.name in table:
            raise ConfigError(f"command name collision: /{command.name}")
        table[command.name] = command

    add(
        Command(
            "start",
            partial(cmd_start, registry),
            "Start logging a new incident.",
            takes_text=True,
        )
    )
    add(
        Command(
            "resolve",
            partial(cmd_resolve, registry),
            "Resolve an ongoing incident and upload the chat log since it started.",
        )
    )
    add(
        Command(
            "history",
            partial(cmd_history, registry),
            "Upload the log since the incident started.",
        )
    )
    for role in registry.roles:
        add(
            Command(
                role,
                partial(cmd_claim, registry, role),
                f"Assign yourself as the {role} of the ongoing incident.",
            )
        )
    add(Command("status", partial(cmd_status, registry), "View ongoing incidents."))
    add(Command("help", partial(cmd_help, table), "Show this message."))
    return table


def dispatch(table: Dict[str, Command], name: str, inv: Invocation) -> Reply:
    command = table.get(name)
    if command is None:
        return _error(f"Unknown command /{name}. Try /help.")
    try:
        return command.handler(inv)
    except IncidentBotError as e:
        logger.info("/%s in %s refused: %s", name, inv.channel.id, e)
        return _error(str(e))


def _error(text: str) -> Reply:
    return Reply(md(text), is_error=True, error=text)
