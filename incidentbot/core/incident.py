#!/usr/bin/env python3
"""
Incident records - one per active chat channel.
"""

import datetime as dt
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PRIVATE_CHANNEL_NAME = "Private Message"
UNASSIGNED = "_Unassigned_"


@dataclass
class Identity:
    name: str
    display_name: str
    email: Optional[str] = None


@dataclass
class ChannelRef:
    id: str
    display_name: str = PRIVATE_CHANNEL_NAME

    @classmethod
    def from_chat(cls, chat_id: Any, name: Optional[str]) -> "ChannelRef":
        return cls(id=str(chat_id), display_name=name or PRIVATE_CHANNEL_NAME)


@dataclass
class HistoryEntry:
    timestamp: dt.datetime
    author: str
    text: str


@dataclass
class Incident:
    channel_id: str
    title: str
    reporter: Identity
    source_channel: ChannelRef
    started_at: dt.datetime
    last_activity_at: dt.datetime
    roles: Dict[str, Optional[str]]
    collab_link: str
    history: List[HistoryEntry] = field(default_factory=list)
    nag_handle: Any = None
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def missing_roles(self) -> List[str]:
        return [role for role, who in self.roles.items() if not who]

    def assignee(self, role: str) -> str:
        return self.roles.get(role) or UNASSIGNED

    def touch(self, now: dt.datetime) -> None:
        if now > self.last_activity_at:
            self.last_activity_at = now


def new_incident(
    channel: ChannelRef,
    reporter: Identity,
    title: str,
    roles: List[str],
    collab_link: str,
    now: dt.datetime,
) -> Incident:
    return Incident(
        channel_id=channel.id,
        title=title,
        reporter=reporter,
        source_channel=channel,
        started_at=now,
        last_activity_at=now,
        roles={role: None for role in roles},
        collab_link=collab_link,
    )


def title_slug(title: str) -> str:
    return re.sub(r"\s", "-", title)


def collab_link(template: str, title: str) -> str:
    return template.format(slug=title_slug(title))


def role_label(role: str) -> str:
    return role.replace("_", " ").title()
