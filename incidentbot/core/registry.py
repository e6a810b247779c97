#!/usr/bin/env python3
"""
Incident registry - owns the channel -> incident map.

Locking: the registry lock guards the map, each incident's lock guards its
fields. Always take the registry lock first. Nag ticks take only the
incident lock and check their handle before touching anything, so a
resolved incident never hears from its old timer.
"""

import datetime as dt
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from incidentbot.core import history
from incidentbot.core.config import BotConfig
from incidentbot.core.durations import format_between, format_timestamp, now_utc
from incidentbot.core.errors import (
    AlreadyActiveIncidentError,
    NoActiveIncidentError,
    UnknownRoleError,
)
from incidentbot.core.gateway import MessagingGateway
from incidentbot.core.incident import (
    ChannelRef,
    Identity,
    Incident,
    collab_link,
    new_incident,
)
from incidentbot.core.nag import NagHandle, NagScheduler, nag_tick
from incidentbot.core.status import StatusReport, render_status

logger = logging.getLogger(__name__)


def _verbatim(s: str) -> str:
    return s


@dataclass
class StartConfirmation:
    title: str
    started_at: dt.datetime
    collab_link: str

    def render(self, escape: Callable[[str], str] = _verbatim) -> str:
        return (
            f'Starting new incident "{escape(self.title)}" at '
            f"{format_timestamp(self.started_at)} UTC\n"
            f"Join this call to collaborate: {escape(self.collab_link)}"
        )

    @property
    def text(self) -> str:
        return self.render()


@dataclass
class ResolveSummary:
    title: str
    duration: str

    def render(self, escape: Callable[[str], str] = _verbatim) -> str:
        return (
            f'Resolving incident "{escape(self.title)}". '
            f"Incident lasted {self.duration}."
        )

    @property
    def text(self) -> str:
        return self.render()


@dataclass
class AssignConfirmation:
    role: str
    assignee: str

    def render(self, escape: Callable[[str], str] = _verbatim) -> str:
        return (
            f"{escape(self.assignee)} is now the {escape(self.role)} "
            "for this incident."
        )

    @property
    def text(self) -> str:
        return self.render()


class IncidentRegistry:
    def __init__(
        self,
        gateway: MessagingGateway,
        config: Optional[BotConfig] = None,
        scheduler: Optional[NagScheduler] = None,
        clock: Callable[[], dt.datetime] = now_utc,
    ):
        self.gateway = gateway
        self.config = config or BotConfig()
        self.scheduler = scheduler or NagScheduler()
        self.clock = clock
        self._incidents: Dict[str, Incident] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def roles(self) -> List[str]:
        return list(self.config.roles)

    def get(self, channel_id: str) -> Optional[Incident]:
        with self._lock:
            return self._incidents.get(channel_id)

    def active_count(self) -> int:
        with self._lock:
            return len(self._incidents)

    def start(
        self, channel: ChannelRef, reporter: Identity, title: str
    ) -> StartConfirmation:
        with self._lock:
            if channel.id in self._incidents:
                raise AlreadyActiveIncidentError(channel.id)

            now = self.clock()
            incident = new_incident(
                channel,
                reporter,
                title,
                self.roles,
                collab_link(self.config.collab_link_template, title),
                now,
            )
            incident.nag_handle = self._schedule_nag(incident)
            self._incidents[channel.id] = incident

        logger.info(
            "incident %r started in %s by %s", title, channel.id, reporter.name
        )
        return StartConfirmation(title, now, incident.collab_link)

    def resolve(self, channel_id: str) -> ResolveSummary:
        with self._lock:
            incident = self._require(channel_id)
            with incident.lock:
                now = self.clock()
                duration = format_between(incident.started_at, now)
                history.export_history(incident, self.gateway, now)
                self.scheduler.discard(incident.nag_handle)
            del self._incidents[channel_id]

        logger.info("incident %r resolved after %s", incident.title, duration)
        return ResolveSummary(incident.title, duration)

    def assign_role(
        self, channel_id: str, role: str, assignee: Identity
    ) -> AssignConfirmation:
        if role not in self.config.roles:
            raise UnknownRoleError(role)
        with self._lock:
            incident = self._require(channel_id)
            with incident.lock:
                incident.roles[role] = assignee.display_name

        logger.info("%s assigned as %s in %s", assignee.name, role, channel_id)
        return AssignConfirmation(role, assignee.display_name)

    def history(self, channel_id: str) -> str:
        with self._lock:
            incident = self._require(channel_id)
            with incident.lock:
                return history.export_history(incident, self.gateway, self.clock())

    def observe_message(self, channel_id: str, author: Identity, text: str) -> bool:
        with self._lock:
            incident = self._incidents.get(channel_id)
            if incident is None:
                return False
            with incident.lock:
                history.append_entry(
                    incident, author.display_name, text, self.clock()
                )
        return True

    def status(self) -> StatusReport:
        with self._lock:
            incidents = list(self._incidents.values())
        return render_status(incidents, self.clock())

    def close(self) -> None:
        """Cancel every outstanding nag task and forget all incidents."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            incidents = list(self._incidents.values())
            self._incidents.clear()
        for incident in incidents:
            with incident.lock:
                incident.nag_handle.cancel()
        self.scheduler.shutdown()
        logger.info("registry closed, %d incident(s) dropped", len(incidents))

    def _require(self, channel_id: str) -> Incident:
        incident = self._incidents.get(channel_id)
        if incident is None:
            raise NoActiveIncidentError(channel_id)
        return incident

    def _schedule_nag(self, incident: Incident) -> NagHandle:
        handle_ref: List[NagHandle] = []

        def tick() -> None:
            with incident.lock:
                if not handle_ref or handle_ref[0].cancelled:
                    return
                nag_tick(
                    incident,
                    self.gateway,
                    self.clock(),
                    idle_threshold=self.config.idle_threshold,
                )

        handle = self.scheduler.schedule(
            incident.channel_id, self.config.nag_interval, tick
        )
        handle_ref.append(handle)
        return handle
