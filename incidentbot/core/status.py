# Status rendering - summaries of every active incident
import datetime as dt
from dataclasses import dataclass, field
from typing import List

from incidentbot.core.durations import format_between
from incidentbot.core.incident import Incident, role_label

STATUS_COLOR = "#C0C0C0"
NO_INCIDENTS = "There are no active incidents."


@dataclass
class SummaryField:
    title: str
    value: str


@dataclass
class IncidentSummary:
    title: str
    color: str
    fields: List[SummaryField] = field(default_factory=list)

    def field_value(self, title: str) -> str:
        for f in self.fields:
            if f.title == title:
                return f.value
        raise KeyError(title)


@dataclass
class StatusReport:
    text: str
    incidents: List[IncidentSummary] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.incidents)


def header_text(count: int) -> str:
    if count == 0:
        return NO_INCIDENTS
    if count == 1:
        return "There is 1 active incident:"
    return f"There are {count} active incidents:"


def summarize(incident: Incident, now: dt.datetime) -> IncidentSummary:
    summary = IncidentSummary(title=incident.title, color=STATUS_COLOR)
    summary.fields.append(
        SummaryField("Duration", format_between(incident.started_at, now))
    )
    summary.fields.append(
        SummaryField("Channel", f"#{incident.source_channel.display_name}")
    )
    for role in incident.roles:
        summary.fields.append(SummaryField(role_label(role), incident.assignee(role)))
    summary.fields.append(SummaryField("Collaboration Link", incident.collab_link))
    return summary


def render_status(incidents: List[Incident], now: dt.datetime) -> StatusReport:
    """Build a report over `incidents`, reading each one under its lock."""
    summaries = []
    for incident in incidents:
        with incident.lock:
            summaries.append(summarize(incident, now))
    return StatusReport(text=header_text(len(incidents)), incidents=summaries)
