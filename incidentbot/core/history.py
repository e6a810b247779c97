# History log - chronological record of chat activity during an incident
import datetime as dt
import logging
from typing import List

from incidentbot.core.durations import format_between, format_timestamp
from incidentbot.core.gateway import MessagingGateway
from incidentbot.core.incident import HistoryEntry, Incident, role_label


logger = logging.getLogger(__name__)

EXPORT_FILE_TYPE = "markdown"


def append_entry(
    incident: Incident, author: str, text: str, now: dt.datetime
) -> HistoryEntry:
    """Append a message to the tail of an incident's history.

    Args:
        incident: The incident being observed
        author: Display name of the sender
        text: Message text as observed
        now: Timestamp for the entry; also recorded as the latest activity

    Returns:
        The stored entry
    """
    entry = HistoryEntry(timestamp=now, author=author, text=text)
    incident.history.append(entry)
    incident.touch(now)
    return entry


def format_entry(entry: HistoryEntry) -> str:
    return f"[{format_timestamp(entry.timestamp)}] {entry.author}: {entry.text}"


def format_entries(entries: List[HistoryEntry]) -> List[str]:
    return [format_entry(e) for e in entries]


def render_export(incident: Incident, now: dt.datetime) -> str:
    """Render the export document: header block, then one line per entry."""
    lines = [
        f"# {incident.title}",
        "",
        f"> *Incident Start*: {format_timestamp(incident.started_at)}",
        f"> *Incident Duration*: {format_between(incident.started_at, now)}",
        f"> *Initiated By*: {incident.reporter.display_name}",
        f"> *Collaboration Link*: {incident.collab_link}",
    ]
    for role in incident.roles:
        lines.append(f"> *{role_label(role)}*: {incident.assignee(role)}")
    lines.extend(["", ""])

    return "\n".join(lines) + "\n".join(format_entries(incident.history))


def export_title(incident: Incident) -> str:
    return f"{incident.title} Incident Log"


def export_filename(incident: Incident) -> str:
    stem = "".join(
        ch if ch.isalnum() or ch in "-_" else "-" for ch in incident.title.strip()
    ).strip("-")
    return f"{stem or 'incident'}-log.md"


def export_history(
    incident: Incident, gateway: MessagingGateway, now: dt.datetime
) -> str:
    """Hand the rendered document to the gateway's upload.

    Delivery is not retried or verified here.

    Returns:
        The rendered document
    """
    content = render_export(incident, now)
    logger.info(
        "exporting %d history entries for incident %r in %s",
        len(incident.history),
        incident.title,
        incident.channel_id,
    )
    gateway.upload_file(
        export_title(incident),
        incident.channel_id,
        EXPORT_FILE_TYPE,
        content,
        filename=export_filename(incident),
    )
    return content
