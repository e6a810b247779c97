#!/usr/bin/env python3
"""
Nag scheduler - periodic reminders for an open incident.

Each incident owns one NagHandle: a daemon thread that wakes every
`interval` seconds and runs the tick until the handle is cancelled.
"""

import datetime as dt
import logging
import threading
from typing import Callable, Dict, List, Optional

from incidentbot.core.durations import format_duration
from incidentbot.core.gateway import MessagingGateway
from incidentbot.core.incident import Incident, role_label

logger = logging.getLogger(__name__)

DEFAULT_NAG_INTERVAL = 60.0
DEFAULT_IDLE_THRESHOLD = 5 * 60.0

INACTIVITY_WARNING = (
    "There hasn't been any activity in this channel for at least {idle} - "
    "is the incident still ongoing? If not please `/resolve` the incident."
)


class NagHandle:
    """Cancelable periodic task for a single incident."""

    def __init__(self, key: str, interval: float, tick: Callable[[], None]):
        self.key = key
        self.interval = interval
        self._tick = tick
        self.stop_event = threading.Event()
        self.thread = threading.Thread(
            target=self.run, name=f"nag-{key}", daemon=True
        )

    @property
    def cancelled(self) -> bool:
        return self.stop_event.is_set()

    def start(self) -> None:
        self.thread.start()

    def cancel(self) -> None:
        self.stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)

    def run_once(self) -> None:
        try:
            self._tick()
        except Exception:
            logger.exception("nag tick failed for %s", self.key)

    def run(self) -> None:
        while not self.stop_event.wait(self.interval):
            self.run_once()


class NagScheduler:
    """Starts one NagHandle per incident key and tracks the live ones."""

    def __init__(self) -> None:
        self._handles: Dict[int, NagHandle] = {}
        self._lock = threading.Lock()

    def schedule(
        self, key: str, interval: float, tick: Callable[[], None]
    ) -> NagHandle:
        handle = NagHandle(key, interval, tick)
        with self._lock:
            self._handles[id(handle)] = handle
        handle.start()
        return handle

    def tracked_count(self) -> int:
        with self._lock:
            return len(self._handles)

    def discard(self, handle: NagHandle) -> None:
        """Cancel `handle` and stop tracking it."""
        handle.cancel()
        with self._lock:
            self._handles.pop(id(handle), None)

    def active(self) -> List[NagHandle]:
        with self._lock:
            live = [h for h in self._handles.values() if not h.cancelled]
            self._handles = {id(h): h for h in live}
            return live

    def shutdown(self, timeout: float = 2.0) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.cancel()
        for handle in handles:
            handle.join(timeout=timeout)


def inactivity_text(idle_threshold: float) -> str:
    minutes = int(idle_threshold // 60)
    if minutes and idle_threshold % 60 == 0:
        idle = f"{minutes} minute" + ("s" if minutes != 1 else "")
    else:
        idle = format_duration(idle_threshold)
    return INACTIVITY_WARNING.format(idle=idle)


def reminder_text(missing: List[str]) -> str:
    lines = ["The following roles have not been assigned:"]
    for role in missing:
        lines.append(f"> *{role_label(role)}* - use `/{role}` to claim it.")
    return "\n".join(lines)


def nag_tick(
    incident: Incident,
    gateway: MessagingGateway,
    now: dt.datetime,
    idle_threshold: float = DEFAULT_IDLE_THRESHOLD,
) -> List[str]:
    """Run one reminder pass over an incident.

    The caller must hold `incident.lock`. When the idle warning fires,
    `last_activity_at` is reset to `now` so the next tick stays quiet until
    another full idle period passes.

    Returns:
        The messages sent, in order
    """
    sent = []

    missing = incident.missing_roles()
    if missing:
        sent.append(reminder_text(missing))

    idle = (now - incident.last_activity_at).total_seconds()
    if idle >= idle_threshold:
        incident.touch(now)
        sent.append(inactivity_text(idle_threshold))

    for text in sent:
        logger.debug("nagging %s: %s", incident.channel_id, text.splitlines()[0])
        gateway.send_message(text, incident.channel_id)

    return sent
