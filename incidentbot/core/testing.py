# Test doubles for the incident core: fixed clock, recording gateway, manual ticks
import datetime as dt
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from incidentbot.core.gateway import MessagingGateway
from incidentbot.core.nag import NagHandle, NagScheduler

EPOCH = dt.datetime(2026, 10, 19, 15, 4, 5, tzinfo=dt.timezone.utc)


class FakeClock:
    def __init__(self, start: dt.datetime = EPOCH):
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> dt.datetime:
        self.now = self.now + dt.timedelta(**kwargs)
        return self.now


@dataclass
class Upload:
    title: str
    channel_id: str
    file_type: str
    content: str
    filename: Optional[str]


class RecordingGateway(MessagingGateway):
    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []
        self.uploads: List[Upload] = []
        self._lock = threading.Lock()

    def send_message(self, text: str, channel_id: str) -> None:
        with self._lock:
            self.messages.append((text, channel_id))

    def upload_file(
        self,
        title: str,
        channel_id: str,
        file_type: str,
        content: str,
        filename: Optional[str] = None,
    ) -> None:
        with self._lock:
            self.uploads.append(Upload(title, channel_id, file_type, content, filename))

    def texts(self, channel_id: Optional[str] = None) -> List[str]:
        with self._lock:
            return [t for t, c in self.messages if channel_id in (None, c)]


class ManualScheduler(NagScheduler):
    """Hands out handles that only tick when `fire` is called."""

    def schedule(
        self, key: str, interval: float, tick: Callable[[], None]
    ) -> NagHandle:
        handle = NagHandle(key, interval, tick)
        with self._lock:
            self._handles[id(handle)] = handle
        return handle

    def fire(self) -> None:
        for handle in self.active():
            handle.run_once()
