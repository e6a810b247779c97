# Messaging gateway - outbound delivery the incident core calls into
from typing import Optional


class MessagingGateway:
    """Fire-and-forget delivery of text and documents to a chat channel.

    Implementations must not block the caller on network I/O and report
    their own delivery failures; callers never inspect the outcome.
    """

    def send_message(self, text: str, channel_id: str) -> None:
        raise NotImplementedError  # pragma: no cover

    def upload_file(
        self,
        title: str,
        channel_id: str,
        file_type: str,
        content: str,
        filename: Optional[str] = None,
    ) -> None:
        raise NotImplementedError  # pragma: no cover
