# Tests for core.history module
import datetime as dt
import unittest

from incidentbot.core import history
from incidentbot.core.incident import ChannelRef, Identity, new_incident
from incidentbot.core.testing import EPOCH, RecordingGateway


def make_incident(title: str = "DB outage"):
    return new_incident(
        ChannelRef("C1", "ops"),
        Identity("alice", "Alice Smith", "alice@example.com"),
        title,
        ["commander", "communications"],
        "https://meet.example.com/incident-DB-outage",
        EPOCH,
    )


class AppendTests(unittest.TestCase):
    def test_append_keeps_order_and_bumps_activity(self) -> None:
        incident = make_incident()
        for i in range(3):
            history.append_entry(
                incident, "Bob", f"msg {i}", EPOCH + dt.timedelta(seconds=i + 1)
            )
        self.assertEqual([e.text for e in incident.history], ["msg 0", "msg 1", "msg 2"])
        self.assertEqual(incident.last_activity_at, EPOCH + dt.timedelta(seconds=3))

    def test_append_never_moves_activity_backwards(self) -> None:
        incident = make_incident()
        later = EPOCH + dt.timedelta(minutes=1)
        history.append_entry(incident, "Bob", "first", later)
        history.append_entry(incident, "Bob", "late clock", EPOCH)
        self.assertEqual(incident.last_activity_at, later)
        self.assertEqual(len(incident.history), 2)


class ExportTests(unittest.TestCase):
    def test_render_header(self) -> None:
        incident = make_incident()
        incident.roles["commander"] = "Carol"
        doc = history.render_export(incident, EPOCH + dt.timedelta(hours=1, seconds=2))
        self.assertTrue(doc.startswith("# DB outage\n\n"))
        self.assertIn("> *Incident Start*: Monday, October 19th 2026, 3:04:05 pm", doc)
        self.assertIn("> *Incident Duration*: 1h 2s", doc)
        self.assertIn("> *Initiated By*: Alice Smith", doc)
        self.assertIn("incident-DB-outage", doc)
        self.assertIn("> *Commander*: Carol", doc)
        self.assertIn("> *Communications*: _Unassigned_", doc)

    def test_entries_in_insertion_order(self) -> None:
        incident = make_incident()
        texts = ["disk full", "rolling back", "back to normal", "closing"]
        for i, text in enumerate(texts):
            history.append_entry(
                incident, "Bob", text, EPOCH + dt.timedelta(minutes=i)
            )
        doc = history.render_export(incident, EPOCH + dt.timedelta(minutes=10))
        lines = doc.splitlines()[-len(texts):]
        self.assertEqual(
            lines[0], "[Monday, October 19th 2026, 3:04:05 pm] Bob: disk full"
        )
        self.assertEqual(
            lines[3], "[Monday, October 19th 2026, 3:07:05 pm] Bob: closing"
        )
        self.assertEqual([l.split(": ", 1)[1] for l in lines], texts)

    def test_export_uploads_once(self) -> None:
        incident = make_incident()
        history.append_entry(incident, "Bob", "hello", EPOCH)
        gateway = RecordingGateway()
        content = history.export_history(incident, gateway, EPOCH)
        self.assertEqual(len(gateway.uploads), 1)
        upload = gateway.uploads[0]
        self.assertEqual(upload.title, "DB outage Incident Log")
        self.assertEqual(upload.channel_id, "C1")
        self.assertEqual(upload.file_type, "markdown")
        self.assertEqual(upload.filename, "DB-outage-log.md")
        self.assertEqual(upload.content, content)

    def test_export_filename_fallback(self) -> None:
        incident = make_incident(title="   ")
        self.assertEqual(history.export_filename(incident), "incident-log.md")


if __name__ == "__main__":
    unittest.main()
