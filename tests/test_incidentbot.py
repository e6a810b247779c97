import threading
import unittest

from incidentbot.core.config import BotConfig
from incidentbot.core.errors import AlreadyActiveIncidentError, NoActiveIncidentError
from incidentbot.core.incident import ChannelRef, Identity
from incidentbot.core.registry import IncidentRegistry
from incidentbot.core.testing import FakeClock, ManualScheduler, RecordingGateway
from incidentbot.tg_bot.commands import Invocation, build_command_table, dispatch

REPORTER = Identity("alice", "Alice Smith", "alice@example.com")
RESPONDER = Identity("bob", "Bob Jones", "bob@example.com")
CHANNEL = ChannelRef("C1", "db-team")


class IncidentLifecycleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = RecordingGateway()
        self.clock = FakeClock()
        self.scheduler = ManualScheduler()
        self.registry = IncidentRegistry(
            self.gateway, BotConfig(), scheduler=self.scheduler, clock=self.clock
        )

    def tearDown(self) -> None:
        self.registry.close()

    def test_full_lifecycle(self) -> None:
        confirmation = self.registry.start(CHANNEL, REPORTER, "DB outage")
        self.assertIn("DB outage", confirmation.text)
        self.assertIn("incident-DB-outage", confirmation.text)

        report = self.registry.status()
        self.assertEqual(report.count, 1)
        summary = report.incidents[0]
        for role in BotConfig().roles:
            self.assertEqual(summary.field_value(role.title()), "_Unassigned_")

        self.registry.assign_role("C1", "commander", RESPONDER)
        self.assertEqual(
            self.registry.status().incidents[0].field_value("Commander"), "Bob Jones"
        )

        self.clock.advance(seconds=30)
        self.registry.observe_message("C1", RESPONDER, "primary is out of disk")
        self.clock.advance(seconds=30)
        self.registry.observe_message("C1", REPORTER, "failing over")

        self.clock.advance(hours=1, minutes=14, seconds=3)
        summary = self.registry.resolve("C1")
        self.assertEqual(summary.duration, "1h 15m 3s")
        self.assertIn("Incident lasted 1h 15m 3s", summary.text)

        self.assertEqual(len(self.gateway.uploads), 1)
        doc = self.gateway.uploads[0].content
        self.assertIn("> *Commander*: Bob Jones", doc)
        self.assertIn("> *Initiated By*: Alice Smith", doc)
        self.assertLess(
            doc.index("Bob Jones: primary is out of disk"),
            doc.index("Alice Smith: failing over"),
        )

        self.assertEqual(self.registry.status().count, 0)
        self.assertEqual(
            self.registry.status().text, "There are no active incidents."
        )

    def test_restart_after_resolve(self) -> None:
        self.registry.start(CHANNEL, REPORTER, "first")
        with self.assertRaises(AlreadyActiveIncidentError):
            self.registry.start(CHANNEL, REPORTER, "second")
        self.registry.resolve("C1")
        with self.assertRaises(NoActiveIncidentError):
            self.registry.resolve("C1")
        self.registry.start(CHANNEL, REPORTER, "second")
        self.assertEqual(self.registry.get("C1").title, "second")
        self.assertEqual(self.registry.get("C1").history, [])

    def test_channels_are_independent(self) -> None:
        other = ChannelRef("C2", "web-team")
        self.registry.start(CHANNEL, REPORTER, "db")
        self.registry.start(other, RESPONDER, "web")
        self.registry.assign_role("C2", "planning", REPORTER)
        self.registry.observe_message("C1", RESPONDER, "only in db")
        self.registry.resolve("C1")

        web = self.registry.get("C2")
        self.assertEqual(web.history, [])
        self.assertEqual(web.roles["planning"], "Alice Smith")
        self.assertFalse(web.nag_handle.cancelled)

    def test_nag_scenario(self) -> None:
        self.registry.start(CHANNEL, REPORTER, "DB outage")
        self.clock.advance(minutes=1)
        self.scheduler.fire()
        self.assertEqual(len(self.gateway.texts("C1")), 1)

        for role in BotConfig().roles:
            self.registry.assign_role("C1", role, RESPONDER)
        self.clock.advance(minutes=4)
        self.scheduler.fire()
        texts = self.gateway.texts("C1")
        self.assertEqual(len(texts), 2)
        self.assertIn("any activity", texts[1])

        self.clock.advance(minutes=1)
        self.scheduler.fire()
        self.assertEqual(len(self.gateway.texts("C1")), 2)

        self.registry.observe_message("C1", RESPONDER, "still here")
        self.clock.advance(minutes=4, seconds=59)
        self.scheduler.fire()
        self.assertEqual(len(self.gateway.texts("C1")), 2)

    def test_concurrent_commands_from_chat(self) -> None:
        table = build_command_table(self.registry)
        replies = []
        lock = threading.Lock()
        barrier = threading.Barrier(6)

        def run(i: int) -> None:
            barrier.wait()
            inv = Invocation(["race", str(i)], REPORTER, CHANNEL)
            reply = dispatch(table, "start", inv)
            with lock:
                replies.append(reply)

        threads = [threading.Thread(target=run, args=(i,)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sum(1 for r in replies if not r.is_error), 1)
        self.assertEqual(self.registry.active_count(), 1)


if __name__ == "__main__":
    unittest.main()
