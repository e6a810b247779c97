# Tests for core.incident module
import unittest

from incidentbot.core import incident as inc
from incidentbot.core.testing import EPOCH


class IncidentTests(unittest.TestCase):
    def test_new_incident_has_no_roles_or_history(self) -> None:
        i = inc.new_incident(
            inc.ChannelRef("C9"),
            inc.Identity("bob", "Bob"),
            "API down",
            ["commander", "planning"],
            "link",
            EPOCH,
        )
        self.assertEqual(i.roles, {"commander": None, "planning": None})
        self.assertEqual(i.history, [])
        self.assertEqual(i.started_at, i.last_activity_at)
        self.assertEqual(i.missing_roles(), ["commander", "planning"])
        self.assertEqual(i.assignee("planning"), inc.UNASSIGNED)
        self.assertEqual(i.source_channel.display_name, inc.PRIVATE_CHANNEL_NAME)

    def test_channel_from_chat(self) -> None:
        self.assertEqual(inc.ChannelRef.from_chat(-100, "ops").id, "-100")
        self.assertEqual(
            inc.ChannelRef.from_chat(5, None).display_name, "Private Message"
        )

    def test_collab_link_replaces_each_whitespace(self) -> None:
        link = inc.collab_link("https://meet/x-{slug}", "DB  outage\tnow")
        self.assertEqual(link, "https://meet/x-DB--outage-now")

    def test_role_label(self) -> None:
        self.assertEqual(inc.role_label("incident_commander"), "Incident Commander")


if __name__ == "__main__":
    unittest.main()
