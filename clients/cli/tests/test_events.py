import unittest

from chat_app.events import MessageEdit, NewMessage, Redaction, SyncPosition, event_from_wire


class EventFromWireTests(unittest.TestCase):
    def test_decodes_each_frame_kind(self):
        self.assertEqual(
            event_from_wire({"t": "m.message", "body": {"room_id": "!a", "event_id": "$1", "sender": "@ann", "body": "hi", "ts": 7}}),
            NewMessage("!a", "$1", "@ann", "hi", 7),
        )
        self.assertEqual(
            event_from_wire({"t": "m.edit", "body": {"room_id": "!a", "target_id": "$1", "body": "hey", "ts": 9}}),
            MessageEdit("!a", "$1", "hey", 9),
        )
        self.assertEqual(
            event_from_wire({"t": "m.redaction", "body": {"room_id": "!a", "target_id": "$1"}}),
            Redaction("!a", "$1"),
        )
        self.assertEqual(
            event_from_wire({"t": "sync.position", "body": {"room_id": "!a", "token": "s3"}}),
            SyncPosition("!a", "s3"),
        )

    def test_empty_body_is_a_valid_message(self):
        event = event_from_wire({"t": "m.message", "body": {"room_id": "!a", "event_id": "$1", "body": "", "ts": 1}})
        self.assertEqual(event, NewMessage("!a", "$1", "", "", 1))

    def test_malformed_frames_are_rejected(self):
        for frame in (
            None,
            "m.message",
            {"t": "m.message"},
            {"t": "m.message", "body": {"event_id": "$1", "body": "x", "ts": 1}},
            {"t": "m.message", "body": {"room_id": "!a", "event_id": "$1", "body": "x", "ts": "1"}},
            {"t": "m.message", "body": {"room_id": "!a", "event_id": "$1", "body": "x", "ts": True}},
            {"t": "m.edit", "body": {"room_id": "!a", "body": "x", "ts": 1}},
            {"t": "m.redaction", "body": {"room_id": "!a"}},
            {"t": "sync.position", "body": {"room_id": "!a", "token": ""}},
            {"t": "m.typing", "body": {"room_id": "!a"}},
        ):
            with self.subTest(frame=frame):
                self.assertIsNone(event_from_wire(frame))


if __name__ == "__main__":
    unittest.main()
