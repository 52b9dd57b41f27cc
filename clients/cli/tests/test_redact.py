import unittest

from chat_app.redact import redact_text


class RedactTextTests(unittest.TestCase):
    def test_redacts_bearer_and_known_keys(self):
        text = 'Authorization: Bearer abc123 session_token=secret {"auth_token": "hunter2"}'
        redacted = redact_text(text)
        self.assertIn("Bearer [REDACTED]", redacted)
        self.assertIn("session_token=[REDACTED]", redacted)
        self.assertNotIn("abc123", redacted)
        self.assertNotIn("secret", redacted)
        self.assertNotIn("hunter2", redacted)

    def test_mappings_are_rendered_then_scrubbed(self):
        redacted = redact_text({"session_token": "st-1", "room": "!a"})
        self.assertNotIn("st-1", redacted)
        self.assertIn("!a", redacted)


if __name__ == "__main__":
    unittest.main()
