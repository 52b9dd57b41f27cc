import random
import unittest

from chat_app.input_buffer import CursorInvariantError, InputBuffer

ALPHABET = ["a", "z", " ", "é", "ß", "€", "中", "😀", "🏳"]


def _assert_consistent(testcase: unittest.TestCase, buf: InputBuffer) -> None:
    raw = buf.text.encode("utf-8")
    prefix = raw[: buf.byte_pos]
    # Decoding the prefix fails unless byte_pos is on a code-point boundary.
    testcase.assertEqual(len(prefix.decode("utf-8")), buf.char_pos)
    testcase.assertLessEqual(buf.byte_pos, len(raw))


class InputBufferTests(unittest.TestCase):
    def test_insert_advances_by_encoded_width(self):
        buf = InputBuffer()
        buf.insert_char("a")
        buf.insert_char("€")
        buf.insert_char("😀")
        self.assertEqual(buf.text, "a€😀")
        self.assertEqual(buf.byte_pos, 1 + 3 + 4)
        self.assertEqual(buf.char_pos, 3)

    def test_insert_in_middle(self):
        buf = InputBuffer()
        for char in "héllo":
            buf.insert_char(char)
        buf.move_left()
        buf.move_left()
        buf.move_left()
        buf.insert_char("中")
        self.assertEqual(buf.text, "hé中llo")
        self.assertEqual(buf.char_pos, 3)
        self.assertEqual(buf.byte_pos, len("hé中".encode("utf-8")))

    def test_delete_before_cursor_removes_whole_code_point(self):
        buf = InputBuffer()
        buf.insert_char("x")
        buf.insert_char("😀")
        buf.delete_before_cursor()
        self.assertEqual(buf.text, "x")
        self.assertEqual((buf.byte_pos, buf.char_pos), (1, 1))

    def test_noops_at_extents(self):
        buf = InputBuffer()
        buf.delete_before_cursor()
        buf.move_left()
        buf.move_right()
        self.assertEqual((buf.text, buf.byte_pos, buf.char_pos), ("", 0, 0))

        buf.insert_char("ß")
        buf.move_right()
        self.assertEqual((buf.byte_pos, buf.char_pos), (2, 1))
        buf.move_left()
        buf.move_left()
        buf.delete_before_cursor()
        self.assertEqual((buf.text, buf.byte_pos, buf.char_pos), ("ß", 0, 0))

    def test_forward_delete_home_end(self):
        buf = InputBuffer("a€b")
        buf.move_home()
        buf.move_right()
        buf.delete_at_cursor()
        self.assertEqual(buf.text, "ab")
        self.assertEqual((buf.byte_pos, buf.char_pos), (1, 1))
        buf.move_end()
        self.assertEqual((buf.byte_pos, buf.char_pos), (2, 2))
        buf.delete_at_cursor()
        self.assertEqual(buf.text, "ab")

    def test_clear_resets_positions(self):
        buf = InputBuffer("hello")
        buf.clear()
        self.assertTrue(buf.is_empty())
        self.assertEqual((buf.text, buf.byte_pos, buf.char_pos), ("", 0, 0))

    def test_insert_text_drops_line_breaks(self):
        buf = InputBuffer()
        buf.insert_text("one\r\ntwo €")
        self.assertEqual(buf.text, "onetwo €")
        self.assertEqual(buf.char_pos, 8)

    def test_insert_char_rejects_strings(self):
        buf = InputBuffer()
        with self.assertRaises(ValueError):
            buf.insert_char("ab")
        with self.assertRaises(ValueError):
            buf.insert_char("")

    def test_random_operation_sequences_keep_cursors_in_sync(self):
        rng = random.Random(1234)
        for _ in range(200):
            buf = InputBuffer()
            for _ in range(60):
                op = rng.choice(["insert", "insert", "delete", "left", "right", "home", "end", "forward"])
                if op == "insert":
                    buf.insert_char(rng.choice(ALPHABET))
                elif op == "delete":
                    buf.delete_before_cursor()
                elif op == "left":
                    buf.move_left()
                elif op == "right":
                    buf.move_right()
                elif op == "home":
                    buf.move_home()
                elif op == "end":
                    buf.move_end()
                else:
                    buf.delete_at_cursor()
                _assert_consistent(self, buf)

    def test_corrupted_buffer_fails_instead_of_looping(self):
        buf = InputBuffer()
        # Five continuation bytes cannot be produced by the public API.
        buf._data = bytearray(b"\x80" * 5)
        buf._byte_pos = 5
        buf._char_pos = 1
        with self.assertRaises(CursorInvariantError):
            buf.move_left()


if __name__ == "__main__":
    unittest.main()
