"""UTF-8 compose buffer with byte and character cursors kept in lockstep."""

from __future__ import annotations

MAX_UTF8_WIDTH = 4


class CursorInvariantError(RuntimeError):
    """Raised when the cursor can no longer be placed on a code-point boundary."""


def _is_continuation(byte: int) -> bool:
    return byte & 0xC0 == 0x80


class InputBuffer:
    """Single-line text buffer addressed by both byte and character offset.

    The text is held as UTF-8 bytes. ``byte_pos`` always lands on a
    code-point boundary and ``char_pos`` is the number of code points in
    front of it. Boundary scans never look further than the widest UTF-8
    sequence, so a corrupted buffer fails loudly instead of spinning.
    """

    def __init__(self, text: str = "") -> None:
        self._data = bytearray(text.encode("utf-8"))
        self._byte_pos = len(self._data)
        self._char_pos = len(text)

    @property
    def text(self) -> str:
        return self._data.decode("utf-8")

    @property
    def byte_pos(self) -> int:
        return self._byte_pos

    @property
    def char_pos(self) -> int:
        return self._char_pos

    def is_empty(self) -> bool:
        return not self._data

    def clear(self) -> None:
        self._data.clear()
        self._byte_pos = 0
        self._char_pos = 0

    def insert_char(self, char: str) -> None:
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        encoded = char.encode("utf-8")
        self._data[self._byte_pos : self._byte_pos] = encoded
        self._byte_pos += len(encoded)
        self._char_pos += 1

    def insert_text(self, text: str) -> None:
        """Insert pasted text at the cursor; line breaks are dropped."""

        for char in text:
            if char in "\r\n":
                continue
            self.insert_char(char)

    def delete_before_cursor(self) -> None:
        if self._byte_pos == 0:
            return
        start = self._previous_boundary()
        del self._data[start : self._byte_pos]
        self._byte_pos = start
        self._char_pos -= 1

    def delete_at_cursor(self) -> None:
        if self._byte_pos >= len(self._data):
            return
        end = self._next_boundary()
        del self._data[self._byte_pos : end]

    def move_left(self) -> None:
        if self._byte_pos == 0:
            return
        self._byte_pos = self._previous_boundary()
        self._char_pos -= 1

    def move_right(self) -> None:
        if self._byte_pos >= len(self._data):
            return
        self._byte_pos = self._next_boundary()
        self._char_pos += 1

    def move_home(self) -> None:
        self._byte_pos = 0
        self._char_pos = 0

    def move_end(self) -> None:
        self._byte_pos = len(self._data)
        self._char_pos = len(self.text)

    def _previous_boundary(self) -> int:
        floor = max(0, self._byte_pos - MAX_UTF8_WIDTH)
        for pos in range(self._byte_pos - 1, floor - 1, -1):
            if not _is_continuation(self._data[pos]):
                return pos
        raise CursorInvariantError(f"no code-point boundary before byte {self._byte_pos}")

    def _next_boundary(self) -> int:
        ceiling = min(len(self._data), self._byte_pos + MAX_UTF8_WIDTH)
        for pos in range(self._byte_pos + 1, ceiling + 1):
            if pos == len(self._data) or not _is_continuation(self._data[pos]):
                return pos
        raise CursorInvariantError(f"no code-point boundary after byte {self._byte_pos}")
