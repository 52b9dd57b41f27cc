"""Modal key handling: mode variants and the ``(mode, key)`` dispatch table."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, ClassVar, Dict, Optional, Tuple, Union

if TYPE_CHECKING:
    from chat_app.app_state import AppState

QUIT_COMMAND = "/quit"


@dataclass(frozen=True)
class Normal:
    label: ClassVar[str] = "NORMAL"


@dataclass(frozen=True)
class Insert:
    label: ClassVar[str] = "INSERT"


@dataclass(frozen=True)
class SelectChannel:
    label: ClassVar[str] = "CHANNELS"


@dataclass(frozen=True)
class ScrollMessages:
    """Scrolling through the current channel.

    ``message_index`` counts from the newest message (0 = newest), the
    same direction the message pane is drawn in.
    """

    label: ClassVar[str] = "SCROLL"
    message_index: Optional[int] = None

    def after_insert(self, inserted_at: int, length: int) -> "ScrollMessages":
        """Keep the highlight on the same message after an insertion."""

        if self.message_index is None:
            return self
        highlighted_order_index = length - 2 - self.message_index
        if inserted_at > highlighted_order_index:
            return replace(self, message_index=self.message_index + 1)
        return self

    def after_removal(self, removed_at: int, length: int) -> "ScrollMessages":
        if self.message_index is None:
            return self
        if length == 0:
            return replace(self, message_index=None)
        highlighted_order_index = length - self.message_index
        if removed_at > highlighted_order_index:
            return replace(self, message_index=self.message_index - 1)
        # The highlighted message itself may be gone; stay in range.
        return replace(self, message_index=min(self.message_index, length - 1))


Mode = Union[Normal, Insert, SelectChannel, ScrollMessages]


@dataclass(frozen=True)
class Action:
    """Side effect requested by a key press, executed by the runtime.

    ``kind`` is one of ``quit``, ``send``, ``redact`` or ``backfill``.
    """

    kind: str
    channel_id: str = ""
    body: str = ""
    message_id: str = ""


Handler = Callable[["ModeController", Optional[str]], Optional[Action]]


class ModeController:
    """Interprets normalized keys against the current mode.

    Keys use the ``(name, char)`` shape produced by the terminal layer,
    e.g. ``("ENTER", None)`` or ``("CHAR", "i")``. A character key is
    looked up by its literal character first and then as ``CHAR``; any
    pair missing from the table is a no-op that keeps the current mode.
    """

    def __init__(self, state: "AppState") -> None:
        self.state = state

    def handle_key(self, key: str, char: Optional[str] = None) -> Optional[Action]:
        mode_kind = type(self.state.mode)
        handler = None
        if key == "CHAR" and char is not None:
            handler = _DISPATCH.get((mode_kind, char))
        if handler is None:
            handler = _DISPATCH.get((mode_kind, key))
        if handler is None:
            return None
        return handler(self, char)

    # Normal / Insert

    def _enter_insert(self, _char: Optional[str]) -> Optional[Action]:
        self.state.mode = Insert()
        return None

    def _enter_select_channel(self, _char: Optional[str]) -> Optional[Action]:
        self.state.mode = SelectChannel()
        return None

    def _enter_scroll(self, _char: Optional[str]) -> Optional[Action]:
        if self.state.current_channel is None:
            return None
        self.state.mode = ScrollMessages(message_index=None)
        return None

    def _to_normal(self, _char: Optional[str]) -> Optional[Action]:
        self.state.mode = Normal()
        return None

    def _submit(self, _char: Optional[str]) -> Optional[Action]:
        text = self.state.input.text
        if text == QUIT_COMMAND:
            return Action("quit")
        if not text:
            return None
        channel_id = self.state.current_channel
        self.state.input.clear()
        if channel_id is None:
            self.state.status_line = "No channel selected; message discarded."
            return None
        return Action("send", channel_id=channel_id, body=text)

    def _cursor_left(self, _char: Optional[str]) -> Optional[Action]:
        self.state.input.move_left()
        return None

    def _cursor_right(self, _char: Optional[str]) -> Optional[Action]:
        self.state.input.move_right()
        return None

    def _cursor_home(self, _char: Optional[str]) -> Optional[Action]:
        self.state.input.move_home()
        return None

    def _cursor_end(self, _char: Optional[str]) -> Optional[Action]:
        self.state.input.move_end()
        return None

    def _backspace(self, _char: Optional[str]) -> Optional[Action]:
        self.state.input.delete_before_cursor()
        return None

    def _delete(self, _char: Optional[str]) -> Optional[Action]:
        self.state.input.delete_at_cursor()
        return None

    def _insert_char(self, char: Optional[str]) -> Optional[Action]:
        if char:
            self.state.input.insert_char(char)
        return None

    def _paste(self, text: Optional[str]) -> Optional[Action]:
        if text:
            self.state.input.insert_text(text)
        return None

    # SelectChannel

    def _channel_up(self, _char: Optional[str]) -> Optional[Action]:
        if len(self.state.selector):
            self.state.selector.move_up()
        return None

    def _channel_down(self, _char: Optional[str]) -> Optional[Action]:
        if len(self.state.selector):
            self.state.selector.move_down()
        return None

    def _choose_channel(self, _char: Optional[str]) -> Optional[Action]:
        channel_id = self.state.selector.highlighted()
        if channel_id is not None:
            self.state.current_channel = channel_id
        self.state.mode = Normal()
        return None

    def _cancel_channel(self, _char: Optional[str]) -> Optional[Action]:
        self.state.current_channel = None
        self.state.selector.clear()
        self.state.mode = Normal()
        return None

    # ScrollMessages

    def _scroll_older(self, _char: Optional[str]) -> Optional[Action]:
        mode = self.state.mode
        channel = self.state.current()
        if not isinstance(mode, ScrollMessages) or channel is None:
            return None
        count = len(channel.message_order)
        if mode.message_index is None and count:
            self.state.mode = replace(mode, message_index=0)
            return None
        if mode.message_index is not None and mode.message_index < count - 1:
            self.state.mode = replace(mode, message_index=mode.message_index + 1)
            return None
        if channel.at_top:
            return None
        return Action("backfill", channel_id=channel.channel_id)

    def _scroll_newer(self, _char: Optional[str]) -> Optional[Action]:
        mode = self.state.mode
        if not isinstance(mode, ScrollMessages) or not mode.message_index:
            return None
        self.state.mode = replace(mode, message_index=mode.message_index - 1)
        return None

    def _redact_highlighted(self, _char: Optional[str]) -> Optional[Action]:
        message = self.state.highlighted_message()
        if message is None or self.state.current_channel is None:
            return None
        return Action("redact", channel_id=self.state.current_channel, message_id=message.message_id)

    def _leave_scroll(self, _char: Optional[str]) -> Optional[Action]:
        self.state.mode = Normal()
        return None


_DISPATCH: Dict[Tuple[type, str], Handler] = {
    (Normal, "i"): ModeController._enter_insert,
    (Normal, "C"): ModeController._enter_select_channel,
    (Normal, "S"): ModeController._enter_scroll,
    (Normal, "ENTER"): ModeController._submit,
    (Normal, "h"): ModeController._cursor_left,
    (Normal, "LEFT"): ModeController._cursor_left,
    (Normal, "l"): ModeController._cursor_right,
    (Normal, "RIGHT"): ModeController._cursor_right,
    (Insert, "ESC"): ModeController._to_normal,
    (Insert, "ENTER"): ModeController._submit,
    (Insert, "LEFT"): ModeController._cursor_left,
    (Insert, "RIGHT"): ModeController._cursor_right,
    (Insert, "HOME"): ModeController._cursor_home,
    (Insert, "END"): ModeController._cursor_end,
    (Insert, "BACKSPACE"): ModeController._backspace,
    (Insert, "DELETE"): ModeController._delete,
    (Insert, "CHAR"): ModeController._insert_char,
    (Insert, "PASTE"): ModeController._paste,
    (SelectChannel, "UP"): ModeController._channel_up,
    (SelectChannel, "k"): ModeController._channel_up,
    (SelectChannel, "DOWN"): ModeController._channel_down,
    (SelectChannel, "j"): ModeController._channel_down,
    (SelectChannel, "ENTER"): ModeController._choose_channel,
    (SelectChannel, "ESC"): ModeController._cancel_channel,
    (ScrollMessages, "UP"): ModeController._scroll_older,
    (ScrollMessages, "k"): ModeController._scroll_older,
    (ScrollMessages, "DOWN"): ModeController._scroll_newer,
    (ScrollMessages, "j"): ModeController._scroll_newer,
    (ScrollMessages, "d"): ModeController._redact_highlighted,
    (ScrollMessages, "ESC"): ModeController._leave_scroll,
}
