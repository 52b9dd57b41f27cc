"""Read-only projection of ``AppState`` for the renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from chat_app.app_state import AppState
from chat_app.cursor_math import BORDER_INSET, screen_cursor
from chat_app.modes import ScrollMessages


@dataclass(frozen=True)
class MessageView:
    message_id: str
    sender: str
    body: str
    edited: bool


@dataclass(frozen=True)
class ViewSnapshot:
    mode_label: str
    channel_names: Tuple[str, ...]
    channel_highlight: Optional[int]
    current_channel_name: str
    # Newest first.
    messages: Tuple[MessageView, ...]
    message_highlight: Optional[int]
    at_top: bool
    input_text: str
    cursor: Tuple[int, int]
    status_line: str


def project(
    state: AppState,
    *,
    input_x: int = 0,
    input_y: int = 0,
    input_width: int = 80,
) -> ViewSnapshot:
    """Build a snapshot; call with ``state.lock`` held.

    ``input_x``/``input_y``/``input_width`` describe the bordered input box
    so the cursor can be projected onto screen cells.
    """

    names = []
    for channel_id in state.selector.channel_ids:
        channel = state.timeline.get(channel_id)
        names.append(channel.name if channel is not None else channel_id)

    channel = state.current()
    messages: Tuple[MessageView, ...] = ()
    at_top = False
    current_name = ""
    if channel is not None:
        current_name = channel.name
        at_top = channel.at_top
        messages = tuple(
            MessageView(
                message_id=message.message_id,
                sender=message.sender,
                body=message.body,
                edited=message.edited,
            )
            for message in reversed(channel.ordered_messages())
        )

    mode = state.mode
    message_highlight = mode.message_index if isinstance(mode, ScrollMessages) else None
    outer_width = max(input_width, 2 * BORDER_INSET + 1)
    cursor = screen_cursor(state.input.char_pos, input_x, input_y, outer_width)

    return ViewSnapshot(
        mode_label=mode.label,
        channel_names=tuple(names),
        channel_highlight=state.selector.highlight,
        current_channel_name=current_name,
        messages=messages,
        message_highlight=message_highlight,
        at_top=at_top,
        input_text=state.input.text,
        cursor=cursor,
        status_line=state.status_line,
    )
