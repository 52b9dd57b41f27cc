"""The single shared application state and the lock that guards it."""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

from chat_app.channel_selector import ChannelSelector
from chat_app.events import TimelineEvent
from chat_app.input_buffer import InputBuffer
from chat_app.modes import Mode, Normal, ScrollMessages
from chat_app.timeline import Channel, Message, TimelineChange, TimelineReconciler


class AppState:
    """Everything the input, ingestion and render tasks share.

    All reads and writes go through ``lock``; the whole object is the unit
    of locking.
    """

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.timeline = TimelineReconciler()
        self.selector = ChannelSelector()
        self.input = InputBuffer()
        self.mode: Mode = Normal()
        self.current_channel: Optional[str] = None
        self.status_line = ""

    def add_channel(self, channel_id: str, name: Optional[str] = None) -> Channel:
        channel = self.timeline.ensure_channel(channel_id, name)
        self.selector.add(channel_id)
        return channel

    def current(self) -> Optional[Channel]:
        if self.current_channel is None:
            return None
        return self.timeline.get(self.current_channel)

    def highlighted_message(self) -> Optional[Message]:
        channel = self.current()
        mode = self.mode
        if channel is None or not isinstance(mode, ScrollMessages) or mode.message_index is None:
            return None
        order_index = len(channel.message_order) - 1 - mode.message_index
        if not 0 <= order_index < len(channel.message_order):
            return None
        return channel.messages[channel.message_order[order_index]]

    def apply_event(self, event: TimelineEvent) -> None:
        self.selector.add(event.channel_id)
        self._track(self.timeline.apply_event(event))

    def apply_backfill_page(
        self,
        channel_id: str,
        events: Iterable[TimelineEvent],
        next_token: Optional[str],
    ) -> List[TimelineChange]:
        events = list(events)
        for event in events:
            self.selector.add(event.channel_id)
        changes = self.timeline.apply_backfill_page(channel_id, events, next_token)
        for change in changes:
            self._track(change)
        return changes

    def _track(self, change: Optional[TimelineChange]) -> None:
        mode = self.mode
        if change is None or not isinstance(mode, ScrollMessages):
            return
        if change.channel_id != self.current_channel:
            return
        if change.inserted_at is not None:
            self.mode = mode.after_insert(change.inserted_at, change.length)
        elif change.removed_at is not None:
            self.mode = mode.after_removal(change.removed_at, change.length)
