"""Per-channel timeline reconciliation.

Live events and backfilled history pages arrive in any order. Each
channel keeps an explicit ``message_order`` list next to an id-keyed
``messages`` map; the order list is sorted by timestamp with ties broken
by arrival, and every id appears in it at most once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from chat_app.events import MessageEdit, NewMessage, Redaction, SyncPosition, TimelineEvent

logger = logging.getLogger(__name__)


@dataclass
class Message:
    message_id: str
    sender: str
    body: str
    timestamp: int
    edited: bool = False


@dataclass
class PendingEdit:
    """An edit whose target message has not been seen yet."""

    body: str
    timestamp: int


@dataclass
class Channel:
    channel_id: str
    name: str
    message_order: List[str] = field(default_factory=list)
    messages: Dict[str, Message] = field(default_factory=dict)
    pending_edits: Dict[str, PendingEdit] = field(default_factory=dict)
    at_top: bool = False
    prev_page_token: Optional[str] = None
    sync_position: Optional[str] = None

    def ordered_messages(self) -> List[Message]:
        return [self.messages[message_id] for message_id in self.message_order]


@dataclass(frozen=True)
class TimelineChange:
    """Where an applied event touched a channel's order list.

    ``length`` is the order length after the change.
    """

    channel_id: str
    length: int
    inserted_at: Optional[int] = None
    removed_at: Optional[int] = None


class TimelineReconciler:
    """Applies message, edit and redaction events to per-channel timelines."""

    def __init__(self) -> None:
        self.channels: Dict[str, Channel] = {}

    def ensure_channel(self, channel_id: str, name: Optional[str] = None) -> Channel:
        channel = self.channels.get(channel_id)
        if channel is None:
            channel = Channel(channel_id=channel_id, name=name or channel_id)
            self.channels[channel_id] = channel
        elif name:
            channel.name = name
        return channel

    def get(self, channel_id: str) -> Optional[Channel]:
        return self.channels.get(channel_id)

    def apply_message(self, event: NewMessage) -> Optional[TimelineChange]:
        """Insert a new message; returns ``None`` for a duplicate delivery."""

        channel = self.ensure_channel(event.channel_id)
        if event.message_id in channel.messages:
            return None

        message = Message(
            message_id=event.message_id,
            sender=event.sender,
            body=event.body,
            timestamp=event.timestamp,
        )
        pending = channel.pending_edits.pop(event.message_id, None)
        if pending is not None:
            message.body = pending.body
            message.edited = True

        index = len(channel.message_order)
        while index > 0:
            previous = channel.messages[channel.message_order[index - 1]]
            if previous.timestamp <= message.timestamp:
                break
            index -= 1
        channel.message_order.insert(index, message.message_id)
        channel.messages[message.message_id] = message
        return TimelineChange(channel.channel_id, len(channel.message_order), inserted_at=index)

    def apply_edit(self, event: MessageEdit) -> bool:
        """Apply or park an edit; returns True when the target was updated now."""

        channel = self.ensure_channel(event.channel_id)
        target = channel.messages.get(event.target_id)
        if target is not None:
            target.body = event.body
            target.edited = True
            return True

        stored = channel.pending_edits.get(event.target_id)
        if stored is None or event.timestamp > stored.timestamp:
            channel.pending_edits[event.target_id] = PendingEdit(body=event.body, timestamp=event.timestamp)
        return False

    def apply_redaction(self, event: Redaction) -> Optional[TimelineChange]:
        channel = self.ensure_channel(event.channel_id)
        if channel.messages.pop(event.target_id, None) is None:
            return None
        index = channel.message_order.index(event.target_id)
        del channel.message_order[index]
        return TimelineChange(channel.channel_id, len(channel.message_order), removed_at=index)

    def set_sync_position(self, event: SyncPosition) -> None:
        self.ensure_channel(event.channel_id).sync_position = event.token

    def apply_event(self, event: TimelineEvent) -> Optional[TimelineChange]:
        if isinstance(event, NewMessage):
            return self.apply_message(event)
        if isinstance(event, MessageEdit):
            self.apply_edit(event)
            return None
        if isinstance(event, Redaction):
            return self.apply_redaction(event)
        if isinstance(event, SyncPosition):
            self.set_sync_position(event)
            return None
        raise TypeError(f"unsupported timeline event {event!r}")

    def backfill_token(self, channel_id: str) -> Optional[str]:
        """Token for the next backward fetch, falling back to the live sync position."""

        channel = self.ensure_channel(channel_id)
        if channel.prev_page_token is not None:
            return channel.prev_page_token
        return channel.sync_position

    def apply_backfill_page(
        self,
        channel_id: str,
        events: Iterable[TimelineEvent],
        next_token: Optional[str],
    ) -> List[TimelineChange]:
        """Record a fetched history page and merge its events in page order."""

        channel = self.ensure_channel(channel_id)
        channel.at_top = next_token is None
        channel.prev_page_token = next_token
        changes: List[TimelineChange] = []
        for event in events:
            change = self.apply_event(event)
            if change is not None:
                changes.append(change)
        logger.debug(
            "backfill page for %s merged %d changes (at_top=%s)",
            channel_id,
            len(changes),
            channel.at_top,
        )
        return changes
