"""Typed timeline events and their gateway wire decoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union


@dataclass(frozen=True)
class NewMessage:
    channel_id: str
    message_id: str
    sender: str
    body: str
    timestamp: int


@dataclass(frozen=True)
class MessageEdit:
    channel_id: str
    target_id: str
    body: str
    timestamp: int


@dataclass(frozen=True)
class Redaction:
    channel_id: str
    target_id: str


@dataclass(frozen=True)
class SyncPosition:
    """Latest live sync token seen for a channel."""

    channel_id: str
    token: str


TimelineEvent = Union[NewMessage, MessageEdit, Redaction, SyncPosition]


def _str_field(body: Dict[str, object], key: str) -> Optional[str]:
    value = body.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _int_field(body: Dict[str, object], key: str) -> Optional[int]:
    value = body.get(key)
    # bool is an int subclass; a boolean timestamp is malformed.
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def event_from_wire(frame: object) -> Optional[TimelineEvent]:
    """Decode one gateway frame, returning ``None`` for anything unusable.

    Frames look like ``{"t": "m.message", "body": {...}}``. The same shape
    is used by the live stream and by history pages.
    """

    if not isinstance(frame, dict):
        return None
    kind = frame.get("t")
    body = frame.get("body")
    if not isinstance(body, dict):
        return None
    channel_id = _str_field(body, "room_id")
    if channel_id is None:
        return None

    if kind == "m.message":
        message_id = _str_field(body, "event_id")
        timestamp = _int_field(body, "ts")
        text = body.get("body")
        if message_id is None or timestamp is None or not isinstance(text, str):
            return None
        sender = body.get("sender")
        return NewMessage(
            channel_id=channel_id,
            message_id=message_id,
            sender=str(sender) if sender is not None else "",
            body=text,
            timestamp=timestamp,
        )
    if kind == "m.edit":
        target_id = _str_field(body, "target_id")
        timestamp = _int_field(body, "ts")
        text = body.get("body")
        if target_id is None or timestamp is None or not isinstance(text, str):
            return None
        return MessageEdit(channel_id=channel_id, target_id=target_id, body=text, timestamp=timestamp)
    if kind == "m.redaction":
        target_id = _str_field(body, "target_id")
        if target_id is None:
            return None
        return Redaction(channel_id=channel_id, target_id=target_id)
    if kind == "sync.position":
        token = _str_field(body, "token")
        if token is None:
            return None
        return SyncPosition(channel_id=channel_id, token=token)
    return None
