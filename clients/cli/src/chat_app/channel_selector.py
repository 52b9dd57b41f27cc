"""Highlight cursor over the joined channel list."""

from __future__ import annotations

from typing import List, Optional


class ChannelSelector:
    """Ordered channel ids with a wrapping highlight index."""

    def __init__(self, channel_ids: Optional[List[str]] = None) -> None:
        self.channel_ids: List[str] = list(channel_ids or [])
        self.highlight: Optional[int] = None

    def __len__(self) -> int:
        return len(self.channel_ids)

    def add(self, channel_id: str) -> None:
        if channel_id not in self.channel_ids:
            self.channel_ids.append(channel_id)

    def move_up(self) -> None:
        count = len(self.channel_ids)
        if count == 0:
            return
        if self.highlight is None:
            self.highlight = count - 1
        elif self.highlight == 0:
            self.highlight = count - 1
        else:
            self.highlight -= 1

    def move_down(self) -> None:
        count = len(self.channel_ids)
        if count == 0:
            return
        # First press from "nothing highlighted" lands on the last item, same as move_up.
        if self.highlight is None:
            self.highlight = count - 1
        elif self.highlight >= count - 1:
            self.highlight = 0
        else:
            self.highlight += 1

    def highlighted(self) -> Optional[str]:
        if self.highlight is None or not 0 <= self.highlight < len(self.channel_ids):
            return None
        return self.channel_ids[self.highlight]

    def clear(self) -> None:
        self.highlight = None
