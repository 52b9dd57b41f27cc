"""Curses front-end for the modal chat client."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import curses
import logging
import os
import re
import sys
from collections import deque
from pathlib import Path
from typing import Deque, Iterator, Optional, TextIO

from chat_app import session_store
from chat_app.app_state import AppState
from chat_app.cursor_math import BORDER_INSET
from chat_app.gateway_client import GatewayClient, GatewayError, UnauthorizedError
from chat_app.logs import configure_logging
from chat_app.runtime import Key, run_client, start_session
from chat_app.settings import DEFAULT_SETTINGS_FILE, resolve_settings
from chat_app.view_model import MessageView, ViewSnapshot

logger = logging.getLogger(__name__)

INPUT_INNER_ROWS = 3
SIDEBAR_MAX_WIDTH = 24
KEY_POLL_MS = 20
BRACKETED_PASTE_ON = "\x1b[?2004h"
BRACKETED_PASTE_OFF = "\x1b[?2004l"


def _normalize_key(key: int | str) -> Key:
    if isinstance(key, str):
        if key in ("\n", "\r"):
            return "ENTER", None
        if key == "\x1b":
            return "ESC", None
        if key in ("\x7f", "\b"):
            return "BACKSPACE", None
        if key == "\t":
            return "TAB", None
        if len(key) == 1 and key.isprintable():
            return "CHAR", key
        return "UNKNOWN", None
    if key == curses.KEY_LEFT:
        return "LEFT", None
    if key == curses.KEY_RIGHT:
        return "RIGHT", None
    if key == curses.KEY_UP:
        return "UP", None
    if key == curses.KEY_DOWN:
        return "DOWN", None
    if key == curses.KEY_HOME:
        return "HOME", None
    if key == curses.KEY_END:
        return "END", None
    if key in (curses.KEY_ENTER, 10, 13):
        return "ENTER", None
    if key in (curses.KEY_BACKSPACE, 127, 8):
        return "BACKSPACE", None
    # Forward-delete varies across terminfo entries; ncurses usually reports 330.
    if key in (getattr(curses, "KEY_DC", 330), 330):
        return "DELETE", None
    return "UNKNOWN", None


_RE_BRACKETED_PASTE = re.compile(r"\x1b?\[(?:\?2004[hl]|200~|201~)")


def _sanitize_paste(raw: str) -> str:
    """Strip bracketed-paste markers and line breaks from pasted text."""

    if not raw:
        return ""
    raw = _RE_BRACKETED_PASTE.sub("", raw)
    return raw.replace("\r", "").replace("\n", "")


def _drain_pending_input(stdscr: curses.window, limit: int = 8192) -> list[int | str]:
    """Read whatever input is immediately available; the window is in nodelay mode."""

    pending: list[int | str] = []
    while len(pending) < limit:
        try:
            pending.append(stdscr.get_wch())
        except curses.error:
            break
    return pending


class CursesKeyReader:
    """Polls a nodelay window from the event loop thread.

    curses is not thread-safe, so key reads share the thread that draws.
    Input drained after a lone ESC that is not an escape sequence is
    replayed as ordinary keys.
    """

    def __init__(self, stdscr: curses.window, poll_interval_s: float = KEY_POLL_MS / 1000) -> None:
        self.stdscr = stdscr
        self.poll_interval_s = poll_interval_s
        self._pending: Deque[int | str] = deque()

    def _next_raw(self) -> int | str:
        if self._pending:
            return self._pending.popleft()
        return self.stdscr.get_wch()

    def read_key(self) -> Optional[Key]:
        """Return one key if input is waiting, else ``None`` without blocking."""

        try:
            raw = self._next_raw()
        except curses.error:
            return None
        if raw != "\x1b":
            return _normalize_key(raw)

        drained = list(self._pending) + _drain_pending_input(self.stdscr)
        self._pending.clear()
        if not drained or drained[0] != "[":
            self._pending.extend(drained)
            return "ESC", None
        sequence = "".join(item for item in drained if isinstance(item, str))
        if sequence.startswith("[200~"):
            return "PASTE", _sanitize_paste(sequence)
        # Unrecognised CSI sequences.
        return "UNKNOWN", None

    async def next_key(self) -> Optional[Key]:
        key = self.read_key()
        if key is None:
            await asyncio.sleep(self.poll_interval_s)
        return key


def _wrap_chunks(value: str, width: int) -> list[str]:
    if width <= 0:
        return [value]
    return [value[i : i + width] for i in range(0, len(value), width)] or [""]


def _render_text(window: curses.window, y: int, x: int, text: str, attr: int = 0) -> None:
    max_y, max_x = window.getmaxyx()
    if 0 <= y < max_y and 0 <= x < max_x - 1:
        try:
            window.addnstr(y, x, text, max_x - x - 1, attr)
        except curses.error:
            pass


def _format_message(message: MessageView) -> str:
    suffix = " (edited)" if message.edited else ""
    return f"{message.sender}: {message.body}{suffix}"


def _init_default_colors(stdscr: curses.window) -> None:
    """Respect the terminal's configured theme."""

    if not curses.has_colors():
        return
    try:
        curses.start_color()
        curses.use_default_colors()
    except curses.error:
        return


class CursesRenderer:
    """Draws snapshots: channel sidebar, message pane, input box, status line."""

    def __init__(self, stdscr: curses.window) -> None:
        self.stdscr = stdscr

    def _sidebar_width(self, width: int) -> int:
        return min(SIDEBAR_MAX_WIDTH, width // 4)

    def input_geometry(self) -> tuple[int, int, int]:
        height, width = self.stdscr.getmaxyx()
        box_height = INPUT_INNER_ROWS + 2 * BORDER_INSET
        return 0, max(0, height - 1 - box_height), width

    def draw(self, snapshot: ViewSnapshot) -> None:
        try:
            self._draw(snapshot)
        except curses.error:
            # Resizes can briefly invalidate coordinates; the next tick redraws.
            pass

    def _draw(self, snapshot: ViewSnapshot) -> None:
        stdscr = self.stdscr
        stdscr.erase()
        height, width = stdscr.getmaxyx()
        input_x, input_y, input_width = self.input_geometry()
        sidebar = self._sidebar_width(width)
        pane_height = input_y

        for idx, name in enumerate(snapshot.channel_names[:pane_height]):
            attr = curses.A_REVERSE if idx == snapshot.channel_highlight else 0
            if name == snapshot.current_channel_name:
                attr |= curses.A_BOLD
            _render_text(stdscr, idx, 0, name[: max(0, sidebar - 1)], attr)

        pane_x = sidebar + 1 if sidebar else 0
        pane_width = max(1, width - pane_x - 1)
        row = pane_height - 1
        for idx, message in enumerate(snapshot.messages):
            if row < 0:
                break
            attr = curses.A_REVERSE if idx == snapshot.message_highlight else 0
            lines = _wrap_chunks(_format_message(message), pane_width)
            for line in reversed(lines):
                if row < 0:
                    break
                _render_text(stdscr, row, pane_x, line, attr)
                row -= 1
        if snapshot.at_top and row >= 0:
            _render_text(stdscr, row, pane_x, "-- start of history --", curses.A_DIM)

        box = stdscr.derwin(INPUT_INNER_ROWS + 2 * BORDER_INSET, input_width, input_y, input_x)
        box.border()
        inner_width = max(1, input_width - 2 * BORDER_INSET)
        cursor_x, cursor_y = snapshot.cursor
        cursor_row = cursor_y - input_y - BORDER_INSET
        first_row = max(0, cursor_row - INPUT_INNER_ROWS + 1)
        rows = _wrap_chunks(snapshot.input_text, inner_width)
        for offset, line in enumerate(rows[first_row : first_row + INPUT_INNER_ROWS]):
            _render_text(stdscr, input_y + BORDER_INSET + offset, input_x + BORDER_INSET, line)

        status = f"-- {snapshot.mode_label} -- {snapshot.current_channel_name}"
        if snapshot.status_line:
            status = f"{status}  {snapshot.status_line}"
        _render_text(stdscr, height - 1, 0, status)

        try:
            stdscr.move(cursor_y - first_row, min(cursor_x, width - 1))
        except curses.error:
            pass
        stdscr.refresh()


@contextlib.contextmanager
def _curses_screen(output: TextIO) -> Iterator[curses.window]:
    os.environ.setdefault("ESCDELAY", "25")
    stdscr = curses.initscr()
    try:
        curses.noecho()
        curses.cbreak()
        stdscr.keypad(True)
        stdscr.nodelay(True)
        _init_default_colors(stdscr)
        output.write(BRACKETED_PASTE_ON)
        output.flush()
        yield stdscr
    finally:
        output.write(BRACKETED_PASTE_OFF)
        output.flush()
        stdscr.keypad(False)
        curses.nocbreak()
        curses.echo()
        curses.endwin()


async def _run(credentials: session_store.Credentials, settings: dict) -> None:
    state = AppState()
    stop = asyncio.Event()
    async with GatewayClient(credentials.base_url) as client:
        await start_session(client, credentials, state)
        with _curses_screen(sys.stdout) as stdscr:
            await run_client(
                client,
                state,
                CursesRenderer(stdscr),
                CursesKeyReader(stdscr).next_key,
                stop,
                page_size=int(settings["history_page_size"]),
                render_interval_s=int(settings["render_interval_ms"]) / 1000,
            )


def _resolve_credentials(args: argparse.Namespace, base_url: str) -> Optional[session_store.Credentials]:
    credentials_path = Path(args.credentials).expanduser()
    if args.auth_token and args.device_id:
        credentials = session_store.Credentials(
            base_url=base_url,
            auth_token=args.auth_token,
            device_id=args.device_id,
        )
        session_store.save_credentials(credentials, credentials_path)
        return credentials
    stored = session_store.load_credentials(credentials_path)
    if stored is not None and args.base_url:
        stored = session_store.Credentials(base_url=base_url, auth_token=stored.auth_token, device_id=stored.device_id)
    return stored


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Modal terminal chat client")
    parser.add_argument("--settings", default=str(DEFAULT_SETTINGS_FILE), help="settings JSON path")
    parser.add_argument("--credentials", default=str(session_store.CREDENTIALS_PATH), help="stored credentials path")
    parser.add_argument("--base-url", default=None, help="gateway base URL (overrides settings)")
    parser.add_argument("--auth-token", default=None, help="store and use this auth token")
    parser.add_argument("--device-id", default=None, help="device id paired with --auth-token")
    parser.add_argument("--log-file", default=None, help="log file path (overrides settings)")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    return parser


def main(argv: list[str] | None = None, stderr: TextIO | None = None) -> int:
    args = build_parser().parse_args(argv)
    err = stderr or sys.stderr
    settings = resolve_settings(args.settings)
    configure_logging(args.log_file or settings["log_file"], debug=args.debug)
    base_url = args.base_url or str(settings["gateway_base_url"])

    credentials = _resolve_credentials(args, base_url)
    if credentials is None:
        err.write("No stored credentials. Pass --auth-token and --device-id once to save them.\n")
        return 2

    try:
        asyncio.run(_run(credentials, settings))
    except UnauthorizedError as exc:
        logger.error("login failed: %s", exc)
        err.write(f"Authentication failed: {exc}\n")
        return 2
    except GatewayError as exc:
        logger.error("startup failed: %s", exc)
        err.write(f"Gateway unavailable: {exc}\n")
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
