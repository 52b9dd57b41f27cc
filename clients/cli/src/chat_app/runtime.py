"""Async tasks that share ``AppState``: ingestion, input handling and rendering.

Shutdown is a single ``asyncio.Event`` handed to every task. Network
calls run outside the state lock; their results are applied after the
lock is taken again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol, Tuple

from chat_app.app_state import AppState
from chat_app.events import Redaction, TimelineEvent
from chat_app.gateway_client import GatewayClient, GatewayError, UnauthorizedError
from chat_app.modes import Action, ModeController
from chat_app.session_store import Credentials
from chat_app.view_model import ViewSnapshot, project

logger = logging.getLogger(__name__)

Key = Tuple[str, Optional[str]]
KeyReader = Callable[[], Awaitable[Optional[Key]]]

QUEUE_POLL_S = 0.1
RECONNECT_DELAY_S = 0.5


class Renderer(Protocol):
    def input_geometry(self) -> Tuple[int, int, int]:
        """Return ``(x, y, outer_width)`` of the bordered input box."""

    def draw(self, snapshot: ViewSnapshot) -> None:
        ...


async def start_session(client: GatewayClient, credentials: Credentials, state: AppState) -> None:
    """Log in and seed channels from the room roster.

    ``UnauthorizedError`` propagates; the caller treats it as fatal.
    """

    await client.login(credentials)
    rooms = await client.rooms()
    async with state.lock:
        for room in rooms:
            state.add_channel(room.room_id, room.name)
    logger.info("joined %d channels", len(rooms))


async def _wait_or_stop(stop: asyncio.Event, delay_s: float) -> None:
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay_s)
    except asyncio.TimeoutError:
        pass


async def pump_live_events(
    client: GatewayClient,
    queue: "asyncio.Queue[TimelineEvent]",
    stop: asyncio.Event,
) -> None:
    """Feed live events into ``queue``, reconnecting after transient drops."""

    while not stop.is_set():
        try:
            async for event in client.live_events():
                await queue.put(event)
                if stop.is_set():
                    return
        except UnauthorizedError:
            logger.error("live stream rejected the session; stopping ingestion")
            return
        except GatewayError as exc:
            logger.warning("live stream dropped: %s", exc)
        await _wait_or_stop(stop, RECONNECT_DELAY_S)


async def ingest_events(state: AppState, queue: "asyncio.Queue[TimelineEvent]", stop: asyncio.Event) -> None:
    while not stop.is_set():
        try:
            event = await asyncio.wait_for(queue.get(), timeout=QUEUE_POLL_S)
        except asyncio.TimeoutError:
            continue
        async with state.lock:
            state.apply_event(event)
        queue.task_done()


async def _report_failure(state: AppState, message: str, exc: Exception) -> None:
    logger.warning("%s: %s", message, exc)
    async with state.lock:
        state.status_line = f"{message}."


async def perform_action(
    state: AppState,
    client: GatewayClient,
    action: Action,
    *,
    page_size: int,
) -> None:
    """Run the network side of ``action`` and apply the result under the lock.

    Failures leave the timeline untouched; they are logged and shown on the
    status line, and never retried.
    """

    if action.kind == "send":
        try:
            await client.send(action.channel_id, action.body)
        except GatewayError as exc:
            await _report_failure(state, "Send failed", exc)
            return
        async with state.lock:
            state.status_line = ""
        return

    if action.kind == "redact":
        try:
            await client.redact(action.channel_id, action.message_id)
        except GatewayError as exc:
            await _report_failure(state, "Redact failed", exc)
            return
        async with state.lock:
            if state.timeline.get(action.channel_id) is not None:
                state.apply_event(Redaction(channel_id=action.channel_id, target_id=action.message_id))
            state.status_line = ""
        return

    if action.kind == "backfill":
        async with state.lock:
            channel = state.timeline.get(action.channel_id)
            if channel is None or channel.at_top:
                return
            token = state.timeline.backfill_token(action.channel_id)
        try:
            page = await client.fetch_history(action.channel_id, token, page_size)
        except GatewayError as exc:
            await _report_failure(state, "History fetch failed", exc)
            return
        async with state.lock:
            if state.timeline.get(action.channel_id) is None:
                return
            state.apply_backfill_page(action.channel_id, page.events, page.next_token)
            state.status_line = ""
        return

    raise ValueError(f"unknown action kind {action.kind!r}")


async def handle_input(
    state: AppState,
    client: GatewayClient,
    read_key: KeyReader,
    stop: asyncio.Event,
    *,
    page_size: int,
) -> None:
    controller = ModeController(state)
    while not stop.is_set():
        key = await read_key()
        if key is None:
            continue
        async with state.lock:
            action = controller.handle_key(*key)
        if action is None:
            continue
        if action.kind == "quit":
            logger.info("quit requested")
            stop.set()
            return
        await perform_action(state, client, action, page_size=page_size)


async def render_loop(state: AppState, renderer: Renderer, stop: asyncio.Event, *, interval_s: float) -> None:
    while not stop.is_set():
        x, y, width = renderer.input_geometry()
        async with state.lock:
            snapshot = project(state, input_x=x, input_y=y, input_width=width)
        renderer.draw(snapshot)
        await _wait_or_stop(stop, interval_s)


async def run_client(
    client: GatewayClient,
    state: AppState,
    renderer: Renderer,
    read_key: KeyReader,
    stop: asyncio.Event,
    *,
    page_size: int = 50,
    render_interval_s: float = 0.05,
) -> None:
    """Run all tasks until ``stop`` is set.

    The live pump is cancelled on shutdown since it only waits on the
    socket; the input task finishes any in-flight action before exiting.
    """

    queue: asyncio.Queue[TimelineEvent] = asyncio.Queue()
    pump = asyncio.create_task(pump_live_events(client, queue, stop), name="live-pump")
    workers = [
        asyncio.create_task(ingest_events(state, queue, stop), name="ingest"),
        asyncio.create_task(handle_input(state, client, read_key, stop, page_size=page_size), name="input"),
        asyncio.create_task(render_loop(state, renderer, stop, interval_s=render_interval_s), name="render"),
    ]
    try:
        done, _ = await asyncio.wait(workers, return_when=asyncio.FIRST_EXCEPTION)
        for task in done:
            exc = task.exception()
            if exc is not None:
                raise exc
    finally:
        stop.set()
        pump.cancel()
        for worker in workers:
            worker.cancel()
        await asyncio.gather(pump, *workers, return_exceptions=True)
