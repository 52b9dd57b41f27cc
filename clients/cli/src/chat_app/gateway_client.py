"""aiohttp gateway client: login, roster, live events, history, send, redact."""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

import aiohttp

from chat_app.events import TimelineEvent, event_from_wire
from chat_app.redact import redact_text
from chat_app.session_store import Credentials

logger = logging.getLogger(__name__)

WS_HEARTBEAT_S = 20.0


class GatewayError(Exception):
    """A gateway request failed; local state should be left unchanged."""


class UnauthorizedError(GatewayError):
    """The gateway rejected the stored credentials or session."""


@dataclass(frozen=True)
class RoomInfo:
    room_id: str
    name: str


@dataclass(frozen=True)
class HistoryPage:
    events: List[TimelineEvent]
    # ``None`` once the head of history has been reached.
    next_token: Optional[str]


def _build_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}{path}"


class GatewayClient:
    """Thin async wrapper over the gateway HTTP and WebSocket API.

    Every failure surfaces as :class:`GatewayError` (or its
    :class:`UnauthorizedError` subclass); nothing here retries.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        heartbeat_s: float = WS_HEARTBEAT_S,
    ) -> None:
        self.base_url = base_url
        self.heartbeat_s = heartbeat_s
        self.session_token: Optional[str] = None
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "GatewayClient":
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def _http(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    def _auth_headers(self) -> Dict[str, str]:
        if self.session_token is None:
            raise UnauthorizedError("not logged in")
        return {"Authorization": f"Bearer {self.session_token}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Dict[str, object]] = None,
        params: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
    ) -> Dict[str, object]:
        headers = self._auth_headers() if authenticated else {}
        url = _build_url(self.base_url, path)
        try:
            async with self._http().request(method, url, json=payload, params=params, headers=headers) as response:
                raw = await response.text()
                if response.status == 401:
                    raise UnauthorizedError(f"{method} {path} unauthorized")
                if response.status >= 400:
                    raise GatewayError(f"{method} {path} failed with HTTP {response.status}: {raw[:200]}")
        except aiohttp.ClientError as exc:
            raise GatewayError(f"{method} {path} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise GatewayError(f"{method} {path} timed out") from exc
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise GatewayError(f"{method} {path} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise GatewayError(f"{method} {path} returned a non-object payload")
        return data

    async def login(self, credentials: Credentials) -> str:
        response = await self._request(
            "POST",
            "/v1/session/start",
            payload={"auth_token": credentials.auth_token, "device_id": credentials.device_id},
            authenticated=False,
        )
        token = response.get("session_token")
        if not isinstance(token, str) or not token:
            raise UnauthorizedError("session start returned no session_token")
        self.session_token = token
        logger.info("session started for device %s", credentials.device_id)
        logger.debug("session response: %s", redact_text(response))
        return token

    async def rooms(self) -> List[RoomInfo]:
        response = await self._request("GET", "/v1/rooms")
        rooms = response.get("rooms", [])
        if not isinstance(rooms, list):
            raise GatewayError("rooms payload is not a list")
        result: List[RoomInfo] = []
        for entry in rooms:
            if not isinstance(entry, dict):
                continue
            room_id = entry.get("room_id")
            if not isinstance(room_id, str) or not room_id:
                continue
            name = entry.get("name")
            result.append(RoomInfo(room_id=room_id, name=str(name) if name else room_id))
        return result

    async def send(self, room_id: str, body: str) -> str:
        txn_id = secrets.token_hex(8)
        response = await self._request(
            "POST",
            "/v1/rooms/send",
            payload={"room_id": room_id, "txn_id": txn_id, "body": body},
        )
        return str(response.get("event_id", ""))

    async def redact(self, room_id: str, event_id: str) -> None:
        await self._request(
            "POST",
            "/v1/rooms/redact",
            payload={"room_id": room_id, "event_id": event_id},
        )

    async def fetch_history(self, room_id: str, from_token: Optional[str], limit: int) -> HistoryPage:
        params = {"room_id": room_id, "limit": str(limit)}
        if from_token is not None:
            params["from"] = from_token
        response = await self._request("GET", "/v1/rooms/messages", params=params)
        chunk = response.get("chunk", [])
        if not isinstance(chunk, list):
            raise GatewayError("history chunk is not a list")
        events = []
        for frame in chunk:
            event = event_from_wire(frame)
            if event is None:
                logger.debug("skipping undecodable history frame in %s", room_id)
                continue
            events.append(event)
        end = response.get("end")
        next_token = end if isinstance(end, str) and end else None
        return HistoryPage(events=events, next_token=next_token)

    async def live_events(self) -> AsyncIterator[TimelineEvent]:
        """Yield decoded events from the live WebSocket until it closes.

        A peer that stops answering heartbeat pings ends the stream, so a
        half-open connection is noticed and the caller can reconnect.
        """

        url = _build_url(self.base_url, "/v1/ws")
        try:
            async with self._http().ws_connect(url, headers=self._auth_headers(), heartbeat=self.heartbeat_s) as ws:
                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        try:
                            frame = json.loads(msg.data)
                        except json.JSONDecodeError:
                            logger.debug("ignoring non-JSON live frame")
                            continue
                        event = event_from_wire(frame)
                        if event is None:
                            logger.debug("ignoring live frame %r", frame.get("t") if isinstance(frame, dict) else None)
                            continue
                        yield event
                    elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                        break
        except aiohttp.WSServerHandshakeError as exc:
            if exc.status == 401:
                raise UnauthorizedError("live stream unauthorized") from exc
            raise GatewayError(f"live stream handshake failed: {exc}") from exc
        except aiohttp.ClientError as exc:
            raise GatewayError(f"live stream failed: {exc}") from exc
