"""
Options-flow WebSocket client with automatic reconnection.

Handles:
1. WebSocket connection to the flow server
2. Subscription handshake on every successful open
3. Dispatch of every inbound frame into the FlowSession
4. Fixed-delay reconnection after any close or error, without limit

State machine:
    DISCONNECTED -> CONNECTING -> OPEN -> (CLOSED | ERRORED) -> CONNECTING ...

A single supervisor task owns the connection, so at most one socket and
one pending reconnect exist at any time. close() cancels that task.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Sequence

import aiohttp
from loguru import logger

from . import codec
from ..engine.session import FlowSession
from ..types import ConnectionState

DEFAULT_WS_URL = "ws://localhost:3000/ws"
RECONNECT_DELAY_SEC = 3.0

TRANSPORT_ERRORS = (aiohttp.ClientError, OSError, asyncio.TimeoutError)

WsConnect = Callable[[str], Awaitable[Any]]


class FlowClient:
    """
    Async client for the options-flow stream.

    Usage:
        session = FlowSession()
        client = FlowClient(session)
        client.start()
        ...
        await client.close()
    """

    def __init__(
        self,
        session: FlowSession,
        url: str = DEFAULT_WS_URL,
        futures_symbols: Sequence[str] = codec.DEFAULT_FUTURES_SYMBOLS,
        equity_symbols: Sequence[str] = codec.DEFAULT_EQUITY_SYMBOLS,
        reconnect_delay: float = RECONNECT_DELAY_SEC,
        ws_connect: WsConnect | None = None,
        on_state_change: Callable[[ConnectionState], None] | None = None,
    ) -> None:
        self.session = session
        self.url = url
        self.futures_symbols = list(futures_symbols)
        self.equity_symbols = list(equity_symbols)
        self.reconnect_delay = reconnect_delay
        self.on_state_change = on_state_change

        # Injected connector (tests) or aiohttp's ws_connect
        self._ws_connect = ws_connect

        # State
        self.state = ConnectionState.DISCONNECTED
        self.connect_attempts: int = 0
        self.messages_received: int = 0
        self._closed = False
        self._task: asyncio.Task | None = None
        self._ws: Any = None
        self._http: aiohttp.ClientSession | None = None

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        self.state = state
        self.session.connected = state is ConnectionState.OPEN
        if self.on_state_change is not None:
            self.on_state_change(state)

    async def _open_ws(self) -> Any:
        if self._ws_connect is not None:
            return await self._ws_connect(self.url)
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession()
        return await self._http.ws_connect(self.url)

    async def _connect_once(self) -> None:
        """One connection lifetime: connect, subscribe, consume until the socket ends."""
        self.connect_attempts += 1
        self._set_state(ConnectionState.CONNECTING)

        try:
            ws = await self._open_ws()
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Connection to {self.url} failed: {e!r}")
            self._set_state(ConnectionState.ERRORED)
            return

        self._ws = ws
        errored = False
        try:
            self._set_state(ConnectionState.OPEN)
            logger.info(f"Connected to options flow at {self.url}")

            await ws.send_str(codec.subscribe_message(self.futures_symbols, self.equity_symbols))

            async for msg in ws:
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self.messages_received += 1
                    self.session.handle_raw(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.warning(f"WebSocket error: {ws.exception()!r}")
                    errored = True
                    break
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Connection to {self.url} lost: {e!r}")
            errored = True
        finally:
            self._ws = None
            await ws.close()

        self._set_state(ConnectionState.ERRORED if errored else ConnectionState.CLOSED)

    async def _supervise(self) -> None:
        """Connect, and after every close or error wait a fixed delay and connect again."""
        while not self._closed:
            await self._connect_once()
            if self._closed:
                break
            logger.warning(f"Disconnected from options flow - retrying in {self.reconnect_delay:g}s")
            await asyncio.sleep(self.reconnect_delay)

    def start(self) -> asyncio.Task:
        """Spawn the supervisor task (idempotent while it is running)."""
        if self._closed:
            raise RuntimeError("FlowClient is closed")
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._supervise())
        return self._task

    async def run(self) -> None:
        """
        Main run loop. Returns only after close().

        Cancelling the caller cancels the supervisor as well.
        """
        task = self.start()
        try:
            await task
        except asyncio.CancelledError:
            if not self._closed:
                raise

    async def close(self) -> None:
        """Stop reconnecting and close the live socket. Repeated calls are no-ops."""
        if self._closed:
            return
        self._closed = True

        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._http is not None and not self._http.closed:
            await self._http.close()

        self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Options flow client closed")
