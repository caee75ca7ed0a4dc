"""Message builders and websocket fakes shared by the tests."""

import asyncio

import aiohttp
import orjson


def call_msg(conid=100, option_price=1.50, size=10, **extra):
    """CALL trade message as the flow server sends it."""
    msg = {
        "type": "CALL",
        "conid": conid,
        "underlyingConid": 1,
        "optionPrice": option_price,
        "size": size,
        "premium": option_price * size * 100 if option_price is not None and size is not None else 0,
        "direction": "BTO",
        "classifications": ["SWEEP"],
        "stanceLabel": "BULL",
        "confidence": 80,
        "timestamp": 1700000000000,
    }
    msg.update(extra)
    return msg


def print_msg(conid=100, n=0, **extra):
    msg = {
        "type": "PRINT",
        "conid": conid,
        "symbol": "SPY",
        "right": "C",
        "strike": 450.0,
        "expiry": "20250117",
        "tradeSize": n,
        "tradePrice": 1.25,
        "premium": 125.0 * n,
        "aggressor": True,
        "timestamp": 1700000000000 + n,
    }
    msg.update(extra)
    return msg


def quote_msg(conid=100, last=2.00, type_="LIVE_QUOTE", **extra):
    msg = {
        "type": type_,
        "conid": conid,
        "last": last,
        "bid": 1.95,
        "ask": 2.05,
        "volume": 1234,
        "timestamp": 1700000001000,
    }
    msg.update(extra)
    return msg


def raw(msg) -> str:
    return orjson.dumps(msg).decode()


def text_frame(msg) -> aiohttp.WSMessage:
    return aiohttp.WSMessage(aiohttp.WSMsgType.TEXT, raw(msg), None)


class FakeWebSocket:
    """
    Stand-in for aiohttp's ClientWebSocketResponse.

    Yields the given frames, then either ends (server closed the socket)
    or, with hold_open=True, blocks until close() is called.
    """

    def __init__(self, frames=(), hold_open=False):
        self.frames = list(frames)
        self.hold_open = hold_open
        self.sent = []
        self.closed = False
        self.close_calls = 0
        self._released = asyncio.Event()

    async def send_str(self, data):
        self.sent.append(data)

    def exception(self):
        return ConnectionResetError("reset by peer")

    async def close(self):
        self.close_calls += 1
        self.closed = True
        self._released.set()
        return True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame
        if self.hold_open:
            await self._released.wait()


class FakeConnector:
    """
    Injectable ws_connect: hands out prepared sockets in order.

    An exception instance in `sockets` is raised instead of connecting.
    When the list runs out, further attempts get a socket that stays open.
    """

    def __init__(self, sockets):
        self.sockets = list(sockets)
        self.urls = []
        self.handed_out = []
        self.attempted = asyncio.Event()

    async def __call__(self, url):
        self.urls.append(url)
        self.attempted.set()
        item = self.sockets.pop(0) if self.sockets else FakeWebSocket(hold_open=True)
        if isinstance(item, BaseException):
            raise item
        self.handed_out.append(item)
        return item

    async def wait_for_attempts(self, n, timeout=2.0):
        async def _wait():
            while len(self.urls) < n:
                self.attempted.clear()
                await self.attempted.wait()
        await asyncio.wait_for(_wait(), timeout)
