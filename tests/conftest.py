from __future__ import annotations

import asyncio
import contextlib
import socket
from typing import Iterable, List, Optional

import pytest

from rpsnet.common import config


class MemorySocket:
    """
    In-memory stand-in for a connected datagram socket.

    `send_limit` / `recv_limit` cap how many bytes a single call moves, to
    exercise partial transfers. Linked sockets deliver to each other.
    """

    def __init__(self, send_limit: Optional[int] = None, recv_limit: Optional[int] = None):
        self.send_limit = send_limit
        self.recv_limit = recv_limit
        self.peer: Optional[MemorySocket] = None
        self.sent = bytearray()
        self.send_calls = 0
        self.recv_calls = 0
        self.accept_nothing = False
        self._inbox = bytearray()
        self._eof = False
        self._waiter: Optional[asyncio.Future] = None

    def _wake(self) -> None:
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    def feed(self, data: bytes) -> None:
        self._inbox.extend(data)
        self._wake()

    def feed_eof(self) -> None:
        self._eof = True
        self._wake()

    async def send(self, data: bytes) -> int:
        self.send_calls += 1
        if self.accept_nothing:
            return 0
        n = len(data) if self.send_limit is None else min(self.send_limit, len(data))
        chunk = bytes(data[:n])
        self.sent.extend(chunk)
        if self.peer is not None:
            self.peer.feed(chunk)
        return n

    async def recv(self, n: int) -> bytes:
        while not self._inbox:
            if self._eof:
                return b""
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None
        self.recv_calls += 1
        take = n if self.recv_limit is None else min(n, self.recv_limit)
        out = bytes(self._inbox[:take])
        del self._inbox[:take]
        return out


class ScriptedLines:
    """Line source fed by the test; `None` marks end of input."""

    def __init__(self, lines: Iterable[Optional[str]] = ()):
        self._lines: List[Optional[str]] = list(lines)
        self._waiter: Optional[asyncio.Future] = None
        self.reads = 0

    def push(self, line: Optional[str]) -> None:
        self._lines.append(line)
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    async def next_line(self) -> Optional[str]:
        while not self._lines:
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None
        self.reads += 1
        return self._lines.pop(0)


def link(a: MemorySocket, b: MemorySocket) -> None:
    a.peer = b
    b.peer = a


@pytest.fixture
def memory_socket():
    return MemorySocket


@pytest.fixture
def scripted_lines():
    return ScriptedLines


@pytest.fixture
def socket_pair():
    def make(**kwargs):
        a, b = MemorySocket(**kwargs), MemorySocket(**kwargs)
        link(a, b)
        return a, b

    return make


@pytest.fixture
def free_port():
    def pick() -> int:
        with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_DGRAM)) as s:
            s.bind(("127.0.0.1", 0))
            return s.getsockname()[1]

    return pick


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setenv(config.CONFIG_PATH_ENV, str(tmp_path / "missing-config.json"))
    for key in ("RPSNET_NAME", "RPSNET_SELF_ADDR", "RPSNET_OTHER_ADDR", "RPSNET_HANDSHAKE_DELAY"):
        monkeypatch.delenv(key, raising=False)
    config.load_config.cache_clear()
    yield
    config.load_config.cache_clear()
