"""
Connected UDP endpoint with a byte-stream style send/recv pair.

A receive asks for `n` bytes and gets at most `n`; whatever is left of the
current datagram stays buffered for the next call. A zero-length datagram or
a closed endpoint reads as b"".
"""

from __future__ import annotations

import asyncio
import collections
import contextlib
from typing import Deque, Optional, Tuple


Address = Tuple[str, int]

# Largest UDP payload over IPv4.
MAX_DATAGRAM = 65507


class _PeerProtocol(asyncio.DatagramProtocol):
    def __init__(self, channel: "DatagramChannel"):
        self.channel = channel

    def connection_made(self, transport):
        self.channel._transport = transport

    def datagram_received(self, data: bytes, addr):
        self.channel._feed(data)

    def error_received(self, exc: Exception):
        self.channel._fail(exc)

    def connection_lost(self, exc: Optional[Exception]):
        self.channel._closed = True
        self.channel._wake()


class DatagramChannel:
    def __init__(self):
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._datagrams: Deque[bytes] = collections.deque()
        self._pending = b""
        self._error: Optional[Exception] = None
        self._closed = False
        self._waiter: Optional[asyncio.Future] = None

    def _extra(self, key: str) -> Address:
        info = self._transport.get_extra_info(key) if self._transport is not None else None
        if not info:
            raise OSError("not connected")
        return info[:2]

    @property
    def local_addr(self) -> Address:
        return self._extra("sockname")

    @property
    def remote_addr(self) -> Address:
        return self._extra("peername")

    @property
    def closed(self) -> bool:
        return self._closed

    def _wake(self):
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    def _feed(self, data: bytes):
        self._datagrams.append(bytes(data))
        self._wake()

    def _fail(self, exc: Exception):
        self._error = exc
        self._wake()

    async def send(self, data: bytes) -> int:
        if self._closed or self._transport is None or self._transport.is_closing():
            return 0
        chunk = data[:MAX_DATAGRAM]
        self._transport.sendto(chunk)
        return len(chunk)

    async def recv(self, n: int) -> bytes:
        while True:
            if self._pending:
                out, self._pending = self._pending[:n], self._pending[n:]
                return out
            if self._error is not None:
                exc, self._error = self._error, None
                raise exc
            if self._datagrams:
                data = self._datagrams.popleft()
                if not data:
                    return b""
                self._pending = data
                continue
            if self._closed:
                return b""
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None

    def close(self):
        self._closed = True
        if self._transport is not None:
            with contextlib.suppress(Exception):
                self._transport.close()
        self._wake()


async def open_channel(local: Address, remote: Address) -> DatagramChannel:
    """
    Binds to `local` and associates the socket with `remote`; the kernel
    drops datagrams from any other source.
    """
    loop = asyncio.get_running_loop()
    channel = DatagramChannel()
    await loop.create_datagram_endpoint(lambda: _PeerProtocol(channel), local_addr=local, remote_addr=remote)
    return channel
