"""
Length-prefixed framing over a datagram socket.

Wire format:
  [4-byte length (uint32, little endian)] [payload bytes]

Constraints:
  - 0 < length <= 64 KiB

The socket may accept or deliver fewer bytes than asked for on any call, so
every transfer goes through a loop that finishes the remaining part. A call
that moves zero bytes means the peer is gone.
"""

from __future__ import annotations

import struct
from typing import Protocol

from rpsnet.common.protocol import Message, decode, encode


HDR = struct.Struct("<I")
MAX_FRAME = 64 * 1024


class FramingError(OSError):
    pass


class ConnectionAborted(FramingError, ConnectionAbortedError):
    pass


class UnexpectedEof(FramingError, EOFError):
    pass


class DatagramSocket(Protocol):
    async def send(self, data: bytes) -> int: ...

    async def recv(self, n: int) -> bytes: ...


async def send_exact(sock: DatagramSocket, buf: bytes) -> None:
    rest = memoryview(buf)
    while rest:
        count = await sock.send(bytes(rest))
        if count == 0:
            raise ConnectionAborted("socket closed")
        rest = rest[count:]


async def recv_exact(sock: DatagramSocket, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = await sock.recv(n - len(buf))
        if not chunk:
            raise UnexpectedEof(f"socket closed after {len(buf)}/{n} bytes")
        buf.extend(chunk)
    return bytes(buf)


async def send_frame(sock: DatagramSocket, payload: bytes) -> None:
    if not payload or len(payload) > MAX_FRAME:
        raise FramingError("bad frame size")
    await send_exact(sock, HDR.pack(len(payload)) + payload)


async def recv_frame(sock: DatagramSocket) -> bytes:
    hdr = await recv_exact(sock, HDR.size)
    (length,) = HDR.unpack(hdr)
    if length == 0 or length > MAX_FRAME:
        raise FramingError("bad length")
    return await recv_exact(sock, length)


async def send_message(sock: DatagramSocket, msg: Message) -> None:
    await send_frame(sock, encode(msg))


async def recv_message(sock: DatagramSocket) -> Message:
    return decode(await recv_frame(sock))
