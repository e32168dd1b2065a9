"""
Line-oriented interactive input for the asyncio event loop.

stdin is attached to the running loop as a read pipe, so waiting for the
next line suspends the current task instead of blocking the thread (and
without handing the read to a worker thread the way `asyncio.to_thread(input)`
would).
"""

from __future__ import annotations

import asyncio
import os
import stat
import sys
from typing import BinaryIO, Optional, Protocol


class LineSource(Protocol):
    async def next_line(self) -> Optional[str]: ...


# Returned in place of a line longer than the reader's limit; matches no command.
OVERLONG_LINE = "<line too long>"


class StreamLines:
    """Reads lines from a StreamReader. End of input is sticky."""

    def __init__(self, reader: asyncio.StreamReader):
        self.reader = reader
        self.eof = False

    async def _read_raw(self) -> Optional[bytes]:
        skipping = False
        while True:
            try:
                raw = await self.reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                raw = e.partial
            except asyncio.LimitOverrunError as e:
                # drop what is buffered of the long line and keep reading to its end
                await self.reader.readexactly(e.consumed)
                skipping = True
                continue
            if skipping:
                return None
            return raw

    async def next_line(self) -> Optional[str]:
        if self.eof:
            return None
        raw = await self._read_raw()
        if raw is None:
            return OVERLONG_LINE
        if not raw:
            self.eof = True
            return None
        return raw.decode("utf-8", errors="replace").strip()


def _selectable(stream: BinaryIO) -> bool:
    mode = os.fstat(stream.fileno()).st_mode
    return stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode) or stream.isatty()


async def open_stdin_lines(stream: Optional[BinaryIO] = None) -> StreamLines:
    stream = stream if stream is not None else sys.stdin.buffer
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    if _selectable(stream):
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, stream)
    else:
        # Regular files and devices like /dev/null can't be watched by the selector; they never block either.
        reader.feed_data(stream.read())
        reader.feed_eof()
    return StreamLines(reader)
