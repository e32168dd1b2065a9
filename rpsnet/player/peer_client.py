#!/usr/bin/env python3
"""
Rock-paper-scissors peer (one turn, two players, UDP).

Each player runs one peer pointing at the other:
  rpsnet-peer alice 127.0.0.1:44444 127.0.0.1:55555
  rpsnet-peer bob   127.0.0.1:55555 127.0.0.1:44444

Flow: handshake (Hello both ways), then the local move (stdin) and the
opponent's move (socket) are collected concurrently on one event loop,
then the result is printed.

Controls:
- r / p / s and enter to play rock / paper / scissor
- q (or end of input) to quit; the opponent is told with a Leave message
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import sys
from typing import Callable, Dict, List, Optional, Tuple

from rpsnet.common.config import peer_defaults
from rpsnet.common.framing import DatagramSocket, recv_message, send_message
from rpsnet.common.protocol import MAX_NAME_LEN, Act, Action, DecodeError, Hello, Leave, ProtocolViolation, expect
from rpsnet.common.rendezvous import rendezvous
from rpsnet.common.udp import Address, open_channel
from rpsnet.player.rules import TurnOutcome, describe
from rpsnet.player.terminal import LineSource, open_stdin_lines


DEFAULT_HANDSHAKE_DELAY = 3.0

COMMANDS: Dict[str, Optional[Action]] = {
    "r": Action.ROCK,
    "rock": Action.ROCK,
    "p": Action.PAPER,
    "paper": Action.PAPER,
    "s": Action.SCISSOR,
    "scissor": Action.SCISSOR,
    "scissors": Action.SCISSOR,
    "q": None,
    "quit": None,
}

PROMPT = (
    "Enter your move and press enter.",
    "- r: Rock",
    "- p: Paper",
    "- s: Scissor",
    "- q: Quit",
)


class PeerSession:
    def __init__(
        self,
        name: str,
        sock: DatagramSocket,
        lines: LineSource,
        *,
        handshake_delay: float = 0.0,
        out: Callable[[str], None] = print,
    ):
        self.name = name
        self.sock = sock
        self.lines = lines
        self.handshake_delay = handshake_delay
        self.out = out
        self.opponent: Optional[str] = None

    async def handshake(self) -> str:
        # Give the other peer time to bind; a datagram sent before that is lost.
        if self.handshake_delay > 0:
            await asyncio.sleep(self.handshake_delay)
        await send_message(self.sock, Hello(name=self.name))
        msg = expect(await recv_message(self.sock), Hello, phase="handshake")
        self.opponent = msg.name
        self.out(f"{self.opponent} enters the game!")
        return self.opponent

    async def _withdraw(self) -> None:
        await send_message(self.sock, Leave(name=self.name))

    async def my_turn(self) -> Optional[Action]:
        """
        Prompts until a valid move is entered and sends it.

        Returns the action, or None when the player quits or input ends.
        """
        while True:
            for text in PROMPT:
                self.out(text)
            line = await self.lines.next_line()
            if line is None:
                await self._withdraw()
                return None
            cmd = line.lower()
            if cmd not in COMMANDS:
                self.out("Command not understood")
                continue
            action = COMMANDS[cmd]
            if action is None:
                await self._withdraw()
                return None
            await send_message(self.sock, Act(action=action))
            return action

    async def opponents_turn(self) -> Optional[Action]:
        """Returns the opponent's action, or None if they left."""
        msg = expect(await recv_message(self.sock), Act, Leave, phase="turn collection")
        if isinstance(msg, Leave):
            if self.opponent is not None and msg.name != self.opponent:
                raise ProtocolViolation(f"Leave from {msg.name!r}, but the opponent is {self.opponent!r}")
            return None
        return msg.action

    async def collect_turn(self) -> TurnOutcome:
        mine, theirs = await rendezvous(self.my_turn(), self.opponents_turn())
        return TurnOutcome(mine=mine, theirs=theirs)

    async def play(self) -> TurnOutcome:
        await self.handshake()
        outcome = await self.collect_turn()
        for line in describe(outcome, self.opponent or "The opponent"):
            self.out(line)
        return outcome


def parse_addr(text: str) -> Address:
    s = text.strip()
    if s.startswith("["):
        host, sep, rest = s[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise argparse.ArgumentTypeError(f"bad address: {text!r}")
        port_s = rest[1:]
    else:
        host, sep, port_s = s.rpartition(":")
        if not sep or ":" in host:
            raise argparse.ArgumentTypeError(f"bad address: {text!r} (use HOST:PORT)")
    try:
        port = int(port_s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"bad port in {text!r}") from None
    if not host or not (0 <= port <= 65535):
        raise argparse.ArgumentTypeError(f"bad address: {text!r}")
    return host, port


def parse_args(argv: Optional[List[str]] = None):
    defaults = peer_defaults()
    delay = defaults.handshake_delay if defaults.handshake_delay is not None else DEFAULT_HANDSHAKE_DELAY
    ap = argparse.ArgumentParser(prog="rpsnet-peer", description="Play one round of rock-paper-scissors over UDP.")
    ap.add_argument("name", nargs="?", default=defaults.name, help="player name")
    ap.add_argument(
        "self_addr",
        nargs="?",
        type=parse_addr,
        default=defaults.self_addr,
        help="local HOST:PORT to bind, e.g. 127.0.0.1:44444",
    )
    ap.add_argument(
        "other_addr",
        nargs="?",
        type=parse_addr,
        default=defaults.other_addr,
        help="opponent HOST:PORT, e.g. 127.0.0.1:55555",
    )
    ap.add_argument("--delay", type=float, default=delay, help="seconds to wait before the handshake")
    args = ap.parse_args(argv)

    for key in ("name", "self_addr", "other_addr"):
        if getattr(args, key) is None:
            ap.error(f"missing {key.upper()} (argument, RPSNET_{key.upper()} or config)")
    if not args.name.strip():
        ap.error("name must not be empty")
    if len(args.name) > MAX_NAME_LEN:
        ap.error(f"name too long (max {MAX_NAME_LEN})")
    if args.delay < 0:
        ap.error("--delay must be >= 0")
    return args


async def amain(args: argparse.Namespace) -> int:
    try:
        sock = await open_channel(args.self_addr, args.other_addr)
    except OSError as e:
        print(f"[ERR] cannot open socket: {e}", flush=True)
        return 1
    print(f"[Peer] bound {_fmt(sock.local_addr)} -> {_fmt(sock.remote_addr)}", flush=True)

    try:
        lines = await open_stdin_lines()
        session = PeerSession(args.name, sock, lines, handshake_delay=args.delay)
        await session.play()
    except (OSError, DecodeError, ProtocolViolation) as e:
        print(f"[ERR] {type(e).__name__}: {e}", flush=True)
        return 1
    finally:
        with contextlib.suppress(Exception):
            sock.close()
    return 0


def _fmt(addr: Tuple[str, int]) -> str:
    host, port = addr
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(amain(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
