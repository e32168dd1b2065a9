"""
Peer-to-peer rock-paper-scissors messages and their wire codec.

Body encoding (compact UTF-8 JSON, externally tagged):
  {"Hello": {"name": "alice"}}
  {"Leave": {"name": "alice"}}
  {"Act": 0}                      # 0=rock, 1=paper, 2=scissor
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Dict, Union


class DecodeError(ValueError):
    pass


class ProtocolViolation(Exception):
    pass


class Action(enum.IntEnum):
    ROCK = 0
    PAPER = 1
    SCISSOR = 2


@dataclass(frozen=True)
class Hello:
    name: str


@dataclass(frozen=True)
class Leave:
    name: str


@dataclass(frozen=True)
class Act:
    action: Action


Message = Union[Hello, Leave, Act]

MAX_NAME_LEN = 32


def _to_obj(msg: Message) -> Dict[str, Any]:
    if isinstance(msg, Hello):
        return {"Hello": {"name": msg.name}}
    if isinstance(msg, Leave):
        return {"Leave": {"name": msg.name}}
    if isinstance(msg, Act):
        return {"Act": int(msg.action)}
    raise TypeError(f"not a message: {msg!r}")


def encode(msg: Message) -> bytes:
    return json.dumps(_to_obj(msg), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _require(d: Dict[str, Any], key: str) -> Any:
    if key not in d:
        raise DecodeError(f"missing:{key}")
    return d[key]


def _name_of(body: Any, tag: str) -> str:
    if not isinstance(body, dict):
        raise DecodeError(f"bad:{tag}")
    name = _require(body, "name")
    if not isinstance(name, str):
        raise DecodeError(f"bad:{tag}.name")
    return name


def _action_of(raw: Any) -> Action:
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise DecodeError("bad:Act")
    try:
        return Action(raw)
    except ValueError:
        raise DecodeError(f"bad_action:{raw}") from None


def decode(data: bytes) -> Message:
    try:
        obj = json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DecodeError(f"bad_utf8:{e.reason}") from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"bad_json:{e.msg}") from e

    if not isinstance(obj, dict) or len(obj) != 1:
        raise DecodeError("bad_message")
    ((tag, body),) = obj.items()
    if tag == "Hello":
        return Hello(name=_name_of(body, tag))
    if tag == "Leave":
        return Leave(name=_name_of(body, tag))
    if tag == "Act":
        return Act(action=_action_of(body))
    raise DecodeError(f"unknown_variant:{tag}")


def variant_name(msg: Message) -> str:
    return type(msg).__name__


def expect(msg: Message, *variants: type, phase: str) -> Message:
    """
    Returns `msg` if its variant is accepted in `phase`, otherwise raises
    ProtocolViolation.
    """
    if isinstance(msg, variants):
        return msg
    allowed = "/".join(v.__name__ for v in variants)
    raise ProtocolViolation(f"unexpected {variant_name(msg)} during {phase} (want {allowed})")
