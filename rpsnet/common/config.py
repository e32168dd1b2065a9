from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional


RPSNET_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = RPSNET_ROOT / "config.json"
CONFIG_PATH_ENV = "RPSNET_CONFIG"


def config_path() -> Path:
    p = (os.environ.get(CONFIG_PATH_ENV) or "").strip()
    if p:
        return Path(p)
    return DEFAULT_CONFIG_PATH


@lru_cache(maxsize=1)
def load_config() -> dict[str, Any]:
    path = config_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def section(name: str) -> dict[str, Any]:
    cfg = load_config()
    sec = cfg.get(name)
    return sec if isinstance(sec, dict) else {}


def get_str(sec: dict[str, Any], key: str) -> Optional[str]:
    v = sec.get(key)
    if v is None:
        return None
    if isinstance(v, str):
        s = v.strip()
        return s if s else None
    return None


def get_float(sec: dict[str, Any], key: str) -> Optional[float]:
    v = sec.get(key)
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def env_or(env_key: str, fallback: Optional[str]) -> Optional[str]:
    v = (os.environ.get(env_key) or "").strip()
    return v if v else fallback


def env_float(env_key: str) -> Optional[float]:
    v = env_or(env_key, None)
    if v is None:
        return None
    try:
        return float(v)
    except ValueError:
        return None


@dataclass(frozen=True)
class PeerDefaults:
    name: Optional[str]
    self_addr: Optional[str]
    other_addr: Optional[str]
    handshake_delay: Optional[float]


def peer_defaults() -> PeerDefaults:
    """Environment first, then the "peer" section of the config file."""
    sec = section("peer")
    delay = env_float("RPSNET_HANDSHAKE_DELAY")
    return PeerDefaults(
        name=env_or("RPSNET_NAME", get_str(sec, "name")),
        self_addr=env_or("RPSNET_SELF_ADDR", get_str(sec, "selfAddr")),
        other_addr=env_or("RPSNET_OTHER_ADDR", get_str(sec, "otherAddr")),
        handshake_delay=delay if delay is not None else get_float(sec, "handshakeDelay"),
    )
