from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, Optional

from rpsnet.common.protocol import Action


class Verdict(enum.Enum):
    TIE = "tie"
    WIN = "win"
    LOSE = "lose"


# action -> the action it beats
BEATS: Dict[Action, Action] = {
    Action.ROCK: Action.SCISSOR,
    Action.PAPER: Action.ROCK,
    Action.SCISSOR: Action.PAPER,
}

ACTION_NAMES: Dict[Action, str] = {
    Action.ROCK: "rock",
    Action.PAPER: "paper",
    Action.SCISSOR: "scissor",
}


@dataclass(frozen=True)
class TurnOutcome:
    mine: Optional[Action]
    theirs: Optional[Action]


def action_name(action: Action) -> str:
    return ACTION_NAMES[action]


def judge(mine: Action, theirs: Action) -> Verdict:
    if mine == theirs:
        return Verdict.TIE
    if BEATS[mine] == theirs:
        return Verdict.WIN
    return Verdict.LOSE


def describe(outcome: TurnOutcome, opponent: str) -> List[str]:
    """User-facing result lines for one finished turn."""
    if outcome.mine is None:
        return ["You quit. Loser!"]
    if outcome.theirs is None:
        return [f"You play {action_name(outcome.mine)}.", f"{opponent} quit. You win!"]

    mine, theirs = outcome.mine, outcome.theirs
    lines = [f"You play {action_name(mine)}.", f"{opponent} plays {action_name(theirs)}."]
    verdict = judge(mine, theirs)
    if verdict is Verdict.TIE:
        lines.append("Fair.")
    elif verdict is Verdict.WIN:
        lines.append(f"{action_name(mine).capitalize()} beats {action_name(theirs)}. You win!")
    else:
        lines.append(f"{action_name(theirs).capitalize()} beats {action_name(mine)}. You lose!")
    return lines
