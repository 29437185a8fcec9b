from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from agent.protocol import ToolCallRequest


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class Turn:
    """One utterance in the conversation.

    Tool turns carry the request that produced them so the result can be
    correlated back to the model's call id.
    """

    role: Role
    text: str
    call: Optional[ToolCallRequest] = None

    def __post_init__(self) -> None:
        if (self.role is Role.TOOL) != (self.call is not None):
            raise ValueError("Only tool turns carry a tool call, and tool turns require one.")

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(Role.USER, text)

    @classmethod
    def assistant(cls, text: str) -> "Turn":
        return cls(Role.ASSISTANT, text)

    @classmethod
    def tool(cls, call: ToolCallRequest, output: str) -> "Turn":
        return cls(Role.TOOL, output, call=call)


class ConversationHistory:
    """Append-only log of turns for a single session."""

    def __init__(self) -> None:
        self._turns: List[Turn] = []

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def snapshot(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def roles(self) -> List[Role]:
        return [turn.role for turn in self._turns]

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._turns)

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]


def describe_history(history: ConversationHistory) -> str:
    return json.dumps(
        [{"role": turn.role.value, "text": turn.text} for turn in history],
        ensure_ascii=False,
    )
