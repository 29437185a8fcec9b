from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from agent.protocol import FunctionChoice


def new_session_id() -> str:
    return uuid4().hex


@dataclass
class SessionContext:
    session_id: str
    agent_name: str = "TimeAssistant"
    max_iters: int = 6
    exit_keyword: str = "exit"
    function_choice: FunctionChoice = FunctionChoice.AUTO

    def is_exit_command(self, text: str) -> bool:
        stripped = text.strip()
        return not stripped or stripped.lower() == self.exit_keyword.lower()
