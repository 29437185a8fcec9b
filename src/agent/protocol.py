from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping
from uuid import uuid4

ToolPayload = Dict[str, Any]


class FunctionChoice(str, Enum):
    """How the model may use tools; values are the client's ``tool_choice``."""

    AUTO = "auto"
    FORCED = "required"
    DISABLED = "none"


@dataclass(frozen=True)
class ToolCallRequest:
    name: str
    arguments: ToolPayload = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid4().hex)

    @classmethod
    def from_block(cls, block: Mapping[str, Any]) -> "ToolCallRequest":
        arguments = block.get("input") or {}
        if not isinstance(arguments, Mapping):
            raise ValueError(f"Tool call arguments must be an object, got {type(arguments).__name__}")
        call_id = block.get("id") or uuid4().hex
        return cls(name=str(block.get("name", "")), arguments=dict(arguments), id=str(call_id))


@dataclass(frozen=True)
class ToolCallResult:
    call_id: str
    name: str
    output: str

    @classmethod
    def for_request(cls, request: ToolCallRequest, output: str) -> "ToolCallResult":
        return cls(call_id=request.id, name=request.name, output=output)


@dataclass(frozen=True)
class FinalAnswer:
    text: str

    @classmethod
    def from_result(cls, value: str) -> "FinalAnswer":
        return cls(text=value)
