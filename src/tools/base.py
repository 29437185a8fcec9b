from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

ToolCallable = Callable[..., str]


@dataclass(frozen=True)
class ToolParameter:
    name: str
    description: str
    type: str = "string"
    required: bool = True


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    func: ToolCallable
    parameters: List[ToolParameter] = field(default_factory=list)

    def call(self, **kwargs: Any) -> str:
        return self.func(**kwargs)

    def args_summary(self) -> Dict[str, str]:
        return {param.name: param.type for param in self.parameters}

    def json_schema(self) -> Dict[str, Any]:
        """Render the descriptor as an OpenAI-style function schema."""
        properties = {
            param.name: {"type": param.type, "description": param.description}
            for param in self.parameters
        }
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": [param.name for param in self.parameters if param.required],
                },
            },
        }
