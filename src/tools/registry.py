from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from agent.errors import ToolArgumentError, UnknownToolError
from tools.base import ToolDescriptor

logger = logging.getLogger(__name__)


class ToolRegistry:
    def __init__(self, tools: Iterable[ToolDescriptor] = ()) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ToolDescriptor) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def __len__(self) -> int:
        return len(self._tools)

    def list_for_prompt(self) -> str:
        if not self._tools:
            return "(no registered tools)"
        return "\n".join(
            f"{tool.name}: {tool.description} | args={tool.args_summary()}"
            for tool in self._tools.values()
        )

    def json_schemas(self) -> List[Dict[str, Any]]:
        return [tool.json_schema() for tool in self._tools.values()]

    def call(self, name: str, **kwargs: Any) -> str:
        tool = self.get(name)
        _check_arguments(tool, kwargs)
        logger.debug("Calling tool %s with %s", name, kwargs)
        return str(tool.call(**kwargs))


def _check_arguments(tool: ToolDescriptor, arguments: Dict[str, Any]) -> None:
    declared = {param.name for param in tool.parameters}
    unexpected = sorted(set(arguments) - declared)
    if unexpected:
        raise ToolArgumentError(
            f"Tool '{tool.name}' got unexpected arguments: {', '.join(unexpected)}"
        )
    missing = [
        param.name for param in tool.parameters if param.required and param.name not in arguments
    ]
    if missing:
        raise ToolArgumentError(
            f"Tool '{tool.name}' is missing required arguments: {', '.join(missing)}"
        )
