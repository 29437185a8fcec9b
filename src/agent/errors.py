from __future__ import annotations


class AgentError(Exception):
    """Base class for errors that fail a single conversation turn."""


class ModelServiceError(AgentError):
    """The chat model could not be reached or returned an unusable response."""


class UnknownToolError(AgentError, KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Tool '{self.name}' is not registered"


class ToolArgumentError(AgentError):
    """A tool call carried arguments that do not match the tool's parameters."""


# Raised and handled inside the time tool; they never reach the agent loop.


class UnsupportedCityError(LookupError):
    def __init__(self, city: str) -> None:
        super().__init__(city)
        self.city = city


class TimezoneResolutionError(Exception):
    def __init__(self, timezone_id: str, reason: str) -> None:
        super().__init__(f"{timezone_id}: {reason}")
        self.timezone_id = timezone_id
        self.reason = reason
