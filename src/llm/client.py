from __future__ import annotations

import logging
import os
import re
from typing import Any, Mapping, Protocol, Sequence
from uuid import uuid4

from agentscope.formatter import OllamaChatFormatter, OpenAIChatFormatter
from agentscope.message import TextBlock, ToolUseBlock
from agentscope.model import OllamaChatModel, OpenAIChatModel
from dotenv import load_dotenv

from agent.prompt_builder import UNKNOWN_CITY_REPLY
from tools.world_time import TOOL_NAME

logger = logging.getLogger(__name__)

PromptBlock = Mapping[str, Any]

DEFAULT_OLLAMA_MODEL = "llama3.2:3b"
DEFAULT_OLLAMA_HOST = "http://localhost:11434"

_NO_MAPPING_MARKER = "don't have the timezone mapping"
_CITY_PATTERN = re.compile(
    r"\b(?:in|for|at)\s+([A-Za-z][A-Za-z.'-]*(?:\s+[A-Za-z][A-Za-z.'-]*)?)", re.IGNORECASE
)


class ModelResponse:
    def __init__(self, content: Sequence[Mapping[str, Any]], metadata: Mapping[str, Any] | None = None) -> None:
        self.content = list(content)
        self.metadata = metadata or {}


class ChatModel(Protocol):
    stream: bool

    async def __call__(
        self,
        messages: Sequence[PromptBlock],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
        **kwargs: Any,
    ) -> Any:
        ...


class MockModel:
    """Offline model that asks for the time tool whenever a place is named."""

    stream = False
    fallback_text = "Ask me about the time in a city, for example: what time is it in Tokyo?"

    async def __call__(
        self,
        messages: Sequence[PromptBlock],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
        **kwargs: Any,
    ) -> ModelResponse:
        if messages and messages[-1].get("role") == "tool":
            return ModelResponse([self._build_text_block(self._phrase_tool_result(messages[-1]))])
        user_text = self._extract_latest_user_text(messages)
        city = self._extract_city(user_text)
        if city and tool_choice != "none" and self._offers_tool(tools):
            return ModelResponse([self._build_tool_use(TOOL_NAME, {"city": city})])
        return ModelResponse([self._build_text_block(self.fallback_text)])

    def _phrase_tool_result(self, message: PromptBlock) -> str:
        output = self._content_text(message.get("content"))
        if _NO_MAPPING_MARKER in output:
            return UNKNOWN_CITY_REPLY
        return output

    def _extract_latest_user_text(self, messages: Sequence[PromptBlock]) -> str:
        for message in reversed(messages):
            if message.get("role") != "user":
                continue
            text = self._content_text(message.get("content"))
            if text:
                return text
        return ""

    def _content_text(self, content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            texts = [block.get("text") for block in content if isinstance(block, dict) and block.get("text")]
            return "\n".join(texts)
        return ""

    def _extract_city(self, text: str) -> str | None:
        # The last "in/for/at X" wins: "at the moment in London" -> "London".
        matches = _CITY_PATTERN.findall(text)
        if not matches:
            return None
        return matches[-1].strip(" .'-")

    def _offers_tool(self, tools: list[dict] | None) -> bool:
        if tools is None:
            return True
        return any(tool.get("function", {}).get("name") == TOOL_NAME for tool in tools)

    def _build_tool_use(self, name: str, args: Mapping[str, Any]) -> ToolUseBlock:
        return ToolUseBlock(type="tool_use", id=uuid4().hex, name=name, input=dict(args))

    def _build_text_block(self, text: str) -> TextBlock:
        return TextBlock(type="text", text=text)


def build_model_from_env() -> ChatModel:
    load_dotenv(override=False)
    provider = os.environ.get("AGENTSCOPE_MODEL", "").strip().lower()
    if not provider:
        logger.info("AGENTSCOPE_MODEL is not set; using the offline mock model")
        return MockModel()
    model_name = os.environ.get("AGENTSCOPE_MODEL_NAME", "").strip()
    base_url = os.environ.get("AGENTSCOPE_BASE_URL", "").strip()
    if provider == "openai":
        if not model_name:
            raise ValueError("AGENTSCOPE_MODEL_NAME is required when AGENTSCOPE_MODEL=openai.")
        api_key = os.environ.get("AGENTSCOPE_API_KEY")
        client_kwargs = {"base_url": base_url} if base_url else None
        logger.debug("Building OpenAI chat model %s", model_name)
        return OpenAIChatModel(
            model_name=model_name,
            api_key=api_key,
            stream=False,
            client_kwargs=client_kwargs,
        )
    if provider == "ollama":
        logger.debug("Building Ollama chat model %s", model_name or DEFAULT_OLLAMA_MODEL)
        return OllamaChatModel(
            model_name=model_name or DEFAULT_OLLAMA_MODEL,
            stream=False,
            host=base_url or DEFAULT_OLLAMA_HOST,
        )
    raise ValueError(f"Unsupported AGENTSCOPE_MODEL provider: {provider}")


def build_formatter_for(model: ChatModel) -> Any:
    """Pick the agentscope formatter that renders messages for ``model``'s provider."""
    if isinstance(model, OllamaChatModel):
        return OllamaChatFormatter()
    return OpenAIChatFormatter()


def supports_tool_choice(model: ChatModel) -> bool:
    # Ollama ignores tool_choice and warns on every call.
    return not isinstance(model, OllamaChatModel)
