from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence, cast

from agentscope.message import Msg, ToolResultBlock, ToolUseBlock

from agent.errors import ModelServiceError
from agent.history import ConversationHistory, Role, Turn
from agent.prompt_builder import build_sys_prompt
from agent.protocol import FinalAnswer, FunctionChoice, ToolCallRequest, ToolCallResult
from llm.client import ChatModel, build_formatter_for, build_model_from_env, supports_tool_choice
from runtime.session import SessionContext, new_session_id
from tools.registry import ToolRegistry
from tools.world_time import CityTimeTool

logger = logging.getLogger(__name__)


def _normalize_response_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, Mapping):
        text = content.get("text")
        return str(text) if text is not None else ""
    if isinstance(content, list):
        texts = [
            str(block.get("text"))
            for block in content
            if isinstance(block, Mapping)
            and block.get("type", "text") == "text"
            and block.get("text") is not None
        ]
        return "\n".join(texts)
    if content is None:
        return ""
    return str(content)


def _parse_model_response(response: Any) -> FinalAnswer | List[ToolCallRequest]:
    content = getattr(response, "content", None)
    if content is None:
        raise ModelServiceError("Model response carried no content.")
    if isinstance(content, list):
        tool_blocks = [
            block
            for block in content
            if isinstance(block, Mapping) and block.get("type") == "tool_use"
        ]
        if tool_blocks:
            try:
                return [ToolCallRequest.from_block(block) for block in tool_blocks]
            except ValueError as exc:
                raise ModelServiceError(f"Malformed tool call from model: {exc}") from exc
    text = _normalize_response_text(content).strip()
    if not text:
        raise ModelServiceError("Model returned an empty response.")
    return FinalAnswer.from_result(text)


def _turn_to_msgs(turn: Turn, agent_name: str) -> List[Msg]:
    if turn.role is Role.USER:
        return [Msg(name="user", content=turn.text, role="user")]
    if turn.role is Role.ASSISTANT:
        return [Msg(name=agent_name, content=turn.text, role="assistant")]
    call = cast(ToolCallRequest, turn.call)
    tool_use = ToolUseBlock(type="tool_use", id=call.id, name=call.name, input=dict(call.arguments))
    tool_result = ToolResultBlock(type="tool_result", id=call.id, name=call.name, output=turn.text)
    return [
        Msg(name=agent_name, content=[tool_use], role="assistant"),
        Msg(name="system", content=[tool_result], role="system"),
    ]


class AgentLoop:
    """Drives one conversation: model evaluation, tool dispatch, finalization.

    A turn that fails keeps whatever user and tool turns were already recorded
    and never appends an assistant turn.
    """

    def __init__(
        self,
        model: ChatModel,
        registry: ToolRegistry,
        ctx: SessionContext | None = None,
        formatter: Any = None,
    ) -> None:
        self.model = model
        self.registry = registry
        self.ctx = ctx or SessionContext(session_id=new_session_id())
        self.formatter = formatter or build_formatter_for(model)
        self.sys_prompt = build_sys_prompt(registry.list_for_prompt())
        self.history = ConversationHistory()

    async def respond(self, user_text: str) -> str:
        self.history.append(Turn.user(user_text))
        for _ in range(self.ctx.max_iters):
            outcome = await self._call_model()
            if isinstance(outcome, FinalAnswer):
                self.history.append(Turn.assistant(outcome.text))
                logger.info("Session %s: answered (%d turns)", self.ctx.session_id, len(self.history))
                return outcome.text
            for request in outcome:
                result = self.dispatch(request)
                self.history.append(Turn.tool(request, result.output))
        raise ModelServiceError(
            f"No final answer from the model after {self.ctx.max_iters} calls."
        )

    def dispatch(self, request: ToolCallRequest) -> ToolCallResult:
        logger.debug("Dispatching %s(%s) [%s]", request.name, request.arguments, request.id)
        output = self.registry.call(request.name, **request.arguments)
        return ToolCallResult.for_request(request, output)

    async def format_messages(self) -> Sequence[Mapping[str, Any]]:
        msgs = [Msg(name="system", content=self.sys_prompt, role="system")]
        for turn in self.history:
            msgs.extend(_turn_to_msgs(turn, self.ctx.agent_name))
        return await self.formatter.format(msgs)

    async def _call_model(self) -> FinalAnswer | List[ToolCallRequest]:
        messages = await self.format_messages()
        logger.debug(
            "Calling model with %d messages (tool_choice=%s)",
            len(messages),
            self.ctx.function_choice.value,
        )
        try:
            response = await self.model(messages, **self._tool_kwargs())
        except Exception as exc:
            raise ModelServiceError(f"Model call failed: {exc}") from exc
        return _parse_model_response(response)

    def _tool_kwargs(self) -> Dict[str, Any]:
        choice = self.ctx.function_choice
        if supports_tool_choice(self.model):
            return {"tools": self.registry.json_schemas(), "tool_choice": choice.value}
        # Without tool_choice the only way to forbid calls is to offer no tools.
        if choice is FunctionChoice.DISABLED:
            return {"tools": None}
        return {"tools": self.registry.json_schemas()}


def build_registry(tool: CityTimeTool | None = None) -> ToolRegistry:
    return ToolRegistry([(tool or CityTimeTool()).descriptor()])


def build_agent(ctx: SessionContext, model: ChatModel | None = None) -> AgentLoop:
    if model is None:
        model = build_model_from_env()
    return AgentLoop(
        model=model,
        registry=build_registry(),
        ctx=ctx,
        formatter=build_formatter_for(model),
    )

