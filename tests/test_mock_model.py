from __future__ import annotations

from pathlib import Path

import pytest

import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from llm.client import MockModel

_TIME_TOOL = [{"type": "function", "function": {"name": "GetCityTime"}}]


@pytest.fixture
def model():
    return MockModel()


class TestMockModelCityIntent:
    @pytest.mark.asyncio
    async def test_requests_time_tool_for_named_city(self, model: MockModel) -> None:
        prompt = [{"role": "user", "content": [{"type": "text", "text": "What time is it in Zurich?"}]}]
        response = await model(prompt, tools=_TIME_TOOL, tool_choice="auto")
        assert response.content[0]["type"] == "tool_use"
        assert response.content[0]["name"] == "GetCityTime"
        assert response.content[0]["input"] == {"city": "Zurich"}

    @pytest.mark.asyncio
    async def test_extracts_two_word_city(self, model: MockModel) -> None:
        prompt = [{"role": "user", "content": "and the time in new york?"}]
        response = await model(prompt)
        assert response.content[0]["input"] == {"city": "new york"}

    @pytest.mark.asyncio
    async def test_last_place_phrase_wins(self, model: MockModel) -> None:
        prompt = [{"role": "user", "content": [{"text": "What is the time at the moment in London"}]}]
        response = await model(prompt)
        assert response.content[0]["input"] == {"city": "London"}

    @pytest.mark.asyncio
    async def test_respects_disabled_tool_choice(self, model: MockModel) -> None:
        prompt = [{"role": "user", "content": "time in Tokyo"}]
        response = await model(prompt, tools=_TIME_TOOL, tool_choice="none")
        assert response.content[0]["type"] == "text"

    @pytest.mark.asyncio
    async def test_needs_time_tool_to_be_offered(self, model: MockModel) -> None:
        prompt = [{"role": "user", "content": "time in Tokyo"}]
        other_tools = [{"type": "function", "function": {"name": "GetWeather"}}]
        response = await model(prompt, tools=other_tools)
        assert response.content[0]["type"] == "text"


class TestMockModelToolResults:
    @pytest.mark.asyncio
    async def test_repeats_tool_result(self, model: MockModel) -> None:
        prompt = [
            {"role": "user", "content": "time in Tokyo"},
            {"role": "tool", "tool_call_id": "c1", "content": "It is 21:05 in Tokyo."},
        ]
        response = await model(prompt)
        assert response.content == [{"type": "text", "text": "It is 21:05 in Tokyo."}]

    @pytest.mark.asyncio
    async def test_missing_mapping_becomes_i_dont_know(self, model: MockModel) -> None:
        prompt = [
            {
                "role": "tool",
                "tool_call_id": "c1",
                "content": "I'm sorry, I don't have the timezone mapping for Paris in my database.",
            }
        ]
        response = await model(prompt)
        assert response.content[0]["text"] == "I don't know."


class TestMockModelFallback:
    @pytest.mark.asyncio
    async def test_returns_text_without_a_place(self, model: MockModel) -> None:
        prompt = [{"role": "user", "content": [{"text": "tell me a joke"}]}]
        response = await model(prompt)
        assert response.content[0]["type"] == "text"
        assert "Tokyo" in response.content[0]["text"]

    @pytest.mark.asyncio
    async def test_handles_empty_prompt(self, model: MockModel) -> None:
        response = await model([])
        assert response.content[0]["type"] == "text"

    @pytest.mark.asyncio
    async def test_ignores_assistant_messages(self, model: MockModel) -> None:
        prompt = [
            {"role": "assistant", "content": [{"text": "what time is it in Tokyo"}]},
            {"role": "user", "content": [{"text": "hello"}]},
        ]
        response = await model(prompt)
        assert response.content[0]["type"] == "text"
