from __future__ import annotations

import os
import unittest
from pathlib import Path
from unittest.mock import patch

import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from agentscope.formatter import OllamaChatFormatter, OpenAIChatFormatter
from agentscope.model import OllamaChatModel

from llm.client import (
    DEFAULT_OLLAMA_HOST,
    DEFAULT_OLLAMA_MODEL,
    MockModel,
    build_formatter_for,
    build_model_from_env,
    supports_tool_choice,
)


class LlmClientTests(unittest.TestCase):
    def test_build_model_from_env_returns_mock_when_provider_missing(self) -> None:
        with patch("llm.client.load_dotenv") as mock_load_dotenv:
            with patch.dict(os.environ, {}, clear=True):
                model = build_model_from_env()
        self.assertIsInstance(model, MockModel)
        mock_load_dotenv.assert_called_once_with(override=False)

    def test_build_model_from_env_requires_model_name_for_openai(self) -> None:
        with patch("llm.client.load_dotenv"):
            with patch.dict(
                os.environ,
                {"AGENTSCOPE_MODEL": "openai", "AGENTSCOPE_API_KEY": "k"},
                clear=True,
            ):
                with self.assertRaises(ValueError):
                    build_model_from_env()

    def test_build_model_from_env_builds_openai_model(self) -> None:
        calls: list[dict] = []

        class FakeOpenAIChatModel:
            def __init__(self, **kwargs) -> None:
                calls.append(kwargs)

        with patch("llm.client.load_dotenv") as mock_load_dotenv:
            with patch("llm.client.OpenAIChatModel", FakeOpenAIChatModel):
                with patch.dict(
                    os.environ,
                    {
                        "AGENTSCOPE_MODEL": "OpenAI",
                        "AGENTSCOPE_MODEL_NAME": "gpt-4o-mini",
                        "AGENTSCOPE_API_KEY": "k",
                        "AGENTSCOPE_BASE_URL": "https://example.com/v1",
                    },
                    clear=True,
                ):
                    model = build_model_from_env()

        self.assertIsInstance(model, FakeOpenAIChatModel)
        mock_load_dotenv.assert_called_once_with(override=False)
        self.assertEqual(calls[0]["model_name"], "gpt-4o-mini")
        self.assertEqual(calls[0]["api_key"], "k")
        self.assertEqual(calls[0]["stream"], False)
        self.assertEqual(calls[0]["client_kwargs"], {"base_url": "https://example.com/v1"})

    def test_build_model_from_env_builds_ollama_model_with_defaults(self) -> None:
        calls: list[dict] = []

        class FakeOllamaChatModel:
            def __init__(self, **kwargs) -> None:
                calls.append(kwargs)

        with patch("llm.client.load_dotenv"):
            with patch("llm.client.OllamaChatModel", FakeOllamaChatModel):
                with patch.dict(os.environ, {"AGENTSCOPE_MODEL": "ollama"}, clear=True):
                    model = build_model_from_env()

        self.assertIsInstance(model, FakeOllamaChatModel)
        self.assertEqual(calls[0]["model_name"], DEFAULT_OLLAMA_MODEL)
        self.assertEqual(calls[0]["host"], DEFAULT_OLLAMA_HOST)
        self.assertEqual(calls[0]["stream"], False)

    def test_build_model_from_env_rejects_unknown_provider(self) -> None:
        with patch("llm.client.load_dotenv"):
            with patch.dict(
                os.environ,
                {"AGENTSCOPE_MODEL": "acme", "AGENTSCOPE_MODEL_NAME": "m"},
                clear=True,
            ):
                with self.assertRaises(ValueError) as ctx:
                    build_model_from_env()
        self.assertIn("acme", str(ctx.exception))


class ProviderCapabilityTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ollama_model = OllamaChatModel(
            model_name=DEFAULT_OLLAMA_MODEL, stream=False, host=DEFAULT_OLLAMA_HOST
        )

    def test_ollama_gets_the_ollama_formatter(self) -> None:
        self.assertIsInstance(build_formatter_for(self.ollama_model), OllamaChatFormatter)

    def test_other_models_get_the_openai_formatter(self) -> None:
        self.assertIsInstance(build_formatter_for(MockModel()), OpenAIChatFormatter)

    def test_tool_choice_is_withheld_from_ollama(self) -> None:
        self.assertFalse(supports_tool_choice(self.ollama_model))
        self.assertTrue(supports_tool_choice(MockModel()))


if __name__ == "__main__":
    unittest.main()
