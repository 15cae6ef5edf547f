# =============================================================================
# Unit Tests — LLM Provider Layer
# =============================================================================

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from conftest import ScriptedLLM
from finadvisor.config import settings
from finadvisor.services import llm as llm_module
from finadvisor.services.llm import (
    AnthropicProvider,
    OpenAICompatibleProvider,
    ProviderCallFailed,
    ProviderUnavailable,
    generate,
    get_llm_provider,
)


def _run(coro):
    return asyncio.run(coro)


class TestGenerate:

    def test_returns_text_and_forwards_system(self):
        llm = ScriptedLLM({"router": '{"ok": true}'})
        text = _run(generate(llm, "hello", system="You are a router"))
        assert text == '{"ok": true}'
        assert llm.calls == [("You are a router", "hello")]

    def test_timeout_is_call_failure(self):
        llm = ScriptedLLM({"slow": 1.0})
        with pytest.raises(ProviderCallFailed, match="timed out"):
            _run(generate(llm, "hello", system="slow", timeout=0.05))

    def test_provider_error_is_call_failure(self):
        llm = ScriptedLLM({"x": ConnectionError("reset by peer")})
        with pytest.raises(ProviderCallFailed, match="reset by peer"):
            _run(generate(llm, "hello", system="x"))


class TestProviderConstruction:

    def test_anthropic_without_key(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_api_key", None)
        monkeypatch.setattr(settings, "anthropic_api_key", "")
        with pytest.raises(ProviderUnavailable):
            AnthropicProvider()

    def test_openai_without_key(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_api_key", None)
        monkeypatch.setattr(settings, "openai_api_key", "")
        with pytest.raises(ProviderUnavailable):
            OpenAICompatibleProvider()

    def test_factory_picks_configured_provider(self, monkeypatch):
        monkeypatch.setattr(llm_module, "_provider", None)
        monkeypatch.setattr(settings, "llm_provider", "openai_compatible")
        monkeypatch.setattr(settings, "llm_api_key", "sk-test")

        provider = get_llm_provider()

        assert isinstance(provider, OpenAICompatibleProvider)
        assert get_llm_provider() is provider

    def test_factory_missing_key_raises(self, monkeypatch):
        monkeypatch.setattr(llm_module, "_provider", None)
        monkeypatch.setattr(settings, "llm_provider", "anthropic")
        monkeypatch.setattr(settings, "llm_api_key", None)
        monkeypatch.setattr(settings, "anthropic_api_key", "")
        with pytest.raises(ProviderUnavailable):
            get_llm_provider()


class TestOpenAICompatibleComplete:

    def test_system_prompt_becomes_first_message(self):
        seen = {}

        async def create(**kwargs):
            seen.update(kwargs)
            return SimpleNamespace(
                model="gpt-4o-mini",
                choices=[SimpleNamespace(message=SimpleNamespace(content="{}"))],
                usage=SimpleNamespace(prompt_tokens=12, completion_tokens=3),
            )

        provider = OpenAICompatibleProvider(api_key="sk-test", model="gpt-4o-mini")
        provider._client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=create)),
        )

        response = _run(provider.complete(
            [{"role": "user", "content": "hi"}], system="Be brief", temperature=0.0,
        ))

        assert response.content == "{}"
        assert response.input_tokens == 12
        assert seen["messages"][0] == {"role": "system", "content": "Be brief"}
        assert seen["temperature"] == 0.0
