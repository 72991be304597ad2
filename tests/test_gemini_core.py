import asyncio
import json
from types import SimpleNamespace

import google.generativeai as genai
import pytest
from google.api_core import exceptions as google_exceptions

from mavericks.ai.gemini_core import GeminiProvider, build_prompt, parse_json_object
from mavericks.core.errors import ContentGenerationError


def response(text):
    usage = SimpleNamespace(prompt_token_count=12, candidates_token_count=30)
    return SimpleNamespace(text=text, usage_metadata=usage)


class ScriptedModel:
    """Stands in for _call_model; each entry is a reply text or an exception"""

    def __init__(self, script):
        self.script = list(script)
        self.keys_used = []

    async def __call__(self, api_key, prompt, schema):
        self.keys_used.append(api_key)
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return response(step)


def provider_with(monkeypatch, script, keys=("k1", "k2", "k3")):
    provider = GeminiProvider(list(keys))
    model = ScriptedModel(script)
    monkeypatch.setattr(provider, "_call_model", model)
    return provider, model


# ==================== PARSING ====================

def test_parse_plain_json():
    assert parse_json_object('{"starter_code": "pass"}') == {"starter_code": "pass"}


def test_parse_json_wrapped_in_fences_and_prose():
    raw = 'Here you go:\n```json\n{"error": "", "test_results": []}\n```\nGood luck!'
    assert parse_json_object(raw) == {"error": "", "test_results": []}


@pytest.mark.parametrize("raw", ["", "   ", "no json here", "{not: valid}"])
def test_parse_rejects_unusable_output(raw):
    with pytest.raises(ContentGenerationError):
        parse_json_object(raw)


# ==================== PROMPTS ====================

def test_build_prompt_fills_parameters():
    prompt = build_prompt("starter_code", {
        "question_text": "Parcel Router", "description": "Route parcels", "language": "Rust",
    })
    assert "Parcel Router" in prompt
    assert "Rust" in prompt


def test_build_prompt_rejects_unknown_kind_and_missing_params():
    with pytest.raises(ValueError):
        build_prompt("poem", {})
    with pytest.raises(ValueError):
        build_prompt("starter_code", {"language": "Rust"})


# ==================== KEY ROTATION ====================

def test_provider_needs_a_key():
    with pytest.raises(ValueError):
        GeminiProvider([])


async def test_generate_returns_parsed_json_and_counts_tokens(monkeypatch):
    provider, model = provider_with(monkeypatch, ['{"starter_code": "fn main() {}"}'])

    result = await provider.generate("starter_code", {
        "question_text": "q", "description": "d", "language": "Rust",
    })

    assert result == {"starter_code": "fn main() {}"}
    usage = provider.usage()[0]
    assert usage["requests"] == 1
    assert usage["tokens"] == {"input_tokens": 12, "output_tokens": 30}


async def test_calls_rotate_across_keys(monkeypatch):
    provider, model = provider_with(monkeypatch, ['{"a": 1}', '{"a": 2}', '{"a": 3}', '{"a": 4}'])
    params = {"date": "2024-05-01", "language": "Python"}

    for _ in range(4):
        await provider.generate("daily_mission", params)

    assert model.keys_used == ["k1", "k2", "k3", "k1"]


async def test_rate_limited_key_is_benched_and_next_key_used(monkeypatch):
    provider, model = provider_with(monkeypatch, [
        google_exceptions.ResourceExhausted("quota exceeded"),
        '{"ok": true}',
        '{"ok": true}',
    ])
    params = {"date": "2024-05-01", "language": "Python"}

    assert await provider.generate("daily_mission", params) == {"ok": True}
    assert model.keys_used == ["k1", "k2"]
    assert provider.usage()[0]["rate_limited"] is True

    # k1 is cooling down, so the next call skips it
    await provider.generate("daily_mission", params)
    assert model.keys_used == ["k1", "k2", "k2"]


async def test_all_keys_rate_limited(monkeypatch):
    provider, model = provider_with(
        monkeypatch, [RuntimeError("429 Too Many Requests")] * 2, keys=("k1", "k2")
    )
    params = {"date": "2024-05-01", "language": "Python"}

    with pytest.raises(ContentGenerationError):
        await provider.generate("daily_mission", params)
    with pytest.raises(ContentGenerationError):
        await provider.generate("daily_mission", params)

    assert model.keys_used == ["k1", "k2"]


async def test_other_errors_fail_without_rotating(monkeypatch):
    provider, model = provider_with(monkeypatch, [RuntimeError("model not found")])

    with pytest.raises(ContentGenerationError):
        await provider.generate("daily_mission", {"date": "2024-05-01", "language": "Python"})

    assert model.keys_used == ["k1"]


async def test_concurrent_requests_run_on_the_key_they_configured(monkeypatch):
    configured = {}

    class EchoModel:
        def __init__(self, model_name, generation_config=None):
            self.model_name = model_name

        async def generate_content_async(self, prompt):
            await asyncio.sleep(0)
            return response(json.dumps({"key": configured["api_key"]}))

    monkeypatch.setattr(genai, "configure", lambda api_key: configured.update(api_key=api_key))
    monkeypatch.setattr(genai, "GenerationConfig", lambda **kwargs: kwargs)
    monkeypatch.setattr(genai, "GenerativeModel", EchoModel)
    provider = GeminiProvider(["k1", "k2", "k3"])
    params = {"date": "2024-05-01", "language": "Python"}

    results = await asyncio.gather(*(provider.generate("daily_mission", params) for _ in range(3)))

    assert [r["key"] for r in results] == ["k1", "k2", "k3"]
    assert [stats["requests"] for stats in provider.usage()] == [1, 1, 1]
