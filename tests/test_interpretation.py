"""
Тесты конвейера толкования и статического резерва
"""
import asyncio
import json

import pytest

from core.exceptions import NetworkException
from modules.iching.casting import make_line
from modules.iching.fallback import construct_static_interpretation, construct_static_interpretation_v1
from modules.iching.models import DetailLevel, InterpretationSchema, InterpretationSource, InterpretationStyle, LineType
from modules.iching.openrouter_service import IChingOpenRouterService
from modules.iching.prompts import (
    build_request_context,
    construct_iching_prompt,
    construct_iching_prompt_v1,
    construct_iching_prompt_v2,
    max_tokens_for,
    normalize_detail_level,
    normalize_style,
)
from modules.iching.transformation import cast_hexagrams

from conftest import PROMPTS_CONFIG, FakeOpenRouterClient, v1_payload, v2_payload

QUESTION = "How should I approach the coming year?"


@pytest.fixture
def changing_cast():
    return cast_hexagrams([make_line(i, LineType.CHANGING_YANG) for i in range(1, 7)])


@pytest.fixture
def stable_cast():
    return cast_hexagrams([make_line(i, LineType.YIN) for i in range(1, 7)])


def interpret(client, cast, schema="v2", **options):
    service = IChingOpenRouterService(client, PROMPTS_CONFIG)
    primary, relating = cast
    return asyncio.run(service.interpret(QUESTION, primary, relating, schema=schema, **options))


def test_valid_v2_is_ai_result(changing_cast):
    client = FakeOpenRouterClient(responses=[json.dumps(v2_payload())])
    result = interpret(client, changing_cast)

    assert result.source == InterpretationSource.AI
    assert result.kind == "v2"
    assert result.model == "test/model"
    assert result.content.keyInsight.startswith("True strength")
    assert result.generation_time is not None
    assert client.max_tokens == [4000]


def test_v2_missing_key_insight_falls_back_to_static(changing_cast):
    payload = v2_payload()
    del payload["keyInsight"]
    result = interpret(FakeOpenRouterClient(responses=[json.dumps(payload)]), changing_cast)
    assert result.source == InterpretationSource.STATIC
    assert result.kind == "text"


def test_v2_bad_tone_falls_back_to_static(changing_cast):
    payload = v2_payload(tone="Joyful")
    result = interpret(FakeOpenRouterClient(responses=[json.dumps(payload)]), changing_cast)
    assert result.source == InterpretationSource.STATIC


def test_network_error_falls_back_to_static(changing_cast):
    result = interpret(FakeOpenRouterClient(error=NetworkException("timeout")), changing_cast)
    assert result.source == InterpretationSource.STATIC
    assert "HEXAGRAM 1: The Creative" in result.content


def test_unexpected_error_falls_back_to_static(changing_cast):
    result = interpret(FakeOpenRouterClient(error=RuntimeError("unexpected")), changing_cast, schema="v1")
    assert result.source == InterpretationSource.STATIC
    assert result.kind == "v1"


def test_no_client_is_static_only(stable_cast):
    result = interpret(None, stable_cast, schema="text")
    assert result.source == InterpretationSource.STATIC
    assert result.kind == "text"


def test_empty_completion_falls_back(stable_cast):
    result = interpret(FakeOpenRouterClient(responses=["   "]), stable_cast)
    assert result.source == InterpretationSource.STATIC


def test_valid_v1_is_ai_result(stable_cast):
    client = FakeOpenRouterClient(responses=[json.dumps(v1_payload())])
    result = interpret(client, stable_cast, schema="v1", detail_level="brief")
    assert result.source == InterpretationSource.AI
    assert result.kind == "v1"
    assert client.max_tokens == [1000]


def test_invalid_v1_falls_back_to_static_v1(stable_cast):
    client = FakeOpenRouterClient(responses=[json.dumps(v1_payload(tone="angry"))])
    result = interpret(client, stable_cast, schema="v1")
    assert result.source == InterpretationSource.STATIC
    assert result.kind == "v1"
    assert result.content.tone == "wise"


def test_text_schema(stable_cast):
    text = "The Receptive asks you to follow rather than lead this year. " * 3
    result = interpret(FakeOpenRouterClient(responses=[text]), stable_cast, schema="text")
    assert result.source == InterpretationSource.AI
    assert result.content == text


def test_text_refusal_falls_back(stable_cast):
    text = "I apologize, but I can't help with divination. " * 4
    result = interpret(FakeOpenRouterClient(responses=[text]), stable_cast, schema="text")
    assert result.source == InterpretationSource.STATIC


def test_static_text_mentions_changes(changing_cast):
    primary, relating = changing_cast
    text = construct_static_interpretation(QUESTION, primary, relating)
    assert text.startswith(f"QUESTION: {QUESTION}")
    assert "There are 6 changing lines" in text
    assert "RELATING HEXAGRAM 2: The Receptive" in text


def test_static_text_without_changes(stable_cast):
    primary, relating = stable_cast
    text = construct_static_interpretation(QUESTION, primary, relating)
    assert "CHANGING LINES" not in text
    assert "RELATING HEXAGRAM" not in text


def test_static_v1(changing_cast):
    primary, relating = changing_cast
    result = construct_static_interpretation_v1(QUESTION, primary, relating)
    assert result.interpretation.transformation.startswith("The transformation leads to Hexagram 2")
    assert result.confidence == "medium"


def test_style_and_detail_aliases():
    assert normalize_style("mystical") == InterpretationStyle.SPIRITUAL
    assert normalize_style("unknown") == InterpretationStyle.PSYCHOLOGICAL
    assert normalize_detail_level("brief") == DetailLevel.CONCISE
    assert normalize_detail_level(None) == DetailLevel.DETAILED


def test_max_tokens():
    assert max_tokens_for(InterpretationSchema.TEXT, DetailLevel.CONCISE) == 1000
    assert max_tokens_for(InterpretationSchema.V1, DetailLevel.COMPREHENSIVE) == 3000
    assert max_tokens_for(InterpretationSchema.V2, DetailLevel.CONCISE) == 4000


def test_prompts_carry_reading_context(changing_cast):
    primary, relating = changing_cast
    ctx = build_request_context(f"  {QUESTION}  ", primary, relating, style="practical")
    assert ctx.question == QUESTION
    assert ctx.has_changing_lines

    for builder in (construct_iching_prompt, construct_iching_prompt_v1, construct_iching_prompt_v2):
        prompt = builder(ctx)
        assert QUESTION in prompt
        assert "The Creative" in prompt
        assert "The Receptive" in prompt
