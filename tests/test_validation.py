"""
Тесты проверки ответов сервиса генерации
"""
import json

from modules.iching.models import InterpretationSchema, InterpretationV1, InterpretationV2
from modules.iching.validation import (
    Invalid,
    Ok,
    extract_json_object,
    parse_structured_response,
    validate_text_response,
    validate_v1,
    validate_v2,
)

from conftest import v1_payload, v2_payload

LONG_TEXT = "The hexagram speaks of steady growth and patient effort. " * 4


def test_text_response_ok():
    result = validate_text_response(LONG_TEXT)
    assert isinstance(result, Ok)
    assert result.schema_version == InterpretationSchema.TEXT


def test_text_response_defects():
    assert validate_text_response("").reasons == ["Response is empty"]
    assert validate_text_response("Too short").reasons == ["Response is too short"]
    assert validate_text_response("x" * 10001).reasons == ["Response is too long"]
    refusal = validate_text_response("As an AI, I prefer not to. " + LONG_TEXT)
    assert isinstance(refusal, Invalid)
    assert "declined" in refusal.reasons[0]


def test_v1_valid():
    result = validate_v1(v1_payload())
    assert isinstance(result, Ok)
    assert isinstance(result.value, InterpretationV1)


def test_v1_defects_are_collected():
    payload = v1_payload(tone="angry", confidence="certain")
    del payload["interpretation"]["changing_lines"]
    payload["interpretation"]["key_insight"] = "Too short."

    result = validate_v1(payload)

    assert isinstance(result, Invalid)
    assert any("tone" in r for r in result.reasons)
    assert any("confidence" in r for r in result.reasons)
    assert "Missing interpretation.changing_lines" in result.reasons
    assert "interpretation.key_insight is too short" in result.reasons


def test_v1_not_an_object():
    assert isinstance(validate_v1(["not", "an", "object"]), Invalid)


def test_v2_valid_flat():
    result = validate_v2(v2_payload())
    assert isinstance(result, Ok)
    assert isinstance(result.value, InterpretationV2)
    assert result.schema_version == InterpretationSchema.V2


def test_v2_valid_preview_full_content():
    payload = v2_payload()
    preview_keys = ("title", "summary", "tone", "keyInsight")
    shaped = {
        "preview": {k: payload[k] for k in preview_keys},
        "fullContent": {k: v for k, v in payload.items() if k not in preview_keys},
    }
    assert isinstance(validate_v2(shaped), Ok)


def test_v2_missing_key_insight():
    payload = v2_payload()
    del payload["keyInsight"]
    assert "Missing keyInsight" in validate_v2(payload).reasons


def test_v2_bad_tone_and_short_lists():
    payload = v2_payload(tone="Cheerful", reflectionPrompts=["Only one?"])
    payload["guidance"]["toAvoid"] = []
    reasons = validate_v2(payload).reasons
    assert any(r.startswith("tone must be one of") for r in reasons)
    assert "reflectionPrompts must have at least 3 items" in reasons
    assert "guidance.toAvoid must have at least 1 items" in reasons


def test_v2_incomplete_nested_section():
    payload = v2_payload()
    payload["timing"] = {"nature": "A turning point."}
    reasons = validate_v2(payload).reasons
    assert "Missing timing.whenToAct" in reasons
    assert "Missing timing.whenToWait" in reasons


def test_extract_json_from_markdown():
    text = "Here is your reading:\n```json\n" + json.dumps({"a": 1}) + "\n```"
    assert extract_json_object(text) == {"a": 1}
    assert extract_json_object("no json here") is None
    assert extract_json_object("{broken") is None


def test_extract_first_of_several_objects():
    text = json.dumps({"a": 1}) + "\nAlternative:\n" + json.dumps({"b": 2})
    assert extract_json_object(text) == {"a": 1}
    assert extract_json_object("Use {braces} wisely: " + json.dumps({"c": 3}) + " }}") == {"c": 3}


def test_structured_response_with_trailing_braces():
    text = json.dumps(v2_payload()) + "\n\nNote: fields use {camelCase}."
    assert parse_structured_response(text).schema_version == InterpretationSchema.V2


def test_parse_structured_discriminates_versions():
    v2 = parse_structured_response("```json\n" + json.dumps(v2_payload()) + "\n```")
    v1 = parse_structured_response(json.dumps(v1_payload()))
    assert v2.schema_version == InterpretationSchema.V2
    assert v1.schema_version == InterpretationSchema.V1


def test_parse_structured_unknown_shape():
    result = parse_structured_response(json.dumps({"answer": "yes"}))
    assert result.reasons == ["Unrecognized interpretation format"]
    assert parse_structured_response("").reasons == ["No valid JSON object found in response"]
