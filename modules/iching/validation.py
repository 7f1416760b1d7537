"""
Проверка ответов сервиса генерации.

Ожидаемые дефекты ответа (пустой текст, отказ модели, неполный JSON) не
выбрасывают исключений: функции возвращают Ok(value) или Invalid(reasons).
"""
import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from modules.iching.models import InterpretationSchema, InterpretationV1, InterpretationV2

REFUSAL_PATTERNS = (
    "I cannot",
    "I am not able",
    "I do not have access",
    "As an AI",
    "I apologize, but",
)

V1_TONES = ("warm", "wise", "encouraging", "cautionary")
V1_CONFIDENCE = ("high", "medium", "low")
V2_TONES = ("Contemplative", "Dynamic", "Cautionary", "Auspicious")

_JSON_DECODER = json.JSONDecoder()


class Ok(BaseModel):
    value: Any
    schema_version: Optional[InterpretationSchema] = None


class Invalid(BaseModel):
    reasons: List[str]


ValidationResult = Union[Ok, Invalid]


def _is_filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_text_response(text: Optional[str], min_length: int = 100, max_length: int = 10000) -> ValidationResult:
    """Проверка свободного текстового толкования"""
    if not text or not text.strip():
        return Invalid(reasons=["Response is empty"])
    if len(text) < min_length:
        return Invalid(reasons=["Response is too short"])
    if len(text) > max_length:
        return Invalid(reasons=["Response is too long"])
    for pattern in REFUSAL_PATTERNS:
        if pattern in text:
            return Invalid(reasons=[f"AI declined to provide interpretation ('{pattern}')"])
    return Ok(value=text, schema_version=InterpretationSchema.TEXT)


def validate_v1(response: Any) -> ValidationResult:
    """Проверка структурированного толкования V1"""
    if not isinstance(response, dict):
        return Invalid(reasons=["Response is not a valid object"])

    errors: List[str] = []
    body = response.get("interpretation")
    if not isinstance(body, dict):
        errors.append("Missing interpretation object")
        body = {}

    for field in ("overview", "present_situation", "trigram_dynamics", "guidance", "timing", "key_insight"):
        if not _is_filled(body.get(field)):
            errors.append(f"Missing interpretation.{field}")
    for field in ("changing_lines", "transformation"):
        if field not in body:
            errors.append(f"Missing interpretation.{field}")
        elif body[field] is not None and not isinstance(body[field], str):
            errors.append(f"interpretation.{field} must be a string or null")

    tone = response.get("tone")
    if tone not in V1_TONES:
        errors.append(f"Invalid tone: {tone}. Must be one of: {', '.join(V1_TONES)}")
    confidence = response.get("confidence")
    if confidence not in V1_CONFIDENCE:
        errors.append(f"Invalid confidence: {confidence}. Must be one of: {', '.join(V1_CONFIDENCE)}")

    if _is_filled(body.get("overview")) and len(body["overview"]) < 100:
        errors.append("interpretation.overview is too short")
    if _is_filled(body.get("key_insight")) and len(body["key_insight"]) < 50:
        errors.append("interpretation.key_insight is too short")

    if errors:
        return Invalid(reasons=errors)
    return Ok(value=InterpretationV1.model_validate(response), schema_version=InterpretationSchema.V1)


def flatten_v2(response: Dict[str, Any]) -> Dict[str, Any]:
    """Приведение формы {preview, fullContent} к плоской"""
    preview = response.get("preview")
    full_content = response.get("fullContent")
    if isinstance(preview, dict) and isinstance(full_content, dict):
        return {**full_content, **preview}
    return response


_V2_NESTED = {
    "trigramDynamics": ("interaction", "upperMeaning", "lowerMeaning"),
    "changingLines": ("present", "significance"),
    "transformation": ("journey", "futureState"),
    "timing": ("nature", "whenToAct", "whenToWait"),
}


def _check_string_list(errors: List[str], name: str, value: Any, min_items: int) -> None:
    if not isinstance(value, list):
        errors.append(f"{name} must be an array")
    elif len(value) < min_items:
        errors.append(f"{name} must have at least {min_items} items")
    elif not all(_is_filled(item) for item in value):
        errors.append(f"{name} must contain non-empty strings")


def validate_v2(response: Any) -> ValidationResult:
    """Проверка структурированного толкования V2 (плоская форма или preview/fullContent)"""
    if not isinstance(response, dict):
        return Invalid(reasons=["Response is not a valid object"])
    data = flatten_v2(response)
    errors: List[str] = []

    for field in ("title", "summary", "tone", "overview", "presentSituation", "keyInsight", "conclusion"):
        if not _is_filled(data.get(field)):
            errors.append(f"Missing {field}")
    for field in ("trigramDynamics", "changingLines", "transformation", "guidance", "timing"):
        if not isinstance(data.get(field), dict):
            errors.append(f"Missing {field}")
    if "reflectionPrompts" not in data:
        errors.append("Missing reflectionPrompts")

    if data.get("tone") and data.get("tone") not in V2_TONES:
        errors.append(f"tone must be one of: {', '.join(V2_TONES)}")

    for section, fields in _V2_NESTED.items():
        if isinstance(data.get(section), dict):
            for field in fields:
                if not _is_filled(data[section].get(field)):
                    errors.append(f"Missing {section}.{field}")

    guidance = data.get("guidance")
    if isinstance(guidance, dict):
        if not _is_filled(guidance.get("wisdom")):
            errors.append("Missing guidance.wisdom")
        for field in ("rightAction", "toEmbody", "toAvoid"):
            _check_string_list(errors, f"guidance.{field}", guidance.get(field), 1)

    if "reflectionPrompts" in data:
        _check_string_list(errors, "reflectionPrompts", data["reflectionPrompts"], 3)

    if _is_filled(data.get("overview")) and len(data["overview"]) < 100:
        errors.append("overview is too short")
    if _is_filled(data.get("keyInsight")) and len(data["keyInsight"]) < 50:
        errors.append("keyInsight is too short")
    if _is_filled(data.get("conclusion")) and len(data["conclusion"]) < 50:
        errors.append("conclusion is too short")

    if errors:
        return Invalid(reasons=errors)
    return Ok(value=InterpretationV2.model_validate(data), schema_version=InterpretationSchema.V2)


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Первый JSON-объект из ответа модели (ответ может быть обернут в текст или markdown).
    Разбор идет с каждой открывающей скобки по очереди, текст после объекта игнорируется.
    """
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = _JSON_DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)
    return None


def parse_structured_response(text: Optional[str]) -> ValidationResult:
    """
    Разбор структурированного ответа модели.
    V2 определяется по полям title и trigramDynamics, V1 по объекту interpretation.
    """
    parsed = extract_json_object(text)
    if parsed is None:
        return Invalid(reasons=["No valid JSON object found in response"])

    flat = flatten_v2(parsed)
    if "title" in flat and "trigramDynamics" in flat:
        return validate_v2(parsed)
    if isinstance(parsed.get("interpretation"), dict):
        return validate_v1(parsed)
    return Invalid(reasons=["Unrecognized interpretation format"])
