"""
Статическое толкование по данным таблицы гексаграмм.
Используется, когда сервис генерации недоступен или его ответ не прошел проверку.
"""
from typing import Optional

from modules.iching.casting import get_line_position_name
from modules.iching.models import (
    CastHexagram,
    InterpretationV1,
    InterpretationV1Body,
)


def _changing_summary(cast: CastHexagram) -> str:
    count = len(cast.changing_lines)
    verb, noun = ("is", "line") if count == 1 else ("are", "lines")
    positions = ", ".join(get_line_position_name(pos) for pos in cast.changing_lines)
    return (
        f"There {verb} {count} changing {noun} in this reading, indicating transformation and movement.\n"
        f"Changing lines: {positions}\n"
    )


def construct_static_interpretation(
    question: str,
    primary: CastHexagram,
    relating: Optional[CastHexagram] = None
) -> str:
    """
    Текстовое толкование без обращения к внешним сервисам

    :param question: Вопрос пользователя
    :param primary: Основная гексаграмма
    :param relating: Производная гексаграмма (если есть изменяющиеся черты)
    :return: Текст толкования
    """
    hexagram = primary.hexagram
    upper, lower = hexagram.upper_trigram, hexagram.lower_trigram

    text = f"QUESTION: {question}\n\n"
    text += f"HEXAGRAM {hexagram.number}: {hexagram.english_name} ({hexagram.chinese_name})\n\n"
    text += f"{hexagram.meaning}\n\n"
    text += f"JUDGMENT:\n{hexagram.judgment}\n\n"
    text += f"IMAGE:\n{hexagram.image}\n\n"
    text += "THE TRIGRAMS:\n"
    text += f"Upper Trigram: {upper.english_name} ({upper.attribute})\n"
    text += f"Lower Trigram: {lower.english_name} ({lower.attribute})\n\n"
    text += f"This hexagram represents {', '.join(hexagram.keywords[:3])}. "

    if primary.changing_lines:
        text += "\n\nCHANGING LINES:\n" + _changing_summary(primary)

    if relating is not None:
        target = relating.hexagram
        text += f"\n\nRELATING HEXAGRAM {target.number}: {target.english_name} ({target.chinese_name})\n\n"
        text += (
            f"The relating hexagram represents the future development or outcome of this situation. "
            f"{target.meaning}\n"
            f"The transformation moves from {hexagram.english_name} to {target.english_name}, "
            f"suggesting a journey from {hexagram.keywords[0]} toward {target.keywords[0]}.\n"
        )

    text += "\n\nGUIDANCE:\n"
    text += (
        "Reflect deeply on how this hexagram's wisdom applies to your question. "
        "Consider both the traditional texts and your intuitive understanding. "
        "The I Ching offers guidance for the present moment and the path ahead.\n"
    )
    return text


def construct_static_interpretation_v1(
    question: str,
    primary: CastHexagram,
    relating: Optional[CastHexagram] = None
) -> InterpretationV1:
    """Статическое толкование в структурированном формате V1"""
    hexagram = primary.hexagram
    upper, lower = hexagram.upper_trigram, hexagram.lower_trigram
    themes = ", ".join(hexagram.keywords[:3])

    changing_lines = None
    if primary.changing_lines:
        changing_lines = (
            _changing_summary(primary)
            + "These lines mark the areas where your situation is in flux and evolution is at hand."
        )

    transformation = None
    if relating is not None:
        target = relating.hexagram
        transformation = (
            f"The transformation leads to Hexagram {target.number}: {target.english_name} ({target.chinese_name}). "
            f"{target.meaning} This suggests a journey from {hexagram.english_name} ({hexagram.keywords[0]}) "
            f"toward {target.english_name} ({target.keywords[0]})."
        )

    if primary.changing_lines:
        timing = (
            "This is a time of transition and change. Movement is happening now or will soon unfold. "
            "Pay attention to the natural rhythm of events and be prepared to act when the moment is right."
        )
    else:
        timing = (
            "This situation calls for steady presence and awareness. The absence of changing lines suggests "
            "a time to fully embody the qualities of this hexagram before seeking change."
        )

    body = InterpretationV1Body(
        overview=(
            f"You have received Hexagram {hexagram.number}: {hexagram.english_name} ({hexagram.chinese_name}). "
            f"This hexagram speaks to themes of {themes}. In relation to your question \"{question}\", "
            f"it offers guidance about {hexagram.keywords[0]}."
        ),
        present_situation=(
            f"{hexagram.meaning}\n\nThe Judgment says: \"{hexagram.judgment}\"\n\n"
            f"The Image says: \"{hexagram.image}\""
        ),
        trigram_dynamics=(
            f"The upper trigram is {upper.english_name} ({upper.chinese_name}), representing {upper.attribute}, "
            f"while the lower trigram is {lower.english_name} ({lower.chinese_name}), representing {lower.attribute}. "
            f"Their interplay creates the dynamic energy of {hexagram.english_name}."
        ),
        changing_lines=changing_lines,
        transformation=transformation,
        guidance=(
            f"Reflect deeply on how this hexagram's wisdom applies to your question. "
            f"The themes of {themes} are particularly relevant to your situation at this time."
        ),
        timing=timing,
        key_insight=(
            f"Hexagram {hexagram.number}, {hexagram.english_name}, invites you to embrace the qualities of "
            f"{hexagram.keywords[0]} in response to your question."
        ),
    )
    return InterpretationV1(interpretation=body, tone="wise", confidence="medium")
