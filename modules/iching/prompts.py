"""
Промпты для толкования гексаграмм
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from modules.iching.casting import get_line_position_name, get_line_symbol
from modules.iching.models import CastHexagram, DetailLevel, InterpretationSchema, InterpretationStyle

# Синонимы из старых клиентских настроек
_STYLE_ALIASES = {"mystical": InterpretationStyle.SPIRITUAL}
_DETAIL_ALIASES = {"brief": DetailLevel.CONCISE}

DEFAULT_MAX_TOKENS = {
    DetailLevel.CONCISE: 1000,
    DetailLevel.DETAILED: 2000,
    DetailLevel.COMPREHENSIVE: 3000,
}
V2_MAX_TOKENS = 4000

_INTRO = (
    "You are a wise I Ching consultant with deep understanding of the ancient Chinese Book of Changes. "
    "You will provide an interpretation that is insightful, practical, and relevant to the querent's question."
)

_STYLE_INSTRUCTIONS = {
    InterpretationStyle.TRADITIONAL: (
        "Use classical I Ching interpretative language and emphasize the wisdom of the ancient text. "
        "Reference Chinese philosophy and concepts like yin/yang, the Tao, and wu wei when appropriate. "
        "Maintain a formal, scholarly tone while remaining accessible."
    ),
    InterpretationStyle.PSYCHOLOGICAL: (
        "Interpret the hexagram through a psychological lens, focusing on inner states, personal growth, "
        "and unconscious patterns. Use Carl Jung's approach to the I Ching as inspiration."
    ),
    InterpretationStyle.SPIRITUAL: (
        "Emphasize the spiritual dimensions of the reading, including karmic lessons, soul growth, and divine timing. "
        "Offer meditative practices or spiritual insights related to the hexagram."
    ),
    InterpretationStyle.PRACTICAL: (
        "Focus on concrete, actionable advice and real-world applications. "
        "Translate the ancient wisdom into modern terms and emphasize practical steps the querent can take."
    ),
}

_DETAIL_INSTRUCTIONS = {
    DetailLevel.CONCISE: (
        "LENGTH: Provide a concise interpretation of 2-3 paragraphs (200-300 words). "
        "Focus on the most essential insights and guidance."
    ),
    DetailLevel.DETAILED: (
        "LENGTH: Provide a detailed interpretation of 4-6 paragraphs (400-600 words). Include:\n"
        "- Overview of the hexagram's meaning in context of the question\n"
        "- Explanation of the trigram interaction\n"
        "- Interpretation of changing lines (if any)\n"
        "- Relating hexagram interpretation (if applicable)\n"
        "- Practical advice and next steps"
    ),
    DetailLevel.COMPREHENSIVE: (
        "LENGTH: Provide a comprehensive interpretation of 6-10 paragraphs (800-1200 words). Include:\n"
        "- Deep exploration of the hexagram's meaning\n"
        "- Detailed analysis of each trigram and their interaction\n"
        "- Line-by-line analysis of changing lines (if any)\n"
        "- Relating hexagram detailed analysis (if applicable)\n"
        "- Timing and seasonal considerations\n"
        "- Meditation or reflection prompts"
    ),
}


def normalize_style(style: Optional[str], default: str = "psychological") -> InterpretationStyle:
    value = (style or default).lower()
    if value in _STYLE_ALIASES:
        return _STYLE_ALIASES[value]
    try:
        return InterpretationStyle(value)
    except ValueError:
        return InterpretationStyle(default)


def normalize_detail_level(detail_level: Optional[str], default: str = "detailed") -> DetailLevel:
    value = (detail_level or default).lower()
    if value in _DETAIL_ALIASES:
        return _DETAIL_ALIASES[value]
    try:
        return DetailLevel(value)
    except ValueError:
        return DetailLevel(default)


def max_tokens_for(schema: InterpretationSchema, detail_level: DetailLevel,
                   prompts_config: Optional[Dict[str, Dict[str, Any]]] = None) -> int:
    """Ограничение длины ответа для формата и уровня детализации"""
    prompts_config = prompts_config or {}
    if schema == InterpretationSchema.V2:
        return prompts_config.get("structured_v2", {}).get("max_tokens", V2_MAX_TOKENS)
    return prompts_config.get(detail_level.value, {}).get("max_tokens", DEFAULT_MAX_TOKENS[detail_level])


class PromptContext(BaseModel):
    """Входные данные для промпта толкования"""
    model_config = ConfigDict(frozen=True)

    question: str
    primary: CastHexagram
    relating: Optional[CastHexagram] = None
    style: InterpretationStyle = InterpretationStyle.PSYCHOLOGICAL
    detail_level: DetailLevel = DetailLevel.DETAILED

    @property
    def has_changing_lines(self) -> bool:
        return bool(self.primary.changing_lines)


def build_request_context(question: str, primary: CastHexagram, relating: Optional[CastHexagram] = None,
                          style: Optional[str] = None, detail_level: Optional[str] = None) -> PromptContext:
    return PromptContext(
        question=question.strip(),
        primary=primary,
        relating=relating,
        style=normalize_style(style),
        detail_level=normalize_detail_level(detail_level),
    )


def build_hexagram_display(cast: CastHexagram) -> str:
    """Черты сверху вниз, как гексаграмму принято рисовать"""
    return "\n".join(
        f"{get_line_position_name(line.position)}: {get_line_symbol(line.type)}"
        for line in reversed(cast.lines)
    )


def _changing_lines_text(cast: CastHexagram) -> str:
    if not cast.changing_lines:
        return "No changing lines in this reading."
    return "\n".join(
        f"{get_line_position_name(pos)}: {get_line_symbol(cast.lines[pos - 1].type)}"
        for pos in cast.changing_lines
    )


def _hexagram_block(ctx: PromptContext) -> str:
    primary = ctx.primary.hexagram
    upper, lower = primary.upper_trigram, primary.lower_trigram
    block = (
        f'QUESTION:\n"{ctx.question}"\n\n'
        f"PRIMARY HEXAGRAM:\n"
        f"Hexagram {primary.number}: {primary.english_name} ({primary.chinese_name} {primary.pinyin_name})\n\n"
        f"{build_hexagram_display(ctx.primary)}\n\n"
        f"TRIGRAMS:\n"
        f"Upper Trigram: {upper.english_name} ({upper.chinese_name}) - {upper.attribute}\n"
        f"Lower Trigram: {lower.english_name} ({lower.chinese_name}) - {lower.attribute}\n\n"
        f"TRADITIONAL TEXT:\n"
        f"Judgment: {primary.judgment}\n"
        f"Image: {primary.image}\n\n"
        f"KEYWORDS: {', '.join(primary.keywords)}\n\n"
        f"CHANGING LINES:\n{_changing_lines_text(ctx.primary)}"
    )
    if ctx.relating is not None:
        relating = ctx.relating.hexagram
        block += (
            f"\n\nRELATING HEXAGRAM (Future/Outcome):\n"
            f"Hexagram {relating.number}: {relating.english_name} ({relating.chinese_name} {relating.pinyin_name})\n\n"
            f"{build_hexagram_display(ctx.relating)}\n\n"
            f"This hexagram represents the situation after the changes have occurred."
        )
    return block


def _style_block(ctx: PromptContext) -> str:
    return f"INTERPRETATION STYLE: {ctx.style.value}\n{_STYLE_INSTRUCTIONS[ctx.style]}"


def construct_iching_prompt(ctx: PromptContext) -> str:
    """Промпт для свободного текстового толкования"""
    return (
        f"{_INTRO}\n\n"
        f"{_hexagram_block(ctx)}\n\n"
        f"{_style_block(ctx)}\n\n"
        f"{_DETAIL_INSTRUCTIONS[ctx.detail_level]}\n\n"
        "IMPORTANT:\n"
        "1. Address the querent's question directly and specifically\n"
        "2. Explain the symbolism of the hexagram in relation to their situation\n"
        "3. If there are changing lines, explain the transformation they indicate\n"
        "4. If there is a relating hexagram, explain the journey from the present to the future state\n"
        "5. Be honest: the I Ching sometimes advises patience, restraint, or acceptance\n"
        "6. Reference the traditional texts (Judgment and Image) in your interpretation\n\n"
        "Please provide a comprehensive interpretation now."
    )


def construct_iching_prompt_v1(ctx: PromptContext) -> str:
    """Промпт для структурированного толкования (JSON, формат V1)"""
    changing = (
        '"Detailed analysis of the changing lines and their significance for transformation"'
        if ctx.has_changing_lines else "null"
    )
    transformation = (
        '"Describe the journey from the present hexagram to the relating hexagram"'
        if ctx.relating is not None else "null"
    )
    return (
        f"{_INTRO}\n\n"
        f"{_hexagram_block(ctx)}\n\n"
        f"{_style_block(ctx)}\n\n"
        "CRITICAL RESPONSE FORMAT REQUIREMENTS:\n"
        "You MUST return your interpretation as a valid JSON object with the following structure. "
        "Return ONLY the JSON object, with no other text before or after.\n\n"
        "{\n"
        '  "interpretation": {\n'
        '    "overview": "2-3 sentence summary of the main message for the querent",\n'
        '    "present_situation": "What this hexagram reveals about their current circumstances",\n'
        '    "trigram_dynamics": "How the upper and lower trigrams interact in this situation",\n'
        f'    "changing_lines": {changing},\n'
        f'    "transformation": {transformation},\n'
        '    "guidance": "Practical advice and actionable wisdom",\n'
        '    "timing": "When to act, when to wait, the natural rhythm of the situation",\n'
        '    "key_insight": "The single most important takeaway for the querent"\n'
        "  },\n"
        '  "tone": "warm|wise|encouraging|cautionary",\n'
        '  "confidence": "high|medium|low"\n'
        "}\n\n"
        "Return ONLY the JSON object now."
    )


def construct_iching_prompt_v2(ctx: PromptContext) -> str:
    """Промпт для структурированного толкования (JSON, формат V2)"""
    if ctx.has_changing_lines:
        changing_present = '"4-6 sentences interpreting the changing lines and the transformation they indicate"'
        changing_significance = '"2-3 sentences on what it means that THESE specific lines are changing"'
    else:
        changing_present = '"No changing lines in this reading - the situation is stable in its current form."'
        changing_significance = '"Stability suggests this is a time to fully embody this hexagram\'s wisdom."'
    if ctx.relating is not None:
        journey = '"4-5 sentences describing the journey from the present hexagram to the relating hexagram"'
        future_state = '"3-4 sentences on what the relating hexagram shows about where things are heading"'
    else:
        journey = '"No transformation to another hexagram is indicated - deepen into what IS."'
        future_state = '"The future grows from fully understanding and embodying this hexagram\'s teaching."'

    return (
        "IMPORTANT: Return ONLY valid JSON, no explanatory text before or after.\n\n"
        f"{_INTRO}\n\n"
        f"{_hexagram_block(ctx)}\n\n"
        f"{_style_block(ctx)}\n\n"
        "Create a DETAILED I Ching interpretation with this exact JSON structure. ALL FIELDS ARE REQUIRED:\n\n"
        "{\n"
        '  "title": "Compelling title for this hexagram and question (4-8 words)",\n'
        '  "summary": "2-3 sentence overview of what this hexagram reveals",\n'
        '  "tone": "Contemplative|Dynamic|Cautionary|Auspicious",\n'
        '  "overview": "Opening paragraph (4-6 sentences) introducing the hexagram and its relevance",\n'
        '  "presentSituation": "4-6 sentences on where they are right now, referencing the Judgment",\n'
        '  "trigramDynamics": {\n'
        '    "interaction": "4-5 sentences on how the trigrams interact",\n'
        '    "upperMeaning": "2-3 sentences on the upper trigram",\n'
        '    "lowerMeaning": "2-3 sentences on the lower trigram"\n'
        "  },\n"
        '  "changingLines": {\n'
        f'    "present": {changing_present},\n'
        f'    "significance": {changing_significance}\n'
        "  },\n"
        '  "transformation": {\n'
        f'    "journey": {journey},\n'
        f'    "futureState": {future_state}\n'
        "  },\n"
        '  "guidance": {\n'
        '    "wisdom": "4-5 sentences of practical guidance rooted in this hexagram",\n'
        '    "rightAction": ["action 1", "action 2", "action 3"],\n'
        '    "toEmbody": ["quality 1", "quality 2", "quality 3"],\n'
        '    "toAvoid": ["pattern 1", "pattern 2"]\n'
        "  },\n"
        '  "timing": {\n'
        '    "nature": "3-4 sentences on the timing and rhythm of this situation",\n'
        '    "whenToAct": "2-3 sentences",\n'
        '    "whenToWait": "2-3 sentences"\n'
        "  },\n"
        '  "keyInsight": "2-3 sentences capturing the core teaching",\n'
        '  "reflectionPrompts": ["question 1?", "question 2?", "question 3?", "question 4?"],\n'
        '  "conclusion": "Closing paragraph (2-3 sentences)"\n'
        "}\n\n"
        "CRITICAL REQUIREMENTS:\n"
        "1. Return ONLY the JSON object, no other text before or after\n"
        "2. ALL fields must be present and filled completely\n"
        "3. Tone must be exactly one of: Contemplative, Dynamic, Cautionary, Auspicious\n"
        "4. Write in second person (\"you\") to speak directly to the querent\n\n"
        "Create the complete structured reading now:"
    )


PROMPT_BUILDERS = {
    InterpretationSchema.TEXT: construct_iching_prompt,
    InterpretationSchema.V1: construct_iching_prompt_v1,
    InterpretationSchema.V2: construct_iching_prompt_v2,
}
