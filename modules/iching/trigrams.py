"""
Восемь триграмм (Ба Гуа)
"""
from typing import Dict, Optional, Sequence, Tuple

from modules.iching.models import Trigram

# Черты перечисляются снизу вверх, True - ян
TRIGRAMS: Tuple[Trigram, ...] = (
    Trigram(
        id="qian", chinese_name="乾", english_name="Heaven",
        lines=(True, True, True), element="Metal", attribute="Creative, Strong",
        family="Father", direction="Northwest", symbol="☰",
    ),
    Trigram(
        id="kun", chinese_name="坤", english_name="Earth",
        lines=(False, False, False), element="Earth", attribute="Receptive, Yielding",
        family="Mother", direction="Southwest", symbol="☷",
    ),
    Trigram(
        id="zhen", chinese_name="震", english_name="Thunder",
        lines=(True, False, False), element="Wood", attribute="Arousing, Movement",
        family="Eldest Son", direction="East", symbol="☳",
    ),
    Trigram(
        id="kan", chinese_name="坎", english_name="Water",
        lines=(False, True, False), element="Water", attribute="Abysmal, Danger",
        family="Middle Son", direction="North", symbol="☵",
    ),
    Trigram(
        id="gen", chinese_name="艮", english_name="Mountain",
        lines=(False, False, True), element="Earth", attribute="Stillness, Keeping Still",
        family="Youngest Son", direction="Northeast", symbol="☶",
    ),
    Trigram(
        id="xun", chinese_name="巽", english_name="Wind",
        lines=(False, True, True), element="Wood", attribute="Gentle, Penetrating",
        family="Eldest Daughter", direction="Southeast", symbol="☴",
    ),
    Trigram(
        id="li", chinese_name="離", english_name="Fire",
        lines=(True, False, True), element="Fire", attribute="Clinging, Clarity",
        family="Middle Daughter", direction="South", symbol="☲",
    ),
    Trigram(
        id="dui", chinese_name="兌", english_name="Lake",
        lines=(True, True, False), element="Metal", attribute="Joyous, Pleasure",
        family="Youngest Daughter", direction="West", symbol="☱",
    ),
)

_BY_ID: Dict[str, Trigram] = {t.id: t for t in TRIGRAMS}
_BY_LINES: Dict[Tuple[bool, bool, bool], Trigram] = {t.lines: t for t in TRIGRAMS}

assert len(_BY_ID) == 8 and len(_BY_LINES) == 8, "Триграммы должны быть уникальны"


def get_trigram(trigram_id: str) -> Trigram:
    """
    Получение триграммы по идентификатору

    :param trigram_id: Идентификатор (qian, kun, zhen, kan, gen, xun, li, dui)
    :return: Триграмма
    """
    try:
        return _BY_ID[trigram_id.lower()]
    except KeyError:
        raise ValueError(f"Неизвестная триграмма: {trigram_id}")


def get_trigram_by_lines(lines: Sequence[bool]) -> Optional[Trigram]:
    """Поиск триграммы по трем чертам (снизу вверх)"""
    if len(lines) != 3:
        return None
    return _BY_LINES.get(tuple(bool(x) for x in lines))
