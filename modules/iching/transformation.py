"""
Построение основной и производной (изменившейся) гексаграмм
"""
from typing import List, Optional, Sequence, Tuple

from modules.iching.casting import LINES_PER_HEXAGRAM, make_line
from modules.iching.hexagrams import resolve
from modules.iching.models import CastHexagram, HexagramLine, LineType


def line_pattern(lines: Sequence[HexagramLine]) -> List[bool]:
    """Шаблон черт: ян и изменяющийся ян дают True"""
    return [line.type.is_yang for line in lines]


def _check_lines(lines: Sequence[HexagramLine]) -> None:
    if len(lines) != LINES_PER_HEXAGRAM:
        raise ValueError(f"Гексаграмма требует ровно 6 черт, получено {len(lines)}")
    positions = [line.position for line in lines]
    if positions != list(range(1, LINES_PER_HEXAGRAM + 1)):
        raise ValueError(f"Черты должны идти по позициям 1..6, получено {positions}")


def build_primary(lines: Sequence[HexagramLine]) -> CastHexagram:
    """Основная гексаграмма из шести выпавших черт"""
    _check_lines(lines)
    return CastHexagram(
        hexagram=resolve(line_pattern(lines)),
        lines=tuple(lines),
        changing_lines=tuple(line.position for line in lines if line.is_changing),
    )


def derive_relating(lines: Sequence[HexagramLine]) -> Optional[CastHexagram]:
    """
    Производная гексаграмма: изменяющиеся черты переворачиваются, остальные сохраняются.
    Если изменяющихся черт нет, возвращается None.
    """
    _check_lines(lines)
    if not any(line.is_changing for line in lines):
        return None

    stable_lines = []
    for line in lines:
        is_yang = line.type.is_yang
        if line.is_changing:
            is_yang = not is_yang
        stable_lines.append(make_line(line.position, LineType.YANG if is_yang else LineType.YIN))

    return CastHexagram(
        hexagram=resolve(line_pattern(stable_lines)),
        lines=tuple(stable_lines),
        changing_lines=(),
    )


def cast_hexagrams(lines: Sequence[HexagramLine]) -> Tuple[CastHexagram, Optional[CastHexagram]]:
    return build_primary(lines), derive_relating(lines)
