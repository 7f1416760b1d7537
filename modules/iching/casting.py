"""
Генерация черт гексаграммы методом трех монет и стеблей тысячелистника
"""
import logging
from typing import Dict, List, Sequence, Tuple

from core.exceptions import RandomSourceFailure
from core.random_source import RandomSource
from modules.iching.models import CastingMethod, CoinToss, HexagramLine, LineType

logger = logging.getLogger(__name__)

# Количество случайных чисел на одну черту
ENTROPY_PER_LINE: Dict[CastingMethod, int] = {
    CastingMethod.THREE_COINS: 3,
    CastingMethod.YARROW_STALKS: 1,
}

LINES_PER_HEXAGRAM = 6

# Число орлов -> (сумма броска, тип черты)
_COIN_OUTCOMES: Dict[int, Tuple[int, LineType]] = {
    3: (9, LineType.CHANGING_YANG),
    2: (7, LineType.YANG),
    1: (8, LineType.YIN),
    0: (6, LineType.CHANGING_YIN),
}

_LINE_SYMBOLS: Dict[LineType, str] = {
    LineType.YANG: "——",
    LineType.YIN: "— —",
    LineType.CHANGING_YANG: "——○",
    LineType.CHANGING_YIN: "—×—",
}

_POSITION_NAMES = (
    "First Line (Bottom)",
    "Second Line",
    "Third Line",
    "Fourth Line",
    "Fifth Line",
    "Sixth Line (Top)",
)


def _method(method) -> CastingMethod:
    try:
        return CastingMethod(method)
    except ValueError:
        raise ValueError(f"Неизвестный метод гадания: {method}")


def entropy_required(method) -> int:
    """Сколько случайных чисел нужно на всю гексаграмму (18 для монет, 6 для стеблей)"""
    return LINES_PER_HEXAGRAM * ENTROPY_PER_LINE[_method(method)]


def coin_toss_from_numbers(numbers: Sequence[int]) -> CoinToss:
    """
    Бросок трех монет. Монета - орел, если число четное.

    :param numbers: Три неотрицательных целых
    :return: Результат броска с суммой 6/7/8/9
    """
    if len(numbers) != 3:
        raise ValueError(f"Для броска монет нужно 3 числа, получено {len(numbers)}")
    coins = tuple(n % 2 == 0 for n in numbers)
    value, line_type = _COIN_OUTCOMES[sum(coins)]
    return CoinToss(coins=coins, line_type=line_type, value=value)


def line_type_from_yarrow(number: int) -> LineType:
    """
    Черта по методу стеблей тысячелистника.
    Вероятности: изменяющийся инь 1/16, инь 7/16, ян 5/16, изменяющийся ян 3/16.
    """
    v = number % 16
    if v < 1:
        return LineType.CHANGING_YIN
    if v < 8:
        return LineType.YIN
    if v < 13:
        return LineType.YANG
    return LineType.CHANGING_YANG


def make_line(position: int, line_type: LineType) -> HexagramLine:
    return HexagramLine(position=position, type=line_type, is_changing=line_type.is_changing)


def line_from_entropy(method, position: int, numbers: Sequence[int]) -> HexagramLine:
    """Построение одной черты из заранее полученных чисел (без обращений к источнику)"""
    method = _method(method)
    if method == CastingMethod.THREE_COINS:
        return make_line(position, coin_toss_from_numbers(numbers).line_type)
    if len(numbers) != 1:
        raise ValueError(f"Для стеблей нужно 1 число, получено {len(numbers)}")
    return make_line(position, line_type_from_yarrow(numbers[0]))


def entropy_slice(method, numbers: Sequence[int], position: int) -> List[int]:
    """Срез чисел, относящийся к черте на позиции position (1-6)"""
    per_line = ENTROPY_PER_LINE[_method(method)]
    start = (position - 1) * per_line
    return list(numbers[start:start + per_line])


async def _fetch(random_source: RandomSource, count: int) -> List[int]:
    numbers = await random_source.get_random(count)
    if len(numbers) < count:
        raise RandomSourceFailure(f"Источник вернул {len(numbers)} чисел вместо {count}")
    return list(numbers[:count])


async def cast_line(method, random_source: RandomSource, position: int) -> HexagramLine:
    """Одна черта, один запрос к источнику энтропии"""
    method = _method(method)
    numbers = await _fetch(random_source, ENTROPY_PER_LINE[method])
    return line_from_entropy(method, position, numbers)


async def prefetch_entropy(method, random_source: RandomSource) -> List[int]:
    """Все числа для гексаграммы одним запросом"""
    count = entropy_required(method)
    numbers = await _fetch(random_source, count)
    logger.info(f"Получено {count} случайных чисел для метода {_method(method).value}")
    return numbers


def lines_from_entropy(method, numbers: Sequence[int]) -> List[HexagramLine]:
    return [
        line_from_entropy(method, position, entropy_slice(method, numbers, position))
        for position in range(1, LINES_PER_HEXAGRAM + 1)
    ]


def coin_tosses_from_entropy(numbers: Sequence[int]) -> List[CoinToss]:
    """Записи бросков монет для всех шести черт"""
    return [
        coin_toss_from_numbers(entropy_slice(CastingMethod.THREE_COINS, numbers, position))
        for position in range(1, LINES_PER_HEXAGRAM + 1)
    ]


async def cast_all_lines(method, random_source: RandomSource) -> List[HexagramLine]:
    """Все шесть черт: один запрос к источнику и шесть чистых преобразований"""
    numbers = await prefetch_entropy(method, random_source)
    return lines_from_entropy(method, numbers)


def get_line_symbol(line_type: LineType) -> str:
    return _LINE_SYMBOLS[LineType(line_type)]


def get_line_position_name(position: int) -> str:
    if not 1 <= position <= LINES_PER_HEXAGRAM:
        raise ValueError(f"Позиция черты должна быть от 1 до 6, получено {position}")
    return _POSITION_NAMES[position - 1]
