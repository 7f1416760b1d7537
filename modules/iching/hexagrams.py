"""
Таблица 64 гексаграмм в порядке Вэнь-вана и поиск гексаграммы по чертам
"""
from typing import Dict, List, Optional, Sequence, Tuple

from core.exceptions import HexagramTableCorruption
from modules.iching.models import Hexagram
from modules.iching.trigrams import get_trigram


# (номер, китайское имя, пиньинь, английское имя, верхняя триграмма, нижняя триграмма,
#  суждение, образ, значение, ключевые слова)
_HEXAGRAM_DATA: Tuple[tuple, ...] = (
    (1, "乾", "Qián", "The Creative", "qian", "qian",
     "The Creative works sublime success, furthering through perseverance.",
     "The movement of heaven is full of power. Thus the superior person makes themself strong and untiring.",
     "Strong yang energy, leadership, unbroken potential.",
     ("initiative", "yang", "heaven")),
    (2, "坤", "Kūn", "The Receptive", "kun", "kun",
     "The Receptive brings about sublime success, furthering through the perseverance of a mare.",
     "The earth's condition is receptive devotion. Thus the superior person carries the outer world with breadth of character.",
     "Pure yin, yielding stability, supportive earth energy.",
     ("yielding", "earth", "nurture")),
    (3, "屯", "Zhūn", "Difficulty at the Beginning", "kan", "zhen",
     "Difficulty at the beginning works supreme success. Nothing should be undertaken hastily; it furthers one to appoint helpers.",
     "Clouds and thunder: the image of difficulty at the beginning. Thus the superior person brings order out of confusion.",
     "Growth through challenge and learning.",
     ("birth", "trial", "endurance")),
    (4, "蒙", "Méng", "Youthful Folly", "gen", "kan",
     "Youthful folly has success. It is not I who seek the young fool; the young fool seeks me.",
     "A spring wells up at the foot of the mountain. Thus the superior person fosters character by thoroughness in all they do.",
     "Inexperience, need for guidance, openness to learning.",
     ("learning", "guidance", "correcting")),
    (5, "需", "Xū", "Waiting", "kan", "qian",
     "Waiting. If you are sincere, you have light and success. Perseverance brings good fortune.",
     "Clouds rise up to heaven. Thus the superior person eats and drinks, is joyous and of good cheer.",
     "Patience, nourishment, aligning with natural timing.",
     ("patience", "timing", "trust")),
    (6, "訟", "Sòng", "Conflict", "qian", "kan",
     "Conflict. You are sincere and are being obstructed. A cautious halt halfway brings good fortune; going through to the end brings misfortune.",
     "Heaven and water go their opposite ways. Thus in all transactions the superior person carefully considers the beginning.",
     "Tension that invites clarity and principled action.",
     ("dispute", "truth", "judgement")),
    (7, "師", "Shī", "The Army", "kun", "kan",
     "The army needs perseverance and a strong leader. Good fortune without blame.",
     "In the middle of the earth is water. Thus the superior person increases their masses by generosity toward the people.",
     "Discipline, strategy, community strength.",
     ("discipline", "organization", "collective action")),
    (8, "比", "Bǐ", "Holding Together", "kan", "kun",
     "Holding together brings good fortune. Inquire of the oracle once again whether you possess sublimity, constancy and perseverance.",
     "On the earth is water. Thus the kings of antiquity bestowed the different states as fiefs and cultivated friendly relations.",
     "Unity, alliance, mutual support.",
     ("union", "fellowship", "commitment")),
    (9, "小畜", "Xiǎo Chù", "Taming Power of the Small", "xun", "qian",
     "The taming power of the small has success. Dense clouds, no rain from our western region.",
     "The wind drives across heaven. Thus the superior person refines the outward aspect of their nature.",
     "Attention to detail, gradual influence.",
     ("gentle influence", "preparation", "incremental gain")),
    (10, "履", "Lǚ", "Treading", "qian", "dui",
     "Treading upon the tail of the tiger. It does not bite the man. Success.",
     "Heaven above, the lake below. Thus the superior person discriminates between high and low and fortifies the thinking of the people.",
     "Careful conduct, respect for the ground beneath you.",
     ("conduct", "sensitivity", "respect")),
    (11, "泰", "Tài", "Peace", "kun", "qian",
     "Peace. The small departs, the great approaches. Good fortune. Success.",
     "Heaven and earth unite. Thus the ruler divides and completes the course of heaven and earth.",
     "Harmony between heaven and earth, prosperity.",
     ("harmony", "prosperity", "alignment")),
    (12, "否", "Pǐ", "Standstill", "qian", "kun",
     "Standstill. Evil people do not further the perseverance of the superior person. The great departs; the small approaches.",
     "Heaven and earth do not unite. Thus the superior person falls back upon their inner worth to escape the difficulties.",
     "Stagnation invites inner preparation.",
     ("blockage", "stagnation", "disengage")),
    (13, "同人", "Tóng Rén", "Fellowship with Men", "qian", "li",
     "Fellowship with men in the open. Success. It furthers one to cross the great water.",
     "Heaven together with fire. Thus the superior person organizes the clans and makes distinctions between things.",
     "Community, shared ideals, collaboration.",
     ("community", "shared vision", "alliances")),
    (14, "大有", "Dà Yǒu", "Possession in Great Measure", "li", "qian",
     "Possession in great measure. Supreme success.",
     "Fire in heaven above. Thus the superior person curbs evil and furthers good, obeying the benevolent will of heaven.",
     "Abundance balanced by humility.",
     ("abundance", "nobility", "responsibility")),
    (15, "謙", "Qiān", "Modesty", "kun", "gen",
     "Modesty creates success. The superior person carries things through.",
     "Within the earth, a mountain. Thus the superior person reduces what is too much and augments what is too little.",
     "Power held gently, careful influence.",
     ("humility", "balance", "moderation")),
    (16, "豫", "Yù", "Enthusiasm", "zhen", "kun",
     "Enthusiasm. It furthers one to install helpers and to set armies marching.",
     "Thunder comes resounding out of the earth. Thus the ancient kings made music in order to honor merit.",
     "Joyful motion, readiness to act.",
     ("motivation", "music", "mobilise")),
    (17, "隨", "Suí", "Following", "dui", "zhen",
     "Following has supreme success. Perseverance furthers. No blame.",
     "Thunder in the middle of the lake. Thus the superior person at nightfall goes indoors for rest and recuperation.",
     "Adaptation, following natural flow.",
     ("adaptation", "loyalty", "alignment")),
    (18, "蠱", "Gǔ", "Work on the Decayed", "gen", "xun",
     "Work on what has been spoiled has supreme success. Before the starting point, three days; after the starting point, three days.",
     "The wind blows low on the mountain. Thus the superior person stirs up the people and strengthens their spirit.",
     "Repairing decay through devoted effort.",
     ("remedy", "repair", "responsibility")),
    (19, "臨", "Lín", "Approach", "kun", "dui",
     "Approach has supreme success. Perseverance furthers. When the eighth month comes, there will be misfortune.",
     "The earth above the lake. Thus the superior person is inexhaustible in their will to teach and without limits in tolerance.",
     "Influence, preparation for greatness.",
     ("care", "oversight", "nurture")),
    (20, "觀", "Guān", "Contemplation", "xun", "kun",
     "Contemplation. The ablution has been made, but not yet the offering. Full of trust they look up to him.",
     "The wind blows over the earth. Thus the kings of old visited the regions of the world and contemplated the people.",
     "Observation, mindful perspective.",
     ("reflection", "ritual", "overview")),
    (21, "噬嗑", "Shì Kè", "Biting Through", "li", "zhen",
     "Biting through has success. It is favorable to let justice be administered.",
     "Thunder and lightning. Thus the kings of former times made firm the laws through clearly defined penalties.",
     "Decisive action with clarity.",
     ("decisiveness", "clarity", "justice")),
    (22, "賁", "Bì", "Grace", "gen", "li",
     "Grace has success. In small matters it is favorable to undertake something.",
     "Fire at the foot of the mountain. Thus the superior person proceeds with clearing up current affairs but dares not decide controversial issues.",
     "Beauty born from disciplined refinement.",
     ("beauty", "culture", "presentation")),
    (23, "剝", "Bō", "Splitting Apart", "gen", "kun",
     "Splitting apart. It does not further one to go anywhere.",
     "The mountain rests on the earth. Thus those above can ensure their position only by giving generously to those below.",
     "Deterioration that clears space for renewal.",
     ("decline", "simplify", "shed")),
    (24, "復", "Fù", "Return", "kun", "zhen",
     "Return. Success. Going out and coming in without error. Friends come without blame.",
     "Thunder within the earth. Thus the kings of antiquity closed the passes at the time of solstice.",
     "Turning point, cyclical renewal.",
     ("renewal", "cyclic flow", "turning point")),
    (25, "無妄", "Wú Wàng", "Innocence", "qian", "zhen",
     "Innocence. Supreme success. Perseverance furthers. If someone is not as they should be, they have misfortune.",
     "Under heaven thunder rolls. Thus the kings of old, rich in virtue and in harmony with the time, fostered all beings.",
     "Spontaneous right action without ulterior motives.",
     ("integrity", "unexpected", "truth")),
    (26, "大畜", "Dà Chù", "Taming Power of the Great", "gen", "qian",
     "The taming power of the great. Perseverance furthers. Not eating at home brings good fortune.",
     "Heaven within the mountain. Thus the superior person acquaints themself with many sayings of antiquity and many deeds of the past.",
     "Restraint that channels power.",
     ("restraint", "accumulation", "strength")),
    (27, "頤", "Yí", "Nourishing", "gen", "zhen",
     "The corners of the mouth. Perseverance brings good fortune. Pay heed to the providing of nourishment.",
     "At the foot of the mountain, thunder. Thus the superior person is careful of their words and temperate in eating and drinking.",
     "Nourishment, careful attention.",
     ("sustenance", "speech", "intake")),
    (28, "大過", "Dà Guò", "Preponderance of the Great", "dui", "xun",
     "Preponderance of the great. The ridgepole sags to the breaking point. It furthers one to have somewhere to go.",
     "The lake rises above the trees. Thus the superior person, when standing alone, is unconcerned.",
     "Excess leading to responsibility.",
     ("strain", "responsibility", "support")),
    (29, "坎", "Kǎn", "The Abysmal", "kan", "kan",
     "The abysmal repeated. If you are sincere, you have success in your heart, and whatever you do succeeds.",
     "Water flows on uninterruptedly and reaches its goal. Thus the superior person walks in lasting virtue.",
     "Danger met with perseverance.",
     ("danger", "depth", "perseverance")),
    (30, "離", "Lí", "The Clinging", "li", "li",
     "The clinging. Perseverance furthers. It brings success. Care of the cow brings good fortune.",
     "That which is bright rises twice. Thus the great person illumines the four quarters of the world.",
     "Clarity through illumination and attachment.",
     ("illumination", "clarity", "adhesion")),
    (31, "咸", "Xián", "Influence", "dui", "gen",
     "Influence. Success. Perseverance furthers. To take a maiden to wife brings good fortune.",
     "A lake on the mountain. Thus the superior person encourages people to approach them by their readiness to receive.",
     "Attraction and responsiveness.",
     ("attraction", "affection", "resonance")),
    (32, "恆", "Héng", "Duration", "zhen", "xun",
     "Duration. Success. No blame. Perseverance furthers. It furthers one to have somewhere to go.",
     "Thunder and wind. Thus the superior person stands firm and does not change direction.",
     "Consistent endurance.",
     ("commitment", "endurance", "consistency")),
    (33, "遯", "Dùn", "Retreat", "qian", "gen",
     "Retreat. Success. In what is small, perseverance furthers.",
     "Mountain under heaven. Thus the superior person keeps the inferior at a distance, not angrily but with reserve.",
     "Strategic withdrawal for greater gain.",
     ("withdrawal", "strategy", "self-preservation")),
    (34, "大壯", "Dà Zhuàng", "Power of the Great", "zhen", "qian",
     "The power of the great. Perseverance furthers.",
     "Thunder in heaven above. Thus the superior person does not tread upon paths that do not accord with established order.",
     "Vigorous action with purpose.",
     ("vital force", "momentum", "assertion")),
    (35, "晉", "Jìn", "Progress", "li", "kun",
     "Progress. The powerful prince is honored with horses in large numbers.",
     "The sun rises over the earth. Thus the superior person brightens their bright virtue.",
     "Momentum aligned with clarity.",
     ("advancement", "recognition", "dawn")),
    (36, "明夷", "Míng Yí", "Darkening of the Light", "kun", "li",
     "Darkening of the light. In adversity it furthers one to be persevering.",
     "The light has sunk into the earth. Thus the superior person veils their light, yet still shines.",
     "Perseverance through adversity.",
     ("concealment", "injury", "guard inner fire")),
    (37, "家人", "Jiā Rén", "The Family", "xun", "li",
     "The family. The perseverance of the woman furthers.",
     "Wind comes forth from fire. Thus the superior person has substance in their words and duration in their way of life.",
     "Structure and responsibility within relationships.",
     ("roles", "home", "domestic harmony")),
    (38, "睽", "Kuí", "Opposition", "li", "dui",
     "Opposition. In small matters, good fortune.",
     "Above, fire; below, the lake. Thus amid all fellowship the superior person retains their individuality.",
     "Tension that gifts insight.",
     ("divergence", "individuality", "complementarity")),
    (39, "蹇", "Jiǎn", "Obstruction", "kan", "gen",
     "Obstruction. The southwest furthers, the northeast does not. It furthers one to see the great person.",
     "Water on the mountain. Thus the superior person turns their attention to themself and molds their character.",
     "Obstacle inviting new pathways.",
     ("hindrance", "reflection", "pause")),
    (40, "解", "Xiè", "Deliverance", "zhen", "kan",
     "Deliverance. The southwest furthers. If there is still something to be done, hastening brings good fortune.",
     "Thunder and rain set in. Thus the superior person pardons mistakes and forgives misdeeds.",
     "Release from constraint.",
     ("release", "liberation", "relief")),
    (41, "損", "Sǔn", "Decrease", "gen", "dui",
     "Decrease combined with sincerity brings about supreme good fortune without blame.",
     "At the foot of the mountain, the lake. Thus the superior person controls their anger and restrains their instincts.",
     "Simplify to restore balance.",
     ("sacrifice", "simplicity", "focus")),
    (42, "益", "Yì", "Increase", "xun", "zhen",
     "Increase. It furthers one to undertake something. It furthers one to cross the great water.",
     "Wind and thunder. Thus the superior person, seeing good, imitates it; having faults, rids themself of them.",
     "Growth that lifts others.",
     ("abundance", "generosity", "momentum")),
    (43, "夬", "Guài", "Breakthrough", "dui", "qian",
     "Breakthrough. One must resolutely make the matter known at the court of the king.",
     "The lake has risen up to heaven. Thus the superior person dispenses riches downward and refrains from resting on their virtue.",
     "Resolute clarity cutting through resistance.",
     ("resolution", "declaration", "decisive action")),
    (44, "姤", "Gòu", "Coming to Meet", "qian", "xun",
     "Coming to meet. The maiden is powerful. One should not marry such a maiden.",
     "Under heaven, wind. Thus does the prince act when disseminating commands and proclaiming them to the four quarters.",
     "Encounter that demands vigilance.",
     ("encounter", "temptation", "sudden contact")),
    (45, "萃", "Cuì", "Gathering Together", "dui", "kun",
     "Gathering together. Success. The king approaches the temple. Great offerings bring good fortune.",
     "Over the earth, the lake. Thus the superior person renews their weapons in order to meet the unforeseen.",
     "Focused community effort.",
     ("assembly", "community", "celebration")),
    (46, "升", "Shēng", "Pushing Upward", "kun", "xun",
     "Pushing upward has supreme success. One must see the great person. Fear not. Departure toward the south brings good fortune.",
     "Within the earth, wood grows. Thus the superior person of devoted character heaps up small things to achieve something high.",
     "Gradual ascent with intention.",
     ("gradual advance", "effort", "aspiration")),
    (47, "困", "Kùn", "Oppression", "dui", "kan",
     "Oppression. Success. Perseverance. The great person brings about good fortune. When one has something to say, it is not believed.",
     "There is no water in the lake. Thus the superior person stakes their life on following their will.",
     "Constraint calling for inner strength.",
     ("constraint", "exhaustion", "inner strength")),
    (48, "井", "Jǐng", "The Well", "kan", "xun",
     "The well. The town may be changed, but the well cannot be changed. It neither decreases nor increases.",
     "Water over wood. Thus the superior person encourages the people at their work and exhorts them to help one another.",
     "Reliable source that nourishes community.",
     ("resources", "depth", "renewal")),
    (49, "革", "Gé", "Revolution", "dui", "li",
     "Revolution. On your own day you are believed. Supreme success, furthering through perseverance. Remorse disappears.",
     "Fire in the lake. Thus the superior person sets the calendar in order and makes the seasons clear.",
     "Transformation that aligns with higher truth.",
     ("change", "molting", "radical shift")),
    (50, "鼎", "Dǐng", "The Cauldron", "li", "xun",
     "The cauldron. Supreme good fortune. Success.",
     "Fire over wood. Thus the superior person consolidates their fate by making their position correct.",
     "Cultural transformation through nourishment.",
     ("transformation", "culture", "nourishment")),
    (51, "震", "Zhèn", "The Arousing", "zhen", "zhen",
     "Shock brings success. Shock comes, oh, oh! Laughing words, ha, ha! The shock terrifies for a hundred miles.",
     "Thunder repeated. Thus in fear and trembling the superior person sets their life in order and examines themself.",
     "Shock that awakens potential.",
     ("shock", "awakening", "movement")),
    (52, "艮", "Gèn", "Keeping Still", "gen", "gen",
     "Keeping still. Keeping their back still so that they no longer feel their body. No blame.",
     "Mountains standing close together. Thus the superior person does not permit their thoughts to go beyond their situation.",
     "Calm reflection, steady foundation.",
     ("meditation", "stillness", "center")),
    (53, "漸", "Jiàn", "Development", "xun", "gen",
     "Development. The maiden is given in marriage. Good fortune. Perseverance furthers.",
     "On the mountain, a tree. Thus the superior person abides in dignity and virtue, in order to improve the mores.",
     "Gradual growth and orderly progress.",
     ("gradual progress", "fidelity", "evolution")),
    (54, "歸妹", "Guī Mèi", "The Marrying Maiden", "zhen", "dui",
     "The marrying maiden. Undertakings bring misfortune. Nothing that would further.",
     "Thunder over the lake. Thus the superior person understands the transitory in the light of the eternity of the end.",
     "Temporary roles requiring propriety.",
     ("transition", "adaptation", "second place")),
    (55, "豐", "Fēng", "Abundance", "zhen", "li",
     "Abundance has success. The king attains abundance. Be not sad. Be like the sun at midday.",
     "Both thunder and lightning come at once. Thus the superior person decides lawsuits and carries out punishments.",
     "Peak prosperity that must be stewarded.",
     ("fullness", "visibility", "zenith")),
    (56, "旅", "Lǚ", "The Wanderer", "li", "gen",
     "The wanderer. Success through smallness. Perseverance brings good fortune to the wanderer.",
     "Fire on the mountain. Thus the superior person is clear-minded and cautious in imposing penalties.",
     "Adaptation through transient journeys.",
     ("travel", "impermanence", "awareness")),
    (57, "巽", "Xùn", "The Gentle", "xun", "xun",
     "The gentle. Success through what is small. It furthers one to have somewhere to go.",
     "Winds following one upon the other. Thus the superior person spreads their commands abroad and carries out their undertakings.",
     "Subtle influence through persistence.",
     ("penetration", "wind", "permeation")),
    (58, "兌", "Duì", "The Joyous", "dui", "dui",
     "The joyous. Success. Perseverance is favorable.",
     "Lakes resting one on the other. Thus the superior person joins with friends for discussion and practice.",
     "Joy and satisfaction guiding connections.",
     ("pleasure", "openness", "communication")),
    (59, "渙", "Huàn", "Dispersion", "xun", "kan",
     "Dispersion. Success. The king approaches his temple. It furthers one to cross the great water.",
     "The wind drives over the water. Thus the kings of old sacrificed to the Lord and built temples.",
     "Release of rigidity to welcome new flow.",
     ("dissolve barriers", "forgiveness", "release")),
    (60, "節", "Jié", "Limitation", "kan", "dui",
     "Limitation. Success. Galling limitation must not be persevered in.",
     "Water over the lake. Thus the superior person creates number and measure, and examines the nature of virtue and correct conduct.",
     "Boundaries that forge clarity.",
     ("boundaries", "measure", "discipline")),
    (61, "中孚", "Zhōng Fú", "Inner Truth", "xun", "dui",
     "Inner truth. Pigs and fishes. Good fortune. It furthers one to cross the great water.",
     "Wind over the lake. Thus the superior person discusses criminal cases in order to delay executions.",
     "Sincerity aligning intention and action.",
     ("sincerity", "trust", "insight")),
    (62, "小過", "Xiǎo Guò", "Preponderance of the Small", "zhen", "gen",
     "Preponderance of the small. Success. Small things may be done; great things should not be done.",
     "Thunder on the mountain. Thus in conduct the superior person gives preponderance to reverence.",
     "Detail-oriented precision.",
     ("attention to detail", "caution", "modesty")),
    (63, "既濟", "Jì Jì", "After Completion", "kan", "li",
     "After completion. Success in small matters. At the beginning good fortune, at the end disorder.",
     "Water over fire. Thus the superior person takes thought of misfortune and arms themself against it in advance.",
     "Completion that gives birth to new concerns.",
     ("culmination", "order", "maintenance")),
    (64, "未濟", "Wèi Jì", "Before Completion", "li", "kan",
     "Before completion. Success. But if the little fox, after nearly completing the crossing, gets its tail in the water, there is nothing that would further.",
     "Fire over water. Thus the superior person is careful in the differentiation of things, so that each finds its place.",
     "Anticipation at the threshold of success.",
     ("transition", "final steps", "alertness")),
)


def pattern_to_index(pattern: Sequence[bool]) -> int:
    """
    Индекс слота таблицы для шаблона из 6 черт.
    Черта i (0 - нижняя) дает бит i.
    """
    if len(pattern) != 6:
        raise ValueError(f"Гексаграмма должна состоять из 6 черт, получено {len(pattern)}")
    index = 0
    for i, is_yang in enumerate(pattern):
        if is_yang:
            index |= 1 << i
    return index


def _build_hexagram(entry: tuple) -> Hexagram:
    number, chinese, pinyin, english, upper_id, lower_id, judgment, image, meaning, keywords = entry
    upper = get_trigram(upper_id)
    lower = get_trigram(lower_id)
    return Hexagram(
        number=number,
        chinese_name=chinese,
        pinyin_name=pinyin,
        english_name=english,
        lines=lower.lines + upper.lines,
        upper_trigram=upper,
        lower_trigram=lower,
        judgment=judgment,
        image=image,
        meaning=meaning,
        keywords=keywords,
    )


def _build_tables() -> Tuple[Tuple[Optional[Hexagram], ...], Dict[int, Hexagram]]:
    """Построение таблиц поиска. Вызывается один раз при импорте модуля."""
    by_pattern: List[Optional[Hexagram]] = [None] * 64
    by_number: Dict[int, Hexagram] = {}

    for entry in _HEXAGRAM_DATA:
        hexagram = _build_hexagram(entry)
        if hexagram.number in by_number:
            raise HexagramTableCorruption(f"Повторяющийся номер гексаграммы: {hexagram.number}")
        index = pattern_to_index(hexagram.lines)
        if by_pattern[index] is not None:
            raise HexagramTableCorruption(
                f"Гексаграммы {by_pattern[index].number} и {hexagram.number} имеют одинаковые черты"
            )
        by_pattern[index] = hexagram
        by_number[hexagram.number] = hexagram

    if len(by_number) != 64 or set(by_number) != set(range(1, 65)):
        raise HexagramTableCorruption(f"Ожидалось 64 гексаграммы с номерами 1..64, получено {len(by_number)}")
    if any(h is None for h in by_pattern):
        raise HexagramTableCorruption("Не все 64 комбинации черт покрыты таблицей")

    return tuple(by_pattern), by_number


_BY_PATTERN, _BY_NUMBER = _build_tables()


def resolve(pattern: Sequence[bool]) -> Hexagram:
    """
    Поиск гексаграммы по шаблону черт

    :param pattern: 6 значений снизу вверх, True - ян (включая изменяющийся ян)
    :return: Гексаграмма с точно таким же шаблоном
    """
    hexagram = _BY_PATTERN[pattern_to_index([bool(x) for x in pattern])]
    if hexagram is None:
        raise HexagramTableCorruption(f"Нет гексаграммы для шаблона {list(pattern)}")
    return hexagram


def get_hexagram_by_number(number: int) -> Hexagram:
    """Получение гексаграммы по номеру Вэнь-вана (1-64)"""
    try:
        return _BY_NUMBER[number]
    except KeyError:
        raise ValueError(f"Номер гексаграммы должен быть от 1 до 64, получено {number}")


def get_all_hexagrams() -> List[Hexagram]:
    """Все 64 гексаграммы в порядке Вэнь-вана"""
    return [_BY_NUMBER[n] for n in range(1, 65)]
