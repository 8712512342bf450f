import random
from collections import namedtuple
from dataclasses import dataclass

from kana import PLACEHOLDER, unique_scramble

OPTION_COUNT = 5


class Mode:
    GLOSS_TO_KANA = "gloss_to_kana"
    KANA_TO_GLOSS = "kana_to_gloss"
    KANA_TO_KANJI = "kana_to_kanji"
    KANJI_TO_KANA = "kanji_to_kana"
    KANJI_TO_GLOSS = "kanji_to_gloss"
    GLOSS_TO_KANJI = "gloss_to_kanji"


MODE_LABELS = {
    Mode.GLOSS_TO_KANA: "English ▶ ひらがな",
    Mode.KANA_TO_GLOSS: "ひらがな ▶ English",
    Mode.KANA_TO_KANJI: "ひらがな ▶ 漢字",
    Mode.KANJI_TO_KANA: "漢字 ▶ ひらがな",
    Mode.KANJI_TO_GLOSS: "漢字 ▶ English",
    Mode.GLOSS_TO_KANJI: "English ▶ 漢字",
}


@dataclass
class Question:
    prompt: str
    options: list
    answer: int

    @property
    def answer_text(self):
        return self.options[self.answer]


# ============ Pair Extraction ============
# Each extractor returns None when the entry can't support the direction
# for that part of speech; callers move on to another tag or entry.

def reading_sense_pair(entry, pos):
    """A reading and a glossed sense tagged `pos` that the reading belongs to"""
    sense = next((s for s in entry.senses if s.has_pos(pos) and s.gloss), None)
    if sense is None:
        return None

    reading = next(
        (r for r in entry.readings
         if not sense.relevant_reading or r.text in sense.relevant_reading),
        None,
    )
    if reading is None:
        return None
    return reading, sense


def kanji_reading_pair(entry, pos):
    """The first kanji spelling and a reading valid for both it and a sense tagged `pos`"""
    sense = next((s for s in entry.senses if s.has_pos(pos)), None)
    if sense is None or not entry.kanjis:
        return None
    kanji = entry.kanjis[0]

    reading = next(
        (r for r in entry.readings
         if (not r.relevant_to or kanji.text in r.relevant_to)
         and (not sense.relevant_reading or r.text in sense.relevant_reading)),
        None,
    )
    if reading is None:
        return None
    return kanji, reading


def kanji_sense_pair(entry, pos):
    """The first kanji spelling and a glossed sense tagged `pos`"""
    sense = next((s for s in entry.senses if s.has_pos(pos) and s.gloss), None)
    if sense is None or not entry.kanjis:
        return None
    return entry.kanjis[0], sense


def _text(element):
    return element.text


def _first_gloss(sense):
    return sense.gloss[0]


# extract(entry, pos) -> pair; prompt/target pick a string out of the pair
Direction = namedtuple("Direction", ["extract", "prompt", "target", "kana_target"])

DIRECTIONS = {
    Mode.GLOSS_TO_KANA: Direction(
        reading_sense_pair, lambda p: _first_gloss(p[1]), lambda p: _text(p[0]), True),
    Mode.KANA_TO_GLOSS: Direction(
        reading_sense_pair, lambda p: _text(p[0]), lambda p: _first_gloss(p[1]), False),
    Mode.KANA_TO_KANJI: Direction(
        kanji_reading_pair, lambda p: _text(p[1]), lambda p: _text(p[0]), False),
    Mode.KANJI_TO_KANA: Direction(
        kanji_reading_pair, lambda p: _text(p[0]), lambda p: _text(p[1]), True),
    Mode.KANJI_TO_GLOSS: Direction(
        kanji_sense_pair, lambda p: _text(p[0]), lambda p: _first_gloss(p[1]), False),
    Mode.GLOSS_TO_KANJI: Direction(
        kanji_sense_pair, lambda p: _first_gloss(p[1]), lambda p: _text(p[0]), False),
}


# ============ Options ============

def reservoir_sample(iterable, k, rng=None):
    """Pick up to `k` items uniformly without replacement in a single pass"""
    rng = rng or random
    reservoir = []
    for seen, item in enumerate(iterable):
        if seen < k:
            reservoir.append(item)
            continue
        j = rng.randint(0, seen)
        if j < k:
            reservoir[j] = item
    return reservoir


def _alternate_targets(direction, entry, pos, dictionary, exclude):
    """Distinct target values other entries yield for the same direction and tag"""
    seen = set(exclude)
    for other in dictionary:
        if other.id == entry.id:
            continue
        pair = direction.extract(other, pos)
        if pair is None:
            continue
        value = direction.target(pair)
        if value in seen:
            continue
        seen.add(value)
        yield value


def build(entry, mode, pos, dictionary, rng=None):
    """
    Build a multiple-choice question for `entry` in `mode`, restricted to
    senses tagged `pos`. Returns None if the entry can't support it.
    """
    rng = rng or random
    direction = DIRECTIONS[mode]

    pair = direction.extract(entry, pos)
    if pair is None:
        return None
    prompt = direction.prompt(pair)
    target = direction.target(pair)

    options = [target]
    options.extend(reservoir_sample(
        _alternate_targets(direction, entry, pos, dictionary, {target}),
        OPTION_COUNT - 1,
        rng,
    ))

    while len(options) < OPTION_COUNT:
        if direction.kana_target:
            options.append(unique_scramble(target, options, rng))
        else:
            options.append(PLACEHOLDER)

    # Track the answer by position, labels may repeat (PLACEHOLDER)
    order = list(range(OPTION_COUNT))
    rng.shuffle(order)
    return Question(
        prompt=prompt,
        options=[options[i] for i in order],
        answer=order.index(0),
    )


def build_any(entry, mode, pos_tags, dictionary, rng=None):
    """Try each part of speech in random order until one yields a question"""
    rng = rng or random
    tags = sorted(pos_tags)
    rng.shuffle(tags)
    for pos in tags:
        question = build(entry, mode, pos, dictionary, rng)
        if question is not None:
            return question
    return None
