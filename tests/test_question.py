import random

from dictionary import POS_TABLE, DictEntry, Kanji, Reading, Sense
from kana import PLACEHOLDER
from question import (
    DIRECTIONS,
    MODE_LABELS,
    OPTION_COUNT,
    Mode,
    build,
    build_any,
    kanji_reading_pair,
    kanji_sense_pair,
    reading_sense_pair,
    reservoir_sample,
)

NOUN = POS_TABLE["n"]
ICHIDAN = POS_TABLE["v1"]

ALL_MODES = [
    Mode.GLOSS_TO_KANA,
    Mode.KANA_TO_GLOSS,
    Mode.KANA_TO_KANJI,
    Mode.KANJI_TO_KANA,
    Mode.KANJI_TO_GLOSS,
    Mode.GLOSS_TO_KANJI,
]


def test_every_mode_has_a_direction_and_label():
    assert set(DIRECTIONS) == set(ALL_MODES)
    assert set(MODE_LABELS) == set(ALL_MODES)


# ============ Pair Extraction ============

def test_reading_sense_pair_honours_restrictions(entries):
    reading, sense = reading_sense_pair(entries[9], POS_TABLE["adj-na"])
    assert reading.text == "じょうず"
    assert sense.gloss == ("skillful",)


def test_reading_sense_pair_picks_sense_by_pos(entries):
    reading, sense = reading_sense_pair(entries[10], POS_TABLE["ctr"])
    assert reading.text == "ほん"
    assert sense.gloss[0] == "counter for long things"


def test_reading_sense_pair_without_matching_pos(entries):
    assert reading_sense_pair(entries[10], ICHIDAN) is None


def test_kana_only_entry_has_no_kanji_pairs(entries):
    prenominal = POS_TABLE["adj-pn"]
    assert reading_sense_pair(entries[8], prenominal)[0].text == "あの"
    assert kanji_reading_pair(entries[8], prenominal) is None
    assert kanji_sense_pair(entries[8], prenominal) is None


def test_kanji_reading_pair_skips_restricted_readings():
    entry = DictEntry(
        id=100,
        kanjis=(Kanji("上手"), Kanji("上て")),
        readings=(Reading("じょうず", relevant_to=("上て",)), Reading("うわて")),
        senses=(Sense(pos=(NOUN,), gloss=("upper part",)),),
    )
    kanji, reading = kanji_reading_pair(entry, NOUN)
    assert kanji.text == "上手"
    assert reading.text == "うわて"


def test_kanji_reading_pair_fails_when_sense_and_kanji_disagree():
    entry = DictEntry(
        id=101,
        kanjis=(Kanji("上手"),),
        readings=(Reading("じょうず", relevant_to=("上て",)), Reading("うわて")),
        senses=(Sense(pos=(NOUN,), gloss=("skill",), relevant_reading=("じょうず",)),),
    )
    assert kanji_reading_pair(entry, NOUN) is None


def test_sense_without_gloss_is_skipped():
    entry = DictEntry(
        id=102,
        kanjis=(Kanji("無"),),
        readings=(Reading("む"),),
        senses=(Sense(pos=(NOUN,)),),
    )
    assert reading_sense_pair(entry, NOUN) is None
    assert kanji_sense_pair(entry, NOUN) is None
    assert kanji_reading_pair(entry, NOUN) is not None


# ============ Options ============

def test_reservoir_sample():
    rng = random.Random(3)
    assert reservoir_sample([], 4, rng) == []
    assert reservoir_sample("abc", 4, rng) == ["a", "b", "c"]

    picked = reservoir_sample(range(100), 4, rng)
    assert len(picked) == 4
    assert len(set(picked)) == 4
    assert all(0 <= p < 100 for p in picked)


def test_questions_are_well_formed_for_every_mode(dictionary):
    for mode in ALL_MODES:
        for entry in dictionary:
            for seed in range(3):
                question = build(entry, mode, NOUN, dictionary, random.Random(seed))
                if question is None:
                    continue
                assert len(question.options) == OPTION_COUNT
                assert 0 <= question.answer < OPTION_COUNT
                target = question.answer_text
                assert question.options.count(target) == 1


def test_gloss_to_kana_targets_the_reading(dictionary, entries):
    question = build(entries[1], Mode.GLOSS_TO_KANA, NOUN, dictionary, random.Random(1))
    assert question.prompt == "cat"
    assert question.answer_text == "ねこ"
    assert PLACEHOLDER not in question.options
    assert len(set(question.options)) == OPTION_COUNT


def test_kanji_modes(dictionary, entries):
    question = build(entries[2], Mode.KANJI_TO_GLOSS, NOUN, dictionary, random.Random(1))
    assert question.prompt == "犬"
    assert question.answer_text == "dog"

    question = build(entries[2], Mode.KANA_TO_KANJI, NOUN, dictionary, random.Random(1))
    assert question.prompt == "いぬ"
    assert question.answer_text == "犬"

    question = build(entries[2], Mode.GLOSS_TO_KANJI, NOUN, dictionary, random.Random(1))
    assert question.prompt == "dog"
    assert "テレビ" not in question.options


def test_kanji_mode_on_kana_only_entry(dictionary, entries):
    assert build(entries[11], Mode.KANJI_TO_KANA, NOUN, dictionary) is None


def test_alternates_come_from_other_entries(dictionary, entries):
    question = build(entries[3], Mode.KANA_TO_GLOSS, NOUN, dictionary, random.Random(5))
    others = {"cat", "dog", "fish", "horse", "book", "television", "sky"}
    for i, option in enumerate(question.options):
        if i != question.answer:
            assert option in others


def test_kana_target_padded_with_scrambles(dictionary, entries):
    # 食べる is the only v1 entry, so no other entry can supply alternates
    question = build(entries[6], Mode.GLOSS_TO_KANA, ICHIDAN, dictionary, random.Random(2))
    assert question.answer_text == "たべる"
    assert len(set(question.options)) == OPTION_COUNT
    for option in question.options:
        assert len(option) == 3


def test_other_targets_padded_with_placeholder(dictionary, entries):
    question = build(entries[6], Mode.KANA_TO_GLOSS, ICHIDAN, dictionary, random.Random(2))
    assert question.answer_text == "to eat"
    assert question.options.count(PLACEHOLDER) == OPTION_COUNT - 1


def test_answer_position_is_shuffled(dictionary, entries):
    answers = {
        build(entries[1], Mode.GLOSS_TO_KANA, NOUN, dictionary, random.Random(seed)).answer
        for seed in range(30)
    }
    assert len(answers) > 1


def test_build_any_tries_each_tag(dictionary, entries):
    question = build_any(entries[6], Mode.KANA_TO_GLOSS, {NOUN, ICHIDAN}, dictionary, random.Random(0))
    assert question.answer_text == "to eat"


def test_build_any_without_usable_tag(dictionary, entries):
    assert build_any(entries[6], Mode.KANA_TO_GLOSS, {POS_TABLE["adj-i"]}, dictionary) is None
    assert build_any(entries[6], Mode.KANA_TO_GLOSS, set(), dictionary) is None
