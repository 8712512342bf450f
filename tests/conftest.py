import json

import pytest

from dictionary import Dictionary

RECORDS = [
    {"ent_seq": 1, "k_ele": [{"keb": "猫", "level": "Four"}], "r_ele": [{"reb": "ねこ", "level": "Four"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "cat"}]}]},
    {"ent_seq": 2, "k_ele": [{"keb": "犬", "level": "Four"}], "r_ele": [{"reb": "いぬ", "level": "Four"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "dog"}]}]},
    {"ent_seq": 3, "k_ele": [{"keb": "鳥", "level": "Three"}], "r_ele": [{"reb": "とり", "level": "Three"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "bird"}]}]},
    {"ent_seq": 4, "k_ele": [{"keb": "魚", "level": "Three"}], "r_ele": [{"reb": "さかな", "level": "Three"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "fish"}]}]},
    {"ent_seq": 5, "k_ele": [{"keb": "馬", "level": "Two"}], "r_ele": [{"reb": "うま", "level": "Two"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "horse"}]}]},
    {"ent_seq": 6, "k_ele": [{"keb": "食べる", "level": "Four"}], "r_ele": [{"reb": "たべる", "level": "Four"}],
     "sense": [{"pos": ["&v1;", "&vt;"], "gloss": [{"content": "to eat"}]}]},
    {"ent_seq": 7, "k_ele": [{"keb": "飲む", "level": "Four"}], "r_ele": [{"reb": "のむ", "level": "Four"}],
     "sense": [{"pos": ["&v5m;", "&vt;"], "gloss": [{"content": "to drink"}]}]},
    {"ent_seq": 8, "r_ele": [{"reb": "あの", "level": "Four"}],
     "sense": [{"pos": ["&adj-pn;"], "gloss": [{"content": "that (over there)"}]}]},
    {"ent_seq": 9, "k_ele": [{"keb": "上手", "level": "One"}],
     "r_ele": [{"reb": "じょうず", "level": "One"}, {"reb": "うわて", "re_restr": ["上手"]}],
     "sense": [{"pos": ["&adj-na;"], "stagr": ["じょうず"], "gloss": [{"content": "skillful"}]}]},
    {"ent_seq": 10, "k_ele": [{"keb": "本", "level": "Four"}], "r_ele": [{"reb": "ほん", "level": "Four"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "book"}]},
               {"pos": ["&ctr;"], "gloss": [{"content": "counter for long things"}]}]},
    {"ent_seq": 11, "r_ele": [{"reb": "テレビ", "level": "Four"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "television"}]}]},
    {"ent_seq": 12, "k_ele": [{"keb": "空"}], "r_ele": [{"reb": "そら"}],
     "sense": [{"pos": ["&n;"], "gloss": [{"content": "sky"}]}]},
]


def make_dictionary(records):
    return Dictionary.from_lines(json.dumps(r, ensure_ascii=False) for r in records)


@pytest.fixture
def dictionary():
    return make_dictionary(RECORDS)


@pytest.fixture
def entries(dictionary):
    return {entry.id: entry for entry in dictionary}
