import json
import logging
import random
from collections import namedtuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class DictionaryError(Exception):
    """Raised when the lexicon snapshot can't be parsed"""


# ============ Levels ============

# Four JLPT tiers, hardest first
LEVELS = ("N1", "N2", "N3", "N4")

_LEVEL_ALIASES = {
    "one": "N1", "two": "N2", "three": "N3", "four": "N4",
    "1": "N1", "2": "N2", "3": "N3", "4": "N4",
    "n1": "N1", "n2": "N2", "n3": "N3", "n4": "N4",
}


def parse_level(value):
    """Normalize a level tag to N1-N4. Returns None for unknown/unannotated."""
    if value is None:
        return None
    return _LEVEL_ALIASES.get(str(value).strip().lower())


# ============ Parts of Speech ============

Pos = namedtuple("Pos", ["tag", "description"])

# JMDict part-of-speech entities, tag -> Pos
POS_TABLE = {p.tag: p for p in (
    Pos("adj-f", "noun or verb acting prenominally"),
    Pos("adj-i", "adjective (keiyoushi)"),
    Pos("adj-ix", "adjective (keiyoushi) - yoi/ii class"),
    Pos("adj-kari", "'kari' adjective (archaic)"),
    Pos("adj-ku", "'ku' adjective (archaic)"),
    Pos("adj-na", "adjectival nouns or quasi-adjectives (keiyodoshi)"),
    Pos("adj-nari", "archaic/formal form of na-adjective"),
    Pos("adj-no", "nouns which may take the genitive case particle 'no'"),
    Pos("adj-pn", "pre-noun adjectival (rentaishi)"),
    Pos("adj-shiku", "'shiku' adjective (archaic)"),
    Pos("adj-t", "'taru' adjective"),
    Pos("adv", "adverb (fukushi)"),
    Pos("adv-to", "adverb taking the 'to' particle"),
    Pos("aux", "auxiliary"),
    Pos("aux-adj", "auxiliary adjective"),
    Pos("aux-v", "auxiliary verb"),
    Pos("conj", "conjunction"),
    Pos("cop", "copula"),
    Pos("ctr", "counter"),
    Pos("exp", "expressions (phrases, clauses, etc.)"),
    Pos("int", "interjection (kandoushi)"),
    Pos("n", "noun (common) (futsuumeishi)"),
    Pos("n-adv", "adverbial noun (fukushitekimeishi)"),
    Pos("n-pr", "proper noun"),
    Pos("n-pref", "noun, used as a prefix"),
    Pos("n-suf", "noun, used as a suffix"),
    Pos("n-t", "noun (temporal) (jisoumeishi)"),
    Pos("num", "numeric"),
    Pos("pn", "pronoun"),
    Pos("pref", "prefix"),
    Pos("prt", "particle"),
    Pos("suf", "suffix"),
    Pos("unc", "unclassified"),
    Pos("v-unspec", "verb unspecified"),
    Pos("v1", "Ichidan verb"),
    Pos("v1-s", "Ichidan verb - kureru special class"),
    Pos("v2a-s", "Nidan verb with 'u' ending (archaic)"),
    Pos("v2b-k", "Nidan verb (upper class) with 'bu' ending (archaic)"),
    Pos("v2b-s", "Nidan verb (lower class) with 'bu' ending (archaic)"),
    Pos("v2d-k", "Nidan verb (upper class) with 'dzu' ending (archaic)"),
    Pos("v2d-s", "Nidan verb (lower class) with 'dzu' ending (archaic)"),
    Pos("v2g-k", "Nidan verb (upper class) with 'gu' ending (archaic)"),
    Pos("v2g-s", "Nidan verb (lower class) with 'gu' ending (archaic)"),
    Pos("v2h-k", "Nidan verb (upper class) with 'hu/fu' ending (archaic)"),
    Pos("v2h-s", "Nidan verb (lower class) with 'hu/fu' ending (archaic)"),
    Pos("v2k-k", "Nidan verb (upper class) with 'ku' ending (archaic)"),
    Pos("v2k-s", "Nidan verb (lower class) with 'ku' ending (archaic)"),
    Pos("v2m-k", "Nidan verb (upper class) with 'mu' ending (archaic)"),
    Pos("v2m-s", "Nidan verb (lower class) with 'mu' ending (archaic)"),
    Pos("v2n-s", "Nidan verb (lower class) with 'nu' ending (archaic)"),
    Pos("v2r-k", "Nidan verb (upper class) with 'ru' ending (archaic)"),
    Pos("v2r-s", "Nidan verb (lower class) with 'ru' ending (archaic)"),
    Pos("v2s-s", "Nidan verb (lower class) with 'su' ending (archaic)"),
    Pos("v2t-k", "Nidan verb (upper class) with 'tsu' ending (archaic)"),
    Pos("v2t-s", "Nidan verb (lower class) with 'tsu' ending (archaic)"),
    Pos("v2w-s", "Nidan verb (lower class) with 'u' ending and 'we' conjugation (archaic)"),
    Pos("v2y-k", "Nidan verb (upper class) with 'yu' ending (archaic)"),
    Pos("v2y-s", "Nidan verb (lower class) with 'yu' ending (archaic)"),
    Pos("v2z-s", "Nidan verb (lower class) with 'zu' ending (archaic)"),
    Pos("v4b", "Yodan verb with 'bu' ending (archaic)"),
    Pos("v4g", "Yodan verb with 'gu' ending (archaic)"),
    Pos("v4h", "Yodan verb with 'hu/fu' ending (archaic)"),
    Pos("v4k", "Yodan verb with 'ku' ending (archaic)"),
    Pos("v4m", "Yodan verb with 'mu' ending (archaic)"),
    Pos("v4n", "Yodan verb with 'nu' ending (archaic)"),
    Pos("v4r", "Yodan verb with 'ru' ending (archaic)"),
    Pos("v4s", "Yodan verb with 'su' ending (archaic)"),
    Pos("v4t", "Yodan verb with 'tsu' ending (archaic)"),
    Pos("v5aru", "Godan verb - -aru special class"),
    Pos("v5b", "Godan verb with 'bu' ending"),
    Pos("v5g", "Godan verb with 'gu' ending"),
    Pos("v5k", "Godan verb with 'ku' ending"),
    Pos("v5k-s", "Godan verb - Iku/Yuku special class"),
    Pos("v5m", "Godan verb with 'mu' ending"),
    Pos("v5n", "Godan verb with 'nu' ending"),
    Pos("v5r", "Godan verb with 'ru' ending"),
    Pos("v5r-i", "Godan verb with 'ru' ending (irregular verb)"),
    Pos("v5s", "Godan verb with 'su' ending"),
    Pos("v5t", "Godan verb with 'tsu' ending"),
    Pos("v5u", "Godan verb with 'u' ending"),
    Pos("v5u-s", "Godan verb with 'u' ending (special class)"),
    Pos("v5uru", "Godan verb - Uru old class verb (old form of Eru)"),
    Pos("vi", "intransitive verb"),
    Pos("vk", "Kuru verb - special class"),
    Pos("vn", "irregular nu verb"),
    Pos("vr", "irregular ru verb, plain form ends with -ri"),
    Pos("vs", "noun or participle which takes the aux. verb suru"),
    Pos("vs-c", "su verb - precursor to the modern suru"),
    Pos("vs-i", "suru verb - included"),
    Pos("vs-s", "suru verb - special class"),
    Pos("vt", "transitive verb"),
    Pos("vz", "Ichidan verb - zuru verb (alternative form of -jiru verbs)"),
)}


def pos_from_tag(tag):
    """Look up a Pos by its JMDict tag, with or without the &...; entity wrapping"""
    key = tag.strip()
    if key.startswith("&") and key.endswith(";"):
        key = key[1:-1]
    try:
        return POS_TABLE[key]
    except KeyError:
        raise DictionaryError(f"unexpected part-of-speech found: {tag}") from None


def _pos_set(*tags):
    return frozenset(POS_TABLE[t] for t in tags)


# Named filters offered to players
POS_CATEGORIES = {
    "Nouns": _pos_set("n", "n-adv", "n-pr", "n-pref", "n-suf", "n-t", "pn", "adj-no"),
    "Verbs": frozenset(p for tag, p in POS_TABLE.items() if tag.startswith("v") and tag not in ("vi", "vt")),
    "Adjectives": _pos_set("adj-i", "adj-ix", "adj-na", "adj-t", "adj-f"),
    "Adverbs": _pos_set("adv", "adv-to", "n-adv"),
    "Prenominals": _pos_set("adj-pn"),
}

DEFAULT_CATEGORIES = ("Nouns", "Verbs", "Prenominals")


def pos_for_categories(names):
    """Union of the named POS categories"""
    result = set()
    for name in names:
        result |= POS_CATEGORIES[name]
    return frozenset(result)


# ============ Entries ============

@dataclass(frozen=True)
class Kanji:
    text: str
    levels: tuple = ()


@dataclass(frozen=True)
class Reading:
    text: str
    levels: tuple = ()
    # Kanji spellings this reading applies to; empty means all
    relevant_to: tuple = ()


@dataclass(frozen=True)
class Sense:
    pos: tuple = ()
    gloss: tuple = ()
    relevant_kanji: tuple = ()
    relevant_reading: tuple = ()

    def has_pos(self, pos):
        return pos in self.pos


@dataclass(frozen=True)
class DictEntry:
    id: int
    kanjis: tuple
    readings: tuple
    senses: tuple

    def levels(self):
        """Every level tagged on any kanji spelling or reading, in tier order"""
        found = set()
        for element in self.kanjis + self.readings:
            found.update(element.levels)
        return [lvl for lvl in LEVELS if lvl in found]


def _levels(element):
    raw = element.get("levels")
    if raw is None:
        raw = [element.get("level")]
    levels = []
    for value in raw:
        level = parse_level(value)
        if level and level not in levels:
            levels.append(level)
    return tuple(levels)


def _gloss_text(gloss):
    if isinstance(gloss, dict):
        return gloss.get("content", "")
    return str(gloss)


def entry_from_record(record):
    """Build a DictEntry from one snapshot record"""
    entry_id = record.get("id", record.get("ent_seq"))
    if entry_id is None:
        raise DictionaryError("entry is missing its id")

    kanjis = tuple(
        Kanji(text=k["keb"], levels=_levels(k))
        for k in record.get("k_ele", [])
    )
    readings = tuple(
        Reading(text=r["reb"], levels=_levels(r), relevant_to=tuple(r.get("re_restr", [])))
        for r in record.get("r_ele", [])
    )
    if not readings:
        raise DictionaryError(f"entry {entry_id} has no readings")

    senses = tuple(
        Sense(
            pos=tuple(pos_from_tag(tag) for tag in s.get("pos", [])),
            gloss=tuple(text for text in (_gloss_text(g) for g in s.get("gloss", [])) if text),
            relevant_kanji=tuple(s.get("stagk", [])),
            relevant_reading=tuple(s.get("stagr", [])),
        )
        for s in record.get("sense", [])
    )

    return DictEntry(id=int(entry_id), kanjis=kanjis, readings=readings, senses=senses)


class Dictionary:
    """Read-only collection of lexicon entries shared by every game session"""

    def __init__(self, entries):
        self.entries = tuple(entries)

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @classmethod
    def from_lines(cls, lines):
        entries = []
        for line_no, line in enumerate(lines, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise DictionaryError(f"line {line_no}: invalid JSON ({e})") from e
            try:
                entries.append(entry_from_record(record))
            except (KeyError, TypeError, ValueError) as e:
                raise DictionaryError(f"line {line_no}: malformed entry ({e})") from e
            except DictionaryError as e:
                raise DictionaryError(f"line {line_no}: {e}") from e
        return cls(entries)

    @classmethod
    def load(cls, path):
        """Load a line-delimited JSON snapshot"""
        with open(path, "r", encoding="utf-8") as f:
            dictionary = cls.from_lines(f)
        logger.info("Loaded %d dictionary entries from %s", len(dictionary), path)
        return dictionary

    def sample(self, levels, pos, rng=None):
        """
        Shuffled subset of entries having at least one of `levels` and at
        least one sense tagged with any of `pos`. An empty list is a valid
        (exhausted) pool.
        """
        levels = set(levels)
        pos = set(pos)
        sample = []
        for entry in self.entries:
            if not levels.intersection(entry.levels()):
                continue
            if not any(pos.intersection(sense.pos) for sense in entry.senses):
                continue
            sample.append(entry)
        (rng or random).shuffle(sample)
        return sample
