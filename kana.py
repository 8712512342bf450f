import random

# Stand-in option used when no unique distractor can be produced
PLACEHOLDER = "OPTION"

MAX_SCRAMBLE_TRIES = 1000


# ============ Kana Charts ============
# 8 consonant rows x 5 vowel columns. A kana may be swapped for anything
# sharing its row or its column.

HIRA_CHART = (
    "あいうえお",
    "かきくけこ",
    "さしすせそ",
    "たちつてと",
    "なにぬねの",
    "はひふへほ",
    "まみむめも",
    "らりるれろ",
)
HIRA_WA_COL = "わあかさたなはまやら"  # わ swaps with any other column head
HIRA_Y_ROW = "やゆよ"
HIRA_SMALL_Y_ROW = "ゃゅょ"

KATA_CHART = (
    "アイウエオ",
    "カキクケコ",
    "サシスセソ",
    "タチツテト",
    "ナニヌネノ",
    "ハヒフヘホ",
    "マミムメモ",
    "ラリルレロ",
)
KATA_WA_COL = "ワアカサタナハマヤラ"
KATA_Y_ROW = "ヤユヨ"
KATA_SMALL_Y_ROW = "ャュョ"

_SYLLABARIES = (
    (HIRA_CHART, HIRA_WA_COL, (HIRA_Y_ROW, HIRA_SMALL_Y_ROW)),
    (KATA_CHART, KATA_WA_COL, (KATA_Y_ROW, KATA_SMALL_Y_ROW)),
)


def _chart_coords(char, chart):
    for row_idx, row in enumerate(chart):
        col_idx = row.find(char)
        if col_idx != -1:
            return row_idx, col_idx
    return None


def _chart_swap_pool(char, chart):
    coords = _chart_coords(char, chart)
    if coords is None:
        return None
    row_idx, col_idx = coords

    neighbors = [c for c in chart[row_idx] if c != char]
    for row in chart:
        if row[col_idx] != char:
            neighbors.append(row[col_idx])
    return neighbors


def _build_swap_pools():
    pools = {}
    for chart, wa_col, glide_rows in _SYLLABARIES:
        for row in chart:
            for char in row:
                pools[char] = _chart_swap_pool(char, chart)
        pools[wa_col[0]] = list(wa_col[1:])
        for glides in glide_rows:
            for char in glides:
                pools[char] = [g for g in glides if g != char]
    return pools


# Built once; charts never change at runtime
SWAP_POOLS = _build_swap_pools()


def swap_pool(char):
    """Kana that can replace `char` in a scramble, or None if it can't be swapped"""
    pool = SWAP_POOLS.get(char)
    return list(pool) if pool is not None else None


def swappable_ratio(text):
    """Fraction of characters in `text` that have a swap pool"""
    if not text:
        return 0.0
    swappable = sum(1 for char in text if char in SWAP_POOLS)
    return swappable / len(text)


def always_swap(reading):
    """Short or mostly-unswappable readings get every eligible character swapped"""
    return len(reading) < 4 or swappable_ratio(reading) < 0.6


# ============ Scrambling ============

def scrambled(reading, rng=None):
    """Scramble the hiragana/katakana of `reading`, keeping its length"""
    rng = rng or random
    swap_all = always_swap(reading)

    result = []
    for char in reading:
        pool = SWAP_POOLS.get(char)
        if pool and (swap_all or rng.random() < 0.5):
            result.append(rng.choice(pool))
        else:
            result.append(char)
    return "".join(result)


def unique_scramble(reading, taken, rng=None, tries=MAX_SCRAMBLE_TRIES):
    """
    Scramble `reading` until the result isn't in `taken`.
    Falls back to PLACEHOLDER when every attempt collides.
    """
    for _ in range(tries):
        candidate = scrambled(reading, rng)
        if candidate not in taken:
            return candidate
    return PLACEHOLDER
