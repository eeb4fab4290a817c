"""Answer comparison for riddles and the final assembly."""
import re
from typing import Optional

_UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
_SCALES = {"hundred": 100, "thousand": 1000}


def normalize(text: str) -> str:
    return " ".join(text.split()).casefold()


def _kind(token: str) -> Optional[str]:
    if token in _UNITS:
        value = _UNITS[token]
        if value == 0:
            return "zero"
        return "unit" if value < 10 else "teen"
    if token in _TENS:
        return "tens"
    return token if token in _SCALES else None


# Word kinds allowed right after each kind; None is the start of the phrase
_FOLLOWS = {
    None: {"zero", "unit", "teen", "tens", "hundred", "thousand"},
    "zero": set(),
    "unit": {"hundred", "thousand"},
    "teen": {"hundred", "thousand"},
    "tens": {"unit", "thousand"},
    "hundred": {"unit", "teen", "tens", "thousand"},
    "thousand": {"unit", "teen", "tens"},
}


def words_to_int(text: str) -> Optional[int]:
    """
    'Twenty-One' -> 21, 'one hundred and five' -> 105. None if not a number.

    Only well-formed phrases parse, so "one one", "ten ten ten" and
    "hundred hundred" are not numbers.
    """
    tokens = [t for t in re.split(r"[\s\-]+", text.casefold()) if t and t != "and"]
    if not tokens:
        return None
    total = 0
    current = 0
    previous = None
    seen_scales = set()
    for token in tokens:
        kind = _kind(token)
        if kind is None or kind not in _FOLLOWS[previous]:
            return None
        if kind in _SCALES:
            if kind in seen_scales:
                return None
            seen_scales.add(kind)
            current = (current or 1) * _SCALES[kind]
            if kind == "thousand":
                seen_scales.discard("hundred")
                total += current
                current = 0
        else:
            current += _UNITS.get(token, _TENS.get(token, 0))
        previous = kind
    return total + current


def parse_int(text: str) -> Optional[int]:
    """ASCII digits with hyphens/spaces stripped ("2-1" -> 21), else number words."""
    compact = re.sub(r"[\s\-]", "", text)
    if re.fullmatch(r"[0-9]+", compact):
        return int(compact)
    return words_to_int(text)


def answers_match(submitted: str, canonical: str) -> bool:
    if submitted is None or canonical is None:
        return False
    if normalize(submitted) == normalize(canonical):
        return True
    expected = parse_int(canonical)
    if expected is None:
        return False
    return parse_int(submitted) == expected
