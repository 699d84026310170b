"""
OCR text correction for timecard lines: fix systematic misreads of digits and
separators (D read as 0, handwritten 7 read as F, "19/0" for "1900", time
fragments split or merged) so the line parser sees clean 4-digit times.

Each step is a pure str -> str transform; correct() runs them in a fixed order,
repeating the whole chain until the line stops changing.
"""

from __future__ import annotations

import re
from typing import Callable

Transform = Callable[[str], str]

# Letter confusions allowed only when the letter touches a digit
LETTER_TO_DIGIT: dict[str, str] = {
    "D": "0", "O": "0", "o": "0",
    "g": "9", "q": "9",
    "I": "1", "l": "1",
    "B": "8",
    "S": "5", "s": "5",
    "Z": "2", "z": "2",
    "e": "0", "w": "0", "W": "0", "t": "0", "T": "0",
    "n": "0", "m": "0", "U": "0", "u": "0",
    "r": "1", "R": "1",
    "f": "7", "F": "7",
}
LETTER_FIX_MAX_PASSES = 3
CORRECTION_MAX_PASSES = 4


def is_valid_time4(s: str) -> bool:
    """True if s is a 4-digit clock time HHMM with hour 00-23 and minute 00-59."""
    if len(s) != 4 or not s.isdigit():
        return False
    return int(s[:2]) <= 23 and int(s[2:]) <= 59


# ---------------------------------------------------------------------------
# 1. OFF spelling variants
# ---------------------------------------------------------------------------

_OFF_VARIANT = re.compile(r"\b[0Oo] ?[Ff] ?[Ff]\b")


def normalize_off(text: str) -> str:
    """0FF, oFF, OfF, 'O F F' -> OFF."""
    return _OFF_VARIANT.sub("OFF", text)


# ---------------------------------------------------------------------------
# 2. "+1" extra-hour marker
# ---------------------------------------------------------------------------

# "0700 1900 t 3" / "1900 F1" / "1900 +l": + read as t/T/f/F, 1 read as 1/l/3/I/i/|
_PLUS_ONE_MISREAD = re.compile(r"(\d{3,})\s+([tTfF+])\s*([1l3Ii|])(?=\s|$)")


def normalize_plus_one(text: str) -> str:
    return _PLUS_ONE_MISREAD.sub(r"\1 +1", text)


# ---------------------------------------------------------------------------
# 3. Position-specific handwriting fixes
# ---------------------------------------------------------------------------

_LEADING_F = re.compile(r"\b[Ff](\d{3,})")
_DOLLAR_SEVEN = re.compile(r"\$(:?\d)")
_DASH_GLYPH = re.compile(r"(\d)±(\d)")
_LEADING_EIGHT = re.compile(r"\b8(\d{3})\b")


def _eight_as_zero(m: re.Match) -> str:
    as8 = "8" + m.group(1)
    as0 = "0" + m.group(1)
    if int(as8[:2]) > 23 and is_valid_time4(as0):
        return as0
    return as8


def fix_handwriting_digits(text: str) -> str:
    """F130 -> 7130, $:30 -> 7:30, 0700±1900 -> 0700 1900, 8730 -> 0730."""
    text = _LEADING_F.sub(r"7\1", text)
    text = _DOLLAR_SEVEN.sub(r"7\1", text)
    text = _DASH_GLYPH.sub(r"\1 \2", text)
    return _LEADING_EIGHT.sub(_eight_as_zero, text)


# ---------------------------------------------------------------------------
# 4. Confusable letters next to digits
# ---------------------------------------------------------------------------

_DIGIT_LETTER_DIGIT = re.compile(r"(\d)([A-Za-z])(\d)")
_LETTER_DIGITS = re.compile(r"([A-Za-z])(\d+)")
_DIGITS_LETTER = re.compile(r"(\d+)([A-Za-z])")


def _letter(ch: str) -> str:
    return LETTER_TO_DIGIT.get(ch, ch)


def _letter_pass(text: str) -> str:
    text = _DIGIT_LETTER_DIGIT.sub(lambda m: m.group(1) + _letter(m.group(2)) + m.group(3), text)
    text = _LETTER_DIGITS.sub(lambda m: _letter(m.group(1)) + m.group(2), text)
    return _DIGITS_LETTER.sub(lambda m: m.group(1) + _letter(m.group(2)), text)


def fix_letters_in_digit_context(text: str) -> str:
    """D70 -> 070, 07w190 -> 070190. Repeats until stable, at most LETTER_FIX_MAX_PASSES."""
    return run_to_fixpoint(_letter_pass, text, LETTER_FIX_MAX_PASSES)


# ---------------------------------------------------------------------------
# 5. Stray slash/pipe/backslash inside digit runs
# ---------------------------------------------------------------------------

_DATE_TOKEN = re.compile(r"^\d{1,2}[/-]\d{1,2}[/-]\d{2,4}$|^\d{4}-\d{1,2}-\d{1,2}$")
_SLASH_ONE_DIGIT = re.compile(r"(\d{2,})[/|\\](\d)(?!\d)")
_SLASH_LONG_LEFT = re.compile(r"(\d{3,})[/|\\](\d+)")
_SLASH_LONG_RIGHT = re.compile(r"(\d+)[/|\\](\d{3,})")


def _fix_punctuation_token(token: str) -> str:
    if _DATE_TOKEN.match(token):
        return token
    token = _SLASH_ONE_DIGIT.sub(r"\g<1>0\2", token)
    token = _SLASH_LONG_LEFT.sub(r"\1\2", token)
    return _SLASH_LONG_RIGHT.sub(r"\1\2", token)


def fix_punctuation_in_digits(text: str) -> str:
    """19/0 -> 1900, 0700/900 -> 0700900. Dates such as 01/11 or 01/11/2025 are kept."""
    return re.sub(r"\S+", lambda m: _fix_punctuation_token(m.group(0)), text)


# ---------------------------------------------------------------------------
# 6. Rejoin fragmented or merged time tokens
# ---------------------------------------------------------------------------

_THREE_TOKEN = re.compile(r"\b\d{3}\b")
_THREE_BEFORE = re.compile(r"\b\d{3}\s+$")
_THREE_AFTER = re.compile(r"^\s+\d{3}\b")
_FOUR_THREE = re.compile(r"\b(\d{4})\s+(\d{3})\b")
_THREE_FOUR = re.compile(r"\b(\d{3})\s+(\d{4})\b")
_DIGIT_RUN = re.compile(r"\b(\d{6,8})\b")

# Split points per run length, in priority order: (head digits, tail digits).
# Heads/tails shorter than 4 are right-padded with zeros.
_RUN_SPLITS: dict[int, tuple[tuple[int, int], ...]] = {
    6: ((3, 3), (4, 2), (2, 4)),
    7: ((3, 4), (4, 3)),
    8: ((4, 4),),
}


def _pad4(s: str) -> str:
    return s.ljust(4, "0")


def _pad_three_three(text: str) -> str:
    """Pad each 3-digit token that sits next to another 3-digit token, if the padding is a valid time."""

    def repl(m: re.Match) -> str:
        token = m.group(0)
        has_neighbour = _THREE_BEFORE.search(text[: m.start()]) or _THREE_AFTER.match(text[m.end():])
        if not has_neighbour:
            return token
        padded = token + "0"
        return padded if is_valid_time4(padded) else token

    return _THREE_TOKEN.sub(repl, text)


def _pad_four_three(m: re.Match) -> str:
    four, three = m.group(1), m.group(2)
    if is_valid_time4(four) and is_valid_time4(three + "0"):
        return f"{four} {three}0"
    return m.group(0)


def _pad_three_four(m: re.Match) -> str:
    three, four = m.group(1), m.group(2)
    if is_valid_time4(three + "0") and is_valid_time4(four):
        return f"{three}0 {four}"
    return m.group(0)


def split_digit_run(run: str) -> str | None:
    """'0701900' -> '0700 1900'. Returns None when no split yields two valid times."""
    for head_len, tail_len in _RUN_SPLITS.get(len(run), ()):
        head = _pad4(run[:head_len])
        tail = _pad4(run[head_len:head_len + tail_len])
        if is_valid_time4(head) and is_valid_time4(tail):
            return f"{head} {tail}"
    return None


def rejoin_time_fragments(text: str) -> str:
    """070 1900 -> 0700 1900; 0700 190 -> 0700 1900; 07001900 -> 0700 1900."""
    text = _pad_three_three(text)
    text = _FOUR_THREE.sub(_pad_four_three, text)
    text = _THREE_FOUR.sub(_pad_three_four, text)
    return _DIGIT_RUN.sub(lambda m: split_digit_run(m.group(1)) or m.group(1), text)


# ---------------------------------------------------------------------------
# 7. Day number merged into the two times
# ---------------------------------------------------------------------------

_MERGED_DAY_RUN = re.compile(r"\b(\d{9,10})\b")


def _split_day_prefix(digits: str) -> str:
    day_len = len(digits) - 8
    day = int(digits[:day_len])
    max_day = 31 if day_len == 2 else 9
    t1, t2 = digits[day_len:day_len + 4], digits[day_len + 4:]
    if 1 <= day <= max_day and is_valid_time4(t1) and is_valid_time4(t2):
        return f"{day} {t1} {t2}"
    return digits


def split_merged_day_digits(text: str) -> str:
    """2707301930 -> 27 0730 1930; 107301930 -> 1 0730 1930."""
    return _MERGED_DAY_RUN.sub(lambda m: _split_day_prefix(m.group(1)), text)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def run_to_fixpoint(step: Transform, text: str, max_passes: int) -> str:
    """Apply step until the text stops changing or max_passes is reached."""
    for _ in range(max_passes):
        updated = step(text)
        if updated == text:
            break
        text = updated
    return text


CORRECTION_STEPS: tuple[Transform, ...] = (
    normalize_off,
    normalize_plus_one,
    fix_handwriting_digits,
    fix_letters_in_digit_context,
    fix_punctuation_in_digits,
    rejoin_time_fragments,
    split_merged_day_digits,
)


def _apply_steps(text: str, steps: tuple[Transform, ...]) -> str:
    for step in steps:
        text = step(text)
    return text


def correct(line: str, steps: tuple[Transform, ...] = CORRECTION_STEPS) -> str:
    """
    Apply all OCR corrections to a single line of text. Never raises.
    A later step can expose a pattern an earlier step handles ("19/0 t 3" only
    becomes "1900 +1" after the slash fix), so the chain repeats until stable.
    """
    return run_to_fixpoint(lambda text: _apply_steps(text, steps), line or "", CORRECTION_MAX_PASSES)
