"""
Header extraction: best-guess (year, month) of a timecard from its full OCR text.
Year: "Tahun YYYY", else the first bare 20XX token. Month: a cascade of
English/CJK/name/fuzzy/numeric rules, first match wins. Defaults to today.
"""
from __future__ import annotations

import logging
import re
from datetime import date

from rapidfuzz.distance import Levenshtein

logger = logging.getLogger(__name__)

MONTH_MAP: dict[str, int] = {
    "jan": 1, "january": 1, "januari": 1,
    "feb": 2, "february": 2, "februari": 2,
    "mar": 3, "march": 3, "mac": 3,
    "apr": 4, "april": 4,
    "may": 5, "mei": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7, "julai": 7,
    "aug": 8, "august": 8, "ogos": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10, "oktober": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12, "disember": 12,
}

# Words that sit within edit distance of a month name but are never one
FUZZY_STOPWORDS = frozenset({
    "mon", "tue", "tues", "wed", "thu", "thur", "thurs", "fri", "sat", "sun",
    "the", "and", "for", "day", "days", "way", "pay", "say", "man", "can",
    "car", "bar", "war", "far", "run", "fun", "now", "not", "new", "off",
    "out", "in", "time", "date", "name", "site", "year", "month", "total",
    "hour", "hours", "sign", "rest", "work", "with", "from", "this", "that",
    "per", "job", "qty", "jam", "text", "next", "note", "line", "sent", "set",
    "sea", "max", "map", "mark", "call",
})

MIN_FUZZY_WORD_LEN = 3

_TAHUN_YEAR = re.compile(r"\bTahun\s*[:\-]?\s*(20\d{2})(?!\d)", re.IGNORECASE)
_BARE_YEAR = re.compile(r"(?<!\d)(20\d{2})(?!\d)")
_ENGLISH_YEAR_MONTH = re.compile(r"20\d{2}\s+year\s+([a-z]+)\s+month", re.IGNORECASE)
_CJK_MONTH = re.compile(r"(\d{1,2})\s*月")
_WORD = re.compile(r"[a-z]+")
# Longest names first so "september" is tried before "sep"
_MONTH_NAMES_BY_LENGTH = sorted(MONTH_MAP, key=len, reverse=True)


def _max_distance(word: str, name: str) -> int:
    if len(name) <= 3:
        return 1
    return max(2, min(len(word), len(name)) // 3)


def fuzzy_month(word: str) -> int | None:
    """Match one lowercase word to a month: exact, 3-char prefix, then bounded edit distance."""
    if len(word) < MIN_FUZZY_WORD_LEN or word in FUZZY_STOPWORDS:
        return None
    if word in MONTH_MAP:
        return MONTH_MAP[word]
    for name in _MONTH_NAMES_BY_LENGTH:
        if word.startswith(name[:3]) or name.startswith(word[:3]):
            return MONTH_MAP[name]
    best: tuple[int, int] | None = None
    for name in _MONTH_NAMES_BY_LENGTH:
        dist = Levenshtein.distance(word, name)
        if dist <= _max_distance(word, name) and (best is None or dist < best[0]):
            best = (dist, MONTH_MAP[name])
    return best[1] if best else None


def _extract_year(text: str) -> tuple[int | None, re.Match | None]:
    m = _TAHUN_YEAR.search(text)
    if m:
        return int(m.group(1)), m
    m = _BARE_YEAR.search(text)
    if m:
        return int(m.group(1)), m
    return None, None


def _month_from_english_phrase(text: str) -> int | None:
    m = _ENGLISH_YEAR_MONTH.search(text)
    if m:
        return MONTH_MAP.get(m.group(1).lower())
    return None


def _month_from_cjk(text: str) -> int | None:
    for m in _CJK_MONTH.finditer(text):
        num = int(m.group(1))
        if 1 <= num <= 12:
            return num
    return None


def _month_from_name(text: str) -> int | None:
    lower = text.lower()
    for name in _MONTH_NAMES_BY_LENGTH:
        if re.search(r"\b" + name + r"\b", lower):
            return MONTH_MAP[name]
    return None


def _month_from_fuzzy_words(text: str) -> int | None:
    for word in _WORD.findall(text.lower()):
        month = fuzzy_month(word)
        if month is not None:
            logger.debug("Fuzzy month match: %r -> %s", word, month)
            return month
    return None


def _month_after_year(text: str, year_match: re.Match | None) -> int | None:
    if year_match is None:
        return None
    pattern = re.compile(re.escape(year_match.group(1)) + r"[-/.](\d{1,2})\b")
    m = pattern.search(text, year_match.start(1))
    if m and 1 <= int(m.group(1)) <= 12:
        return int(m.group(1))
    return None


def extract_year_month(full_text: str, today: date | None = None) -> tuple[int, int]:
    """
    Best-guess (year, month) for a whole document. Never raises.
    Falls back to today's year/month for whichever part is not found.
    """
    today = today or date.today()
    text = full_text or ""
    year, year_match = _extract_year(text)
    month = (
        _month_from_english_phrase(text)
        or _month_from_cjk(text)
        or _month_from_name(text)
        or _month_from_fuzzy_words(text)
        or _month_after_year(text, year_match)
    )
    return (year or today.year, month or today.month)
