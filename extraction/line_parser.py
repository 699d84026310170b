"""
Line parser: one corrected timecard line -> at most one PreviewRow and one DayEntry.

Grammars are tried in priority order by a single dispatcher; the first candidate
whose day and times validate wins. A line that matches nothing yields (None, None).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from core.models import PreviewRow
from core.schema import DayEntry
from extraction.corrector import is_valid_time4
from extraction.preview import days_in_month, format_date
from utils.config import ParserConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineMatch:
    """Grammar candidate: day of month and 4-digit HHMM times. time_out is '' when only one time was read."""

    day: int
    time_in: str
    time_out: str = ""


Extractor = Callable[[re.Match, str, int], "LineMatch | None"]

# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------

_OFF_TOKEN = re.compile(r"\bOFF\b", re.IGNORECASE)
_REST_WORD = re.compile(r"\b(?:REST|SUN|SUNDAY|AHAD|MINGGU)\b", re.IGNORECASE)
_PLUS_ONE = re.compile(r"\+[1lIi|]")

# ---------------------------------------------------------------------------
# Dates and time tokens (fallback grammar)
# ---------------------------------------------------------------------------

_DATE_PATTERNS: tuple[tuple[re.Pattern, int], ...] = (
    # (pattern, group index of the day)
    (re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b"), 3),
    (re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b"), 1),
    (re.compile(r"\b(\d{1,2})/(\d{1,2})\b"), 1),
)
_TIME_TOKEN = re.compile(r"\b(\d{1,2})[:.](\d{2})\b|\b(\d{4})\b")
_LEADING_DAY = re.compile(r"^\s*(\d{1,2})\b")
_FOUR_DIGITS = re.compile(r"\b(\d{4})\b")


def _find_date(line: str) -> tuple[int, re.Match] | None:
    for pattern, day_group in _DATE_PATTERNS:
        m = pattern.search(line)
        if m:
            return int(m.group(day_group)), m
    return None


def _hhmm(hour: str, minute: str) -> str:
    return f"{int(hour):02d}{minute}"


def _is_likely_year(token: str, year: int) -> bool:
    """True for the document year or any 4-digit token in 2000-2030; such a token is never a bare time."""
    return token == str(year) or 2000 <= int(token) <= 2030


def _time_tokens(text: str, year: int) -> list[str]:
    """Valid HHMM tokens in reading order: H:MM / H.MM, or bare 4-digit groups that are not a year."""
    tokens: list[str] = []
    for m in _TIME_TOKEN.finditer(text):
        if m.group(3):
            token = m.group(3)
            if _is_likely_year(token, year):
                continue
        else:
            token = _hhmm(m.group(1), m.group(2))
        if is_valid_time4(token):
            tokens.append(token)
    return tokens


def _blank_span(line: str, m: re.Match) -> str:
    return line[: m.start()] + " " * (m.end() - m.start()) + line[m.end():]


# ---------------------------------------------------------------------------
# Grammars
# ---------------------------------------------------------------------------

# 1. "5 0700 1900", "5 Mon 0700|1900", "12 0700-1900"
_COMPACT = re.compile(r"^\s*(\d{1,2})\b\s+.*?\b(\d{4})\b\s*[|\s\-–~]\s*\b(\d{4})\b")
# 2. "5 7:00 - 19:00", "5 07.00 19.00"
_COLON_RANGE = re.compile(
    r"^\s*(\d{1,2})\s+(\d{1,2})[:.](\d{2})(?:\s*[-–~]\s*|\s+)(\d{1,2})[:.](\d{2})\b"
)
# 3. "507:00 - 19:00": single-digit day merged into the first hour
_MERGED_COLON = re.compile(r"^\s*(\d)(\d{2})[:.](\d{2})\s*[-–~]\s*(\d{1,2})[:.](\d{2})\b")
# 4. "1507 - 1900": 2-digit day (10-31) merged with a 2-digit clock-in hour
_MERGED_HOUR = re.compile(r"^\s*(\d{2})(\d{2})\s*[-–~]\s*(\d{4})\b")
# 5. Any line carrying a date
_HAS_DATE = re.compile(r"\d{1,4}[/-]\d{1,2}")


def _extract_compact(m: re.Match, line: str, year: int) -> LineMatch | None:
    return LineMatch(int(m.group(1)), m.group(2), m.group(3))


def _extract_colon_range(m: re.Match, line: str, year: int) -> LineMatch | None:
    return LineMatch(int(m.group(1)), _hhmm(m.group(2), m.group(3)), _hhmm(m.group(4), m.group(5)))


def _extract_merged_colon(m: re.Match, line: str, year: int) -> LineMatch | None:
    return LineMatch(int(m.group(1)), m.group(2) + m.group(3), _hhmm(m.group(4), m.group(5)))


def _extract_merged_hour(m: re.Match, line: str, year: int) -> LineMatch | None:
    day = int(m.group(1))
    if not 10 <= day <= 31:
        return None
    return LineMatch(day, m.group(2) + "00", m.group(3))


def _extract_dated(m: re.Match, line: str, year: int) -> LineMatch | None:
    found = _find_date(line)
    if found is None:
        return None
    day, date_match = found
    times = _time_tokens(_blank_span(line, date_match), year)
    if not times:
        return None
    return LineMatch(day, times[0], times[1] if len(times) > 1 else "")


GRAMMARS: tuple[tuple[str, re.Pattern, Extractor], ...] = (
    ("compact", _COMPACT, _extract_compact),
    ("colon_range", _COLON_RANGE, _extract_colon_range),
    ("merged_colon", _MERGED_COLON, _extract_merged_colon),
    ("merged_hour", _MERGED_HOUR, _extract_merged_hour),
    ("dated", _HAS_DATE, _extract_dated),
)


def _is_valid(candidate: LineMatch, last_day: int) -> bool:
    if not 1 <= candidate.day <= last_day:
        return False
    if not is_valid_time4(candidate.time_in):
        return False
    return candidate.time_out == "" or is_valid_time4(candidate.time_out)


def match_line(
    line: str,
    year: int,
    month: int,
    grammars: tuple[tuple[str, re.Pattern, Extractor], ...] = GRAMMARS,
) -> LineMatch | None:
    """Run the grammars in order and return the first valid candidate."""
    last_day = days_in_month(year, month)
    for name, pattern, extract in grammars:
        m = pattern.search(line)
        if not m:
            continue
        candidate = extract(m, line, year)
        if candidate is not None and _is_valid(candidate, last_day):
            logger.debug("Line %r matched grammar %s", line, name)
            return candidate
    return None


# ---------------------------------------------------------------------------
# Line -> (row, entry)
# ---------------------------------------------------------------------------


def detect_off(line: str, year: int) -> bool:
    """OFF token, or a rest/Sunday word on a line without any time."""
    if _OFF_TOKEN.search(line):
        return True
    if not _REST_WORD.search(line):
        return False
    found = _find_date(line)
    text = _blank_span(line, found[1]) if found else line
    return not _time_tokens(text, year)


def detect_plus_one(line: str) -> bool:
    return bool(_PLUS_ONE.search(line))


def _leading_day(line: str, last_day: int) -> int | None:
    m = _LEADING_DAY.match(line)
    if m and 1 <= int(m.group(1)) <= last_day:
        return int(m.group(1))
    found = _find_date(line)
    if found and 1 <= found[0] <= last_day:
        return found[0]
    return None


def _format_clock(hhmm: str) -> str:
    return f"{hhmm[:2]}:{hhmm[2:]}"


def parse_line(
    line: str,
    year: int,
    month: int,
    options: ParserConfig | None = None,
) -> tuple[PreviewRow | None, DayEntry | None]:
    """
    Parse one corrected line. Off days give a row marked off and no entry.
    A line with a valid leading day but no matching grammar keeps its raw 4-digit tokens
    in a row with no entry, so the reviewer can fix it.
    """
    options = options or ParserConfig()
    text = line or ""
    if not text.strip():
        return None, None
    last_day = days_in_month(year, month)
    plus_one = detect_plus_one(text)

    if detect_off(text, year):
        day = _leading_day(text, last_day)
        if day is None:
            return None, None
        return PreviewRow(date=format_date(year, month, day), is_off=True, plus_one=plus_one), None

    candidate = match_line(text, year, month)
    if candidate is None:
        return _loose_row(text, year, month, last_day, plus_one), None

    date_str = format_date(year, month, candidate.day)
    row = PreviewRow(
        date=date_str,
        time_in_raw=candidate.time_in,
        time_out_raw=candidate.time_out,
        plus_one=plus_one,
    )
    clock_out = _format_clock(candidate.time_out) if candidate.time_out else options.default_clock_out
    entry = DayEntry(
        date=date_str,
        clock_in=_format_clock(candidate.time_in),
        clock_out=clock_out,
        break_minutes=options.default_break_minutes,
        extra_ot_hours=1.0 if plus_one else None,
    )
    return row, entry


def _loose_row(text: str, year: int, month: int, last_day: int, plus_one: bool) -> PreviewRow | None:
    m = _LEADING_DAY.match(text)
    if not m or not 1 <= int(m.group(1)) <= last_day:
        return None
    raw = [t for t in _FOUR_DIGITS.findall(text, m.end()) if not _is_likely_year(t, year)]
    if not raw:
        return None
    logger.debug("No grammar matched %r; keeping raw times %s for review", text, raw[:2])
    return PreviewRow(
        date=format_date(year, month, int(m.group(1))),
        time_in_raw=raw[0],
        time_out_raw=raw[1] if len(raw) > 1 else "",
        plus_one=plus_one,
    )
