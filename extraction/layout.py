"""
Layout helpers: rebuild table rows from OCR boxes and split two-column timecard lines.
"""
from __future__ import annotations

import logging
import re

from core.models import RawLine

logger = logging.getLogger(__name__)

DEFAULT_ROW_THRESHOLD_PX = 15.0
DEFAULT_MIN_BOX_RATIO = 0.8

_LEADING_DAY = re.compile(r"^\s*(\d{1,2})\b")
# A standalone 1-2 digit token followed by more content on the line
_SECOND_DAY = re.compile(r"(?<=\s)(\d{1,2})(?=\s+\S)")


def group_rows(
    raw_lines: list[RawLine],
    threshold_px: float = DEFAULT_ROW_THRESHOLD_PX,
    min_box_ratio: float = DEFAULT_MIN_BOX_RATIO,
) -> list[str]:
    """
    Cluster OCR lines into table rows by vertical centre and join each row's texts.
    Falls back to one row per raw line when too few lines carry a box.
    """
    lines = [ln for ln in raw_lines if (ln.text or "").strip()]
    if not lines:
        return []
    boxed = [ln for ln in lines if ln.box]
    if len(boxed) < 2 or len(boxed) / len(lines) < min_box_ratio:
        return [ln.text for ln in lines]

    ordered = sorted(boxed, key=lambda ln: ln.center_y)
    rows: list[list[RawLine]] = []
    cur: list[RawLine] = [ordered[0]]
    cur_avg = ordered[0].center_y
    for ln in ordered[1:]:
        if abs(ln.center_y - cur_avg) > threshold_px:
            rows.append(cur)
            cur = [ln]
            cur_avg = ln.center_y
        else:
            cur.append(ln)
            cur_avg = sum(x.center_y for x in cur) / len(cur)
    rows.append(cur)

    texts = [" ".join(x.text.strip() for x in sorted(row, key=lambda x: x.left_x)) for row in rows]
    # Lines without a box cannot be placed; keep them as their own rows
    texts.extend(ln.text for ln in lines if not ln.box)
    logger.debug("Grouped %s OCR lines into %s rows", len(lines), len(texts))
    return texts


def split_two_columns(line: str) -> list[str]:
    """
    '5 0700 1900 20 0700 1900' -> ['5 0700 1900', '20 0700 1900'].
    Splits before the first day number 16-31 that follows a leading day number 1-15.
    """
    lead = _LEADING_DAY.match(line)
    if not lead or not 1 <= int(lead.group(1)) <= 15:
        return [line]
    for m in _SECOND_DAY.finditer(line, lead.end()):
        if 16 <= int(m.group(1)) <= 31 and line[lead.end():m.start()].strip():
            return [line[:m.start()].rstrip(), line[m.start():]]
    return [line]
