"""
iCalendar Feed Parser

Reads the busy intervals out of a channel's exported calendar. Only the
parts channel exports actually use are handled:
- RFC 5545 line unfolding (CRLF followed by space or tab)
- KEY;PARAM=...:VALUE content lines
- DATE (YYYYMMDD) and DATE-TIME (YYYYMMDDTHHMMSS[Z]) values, reduced to
  their calendar date
- TEXT unescaping for SUMMARY / DESCRIPTION

Events are returned as half-open [start, end) date intervals.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from ..errors import ParseError

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^(\d{4})(\d{2})(\d{2})(T\d{4,6}Z?)?$")


@dataclass
class ICalEvent:
    uid: str
    start: date
    end: date
    summary: str = ""
    status: Optional[str] = None

    @property
    def nights(self) -> int:
        return (self.end - self.start).days


@dataclass
class ParsedCalendar:
    events: List[ICalEvent] = field(default_factory=list)
    skipped: int = 0

    @property
    def events_found(self) -> int:
        return len(self.events) + self.skipped


def unfold_lines(text: str) -> List[str]:
    """Join continuation lines and split on any line ending"""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n[ \t]", "", text)
    return [line for line in text.split("\n") if line.strip()]


def split_content_line(line: str) -> Tuple[str, Dict[str, str], str]:
    """
    'DTSTART;VALUE=DATE:20250115' -> ('DTSTART', {'VALUE': 'DATE'}, '20250115')

    Parameter values may be quoted and contain ':' so the value starts at
    the first colon outside quotes.
    """
    in_quotes = False
    colon_index = -1
    for i, ch in enumerate(line):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == ":" and not in_quotes:
            colon_index = i
            break
    if colon_index < 0:
        return line.strip().upper(), {}, ""

    head = line[:colon_index]
    value = line[colon_index + 1:]

    parts = head.split(";")
    name = parts[0].strip().upper()
    params = {}
    for part in parts[1:]:
        if "=" in part:
            key, _, param_value = part.partition("=")
            params[key.strip().upper()] = param_value.strip().strip('"')
    return name, params, value


def unescape_text(value: str) -> str:
    return (
        value.replace("\\n", "\n")
        .replace("\\N", "\n")
        .replace("\\,", ",")
        .replace("\\;", ";")
        .replace("\\\\", "\\")
    )


def parse_ical_date(value: str) -> Optional[Tuple[date, bool]]:
    """
    Returns (date, is_all_day) or None when the value is not a DATE or
    DATE-TIME. Time and zone are dropped: channel feeds mark stays by
    calendar day.
    """
    match = DATE_PATTERN.match(value.strip())
    if not match:
        return None
    year, month, day, time_part = match.groups()
    try:
        parsed = date(int(year), int(month), int(day))
    except ValueError:
        return None
    return parsed, time_part is None


def _build_event(props: Dict[str, Tuple[Dict[str, str], str]]) -> Optional[ICalEvent]:
    uid = props.get("UID", ({}, ""))[1].strip()
    if not uid or "DTSTART" not in props:
        return None

    start_parsed = parse_ical_date(props["DTSTART"][1])
    if start_parsed is None:
        return None
    start, all_day = start_parsed

    if "DTEND" in props:
        end_parsed = parse_ical_date(props["DTEND"][1])
        if end_parsed is None:
            return None
        end = end_parsed[0]
    elif all_day:
        end = start + timedelta(days=1)
    else:
        return None

    if end <= start:
        return None

    status = props.get("STATUS", ({}, None))[1]
    return ICalEvent(
        uid=uid,
        start=start,
        end=end,
        summary=unescape_text(props.get("SUMMARY", ({}, ""))[1]).strip(),
        status=status.strip().upper() if status else None
    )


def parse_calendar(text: str) -> ParsedCalendar:
    """
    Parse a feed into busy events.

    Raises ParseError when the text is not a VCALENDAR document. Single
    malformed events are skipped and counted. Cancelled events are not
    busy time and are dropped without being counted as skipped. When a
    UID repeats, the first occurrence wins.
    """
    if not text or not text.strip():
        raise ParseError("Calendar feed is empty")

    lines = unfold_lines(text.lstrip("\ufeff"))
    markers = set()
    for line in lines:
        name, _, value = split_content_line(line)
        if name in ("BEGIN", "END"):
            markers.add((name, value.strip().upper()))

    has_begin = ("BEGIN", "VCALENDAR") in markers
    has_end = ("END", "VCALENDAR") in markers
    if not (has_begin and has_end):
        raise ParseError("Feed is not an iCalendar document (missing VCALENDAR envelope)")

    result = ParsedCalendar()
    seen_uids = set()
    current: Optional[Dict[str, Tuple[Dict[str, str], str]]] = None
    nested_depth = 0

    for line in lines:
        name, params, value = split_content_line(line)
        marker = value.strip().upper()

        if name == "BEGIN" and marker == "VEVENT":
            current = {}
            nested_depth = 0
            continue

        if current is None:
            continue

        # VALARM and friends live inside VEVENT; their properties are not the event's
        if name == "BEGIN":
            nested_depth += 1
            continue
        if name == "END" and marker != "VEVENT":
            nested_depth = max(0, nested_depth - 1)
            continue
        if nested_depth:
            continue

        if name == "END" and marker == "VEVENT":
            event = _build_event(current)
            current = None
            if event is None:
                result.skipped += 1
                continue
            if event.status == "CANCELLED":
                continue
            if event.uid in seen_uids:
                result.skipped += 1
                continue
            seen_uids.add(event.uid)
            result.events.append(event)
            continue

        if name not in current:
            current[name] = (params, value)

    if current is not None:
        # VEVENT never closed
        result.skipped += 1

    logger.debug(f"Parsed {len(result.events)} events ({result.skipped} skipped)")
    return result
