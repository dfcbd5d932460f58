"""Minimal iCalendar (RFC 5545) and vCard 3.0 (RFC 2426) reading and writing.

Only the properties the calendar and contacts tools expose are handled.
Both formats share the same line syntax: ``NAME;PARAM=x:value`` with long
lines folded onto continuation lines that start with whitespace.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Optional

PRODID = "-//nextcloud-mcp//EN"
# Octets per physical line, excluding the CRLF
FOLD_OCTETS = 75

Property = tuple[str, dict[str, str], str]


# ---------------------------------------------------------------------------
# Line syntax
# ---------------------------------------------------------------------------


def unfold(text: str) -> list[str]:
    """Split into logical lines, joining folded continuations."""
    lines: list[str] = []
    for raw in text.replace("\r\n", "\n").split("\n"):
        if raw[:1] in (" ", "\t") and lines:
            lines[-1] += raw[1:]
        elif raw:
            lines.append(raw)
    return lines


def fold(line: str) -> str:
    """Fold a logical line into CRLF-separated chunks of at most 75 octets.

    Splits only between characters, so a multi-byte UTF-8 sequence is never
    broken across lines.
    """
    chunks: list[str] = []
    current: list[str] = []
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > FOLD_OCTETS:
            chunks.append("".join(current))
            current, size = [" "], 1
        current.append(char)
        size += width
    chunks.append("".join(current))
    return "\r\n".join(chunks)


def escape_text(value: str) -> str:
    """Escape a TEXT value."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def unescape_text(value: str) -> str:
    """Reverse :func:`escape_text`."""
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        out.append("\n" if nxt in ("n", "N") else nxt)
    return "".join(out)


def parse_line(line: str) -> Property:
    """Split ``NAME;P=v:value`` into (NAME, {P: v}, value)."""
    head, _, value = line.partition(":")
    name, *params = head.split(";")
    parsed: dict[str, str] = {}
    for param in params:
        key, _, val = param.partition("=")
        parsed[key.upper()] = val.strip('"')
    return name.upper(), parsed, value


def component_properties(text: str, component: str) -> list[Property]:
    """Properties directly inside the first ``BEGIN:<component>`` block."""
    props: list[Property] = []
    depth = 0
    inside = False
    for line in unfold(text):
        name, params, value = parse_line(line)
        if name == "BEGIN":
            if inside:
                depth += 1
            elif value.upper() == component:
                inside = True
            continue
        if name == "END" and inside:
            if depth == 0:
                break
            depth -= 1
            continue
        if inside and depth == 0:
            props.append((name, params, value))
    return props


# ---------------------------------------------------------------------------
# Date-time values
# ---------------------------------------------------------------------------


def to_ical_datetime(value: str) -> tuple[str, dict[str, str]]:
    """Convert an ISO-8601 date or date-time to an iCalendar value.

    Returns the value plus any parameters it needs (``VALUE=DATE`` for
    all-day dates). Aware date-times are normalised to UTC; naive ones stay
    floating.
    """
    if len(value) == 10:
        return date.fromisoformat(value).strftime("%Y%m%d"), {"VALUE": "DATE"}
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return dt.strftime("%Y%m%dT%H%M%S"), {}
    return dt.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ"), {}


def from_ical_datetime(value: str) -> str:
    """Convert an iCalendar DATE or DATE-TIME back to ISO-8601."""
    if len(value) == 8:
        return datetime.strptime(value, "%Y%m%d").date().isoformat()
    if value.endswith("Z"):
        return (
            datetime.strptime(value, "%Y%m%dT%H%M%SZ").replace(tzinfo=UTC).isoformat()
        )
    return datetime.strptime(value, "%Y%m%dT%H%M%S").isoformat()


def utc_stamp(moment: Optional[datetime] = None) -> str:
    """UTC timestamp in iCalendar form, e.g. for DTSTAMP or time-range."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")


def _render(name: str, value: str, params: Optional[dict[str, str]] = None) -> str:
    head = name + "".join(f";{k}={v}" for k, v in (params or {}).items())
    return fold(f"{head}:{value}")


# ---------------------------------------------------------------------------
# iCalendar events
# ---------------------------------------------------------------------------


def build_event(
    uid: str,
    summary: str,
    start: str,
    end: Optional[str] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
) -> str:
    """Render a VCALENDAR holding one VEVENT. *start*/*end* are ISO-8601."""
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "BEGIN:VEVENT",
        _render("UID", uid),
        _render("DTSTAMP", utc_stamp()),
        _render("SUMMARY", escape_text(summary)),
    ]
    value, params = to_ical_datetime(start)
    lines.append(_render("DTSTART", value, params))
    if end:
        value, params = to_ical_datetime(end)
        lines.append(_render("DTEND", value, params))
    if description:
        lines.append(_render("DESCRIPTION", escape_text(description)))
    if location:
        lines.append(_render("LOCATION", escape_text(location)))
    lines += ["END:VEVENT", "END:VCALENDAR"]
    return "\r\n".join(lines) + "\r\n"


def parse_event(text: str) -> dict[str, Optional[str]]:
    """Extract uid, summary, start, end, description and location."""
    fields: dict[str, Optional[str]] = {
        "uid": None,
        "summary": "",
        "start": None,
        "end": None,
        "description": None,
        "location": None,
    }
    for name, _params, value in component_properties(text, "VEVENT"):
        if name == "UID":
            fields["uid"] = value
        elif name == "SUMMARY":
            fields["summary"] = unescape_text(value)
        elif name == "DTSTART":
            fields["start"] = from_ical_datetime(value)
        elif name == "DTEND":
            fields["end"] = from_ical_datetime(value)
        elif name == "DESCRIPTION":
            fields["description"] = unescape_text(value)
        elif name == "LOCATION":
            fields["location"] = unescape_text(value)
    return fields


# ---------------------------------------------------------------------------
# vCard contacts
# ---------------------------------------------------------------------------


def build_vcard(
    uid: str,
    full_name: str,
    emails: Optional[list[str]] = None,
    phones: Optional[list[str]] = None,
    organization: Optional[str] = None,
) -> str:
    """Render a vCard 3.0."""
    given, _, family = full_name.rpartition(" ")
    if not given:
        given, family = family, ""
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"PRODID:{PRODID}",
        _render("UID", uid),
        _render("FN", escape_text(full_name)),
        _render("N", f"{escape_text(family)};{escape_text(given)};;;"),
    ]
    for email in emails or []:
        lines.append(_render("EMAIL", email, {"TYPE": "INTERNET"}))
    for phone in phones or []:
        lines.append(_render("TEL", phone, {"TYPE": "VOICE"}))
    if organization:
        lines.append(_render("ORG", escape_text(organization)))
    lines.append("END:VCARD")
    return "\r\n".join(lines) + "\r\n"


def parse_vcard(text: str) -> dict:
    """Extract uid, full_name, emails, phones and organization."""
    card: dict = {
        "uid": None,
        "full_name": "",
        "emails": [],
        "phones": [],
        "organization": None,
    }
    for name, _params, value in component_properties(text, "VCARD"):
        # Grouped properties look like "item1.EMAIL"
        name = name.rsplit(".", 1)[-1]
        if name == "UID":
            card["uid"] = value
        elif name == "FN":
            card["full_name"] = unescape_text(value)
        elif name == "EMAIL":
            card["emails"].append(value)
        elif name == "TEL":
            card["phones"].append(value)
        elif name == "ORG":
            card["organization"] = unescape_text(value.split(";")[0])
    return card
