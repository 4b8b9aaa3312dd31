"""
PGN text helpers: movetext normalization, tag-pair parsing and a best-effort
mapping of tags to source-agnostic game headers.

Provider quirks handled by the mapping:
- Lichess: [Site] is usually the game URL.
- Chess.com: [Site] is "Chess.com" and the URL sits in [Link].
- Time control is usually "900+10" (seconds) but minutes+seconds also shows up.
- Date/time prefer [UTCDate]/[UTCTime], then [Date]/[StartTime].
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

_TAG_LINE_RE = re.compile(r'^\s*\[([A-Za-z0-9_]+)\s+"((?:\\.|[^"\\])*)"\s*\]\s*$')
_TC_PAIR_RE = re.compile(r"^(\d+)\s*\+\s*(\d+)$")
_DATE_RE = re.compile(r"^(\d{4})\.(\d{2})\.(\d{2})$")
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")
_HTTP_RE = re.compile(r"^https?://", re.I)

RESULT_TOKENS = {"1-0", "0-1", "1/2-1/2", "*"}


def normalize_pgn_text(pgn: str) -> str:
    """LF newlines, blank line between tag section and movetext, trailing newline."""
    text = (pgn or "").replace("\r\n", "\n").strip()
    if text.startswith("["):
        lines = text.split("\n")
        i = 0
        while i < len(lines) and lines[i].startswith("["):
            i += 1
        if i < len(lines) and lines[i] != "":
            lines.insert(i, "")
        text = "\n".join(lines)
    return text + "\n"


def _unescape(value: str) -> str:
    return value.replace('\\"', '"').replace("\\\\", "\\").strip()


def parse_pgn_tags(pgn: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for line in re.split(r"\r?\n", pgn or ""):
        trimmed = line.strip()
        if not trimmed:
            continue
        if not trimmed.startswith("["):
            break  # movetext starts
        m = _TAG_LINE_RE.match(trimmed)
        if not m:
            continue
        value = _unescape(m.group(2))
        if value:
            tags[m.group(1)] = value
    return tags


def _clean(value: Optional[str]) -> Optional[str]:
    s = (value or "").strip()
    return s or None


def _is_http_url(value: Optional[str]) -> bool:
    return bool(_HTTP_RE.match((value or "").strip()))


def parse_time_control(raw: Optional[str]) -> dict:
    """Return timeControl / initialSeconds / incrementSeconds where they can be inferred."""
    s = (raw or "").strip()
    if not s or s in ("-", "?") or s.lower() == "unknown":
        return {}
    m = _TC_PAIR_RE.match(s)
    if m:
        base, inc = int(m.group(1)), int(m.group(2))
        # "15+10" is probably minutes; only trust values that look like seconds
        if base >= 180:
            return {"timeControl": s, "initialSeconds": base, "incrementSeconds": inc}
        return {"timeControl": s}
    try:
        n = float(s)
    except ValueError:
        return {"timeControl": s}
    if n > 0:
        return {"timeControl": s, "initialSeconds": int(n) if n.is_integer() else n, "incrementSeconds": 0}
    return {"timeControl": s}


def infer_speed(initial_seconds) -> Optional[str]:
    if not isinstance(initial_seconds, (int, float)):
        return None
    if initial_seconds <= 180:
        return "bullet"
    if initial_seconds <= 600:
        return "blitz"
    if initial_seconds <= 1800:
        return "rapid"
    return "classical"


def _played_at_iso(date_raw: Optional[str], time_raw: Optional[str]) -> Optional[str]:
    d = _DATE_RE.match(_clean(date_raw) or "")
    t = _TIME_RE.match(_clean(time_raw) or "")
    if not d or not t:
        return None
    try:
        dt = datetime(
            int(d.group(1)), int(d.group(2)), int(d.group(3)),
            int(t.group(1)), int(t.group(2)), int(t.group(3) or 0),
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def map_pgn_tags_to_headers(tags: dict[str, str]) -> dict:
    """Best-effort normalized headers; keys with no usable value are omitted."""
    tc = parse_time_control(tags.get("TimeControl"))
    event = _clean(tags.get("Event"))
    event_lower = (event or "").lower()

    rated = True if "rated" in event_lower else False if "casual" in event_lower else None

    speed = None
    for label in ("bullet", "blitz", "rapid", "classical"):
        if label in event_lower:
            speed = label
            break
    if speed is None:
        speed = infer_speed(tc.get("initialSeconds"))

    site = _clean(tags.get("Site"))
    link = _clean(tags.get("Link"))
    site_url = site if _is_http_url(site) else link if _is_http_url(link) else None

    result = _clean(tags.get("Result"))
    headers = {
        "playedAtIso": _played_at_iso(tags.get("UTCDate") or tags.get("Date"), tags.get("UTCTime") or tags.get("StartTime")),
        "round": _clean(tags.get("Round")),
        "white": _clean(tags.get("White")),
        "black": _clean(tags.get("Black")),
        "result": result if result in RESULT_TOKENS else None,
        "eco": _clean(tags.get("ECO")),
        "opening": _clean(tags.get("Opening")),
        "whiteElo": _clean(tags.get("WhiteElo")),
        "blackElo": _clean(tags.get("BlackElo")),
        "event": event,
        "site": site,
        "siteUrl": site_url,
        "rated": rated,
        "speed": speed,
        "timeControl": tc.get("timeControl"),
        "initialSeconds": tc.get("initialSeconds"),
        "incrementSeconds": tc.get("incrementSeconds"),
        "variant": _clean(tags.get("Variant")),
    }
    return {k: v for k, v in headers.items() if v is not None}
