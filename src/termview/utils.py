from __future__ import annotations

import json
import re


_CLOCK_RE = re.compile(r"^(?:(\d+):)?(\d+):(\d+(?:\.\d+)?)$")
_UNITS_RE = re.compile(r"(\d+(?:\.\d+)?)(h|ms|m|s)")
_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_timecode(value: str) -> float:
    """Parse ``SS``, ``MM:SS``, ``HH:MM:SS`` or ``1h2m3s`` into seconds."""

    text = value.strip().lower()
    if not text:
        return 0.0
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if seconds < 0:
            raise ValueError(f"invalid timecode {value!r}")
        return seconds
    clock = _CLOCK_RE.match(text)
    if clock:
        hours, minutes, secs = clock.groups()
        return int(hours or 0) * 3600 + int(minutes) * 60 + float(secs)
    parts = _UNITS_RE.findall(text)
    if not parts or "".join(number + unit for number, unit in parts) != text:
        raise ValueError(f"invalid timecode {value!r}")
    return sum(float(number) * _UNIT_SECONDS[unit] for number, unit in parts)


def best_fit_scale(width: int, height: int, box_width: int, box_height: int) -> float:
    """Scale factor that fits ``width x height`` inside the box, keeping aspect."""

    if width <= 0 or height <= 0:
        return 1.0
    return min(box_width / width, box_height / height)


def quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


__all__ = [
    "best_fit_scale",
    "parse_timecode",
    "quote",
]
