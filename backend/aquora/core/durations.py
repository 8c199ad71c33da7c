import re

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> int:
    """Convert a token lifetime like ``15m``, ``12h`` or ``900`` into seconds."""
    match = _DURATION_RE.match(str(value or "").lower())
    if not match:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. 60s, 15m, 12h, 7d)")

    seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds
