"""Schema-free statistics extraction from tracker profile pages.

Provides:
- extract_statistics: pure function, raw HTML in, StatisticsRecord out
- parse_number / parse_bytes: separator-tolerant numeric helpers

There is no per-site parser. Each metric has an ordered list of patterns
of the form "label, then a bounded window, then a value"; the first
pattern that matches wins and later ones are fallbacks for other page
phrasings. A metric whose patterns all fail is left as None. Patterns run
against the raw HTML, markup included, so windows are measured in raw
characters.

Window widths and label synonyms are tuned against the layouts seen so
far (TorrentLeech, BwTorrents, BakaBT, AvistaZ, Unit3D sites) and do not
necessarily generalize.
"""

import math
import re
from typing import Callable, TypeVar

from tracker_exporter.models import StatisticsRecord

T = TypeVar("T")

# Binary prefixes only: KB is KiB.
UNIT_MULTIPLIERS: dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "KIB": 1024,
    "MB": 1024**2,
    "MIB": 1024**2,
    "GB": 1024**3,
    "GIB": 1024**3,
    "TB": 1024**4,
    "TIB": 1024**4,
    "PB": 1024**5,
    "PIB": 1024**5,
}

BYTE_WINDOW = 300
RATIO_WINDOW = 100
BONUS_WINDOW = 150
COUNT_WINDOW = 200
TORRENT_LIST_WINDOW = 300
ARROW_WINDOW = 50

UPLOADED_LABELS = ("Uploaded", "Upload")
DOWNLOADED_LABELS = ("Downloaded", "Download")
BUFFER_LABELS = ("Buffer",)
BONUS_LABELS = ("TL Points", "Bonus Points", "Bonus", "BON")

# Thousands separators: comma, space, no-break space, narrow no-break space.
_SEPARATORS = ", \u00a0\u202f"
_SEPARATOR_RE = re.compile(f"[{_SEPARATORS}]")

# Achievement badges read "Uploaded >= 1 TB"; never let a window cross one.
_NOT_GTE = r"(?!>=|&gt;=|≥|&ge;)"

_BYTE_NUMBER = rf"(\d{{1,3}}(?:[{_SEPARATORS}]\d{{3}})+(?:\.\d+)?|\d+(?:[.,]\d+)?)"
_BYTE_UNIT = r"((?:[KMGTP]i?)?B)\b"
_BONUS_NUMBER = rf"(\d+(?:[{_SEPARATORS}]\d{{3}})*(?:\.\d+)?)"
_DELIMITER = r"(?:[:<>\"']|&nbsp;)"


def _window(width: int, exclude_gte: bool = False) -> str:
    if exclude_gte:
        return rf"(?:{_NOT_GTE}[\s\S]){{0,{width}}}?"
    return rf"[\s\S]{{0,{width}}}?"


def _labels(labels: tuple[str, ...]) -> str:
    # Leading boundary: "BON" must not match inside "ribbon".
    return r"\b(?:" + "|".join(re.escape(label) for label in labels) + ")"


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def parse_number(text: str) -> float:
    """Parse a number after stripping thousands separators.

    ``"33,781.61"`` -> 33781.61, ``"139 512"`` -> 139512.0.
    """
    return float(_SEPARATOR_RE.sub("", text))


def parse_bytes(amount: str, unit: str) -> int:
    """Convert a number and a size unit into a whole number of bytes."""
    multiplier = UNIT_MULTIPLIERS.get(unit.strip().upper(), 1)
    return math.floor(parse_number(amount) * multiplier)


def _first_match(
    html: str,
    patterns: list[re.Pattern],
    convert: Callable[[re.Match], T],
) -> T | None:
    """Run ``patterns`` in order and convert the first match."""
    for pattern in patterns:
        match = pattern.search(html)
        if match:
            return convert(match)
    return None


def _byte_patterns(labels: tuple[str, ...]) -> list[re.Pattern]:
    return [
        _compile(
            _labels(labels) + _window(BYTE_WINDOW, exclude_gte=True)
            + _BYTE_NUMBER + r"\s*" + _BYTE_UNIT
        )
    ]


UPLOADED_PATTERNS = _byte_patterns(UPLOADED_LABELS)
DOWNLOADED_PATTERNS = _byte_patterns(DOWNLOADED_LABELS)
BUFFER_PATTERNS = _byte_patterns(BUFFER_LABELS)

SEEDING_PATTERNS = [
    # TorrentLeech: "Uploaded (Seeding) ... (296)"
    _compile(r"Uploaded\s*\(Seeding\)" + _window(TORRENT_LIST_WINDOW) + r"\(\s*(\d+)\s*\)"),
    # BwTorrents: "Torrents seeding" ... > ... 12
    _compile(r"Torrents\s+seeding" + _window(TORRENT_LIST_WINDOW) + r">" + _window(100) + r"(\d+)"),
    # BakaBT: "&uarr; 448"
    _compile(r"(?:&uarr;|uarr|↑)" + _window(ARROW_WINDOW) + r"(\d+)"),
    # Generic / AvistaZ / Unit3D: "Seeding: 4", title="Seeding">4
    _compile(r"Seeding\s*" + _DELIMITER + _window(COUNT_WINDOW) + r"(\d+)"),
]

LEECHING_PATTERNS = [
    _compile(r"Downloaded\s*\(Leeching\)" + _window(TORRENT_LIST_WINDOW) + r"\(\s*(\d+)\s*\)"),
    _compile(r"Torrents\s+leeching" + _window(TORRENT_LIST_WINDOW) + r">" + _window(100) + r"(\d+)"),
    _compile(r"(?:&darr;|darr|↓)" + _window(ARROW_WINDOW) + r"(\d+)"),
    _compile(r"Leeching\s*" + _DELIMITER + _window(COUNT_WINDOW) + r"(\d+)"),
]

HIT_AND_RUN_PATTERNS = [
    _compile(
        r"(?:Hit\s*(?:and|&|&amp;)\s*Run|H&(?:amp;)?R|HnR)"
        + _window(COUNT_WINDOW) + r"(\d+)"
    ),
]

RATIO_PATTERNS = [
    # A decimal value is preferred over a bare integer
    _compile(r"Ratio" + _window(RATIO_WINDOW, exclude_gte=True) + r"(\d+\.\d+)"),
    _compile(r"Ratio" + _window(RATIO_WINDOW, exclude_gte=True) + r"(\d+)"),
]

BONUS_PATTERNS = [
    _compile(_labels(BONUS_LABELS) + r"\s*" + _DELIMITER + _window(BONUS_WINDOW) + _BONUS_NUMBER),
]


def _to_bytes(match: re.Match) -> int:
    return parse_bytes(match.group(1), match.group(2))


def _to_int(match: re.Match) -> int:
    return int(match.group(1))


def _to_float(match: re.Match) -> float:
    return parse_number(match.group(1))


def extract_statistics(html: str) -> StatisticsRecord:
    """Extract whatever account statistics a profile page exposes.

    Pure function: HTML string in, StatisticsRecord out. Never raises
    for missing data; unmatched metrics are simply None.
    """
    return StatisticsRecord(
        uploaded=_first_match(html, UPLOADED_PATTERNS, _to_bytes),
        downloaded=_first_match(html, DOWNLOADED_PATTERNS, _to_bytes),
        buffer=_first_match(html, BUFFER_PATTERNS, _to_bytes),
        ratio=_first_match(html, RATIO_PATTERNS, _to_float),
        bonus=_first_match(html, BONUS_PATTERNS, _to_float),
        seeding=_first_match(html, SEEDING_PATTERNS, _to_int),
        leeching=_first_match(html, LEECHING_PATTERNS, _to_int),
        hit_and_runs=_first_match(html, HIT_AND_RUN_PATTERNS, _to_int),
    )
