"""Cookie header parsing and merging.

Trackers rotate session cookies through ``Set-Cookie``; the challenge
solver hands back browser cookies as ``(name, value)`` pairs. Both are
folded into the stored ``Cookie`` header with :func:`merge_cookies`.
Values are kept verbatim: no percent-decoding or re-encoding.
"""

from typing import Iterable, Union

CookieAssignment = Union[str, tuple[str, str]]


def parse_cookie_header(header: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` header into an ordered name -> value mapping.

    Empty segments (``"a=1;"``) and segments without ``=`` are ignored.
    A later duplicate name overwrites an earlier one.
    """
    cookies: dict[str, str] = {}
    if not header:
        return cookies
    for segment in header.split(";"):
        name, sep, value = segment.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        cookies[name] = value.strip()
    return cookies


def parse_set_cookie(entry: str) -> tuple[str, str] | None:
    """Return the ``(name, value)`` of one ``Set-Cookie`` header value.

    Attributes after the first ``;`` (Path, Domain, Expires, HttpOnly...)
    are ignored.
    """
    first, _, _ = entry.partition(";")
    name, sep, value = first.partition("=")
    name = name.strip()
    if not sep or not name:
        return None
    return name, value.strip()


def serialize_cookies(cookies: dict[str, str]) -> str:
    """Join a mapping back into a ``Cookie`` header, insertion order kept."""
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


def merge_cookies(existing: str | None, assignments: Iterable[CookieAssignment]) -> str:
    """Apply new cookie assignments on top of an existing ``Cookie`` header.

    ``assignments`` may mix raw ``Set-Cookie`` header values and
    ``(name, value)`` pairs. Existing names are overwritten in place, new
    names are appended. When there is nothing to merge the input is
    returned unchanged (not re-serialized).
    """
    pairs: list[tuple[str, str]] = []
    for assignment in assignments:
        if isinstance(assignment, str):
            parsed = parse_set_cookie(assignment)
            if parsed is not None:
                pairs.append(parsed)
        else:
            name, value = assignment
            pairs.append((name, value))

    if not pairs:
        return existing or ""

    cookies = parse_cookie_header(existing)
    for name, value in pairs:
        cookies[name] = value
    return serialize_cookies(cookies)
