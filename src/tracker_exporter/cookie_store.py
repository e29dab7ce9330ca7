"""Filesystem persistence for rotated tracker cookies.

The cookie file holds the full ``Cookie`` header string as plain text.
Writes go to a temporary file in the same directory and are moved into
place with ``os.replace`` so a crash never leaves a truncated cookie.
"""

import os
import tempfile
from pathlib import Path

from tracker_exporter.exceptions import PersistenceError


class CookieStore:
    """Plain-text load/save of one tracker's cookie header.

    Usage::

        store = CookieStore("data/tracker.cookie")
        store.save("uid=1; pass=abc")
        cookie = store.load()
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> str | None:
        """Return the stored cookie, or None if the file is missing or empty."""
        try:
            content = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(
                f"Could not read cookie file {self.path}: {exc}"
            ) from exc
        return content or None

    def save(self, cookie: str) -> Path:
        """Atomically overwrite the cookie file with ``cookie``.

        Raises:
            PersistenceError: If the directory or file cannot be written.
        """
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(cookie)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(
                f"Could not write cookie file {self.path}: {exc}"
            ) from exc
        return self.path
