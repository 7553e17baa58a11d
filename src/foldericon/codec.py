from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger

from .errors import MalformedEntry
from .paths import trim_quotes

log = getLogger(__name__)

ICON_RESOURCE_KEY = "IconResource"
_PREFIX = ICON_RESOURCE_KEY + "="
_INDEX = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class IconReference:
    """An icon source path and the index of the icon inside it.

    Paths are expected without surrounding whitespace or quotes; parsing
    trims both, so such paths do not survive a format/parse round trip.
    """

    path: str
    index: int = 0

    def __bool__(self) -> bool:
        return bool(self.path)


EMPTY = IconReference("", 0)


def parse_icon_resource(raw_value: str, *, strict: bool = False) -> IconReference:
    """
    Parse the value of an ``IconResource=`` line into an IconReference.

    The index is the token after the *last* comma, so paths containing commas
    survive. A trailing token that is not a signed integer belongs to the path
    and the index defaults to 0. The path is unquoted but not resolved.

    Malformed input degrades to an empty reference unless *strict* is set, in
    which case MalformedEntry is raised.
    """
    value = raw_value.strip()
    path, index = value, 0
    head, sep, tail = value.rpartition(",")
    if sep and _INDEX.fullmatch(tail.strip()):
        path, index = head, int(tail.strip())

    path = trim_quotes(path)
    if not path:
        if strict:
            raise MalformedEntry(f"No icon path in {raw_value!r}")
        log.debug(f"Malformed icon resource value {raw_value!r}")
        return EMPTY
    return IconReference(path, index)


def format_icon_resource(ref: IconReference) -> str:
    # The index is always written, 0 included.
    return f"{ref.path},{ref.index}"


def format_line(ref: IconReference) -> str:
    return _PREFIX + format_icon_resource(ref)


def match_line(line: str) -> str | None:
    """Return the raw value of an IconResource line, or None for any other line."""
    line = line.rstrip("\r\n")
    if line.startswith(_PREFIX):
        return line[len(_PREFIX):]
    return None
