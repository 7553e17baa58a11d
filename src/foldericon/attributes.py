from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import Callable, Iterator, Optional

from . import windows
from .errors import AttributeReadError, AttributeWriteError, InvalidAttributeSpec
from .paths import StrPath
from .windows import FILE_ATTRIBUTE_HIDDEN as HIDDEN
from .windows import FILE_ATTRIBUTE_READONLY as READONLY
from .windows import FILE_ATTRIBUTE_SYSTEM as SYSTEM

log = getLogger(__name__)

DEFAULT_ATTRIBUTE_SPEC = "+H -S"

_LETTERS = {"H": HIDDEN, "S": SYSTEM}
_TOKEN = re.compile(r"([+-])([HS]+)", re.IGNORECASE)

GetAttributes = Callable[[StrPath], int]
SetAttributes = Callable[[StrPath, int], None]


@dataclass(frozen=True)
class AttributeSpec:
    """Hidden/system bits to set and to clear; every other bit is left alone."""

    set_bits: int = 0
    clear_bits: int = 0

    @classmethod
    def parse(cls, text: str) -> "AttributeSpec":
        """Parse tokens such as ``+H -S`` or ``+HS``. The last token for a bit wins."""
        tokens = [t for t in re.split(r"[\s,]+", text.strip()) if t]
        if not tokens:
            raise InvalidAttributeSpec(f"Empty attribute specification: {text!r}")

        set_bits = clear_bits = 0
        for token in tokens:
            m = _TOKEN.fullmatch(token)
            if not m:
                raise InvalidAttributeSpec(f"Invalid attribute token {token!r} in {text!r}")
            sign, letters = m.groups()
            for letter in letters.upper():
                bit = _LETTERS[letter]
                if sign == "+":
                    set_bits, clear_bits = set_bits | bit, clear_bits & ~bit
                else:
                    set_bits, clear_bits = set_bits & ~bit, clear_bits | bit
        return cls(set_bits, clear_bits)

    def apply(self, bits: int) -> int:
        return (bits | self.set_bits) & ~self.clear_bits

    def __str__(self) -> str:
        parts = []
        for letter, bit in _LETTERS.items():
            if self.set_bits & bit:
                parts.append(f"+{letter}")
            elif self.clear_bits & bit:
                parts.append(f"-{letter}")
        return " ".join(parts)


class AttributeGuard:
    """Capture, overlay and restore file attribute bits around a mutation."""

    def __init__(
        self,
        get_attributes: Optional[GetAttributes] = None,
        set_attributes: Optional[SetAttributes] = None,
    ) -> None:
        self._get = get_attributes or windows.get_file_attributes
        self._set = set_attributes or windows.set_file_attributes

    def capture(self, path: StrPath) -> int:
        """Raises AttributeReadError when *path* does not exist."""
        return self._get(path)

    def apply_overlay(self, path: StrPath, spec: AttributeSpec) -> int:
        bits = spec.apply(self._get(path))
        log.debug(f"Applying {spec} to {path} -> {bits:#x}")
        self._set(path, bits)
        return bits

    def restore(self, path: StrPath, snapshot: int) -> None:
        log.debug(f"Restoring attributes {snapshot:#x} on {path}")
        self._set(path, snapshot)

    def unlock(self, path: StrPath, snapshot: int) -> None:
        """Clear the bits that make Windows refuse to overwrite a file."""
        unlocked = snapshot & ~(HIDDEN | SYSTEM | READONLY)
        if unlocked != snapshot:
            self._set(path, unlocked)

    @contextmanager
    def preserved(self, path: StrPath) -> Iterator[Optional[int]]:
        """Yield the current bits of *path* (None if it is missing) and put them back on exit."""
        try:
            snapshot: Optional[int] = self.capture(path)
        except AttributeReadError:
            snapshot = None
        try:
            yield snapshot
        finally:
            if snapshot is not None:
                try:
                    self.restore(path, snapshot)
                except AttributeWriteError as exc:
                    log.warning(str(exc))
