from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path

from .codec import IconReference, format_line, match_line, parse_icon_resource
from .errors import ConfigNotFound, ConfigWriteError
from .icons import check_icon_source
from .paths import StrPath, expand_env, resolve_relative

log = getLogger(__name__)

CONFIG_FILE_NAME = "desktop.ini"
SHELL_CLASS_INFO = "[.ShellClassInfo]"

_BOMS = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

# Only CR, LF and CRLF end a line; form feeds, NEL and friends stay inside it.
_LINE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+")


def split_lines(text: str) -> list[str]:
    """Split *text* into lines, keeping each line's terminator."""
    return _LINE.findall(text)


@dataclass
class ConfigText:
    """Decoded desktop.ini content plus what is needed to write it back as-is."""

    lines: list[str]
    encoding: str = "utf-8"
    bom: bytes = b""

    @property
    def newline(self) -> str:
        for line in self.lines:
            if line.endswith("\r\n"):
                return "\r\n"
            if line.endswith("\n"):
                return "\n"
            if line.endswith("\r"):
                return "\r"
        return "\r\n"

    @classmethod
    def decode(cls, data: bytes) -> "ConfigText":
        for bom, encoding in _BOMS:
            if data.startswith(bom):
                text = data[len(bom):].decode(encoding, errors="replace")
                return cls(split_lines(text), encoding, bom)
        try:
            text = data.decode("utf-8")
            encoding = "utf-8"
        except UnicodeDecodeError:
            # ANSI content: latin-1 maps every byte, so it writes back unchanged.
            text = data.decode("latin-1")
            encoding = "latin-1"
        return cls(split_lines(text), encoding)

    @classmethod
    def new(cls, lines: list[str]) -> "ConfigText":
        text = "".join(lines)
        if text.isascii():
            return cls(lines)
        # Explorer only honors non-ASCII desktop.ini content in UTF-16.
        return cls(lines, "utf-16-le", codecs.BOM_UTF16_LE)

    def encode(self) -> bytes:
        return self.bom + "".join(self.lines).encode(self.encoding)

    def find_icon_line(self) -> int | None:
        for i, line in enumerate(self.lines):
            if match_line(line) is not None:
                return i
        return None


class ConfigFileStore:
    """Reads and rewrites the IconResource entry of a folder's desktop.ini."""

    def __init__(self, file_name: str = CONFIG_FILE_NAME) -> None:
        self.file_name = file_name

    def path_for(self, folder_path: StrPath) -> Path:
        return Path(folder_path) / self.file_name

    def _load(self, folder_path: StrPath) -> ConfigText:
        ini = self.path_for(folder_path)
        try:
            return ConfigText.decode(ini.read_bytes())
        except FileNotFoundError as exc:
            raise ConfigNotFound(f"{self.file_name} not found in folder: {folder_path}", path=str(ini)) from exc

    def _save(self, ini: Path, content: ConfigText) -> None:
        try:
            ini.write_bytes(content.encode())
        except OSError as exc:
            raise ConfigWriteError(f"Could not write {ini}: {exc}", path=str(ini)) from exc

    def read_raw_entry(self, folder_path: StrPath) -> IconReference | None:
        """The first IconResource entry as stored, unresolved and unvalidated."""
        content = self._load(folder_path)
        idx = content.find_icon_line()
        if idx is None:
            return None
        return parse_icon_resource(match_line(content.lines[idx]) or "")

    def resolve(self, folder_path: StrPath, ref: IconReference) -> IconReference:
        """Make the reference's path absolute, relative to the desktop.ini location."""
        path = resolve_relative(self.path_for(folder_path), expand_env(ref.path))
        return IconReference(path, ref.index)

    def read_icon_entry(self, folder_path: StrPath) -> IconReference | None:
        """
        Return the folder's icon entry with its path resolved to absolute.

        Raises ConfigNotFound without a desktop.ini and InvalidIconFile when
        the entry points at a missing or unsupported file. Returns None when
        there is no usable entry at all.
        """
        raw = self.read_raw_entry(folder_path)
        if not raw:
            log.debug(f"No IconResource entry in {self.path_for(folder_path)}")
            return None
        resolved = self.resolve(folder_path, raw)
        check_icon_source(resolved.path)
        return resolved

    def write_icon_entry(self, folder_path: StrPath, ref: IconReference) -> Path:
        """
        Store *ref* as the folder's IconResource entry.
        - An existing entry is replaced in place, keeping its line ending.
        - Otherwise the line goes right after [.ShellClassInfo], or at the end.
        - Without a desktop.ini, one is created holding just that line.
        Every other line is kept byte for byte.
        """
        ini = self.path_for(folder_path)
        try:
            content = self._load(folder_path)
        except ConfigNotFound:
            content = ConfigText.new([format_line(ref) + "\r\n"])
            log.debug(f"Creating {ini} with {format_line(ref)!r}")
            self._save(ini, content)
            return ini

        newline = content.newline
        idx = content.find_icon_line()
        if idx is not None:
            old = content.lines[idx]
            ending = old[len(old.rstrip("\r\n")):]
            content.lines[idx] = format_line(ref) + ending
        else:
            line = format_line(ref) + newline
            header = next(
                (i for i, text in enumerate(content.lines) if text.strip().lower() == SHELL_CLASS_INFO.lower()),
                None,
            )
            if header is not None:
                if not content.lines[header].endswith(("\r", "\n")):
                    content.lines[header] += newline
                content.lines.insert(header + 1, line)
            else:
                if content.lines and not content.lines[-1].endswith(("\r", "\n")):
                    content.lines[-1] += newline
                content.lines.append(line)
        log.debug(f"Writing {format_line(ref)!r} to {ini}")
        self._save(ini, content)
        return ini

    def remove_icon_entry(self, folder_path: StrPath) -> bool:
        """Drop the IconResource entry; return False if there was none."""
        content = self._load(folder_path)
        idx = content.find_icon_line()
        if idx is None:
            return False
        del content.lines[idx]
        self._save(self.path_for(folder_path), content)
        return True
