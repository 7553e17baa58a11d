from __future__ import annotations

import os
from logging import getLogger

from PIL import Image, UnidentifiedImageError

from .errors import InvalidIconFile
from .paths import StrPath, extension_of

log = getLogger(__name__)

SUPPORTED_EXTENSIONS = (".ico", ".dll")


def needs_index(path: StrPath) -> bool:
    """Only .dll sources hold more than one icon worth choosing from."""
    return extension_of(path) == ".dll"


def check_icon_source(path: StrPath) -> str:
    """
    Make sure *path* can be used as an icon source and return its extension.
    - The file must exist.
    - Its extension must be one of SUPPORTED_EXTENSIONS.
    - An .ico file must open as an ICO image.
    """
    path = os.fspath(path)
    ext = extension_of(path)
    if ext not in SUPPORTED_EXTENSIONS:
        raise InvalidIconFile(
            f"Unsupported icon file type {ext or '(none)'!r}: {path}",
            reason="unsupported",
            path=path,
        )
    if not os.path.isfile(path):
        raise InvalidIconFile(f"Icon file not found: {path}", reason="missing", path=path)

    if ext == ".ico":
        try:
            with Image.open(path) as img:
                fmt = img.format
        except (UnidentifiedImageError, OSError) as exc:
            raise InvalidIconFile(
                f"Not a readable icon file: {path} ({exc})", reason="unreadable", path=path
            ) from exc
        if fmt != "ICO":
            raise InvalidIconFile(
                f"{path} is a {fmt} image, not an icon", reason="unreadable", path=path
            )
    return ext


def icon_sizes(path: StrPath) -> list[tuple[int, int]]:
    """Sizes embedded in an .ico file, smallest first."""
    with Image.open(os.fspath(path)) as img:
        sizes = img.info.get("sizes") or {img.size}
    return sorted(sizes)
