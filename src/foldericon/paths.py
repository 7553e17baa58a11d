from __future__ import annotations

import ntpath
import os
import re
from pathlib import PureWindowsPath
from typing import Mapping, Union

StrPath = Union[str, "os.PathLike[str]"]

_ENV_REF = re.compile(r"%([^%\\/]+)%")


def trim_quotes(s: str) -> str:
    """Remove one pair of matching surrounding quotes, if any."""
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in "\"'":
        return s[1:-1]
    return s


def expand_env(path: str, environ: Mapping[str, str] | None = None) -> str:
    """Expand %NAME% references the way the Windows shell does.

    Lookups are case-insensitive; unknown names are left untouched.
    """
    env = os.environ if environ is None else environ
    lowered = {k.lower(): v for k, v in env.items()}

    def _sub(m: re.Match) -> str:
        return lowered.get(m.group(1).lower(), m.group(0))

    return _ENV_REF.sub(_sub, path)


def is_absolute(path: str) -> bool:
    # Drive letters and UNC shares count as absolute on every host.
    return os.path.isabs(path) or bool(PureWindowsPath(path).drive)


def resolve_relative(base_path: StrPath, maybe_relative: str) -> str:
    """Resolve *maybe_relative* against the directory containing *base_path*."""
    if is_absolute(maybe_relative):
        return maybe_relative
    base_dir = os.path.dirname(os.fspath(base_path))
    return os.path.normpath(os.path.join(base_dir, maybe_relative))


def extension_of(path: StrPath) -> str:
    return ntpath.splitext(os.fspath(path))[1].lower()
