from __future__ import annotations

import ctypes
import os
import sys
from logging import getLogger

from .errors import AttributeReadError, AttributeWriteError, ShellRefreshFailed
from .paths import StrPath

log = getLogger(__name__)

FILE_ATTRIBUTE_READONLY = 0x1
FILE_ATTRIBUTE_HIDDEN = 0x2
FILE_ATTRIBUTE_SYSTEM = 0x4
INVALID_FILE_ATTRIBUTES = 0xFFFFFFFF

FCSM_ICONFILE = 0x00000010
FCS_FORCEWRITE = 0x00000002
SHCNE_UPDATEITEM = 0x00002000
SHCNF_PATHW = 0x0005

DWORD = ctypes.c_uint32
LPWSTR = ctypes.c_wchar_p


class SHFOLDERCUSTOMSETTINGS(ctypes.Structure):
    _fields_ = [
        ("dwSize", DWORD),
        ("dwMask", DWORD),
        ("pvid", ctypes.c_void_p),
        ("pszWebViewTemplate", LPWSTR),
        ("cchWebViewTemplate", DWORD),
        ("pszWebViewTemplateVersion", LPWSTR),
        ("pszInfoTip", LPWSTR),
        ("cchInfoTip", DWORD),
        ("pclsid", ctypes.c_void_p),
        ("dwFlags", DWORD),
        ("pszIconFile", LPWSTR),
        ("cchIconFile", DWORD),
        ("iIconIndex", ctypes.c_int),
        ("pszLogo", LPWSTR),
        ("cchLogo", DWORD),
    ]


def is_windows() -> bool:
    return os.name == "nt"


def is_admin() -> bool:
    """Check if the process has admin rights (Windows-only)."""
    if not is_windows():
        return False
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except OSError:
        return False


def elevate_if_needed(argv: list[str] | None = None) -> bool:
    """
    Re-run the process with admin rights if needed (Windows-only).

    Returns True when the current process may carry on, False when an elevated
    copy was launched and the parent should exit. Raises OSError when the
    elevated copy could not be launched.
    """
    if not is_windows() or is_admin():
        return True

    args = " ".join(f'"{a}"' if " " in a else a for a in (argv if argv is not None else sys.argv))
    rc = ctypes.windll.shell32.ShellExecuteW(None, "runas", sys.executable, args, None, 1)
    # ShellExecuteW reports success with a value greater than 32.
    if rc <= 32:
        raise OSError(f"ShellExecuteW failed with code {rc}")
    return False


def get_file_attributes(path: StrPath) -> int:
    """Current attribute bits of *path*; raises AttributeReadError if it does not exist."""
    path = os.fspath(path)
    if not is_windows():
        if not os.path.exists(path):
            raise AttributeReadError(f"No attributes for missing file: {path}", path=path)
        return 0

    attrs = ctypes.windll.kernel32.GetFileAttributesW(path) & INVALID_FILE_ATTRIBUTES
    if attrs == INVALID_FILE_ATTRIBUTES:
        raise AttributeReadError(
            f"Could not read attributes of {path} (error {ctypes.GetLastError()})", path=path
        )
    return attrs


def set_file_attributes(path: StrPath, bits: int) -> None:
    path = os.fspath(path)
    if not is_windows():
        log.debug(f"Ignoring attributes {bits:#x} for {path}: not on Windows")
        return

    if not ctypes.windll.kernel32.SetFileAttributesW(path, bits):
        raise AttributeWriteError(
            f"Failed to set attributes for {path} (error {ctypes.GetLastError()})", path=path
        )


def refresh_folder_icon(folder_path: StrPath, icon_path: str, icon_index: int = 0) -> None:
    """Set the folder's custom icon through the shell and tell Explorer to repaint it."""
    folder = os.fspath(folder_path)
    if not is_windows():
        raise ShellRefreshFailed(f"Shell refresh is not supported on {sys.platform}", path=folder)

    fcs = SHFOLDERCUSTOMSETTINGS()
    fcs.dwSize = ctypes.sizeof(SHFOLDERCUSTOMSETTINGS)
    fcs.dwMask = FCSM_ICONFILE
    # An empty icon path removes the custom icon.
    fcs.pszIconFile = icon_path or None
    fcs.iIconIndex = icon_index

    shell32 = ctypes.windll.shell32
    hr = shell32.SHGetSetFolderCustomSettings(ctypes.byref(fcs), folder, FCS_FORCEWRITE)
    if hr < 0:
        code = hr & 0xFFFFFFFF
        raise ShellRefreshFailed(
            f"Failed to update folder icon for {folder}, HRESULT: {code:#010x}", code=code, path=folder
        )
    shell32.SHChangeNotify(SHCNE_UPDATEITEM, SHCNF_PATHW, folder, None)
    log.debug(f"Shell refreshed icon of {folder} to {icon_path},{icon_index}")
