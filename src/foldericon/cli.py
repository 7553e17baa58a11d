from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path

from .attributes import DEFAULT_ATTRIBUTE_SPEC, AttributeSpec
from .core import IconAssignmentService
from .errors import FolderIconError, IconIndexRequired, InvalidAttributeSpec
from .icons import icon_sizes
from .paths import extension_of
from .windows import elevate_if_needed, is_windows

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_LAUNCH_FAILED = 3
# argparse itself exits with 2 on unrecognized arguments.


def _prompt(msg: str, default: str | None = None) -> str:
    suffix = f" [{default}]" if default is not None else ""
    v = input(f"{msg}{suffix}: ").strip()
    return v if v else (default or "")


def prompt_for_index(source_path: str) -> int:
    """Ask for the icon index inside a .dll until a whole number is given."""
    while True:
        try:
            raw = _prompt(f"Icon index in {source_path}")
        except EOFError:
            raise IconIndexRequired(f"No icon index given for {source_path}", path=source_path) from None
        try:
            return int(raw)
        except ValueError:
            print(f"Not a valid index: {raw!r}")


# Windows-style switches and the long options they stand for.
SWITCHES = {
    "/f": "--folder",
    "/i": "--icon",
    "/n": "--index",
    "/c": "--clear",
    "/v": "--verbose",
    "/elevate": "--elevate",
    "/?": "--help",
}
_ATTRIBUTE_TOKENS = re.compile(r"[+-][HS]+(?:[\s,]+[+-][HS]+)*", re.IGNORECASE)


def normalize_argv(argv: list[str]) -> list[str]:
    """
    Turn ``/f X /a +H -S`` style arguments into argparse long options.

    The tokens following ``/a`` are folded into one ``--attributes=`` value so
    that ``-S`` is not mistaken for an option. Anything unknown is passed
    through for argparse to reject.
    """
    out: list[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        key = arg.lower()
        if key == "/a":
            tokens = []
            while i + 1 < len(argv) and _ATTRIBUTE_TOKENS.fullmatch(argv[i + 1].strip()):
                i += 1
                tokens.append(argv[i].strip())
            out.append("--attributes=" + " ".join(tokens))
        else:
            out.append(SWITCHES.get(key, arg))
        i += 1
    return out


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="FolderIconUpdater",
        description="Set or refresh the custom icon of a folder through its desktop.ini.",
        epilog='Example: FolderIconUpdater /f "C:\\Path\\ThisFolder" /i "C:\\Icons\\pack.dll" /n 3 /a +H',
    )
    p.add_argument("--folder", dest="folder", metavar="FOLDER", help="Folder to update (required).")
    p.add_argument("--icon", dest="icon", metavar="ICON", help="Icon source: an .ico file or a .dll holding icons.")
    p.add_argument("--index", dest="index", type=int, metavar="INDEX", help="Icon index inside the source (requires /i).")
    p.add_argument(
        "--attributes",
        dest="attributes",
        metavar="SPEC",
        help=f"Set attributes on desktop.ini and the icon file, e.g. +H -S. Default: {DEFAULT_ATTRIBUTE_SPEC}",
    )
    p.add_argument("--clear", dest="clear", action="store_true", help="Remove the icon entry from desktop.ini.")
    p.add_argument("--verbose", dest="verbose", action="store_true", help="Verbose output.")
    p.add_argument("--elevate", action="store_true", help="Relaunch with administrator rights first (Windows-only).")
    return p


def _report(result, verbose: bool = False) -> None:
    print(f"Folder icon updated for {result.folder}: {result.icon_path},{result.reference.index}")
    if verbose and extension_of(result.icon_path) == ".ico":
        sizes = ", ".join(f"{w}x{h}" for w, h in icon_sizes(result.icon_path))
        print(f"Icon sizes: {sizes}")
    for warning in result.warnings:
        print(f"Warning: {warning}")


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(normalize_argv(argv))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.folder:
        parser.print_usage()
        print('Usage: FolderIconUpdater /f "C:\\Path\\ThisFolder" [/i ICON [/n INDEX]] [/a [SPEC]]')
        return EXIT_FAILURE
    if args.index is not None and args.icon is None:
        print("/n requires /i")
        return EXIT_FAILURE

    if args.elevate and is_windows():
        try:
            if not elevate_if_needed([sys.argv[0], *[a for a in argv if a.lower() != "/elevate"]]):
                return EXIT_OK
        except OSError as e:
            print(f"Could not relaunch with administrator rights: {e}")
            return EXIT_LAUNCH_FAILED

    spec = None
    if args.attributes is not None:
        try:
            spec = AttributeSpec.parse(args.attributes or DEFAULT_ATTRIBUTE_SPEC)
        except InvalidAttributeSpec as e:
            print(e)
            return EXIT_FAILURE

    service = IconAssignmentService(prompt_for_index=prompt_for_index)
    folder = Path(args.folder)
    icon = str(Path(args.icon).absolute()) if args.icon else None
    try:
        if args.clear:
            if service.clear(folder):
                print(f"Icon entry removed for {folder}")
            else:
                print(f"No IconResource found in desktop.ini for {folder}")
            return EXIT_OK
        result = service.assign(folder, icon, args.index, spec)
    except FolderIconError as e:
        print(e)
        return EXIT_FAILURE

    _report(result, args.verbose)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
