import os
import unittest

from foldericon.codec import (
    EMPTY,
    IconReference,
    format_icon_resource,
    format_line,
    match_line,
    parse_icon_resource,
)
from foldericon.errors import MalformedEntry
from foldericon.paths import expand_env, extension_of, resolve_relative, trim_quotes


class TestPaths(unittest.TestCase):
    def test_trim_quotes(self):
        """Test that one matching pair of quotes is removed"""
        self.assertEqual(trim_quotes('"C:\\Icons\\a.ico"'), "C:\\Icons\\a.ico")
        self.assertEqual(trim_quotes("'a.ico'"), "a.ico")
        self.assertEqual(trim_quotes('""a.ico""'), '"a.ico"')
        self.assertEqual(trim_quotes('"a.ico'), '"a.ico')
        self.assertEqual(trim_quotes("a.ico"), "a.ico")
        self.assertEqual(trim_quotes(trim_quotes("a.ico")), "a.ico")

    def test_resolve_relative(self):
        base = os.path.join(os.sep, "data", "photos", "desktop.ini")
        self.assertEqual(
            resolve_relative(base, "pack.dll"),
            os.path.join(os.sep, "data", "photos", "pack.dll"),
        )
        self.assertEqual(
            resolve_relative(base, os.path.join("..", "icons", "a.ico")),
            os.path.join(os.sep, "data", "icons", "a.ico"),
        )

    def test_resolve_absolute_unchanged(self):
        base = os.path.join(os.sep, "data", "desktop.ini")
        absolute = os.path.join(os.sep, "icons", "a.ico")
        self.assertEqual(resolve_relative(base, absolute), absolute)
        self.assertEqual(resolve_relative(base, "C:\\Windows\\System32\\shell32.dll"), "C:\\Windows\\System32\\shell32.dll")
        self.assertEqual(resolve_relative(base, "\\\\server\\share\\a.ico"), "\\\\server\\share\\a.ico")

    def test_extension_of(self):
        self.assertEqual(extension_of("C:\\Dir.d\\Pack.DLL"), ".dll")
        self.assertEqual(extension_of("icons/folder.Ico"), ".ico")
        self.assertEqual(extension_of("C:\\Dir.d\\noext"), "")
        self.assertEqual(extension_of(""), "")

    def test_expand_env(self):
        env = {"SystemRoot": "C:\\Windows"}
        self.assertEqual(
            expand_env("%SYSTEMROOT%\\system32\\imageres.dll", env),
            "C:\\Windows\\system32\\imageres.dll",
        )
        self.assertEqual(expand_env("%UNKNOWN%\\a.ico", env), "%UNKNOWN%\\a.ico")
        self.assertEqual(expand_env("100%.ico", env), "100%.ico")


class TestIconResourceCodec(unittest.TestCase):
    def test_parse_with_index(self):
        self.assertEqual(parse_icon_resource("pack.dll,3"), IconReference("pack.dll", 3))
        self.assertEqual(parse_icon_resource("shell32.dll,-3"), IconReference("shell32.dll", -3))
        self.assertEqual(parse_icon_resource("x.ico, 4 "), IconReference("x.ico", 4))

    def test_parse_without_index(self):
        self.assertEqual(parse_icon_resource("folder.ico"), IconReference("folder.ico", 0))

    def test_parse_splits_on_last_comma(self):
        """Test that commas inside the path are kept"""
        self.assertEqual(
            parse_icon_resource("C:\\a,b\\x.dll,7"),
            IconReference("C:\\a,b\\x.dll", 7),
        )
        self.assertEqual(parse_icon_resource("my,file.ico"), IconReference("my,file.ico", 0))
        self.assertEqual(parse_icon_resource("a.ico,1x"), IconReference("a.ico,1x", 0))

    def test_parse_quoted(self):
        self.assertEqual(
            parse_icon_resource('"C:\\Program Files\\x.dll",2'),
            IconReference("C:\\Program Files\\x.dll", 2),
        )

    def test_parse_malformed_degrades(self):
        """Test that malformed values become an empty reference"""
        for raw in ("", "   ", ",5", '"",1'):
            ref = parse_icon_resource(raw)
            self.assertEqual(ref, EMPTY)
            self.assertFalse(ref)
        with self.assertRaises(MalformedEntry):
            parse_icon_resource(",5", strict=True)

    def test_format_always_emits_index(self):
        self.assertEqual(format_icon_resource(IconReference("folder.ico")), "folder.ico,0")
        self.assertEqual(format_line(IconReference("pack.dll", 3)), "IconResource=pack.dll,3")

    def test_round_trip(self):
        refs = [
            IconReference("folder.ico", 0),
            IconReference("C:\\Icons\\pack.dll", 12),
            IconReference("%SystemRoot%\\system32\\imageres.dll", -3),
            IconReference("a,5", 0),
            IconReference("dir with spaces/x.ico", 1),
        ]
        for ref in refs:
            self.assertEqual(parse_icon_resource(format_icon_resource(ref)), ref)

    def test_padded_path_is_trimmed(self):
        """Test that surrounding blanks and quotes are not part of the path"""
        ref = IconReference(" a.ico ", 1)
        self.assertEqual(parse_icon_resource(format_icon_resource(ref)), IconReference("a.ico", 1))
        self.assertEqual(parse_icon_resource('" a.ico ",1'), IconReference(" a.ico ", 1))

    def test_match_line(self):
        self.assertEqual(match_line("IconResource=a.ico,1\r\n"), "a.ico,1")
        self.assertEqual(match_line("IconResource=\n"), "")
        self.assertIsNone(match_line(" IconResource=a.ico"))
        self.assertIsNone(match_line("iconresource=a.ico"))
        self.assertIsNone(match_line("IconFile=a.ico"))


if __name__ == '__main__':
    unittest.main()
