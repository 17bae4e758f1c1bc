"""Tests for lockfile module."""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from m2m import lockfile
from m2m.lockfile import LockEntry, LockFileParseError


class TestSerialize(unittest.TestCase):
    def test_one_line_per_entry_in_given_order(self):
        text = lockfile.serialize([("zlib", "1.3-1"), ("bash", "5.2-3")])
        self.assertEqual(text, "zlib=1.3-1\nbash=5.2-3\n")

    def test_empty(self):
        self.assertEqual(lockfile.serialize([]), "")

    def test_rejects_entries_that_would_not_parse_back(self):
        for entry in [("a=b", "1"), ("a", "1\n2"), ("", "1"), ("a", ""), ("my pkg", "1")]:
            with self.subTest(entry=entry):
                with self.assertRaises(ValueError):
                    lockfile.serialize([entry])


class TestParse(unittest.TestCase):
    def test_parse_entries(self):
        entries = lockfile.parse("a=1.0\nb=2.0\n")
        self.assertEqual(entries, [LockEntry("a", "1.0"), LockEntry("b", "2.0")])

    def test_serialize_parse_round_trip(self):
        text = "a=1.0\nb=2.0\n"
        self.assertEqual(lockfile.serialize(lockfile.parse(text)), text)

    def test_blank_lines_and_whitespace_are_ignored(self):
        entries = lockfile.parse("\n  a=1.0  \n\n\r\nb=2.0")
        self.assertEqual(entries, [LockEntry("a", "1.0"), LockEntry("b", "2.0")])

    def test_whitespace_around_separator_is_ignored(self):
        self.assertEqual(lockfile.parse("gcc = 13.2.0-1\n"), [LockEntry("gcc", "13.2.0-1")])

    def test_missing_separator_reports_line_number(self):
        with self.assertRaises(LockFileParseError) as cm:
            lockfile.parse("a=1.0\n\nbroken\n")
        self.assertEqual(cm.exception.line_number, 3)
        self.assertEqual(cm.exception.line, "broken")

    def test_rejects_malformed_lines(self):
        for line in ["=1.0", "a=", "a=1=2", "="]:
            with self.subTest(line=line):
                with self.assertRaises(LockFileParseError) as cm:
                    lockfile.parse(line)
                self.assertEqual(cm.exception.line_number, 1)


class TestLoadSave(unittest.TestCase):
    def test_load_missing_file(self):
        with TemporaryDirectory() as tmpdir:
            self.assertEqual(lockfile.load(Path(tmpdir) / "msys2.lock"), [])

    def test_save_writes_lf_line_endings(self):
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "msys2.lock"
            lockfile.save(path, [LockEntry("gcc", "13.2.0-1")])

            self.assertEqual(path.read_bytes(), b"gcc=13.2.0-1\n")
            self.assertEqual(lockfile.load(path), [LockEntry("gcc", "13.2.0-1")])

    def test_invalid_entry_leaves_existing_file(self):
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "msys2.lock"
            path.write_text("gcc=13.2.0-1\n")

            with self.assertRaises(ValueError):
                lockfile.save(path, [LockEntry("bad=name", "1")])

            self.assertEqual(path.read_text(), "gcc=13.2.0-1\n")


if __name__ == "__main__":
    unittest.main()
