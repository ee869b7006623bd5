import tempfile
import unittest
from pathlib import Path

from burncheck.ignore import IgnoreMatcher, load_ignore_rules


class IgnoreMatcherTest(unittest.TestCase):
    def test_empty_set_never_matches(self):
        matcher = IgnoreMatcher()

        self.assertFalse(matcher.is_ignored('a/b.txt'))
        self.assertFalse(matcher.is_ignored(''))

    def test_prefix_match(self):
        matcher = IgnoreMatcher(['y/'])

        self.assertTrue(matcher.is_ignored('y/secret.txt'))
        self.assertTrue(matcher.is_ignored('y/deep/secret.txt'))
        self.assertFalse(matcher.is_ignored('z/keep.txt'))
        self.assertFalse(matcher.is_ignored('x/y/file.txt'))

    def test_prefix_is_not_segment_aware(self):
        matcher = IgnoreMatcher(['ab'])

        self.assertTrue(matcher.is_ignored('ab/file'))
        self.assertTrue(matcher.is_ignored('abc/file'))

    def test_case_sensitive(self):
        matcher = IgnoreMatcher(['Photos/'])

        self.assertFalse(matcher.is_ignored('photos/a.jpg'))
        self.assertTrue(matcher.is_ignored('Photos/a.jpg'))

    def test_any_prefix_matches(self):
        matcher = IgnoreMatcher(['a/', 'b/'])

        self.assertTrue(matcher.is_ignored('b/file'))
        self.assertEqual(2, len(matcher))


class LoadIgnoreRulesTest(unittest.TestCase):
    def test_lines_are_prefixes(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            ignore_file = Path(tmpdir) / 'ignore.txt'
            ignore_file.write_text("y/\n\ntmp \r\ny/\n")

            matcher = load_ignore_rules(ignore_file)

            self.assertEqual(frozenset({'y/', 'tmp '}), matcher.prefixes)

    def test_empty_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            ignore_file = Path(tmpdir) / 'ignore.txt'
            ignore_file.write_text("")

            self.assertEqual(0, len(load_ignore_rules(ignore_file)))

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(FileNotFoundError):
                load_ignore_rules(Path(tmpdir) / 'missing.txt')


if __name__ == '__main__':
    unittest.main()
