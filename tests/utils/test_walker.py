import os
import tempfile
import unittest
from pathlib import Path, PurePosixPath

from burncheck.utils.walker import FileContext, WalkPolicy, scan, walk_with_policy

from ..test_utils import write_tree


class FileContextTest(unittest.TestCase):
    """Test FileContext class functionality."""

    def test_parent_property_raises_on_none(self):
        context = FileContext(None, "root")

        with self.assertRaises(LookupError) as cm:
            _ = context.parent

        self.assertIn("no parent", str(cm.exception))

    def test_stat_lazy_loading(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            test_file = Path(tmpdir) / "test.txt"
            test_file.write_text("content")

            context = FileContext(None, "test.txt", test_file)
            self.assertIsNone(context._stat)

            st = context.stat
            self.assertEqual(7, st.st_size)
            self.assertIs(st, context.stat)

    def test_stat_raises_when_unavailable(self):
        context = FileContext(None, "test")

        with self.assertRaises(LookupError):
            _ = context.stat

    def test_relative_path_nested(self):
        root = FileContext(None, None)
        dir1 = FileContext(root, "dir1")
        file_ctx = FileContext(FileContext(dir1, "dir2"), "file.txt")

        self.assertEqual(PurePosixPath("dir1/dir2/file.txt"), file_ctx.relative_path)
        self.assertIsNone(root.relative_path)

    def test_is_hidden(self):
        self.assertTrue(FileContext(None, ".git").is_hidden())
        self.assertFalse(FileContext(None, "a.git").is_hidden())
        self.assertFalse(FileContext(None, None).is_hidden())


class WalkWithPolicyTest(unittest.TestCase):
    def test_hidden_directories_pruned(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_tree(root, {'.hidden/inner/a.txt': b'a', 'visible/b.txt': b'b'})

            visited = sorted(str(c.relative_path) for _, c in walk_with_policy(root, WalkPolicy()))

            self.assertEqual(['visible', 'visible/b.txt'], visited)

    def test_hidden_directories_included(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_tree(root, {'.hidden/a.txt': b'a'})

            visited = sorted(str(c.relative_path) for _, c in walk_with_policy(root, WalkPolicy(True)))

            self.assertEqual(['.hidden', '.hidden/a.txt'], visited)


class ScanTest(unittest.TestCase):
    def test_nested_files_relative_to_root(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_tree(root, {'a.txt': b'a', 'x/f1.bin': b'1', 'x/y/z/deep.bin': b'd'})
            (root / 'empty_dir').mkdir()

            self.assertEqual(['a.txt', 'x/f1.bin', 'x/y/z/deep.bin'], sorted(scan(root)))

    def test_hidden_files_skipped_by_default(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_tree(root, {
                '.bashrc': b'rc',
                'docs/.draft.txt': b'draft',
                'docs/final.txt': b'final',
                '.cache/data.bin': b'cached',
                '.cache/sub/more.bin': b'more',
            })

            candidates = scan(root)

            self.assertEqual(['docs/final.txt'], candidates)
            for candidate in candidates:
                for segment in candidate.split('/'):
                    self.assertFalse(segment.startswith('.'))

    def test_hidden_files_included(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_tree(root, {'.bashrc': b'rc', '.cache/data.bin': b'cached', 'docs/final.txt': b'final'})

            self.assertEqual(['.bashrc', '.cache/data.bin', 'docs/final.txt'], sorted(scan(root, include_hidden=True)))

    @unittest.skipUnless(hasattr(os, 'symlink'), 'symlinks not supported')
    def test_symlinks_excluded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / 'root'
            outside = Path(tmpdir) / 'outside'
            write_tree(root, {'real.txt': b'real'})
            write_tree(outside, {'other.txt': b'other'})
            (root / 'link.txt').symlink_to(root / 'real.txt')
            (root / 'linked_dir').symlink_to(outside, target_is_directory=True)

            self.assertEqual(['real.txt'], scan(root))

    @unittest.skipUnless(hasattr(os, 'mkfifo'), 'fifos not supported')
    def test_special_files_excluded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_tree(root, {'real.txt': b'real'})
            os.mkfifo(root / 'pipe')

            self.assertEqual(['real.txt'], scan(root))

    def test_order_is_stable(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_tree(root, {f'd{i % 5}/f{i:03d}': str(i).encode() for i in range(50)})

            self.assertEqual(scan(root), scan(root))

    def test_missing_root(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(FileNotFoundError):
                scan(Path(tmpdir) / 'missing')

    def test_root_is_file(self):
        with tempfile.NamedTemporaryFile() as f:
            with self.assertRaises(NotADirectoryError):
                scan(Path(f.name))


if __name__ == '__main__':
    unittest.main()
