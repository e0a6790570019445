"""Tests for NamespaceReader and NamespaceWriter."""
import tempfile
import unittest

from kvdump.store import NamespaceReader, NamespaceWriter

from ..test_utils import open_store, populate, snapshot


class NamespaceReaderTest(unittest.TestCase):

    def test_prefix_get_ordering(self):
        """Subtree reads are sorted by raw key bytes."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'p/\xff': b'', b'p/b': b'', b'p/B': b'', b'p/a': b''})
                reader = NamespaceReader(store)

                keys = [e.key for e in reader.get('p/')]
                self.assertEqual(sorted(keys), keys)
                self.assertEqual([b'p/B', b'p/a', b'p/b', b'p/\xff'], keys)

    def test_exact_get(self):
        """prefix=False matches only the literal key."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'a': b'1', b'ab': b'2'})
                reader = NamespaceReader(store)

                self.assertEqual([b'a'], [e.key for e in reader.get('a', prefix=False)])
                self.assertEqual([b'a', b'ab'], [e.key for e in reader.get('a')])

    def test_count(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'a/1': b'', b'a/2': b'', b'b': b''})
                self.assertEqual(2, NamespaceReader(store).count('a/'))


class NamespaceWriterTest(unittest.TestCase):

    def test_put(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                NamespaceWriter(store).put('cfg/a', b'1')
                self.assertEqual({b'cfg/a': b'1'}, snapshot(store))

    def test_delete_single(self):
        """Non-recursive deletes touch one key."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'a': b'', b'ab': b''})
                self.assertEqual(1, NamespaceWriter(store).delete('a'))
                self.assertEqual({b'ab': b''}, snapshot(store))

    def test_delete_recursive(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'a': b'', b'ab': b'', b'b': b''})
                self.assertEqual(2, NamespaceWriter(store).delete('a', recursive=True))
                self.assertEqual({b'b': b''}, snapshot(store))

    def test_trailing_separator_implies_recursive(self):
        """Deleting a directory key removes the marker and everything beneath it."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'dir/': b'', b'dir/x': b'', b'dir/y/z': b'', b'dirx': b''})
                writer = NamespaceWriter(store)

                self.assertTrue(writer.is_recursive('dir/'))
                self.assertFalse(writer.is_recursive('dir'))
                self.assertEqual(3, writer.delete('dir/', recursive=False))
                self.assertEqual({b'dirx': b''}, snapshot(store))

    def test_custom_separator(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                writer = NamespaceWriter(store, ':')
                self.assertTrue(writer.is_recursive('app:'))
                self.assertFalse(writer.is_recursive('app/'))


if __name__ == '__main__':
    unittest.main()
