"""Tests for list and get."""
import base64
import io
import tempfile
import unittest

from kvdump.codec.payload import PayloadDecodeError
from kvdump.commands import ListArgs, GetArgs, InvalidArgument
from kvdump.commands.query import LONG_HEADER
from kvdump.config import ToolConfig
from kvdump.session import StoreSession

from ..test_utils import SCENARIO, open_store, populate


class ListTest(unittest.TestCase):

    def list_output(self, store, args: ListArgs) -> tuple[int, str]:
        output = io.StringIO()
        count = StoreSession(ToolConfig(), store=store).list(args, output)
        return count, output.getvalue()

    def test_list_prefix(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {**SCENARIO, b'other': b''})
                count, text = self.list_output(store, ListArgs(['cfg']))

            self.assertEqual(3, count)
            self.assertEqual("cfg/a\ncfg/b\ncfg/sub/\n", text)

    def test_list_whole_namespace(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'b': b'', b'a': b''})
                count, text = self.list_output(store, ListArgs([]))

            self.assertEqual(2, count)
            self.assertEqual("a\nb\n", text)

    def test_list_logs_counts(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, SCENARIO)
                with self.assertLogs('kvdump.commands.query', 'INFO') as cm:
                    self.list_output(store, ListArgs(['cfg/', 'x']))

            self.assertIn("Found 3 keys in cfg/:", cm.output[0])
            self.assertIn("Found 0 keys in x:", cm.output[1])

    def test_long_format(self):
        """Long listing prints one header then version and revisions per key."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                store.put(b'k', b'1')
                store.put(b'k', b'2')
                store.put(b'm', b'')
                _, text = self.list_output(store, ListArgs(['k', 'm'], long=True))

            lines = text.splitlines()
            self.assertEqual(LONG_HEADER.splitlines(), lines[:2])
            self.assertEqual("    2          1          2 k", lines[2])
            self.assertEqual("    1          3          3 m", lines[3])
            self.assertEqual(4, len(lines))


class GetTest(unittest.TestCase):

    def get_output(self, store, args: GetArgs, decode=False) -> bytes:
        output = io.BytesIO()
        StoreSession(ToolConfig(), store=store).get(args, decode=decode, output=output)
        return output.getvalue()

    def test_exact_key(self):
        """Without -r only the literal key is read."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, {b'a': b'one', b'ab': b'two'})
                self.assertEqual(b'one', self.get_output(store, GetArgs(['a'])))

    def test_recursive_separates_values(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                populate(store, SCENARIO)
                self.assertEqual(b'1\n2\n', self.get_output(store, GetArgs(['cfg/'], recursive=True)))

    def test_missing_key_prints_nothing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                self.assertEqual(b'', self.get_output(store, GetArgs(['missing'])))

    def test_decode(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                store.put(b'k', base64.b64encode(b'\x00binary'))
                self.assertEqual(b'\x00binary', self.get_output(store, GetArgs(['k']), decode=True))

    def test_decode_malformed(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                store.put(b'k', b'%%%')
                with self.assertRaises(PayloadDecodeError):
                    self.get_output(store, GetArgs(['k']), decode=True)

    def test_requires_keys(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(tmpdir) as store:
                with self.assertRaises(InvalidArgument):
                    self.get_output(store, GetArgs([]))


if __name__ == '__main__':
    unittest.main()
