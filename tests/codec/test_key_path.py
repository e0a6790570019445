"""Tests for KeyPathCodec."""
import unittest

from kvdump.codec.key_path import KeyPathCodec, InvalidKey, PLACEHOLDER, as_key_bytes, as_key_str


class KeyPathCodecTest(unittest.TestCase):
    """Tests for the key <-> file name mapping."""

    def setUp(self):
        self.codec = KeyPathCodec()

    def test_plain_key_unchanged(self):
        """Keys without a trailing separator map to themselves."""
        self.assertEqual('cfg/a', self.codec.encode(b'cfg/a'))
        self.assertEqual(b'cfg/a', self.codec.decode('cfg/a'))

    def test_trailing_separator_replaced(self):
        """A trailing separator becomes the placeholder and comes back on decode."""
        name = self.codec.encode(b'a/b/')
        self.assertEqual('a/b' + PLACEHOLDER, name)
        self.assertFalse(name.endswith('/'))
        self.assertEqual(b'a/b/', self.codec.decode(name))

    def test_only_last_separator_replaced(self):
        """Inner separators keep describing the hierarchy."""
        self.assertEqual('a//' + PLACEHOLDER, self.codec.encode(b'a///'))
        self.assertEqual(PLACEHOLDER, self.codec.encode(b'/'))

    def test_round_trip(self):
        """decode(encode(k)) == k for keys without the placeholder."""
        keys = [
            b'x', b'/', b'a/', b'/registry/pods/default/web-0', b'dir/sub/', b'with space/and\ttab',
            'unicode/ключ/'.encode('utf-8'), b'\xff\xfe/binary/', b'trailing-dot.',
        ]
        for key in keys:
            with self.subTest(key=key):
                self.assertEqual(key, self.codec.decode(self.codec.encode(key)))

    def test_accepts_str_keys(self):
        """Command-line strings are accepted in place of bytes."""
        self.assertEqual('a' + PLACEHOLDER, self.codec.encode('a/'))

    def test_empty_key_rejected(self):
        """Empty keys and names are invalid."""
        with self.assertRaises(InvalidKey):
            self.codec.encode(b'')
        with self.assertRaises(InvalidKey):
            self.codec.decode('')

    def test_placeholder_in_key_is_ambiguous(self):
        """A key already ending in the placeholder decodes as a directory key."""
        key = ('a' + PLACEHOLDER).encode('utf-8')
        self.assertEqual(b'a/', self.codec.decode(self.codec.encode(key)))

    def test_custom_separator(self):
        """The separator is configurable."""
        codec = KeyPathCodec(':')
        self.assertEqual('app:cfg' + PLACEHOLDER, codec.encode(b'app:cfg:'))
        self.assertEqual(b'app:cfg:', codec.decode('app:cfg' + PLACEHOLDER))
        self.assertEqual('a/', codec.encode(b'a/'))
        self.assertTrue(codec.is_directory_key(b'a:'))
        self.assertFalse(codec.is_directory_key(b'a/'))

    def test_invalid_separator(self):
        """Separators must be a single character other than the placeholder."""
        with self.assertRaises(ValueError):
            KeyPathCodec('//')
        with self.assertRaises(ValueError):
            KeyPathCodec(PLACEHOLDER)

    def test_byte_string_conversion(self):
        """Undecodable bytes survive the trip through str."""
        raw = b'\xff\x00abc'
        self.assertEqual(raw, as_key_bytes(as_key_str(raw)))


if __name__ == '__main__':
    unittest.main()
