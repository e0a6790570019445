"""Mapping between store keys and filesystem/archive entry names."""

PLACEHOLDER = '⁄'
"""FRACTION SLASH, stands in for a trailing separator in file names."""


class InvalidKey(ValueError):
    pass


def as_key_bytes(key: str | bytes) -> bytes:
    """Convert a command-line key into raw key bytes.

    Strings are encoded as UTF-8 with surrogateescape so that names produced by
    KeyPathCodec.encode() from arbitrary bytes convert back losslessly.
    """
    if isinstance(key, bytes):
        return key
    return key.encode('utf-8', 'surrogateescape')


def as_key_str(key: bytes) -> str:
    return key.decode('utf-8', 'surrogateescape')


class KeyPathCodec:
    """Bidirectional mapping between store keys and file names.

    A store key may end in the separator; such a key is a leaf in the store (by
    convention a "directory marker") but cannot be represented as a file in a
    directory tree or as a regular archive member. encode() replaces the
    trailing separator with PLACEHOLDER and decode() reverses it. Every other
    key passes through unchanged.

    decode() is the exact left inverse of encode() on keys that do not contain
    PLACEHOLDER. A key that contains PLACEHOLDER is ambiguous: ``a⁄`` and
    ``a/`` encode to the same name, and decoding yields ``a/``.

    Example:
        codec = KeyPathCodec()
        codec.encode(b'cfg/sub/')   # 'cfg/sub⁄'
        codec.decode('cfg/sub⁄')  # b'cfg/sub/'
    """

    def __init__(self, separator: str = '/'):
        if len(separator) != 1:
            raise ValueError(f"Separator must be a single character: {separator!r}")
        if separator == PLACEHOLDER:
            raise ValueError("Separator cannot be the placeholder character")
        self._separator_bytes = separator.encode('utf-8')
        self._placeholder_bytes = PLACEHOLDER.encode('utf-8')

    def is_directory_key(self, key: str | bytes) -> bool:
        """Whether a key ends in the separator."""
        return as_key_bytes(key).endswith(self._separator_bytes)

    def encode(self, key: str | bytes) -> str:
        """Map a store key to a file/archive entry name.

        Raises:
            InvalidKey: The key is empty
        """
        key = as_key_bytes(key)
        if not key:
            raise InvalidKey("Invalid key name: empty key")

        if key.endswith(self._separator_bytes):
            key = key[:-len(self._separator_bytes)] + self._placeholder_bytes

        return as_key_str(key)

    def decode(self, name: str) -> bytes:
        """Map a file/archive entry name back to the store key.

        Raises:
            InvalidKey: The name is empty
        """
        if not name:
            raise InvalidKey("Invalid file name: empty name")

        key = as_key_bytes(name)
        if key.endswith(self._placeholder_bytes):
            key = key[:-len(self._placeholder_bytes)] + self._separator_bytes

        return key
