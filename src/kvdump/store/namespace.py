"""Read and write access to key subtrees of the store."""
import logging

from .base import Entry, KeyValueStore
from ..codec.key_path import KeyPathCodec, as_key_bytes

logger = logging.getLogger(__name__)


class NamespaceReader:
    """Retrieves single keys or whole prefixed subtrees, sorted ascending by key.

    Subtree results are sorted here as well, whatever order the store returns.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    def get(self, key_or_prefix: str | bytes, *, prefix: bool = True, keys_only: bool = False) -> list[Entry]:
        key = as_key_bytes(key_or_prefix)
        logger.debug(f"Doing GET({key!r}, prefix={prefix}, keys_only={keys_only})...")
        entries = self._store.get(key, prefix=prefix, keys_only=keys_only)
        if prefix and len(entries) > 1:
            entries = sorted(entries, key=lambda e: e.key)
        return entries

    def count(self, prefix: str | bytes) -> int:
        key = as_key_bytes(prefix)
        logger.debug(f"Doing COUNT({key!r})...")
        return self._store.count(key)


class NamespaceWriter:
    """Inserts single keys and deletes single keys or prefixed subtrees.

    A key ending in the separator is a directory marker; deleting it always
    deletes the whole subtree beneath it, marker included.
    """

    def __init__(self, store: KeyValueStore, separator: str = '/'):
        self._store = store
        self._key_codec = KeyPathCodec(separator)

    def put(self, key: str | bytes, value: bytes) -> Entry:
        key = as_key_bytes(key)
        logger.debug(f"Doing PUT({key!r}, [{len(value)}])...")
        return self._store.put(key, value)

    def is_recursive(self, key: str | bytes, recursive: bool = False) -> bool:
        return recursive or self._key_codec.is_directory_key(key)

    def delete(self, key_or_prefix: str | bytes, *, recursive: bool = False) -> int:
        key = as_key_bytes(key_or_prefix)
        recursive = self.is_recursive(key, recursive)
        logger.debug(f"Doing DEL({key!r}, prefix={recursive})...")
        return self._store.delete(key, prefix=recursive)
