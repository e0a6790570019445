import logging
import time
from pathlib import Path

import msgpack
import plyvel

from .base import Entry, KeyValueStore, StoreError

logger = logging.getLogger(__name__)


class LevelDBStore(KeyValueStore):
    """Key-value store kept in a local LevelDB database.

    Layout of the database:
    - ``k<key>``: msgpack([value, version, create_revision, mod_revision])
    - ``p<name>``: store properties; ``prevision`` holds the current revision

    The revision counter increases by one with every put and with every delete
    that removes at least one key. A put on an existing key keeps its
    create_revision and increments its version; a put on a missing key starts
    over at version 1. Each mutation and its revision bump are written in one
    batch.

    LevelDB orders keys bytewise, so every read comes back sorted ascending by
    raw key without further work. No snapshot is taken across calls; readers
    may observe writes made in between.
    """
    __ENTRY_PREFIX = b'k'
    __PROPERTY_PREFIX = b'p'

    PROPERTY_REVISION = b'revision'

    def __init__(self, path: str | Path, create: bool = True, timeout: float = 0):
        """Open the database at path.

        Args:
            path: Database directory
            create: Create the database if it is missing
            timeout: Seconds to keep retrying while another process holds the
                     database lock

        Raises:
            StoreError: The database cannot be opened
        """
        path = Path(path)
        deadline = time.monotonic() + timeout
        database = None
        while database is None:
            try:
                database = plyvel.DB(str(path), create_if_missing=create)
            except plyvel.IOError as e:
                if time.monotonic() >= deadline:
                    raise StoreError(f"Cannot open store at {path}: {e}") from e
                logger.debug(f"Store at {path} is busy, retrying: {e}")
                time.sleep(0.1)
            except plyvel.Error as e:
                raise StoreError(f"Cannot open store at {path}: {e}") from e

        self._path = path
        self._alive = True
        self._database = database
        self._entry_database = database.prefixed_db(LevelDBStore.__ENTRY_PREFIX)
        self._property_database = database.prefixed_db(LevelDBStore.__PROPERTY_PREFIX)

    def __del__(self):
        self.close()

    def __enter__(self):
        if not self._alive:
            raise BrokenPipeError(f"Store {self._path} was closed")
        return self

    def close(self):
        if not getattr(self, '_alive', False):
            return

        self._alive = False
        self._entry_database = None
        self._property_database = None
        self._database.close()
        self._database = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def revision(self) -> int:
        try:
            data = self._property_database.get(LevelDBStore.PROPERTY_REVISION)
        except plyvel.Error as e:
            raise StoreError(f"Cannot read revision: {e}") from e
        return 0 if data is None else msgpack.loads(data)

    def get(self, key: bytes, *, prefix: bool = False, keys_only: bool = False) -> list[Entry]:
        try:
            if not prefix:
                data = self._entry_database.get(key)
                if data is None:
                    return []
                return [self._unpack(key, data, keys_only)]

            return [self._unpack(k, v, keys_only) for k, v in self._iterate(key)]
        except plyvel.Error as e:
            raise StoreError(f"Cannot read {key!r}: {e}") from e

    def put(self, key: bytes, value: bytes) -> Entry:
        if not key:
            raise StoreError("Cannot put an empty key")

        try:
            revision = self.revision + 1
            existing = self._entry_database.get(key)
            if existing is None:
                version, create_revision = 1, revision
            else:
                _, version, create_revision, _ = msgpack.loads(existing)
                version += 1

            with self._database.write_batch(transaction=True) as batch:
                batch.put(
                    LevelDBStore.__ENTRY_PREFIX + key,
                    msgpack.dumps([value, version, create_revision, revision]))
                batch.put(
                    LevelDBStore.__PROPERTY_PREFIX + LevelDBStore.PROPERTY_REVISION,
                    msgpack.dumps(revision))
        except (plyvel.Error, ValueError) as e:
            raise StoreError(f"Cannot put {key!r}: {e}") from e

        return Entry(key, None, version, create_revision, revision)

    def delete(self, key: bytes, *, prefix: bool = False) -> int:
        try:
            if prefix:
                keys = [k for k, _ in self._iterate(key, include_value=False)]
            else:
                keys = [key] if self._entry_database.get(key) is not None else []

            if not keys:
                return 0

            with self._database.write_batch(transaction=True) as batch:
                for k in keys:
                    batch.delete(LevelDBStore.__ENTRY_PREFIX + k)
                batch.put(
                    LevelDBStore.__PROPERTY_PREFIX + LevelDBStore.PROPERTY_REVISION,
                    msgpack.dumps(self.revision + 1))
        except plyvel.Error as e:
            raise StoreError(f"Cannot delete {key!r}: {e}") from e

        return len(keys)

    def count(self, prefix: bytes) -> int:
        try:
            return sum(1 for _ in self._iterate(prefix, include_value=False))
        except plyvel.Error as e:
            raise StoreError(f"Cannot count {prefix!r}: {e}") from e

    def _iterate(self, prefix: bytes, include_value: bool = True):
        """Iterate (key, value) pairs under prefix; value is None unless include_value."""
        if prefix:
            iterator = self._entry_database.iterator(prefix=prefix, include_value=include_value)
        else:
            iterator = self._entry_database.iterator(include_value=include_value)

        with iterator:
            for item in iterator:
                if include_value:
                    yield item
                else:
                    yield item, None

    @staticmethod
    def _unpack(key: bytes, data: bytes, keys_only: bool) -> Entry:
        try:
            value, version, create_revision, mod_revision = msgpack.loads(data)
        except (ValueError, TypeError, msgpack.UnpackException) as e:
            raise StoreError(f"Corrupted record for {key!r}: {e}") from e
        return Entry(key, None if keys_only else value, version, create_revision, mod_revision)
