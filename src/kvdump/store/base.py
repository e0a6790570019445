from abc import ABC, abstractmethod
from typing import NamedTuple


class StoreError(RuntimeError):
    """Failure of one of the store primitives."""
    pass


class Entry(NamedTuple):
    """One record as returned by a read.

    Attributes:
        key: Raw key bytes
        value: Raw value bytes, or None when read with keys_only
        version: Number of puts since the key was (re)created
        create_revision: Store revision at which the key was created
        mod_revision: Store revision of the most recent put
    """
    key: bytes
    value: bytes | None
    version: int
    create_revision: int
    mod_revision: int


class KeyValueStore(ABC):
    """The four primitives the tool needs from a store.

    All reads return entries in ascending order of raw key bytes. Prefix mode
    matches the key itself and every key that starts with it; an empty prefix
    matches the whole namespace.
    """

    @abstractmethod
    def get(self, key: bytes, *, prefix: bool = False, keys_only: bool = False) -> list[Entry]:
        ...

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> Entry:
        """Insert or replace a value; returns the stored entry without its value."""
        ...

    @abstractmethod
    def delete(self, key: bytes, *, prefix: bool = False) -> int:
        """Delete a key or a prefixed subtree; returns the number of deleted keys."""
        ...

    @abstractmethod
    def count(self, prefix: bytes) -> int:
        ...

    @property
    @abstractmethod
    def revision(self) -> int:
        ...

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
