import logging

from .base import Entry, KeyValueStore, StoreError
from .leveldb_store import LevelDBStore
from .namespace import NamespaceReader, NamespaceWriter
from ..config import ToolConfig

logger = logging.getLogger(__name__)


def open_store(config: ToolConfig) -> KeyValueStore:
    """Open the first configured endpoint that can be opened.

    Raises:
        StoreError: None of the endpoints could be opened
    """
    failures = []
    for endpoint in config.endpoints:
        try:
            store = LevelDBStore(endpoint, create=True, timeout=config.timeout)
        except StoreError as e:
            logger.warning(f"Endpoint {endpoint} unavailable: {e}")
            failures.append(f"{endpoint}: {e}")
            continue
        logger.debug(f"Connected to store at {endpoint}")
        return store

    raise StoreError("No store endpoint could be opened (" + '; '.join(failures) + ")")
