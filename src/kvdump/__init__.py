__version__ = '1.6.0'

from .codec import KeyPathCodec, PayloadCodec, InvalidKey, PayloadDecodeError, PLACEHOLDER
from .config import ToolConfig, ToolSettings
from .store import Entry, KeyValueStore, LevelDBStore, StoreError, NamespaceReader, NamespaceWriter, open_store
from .archive import ArchiveSink, DirectorySink, TarSink, ZipSink
from .utils.walker import DirectorySource
from .utils.confirm import RemovalConfirmer, RemovalAborted, ConfirmState
from .session import StoreSession
