import sys
from collections.abc import Callable
from typing import BinaryIO, TextIO

from .codec.key_path import KeyPathCodec
from .codec.payload import PayloadCodec
from .commands import (
    do_list, do_get, do_put, do_remove, do_dump, do_upload, do_tar, do_zip,
    ListArgs, GetArgs, PutArgs, RemoveArgs, DumpArgs, UploadArgs, TarArgs, ZipArgs, TransferContext,
)
from .config import ToolConfig
from .store import KeyValueStore, NamespaceReader, NamespaceWriter, open_store
from .utils.confirm import RemovalConfirmer, prompt_confirmation


class StoreSession:
    """Command-level operations against one store connection.

    StoreSession is the workflow layer: it owns the opened store for the
    duration of one invocation, builds the reader, writer and codecs from the
    configuration, and exposes one method per command. The do_* functions in
    kvdump.commands hold the per-command logic; NamespaceReader/Writer and the
    KeyValueStore below them know nothing about commands.

    Example:
        with StoreSession(ToolConfig(endpoints=('backup.db',))) as session:
            session.dump(DumpArgs(['cfg'], directory='out'))
    """

    def __init__(self, config: ToolConfig, store: KeyValueStore | None = None):
        """Connect to the configured store unless one is passed in.

        Raises:
            StoreError: No endpoint could be opened
        """
        self._store = store if store is not None else open_store(config)
        self._key_codec = KeyPathCodec(config.separator)
        self._reader = NamespaceReader(self._store)
        self._writer = NamespaceWriter(self._store, config.separator)

    def __enter__(self):
        self._store.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._store.__exit__(exc_type, exc_val, exc_tb)

    def list(self, args: ListArgs, output: TextIO | None = None) -> int:
        return do_list(self._reader, args, output if output is not None else sys.stdout)

    def get(self, args: GetArgs, *, decode: bool = False, output: BinaryIO | None = None) -> int:
        return do_get(
            self._reader, PayloadCodec(decode=decode), args,
            output if output is not None else sys.stdout.buffer)

    def put(self, args: PutArgs, *, encode: bool = False, input_stream: BinaryIO | None = None) -> int:
        return do_put(self._writer, PayloadCodec(encode=encode), self._key_codec, args, input_stream)

    def remove(
            self,
            args: RemoveArgs,
            *,
            force: bool = False,
            confirm: Callable[[int, str], bool] = prompt_confirmation) -> int:
        """Delete keys; recursive deletions ask confirm() first unless force is set.

        Raises:
            RemovalAborted: A confirmation was declined
        """
        confirmer = RemovalConfirmer(self._reader.count, confirm, force=force)
        return do_remove(self._writer, confirmer, args)

    def dump(self, args: DumpArgs, *, decode: bool = False) -> int:
        return do_dump(self._reader, self._transfer_context(decode=decode), args)

    def upload(self, args: UploadArgs, *, encode: bool = False) -> int:
        return do_upload(self._writer, self._transfer_context(encode=encode), args)

    def tar(self, args: TarArgs, *, decode: bool = False) -> int:
        return do_tar(self._reader, self._transfer_context(decode=decode), args)

    def zip(self, args: ZipArgs, *, decode: bool = False) -> int:
        return do_zip(self._reader, self._transfer_context(decode=decode), args)

    def _transfer_context(self, *, encode: bool = False, decode: bool = False) -> TransferContext:
        return TransferContext(self._key_codec, PayloadCodec(encode=encode, decode=decode))
