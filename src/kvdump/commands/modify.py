import logging
import sys
from typing import BinaryIO, NamedTuple

from .common import InvalidArgument, require_arguments
from ..codec.key_path import KeyPathCodec, as_key_str
from ..codec.payload import PayloadCodec
from ..store.namespace import NamespaceWriter
from ..utils.confirm import RemovalConfirmer

logger = logging.getLogger(__name__)


class PutArgs(NamedTuple):
    """Arguments for the put command."""
    source: str  # File to read the value from, '-' for standard input
    key: str  # Key as a file name; a trailing placeholder turns into the separator


class RemoveArgs(NamedTuple):
    """Arguments for the remove command."""
    keys: list[str]
    recursive: bool = False


def do_put(
        writer: NamespaceWriter,
        payload: PayloadCodec,
        codec: KeyPathCodec,
        args: PutArgs,
        input_stream: BinaryIO | None = None) -> int:
    """Store the content of a file (or standard input) under one key.

    Returns:
        Number of bytes stored
    """
    if not args.source or not args.key:
        raise InvalidArgument("must specify <file|-> <key>")

    if args.source == '-':
        data = (input_stream if input_stream is not None else sys.stdin.buffer).read()
    else:
        with open(args.source, 'rb') as f:
            data = f.read()

    data = payload.to_storage(data)
    key = codec.decode(args.key)
    writer.put(key, data)
    logger.info(f"Put {as_key_str(key)} [{len(data)}{payload.describe()}]...")
    return len(data)


def do_remove(writer: NamespaceWriter, confirmer: RemovalConfirmer, args: RemoveArgs) -> int:
    """Delete keys, asking for confirmation before each non-empty recursive deletion.

    Arguments are handled in order. A declined confirmation raises
    RemovalAborted and leaves the remaining arguments untouched.

    Returns:
        Total number of deleted keys
    """
    require_arguments(args.keys, 1, "must specify which keys to remove")
    total = 0

    for key in args.keys:
        recursive = writer.is_recursive(key, args.recursive)
        confirmer.require(key, recursive)
        deleted = writer.delete(key, recursive=recursive)
        logger.info(f"Deleted {deleted} keys.")
        total += deleted

    return total
