import logging
from typing import BinaryIO, NamedTuple, TextIO

from .common import require_arguments, default_to_namespace
from ..codec.key_path import as_key_str
from ..codec.payload import PayloadCodec
from ..store.namespace import NamespaceReader

logger = logging.getLogger(__name__)

LONG_HEADER = " VER  CREATE-REV  MODIF-REV  KEY-NAME...\n-----+----------+----------+-------------"


class ListArgs(NamedTuple):
    """Arguments for the list command."""
    prefixes: list[str]  # Empty means the whole namespace
    long: bool = False  # Print version and revisions next to each key


class GetArgs(NamedTuple):
    """Arguments for the get command."""
    keys: list[str]
    recursive: bool = False  # Treat each key as a prefix


def do_list(reader: NamespaceReader, args: ListArgs, output: TextIO) -> int:
    """Print the keys under each prefix; returns the number of keys listed."""
    prefixes = default_to_namespace(args.prefixes)
    total = 0

    for i, prefix in enumerate(prefixes):
        entries = reader.get(prefix, prefix=True, keys_only=True)
        if len(prefixes) > 1 or len(entries) > 1:
            if prefix:
                logger.info(f"Found {len(entries)} keys in {prefix}:")
            else:
                logger.info(f"Found {len(entries)} keys:")

        if i == 0 and args.long:
            print(LONG_HEADER, file=output)

        for entry in entries:
            if args.long:
                print(f"{entry.version:5d} {entry.create_revision:10d} {entry.mod_revision:10d} "
                      f"{as_key_str(entry.key)}", file=output)
            else:
                print(as_key_str(entry.key), file=output)
        total += len(entries)

    return total


def do_get(reader: NamespaceReader, payload: PayloadCodec, args: GetArgs, output: BinaryIO) -> int:
    """Write the values of the given keys to output; returns the number of values.

    Values found for one argument are separated by a newline.
    """
    require_arguments(args.keys, 1, "must specify which keys to get")
    total = 0

    for key in args.keys:
        entries = reader.get(key, prefix=args.recursive)
        for i, entry in enumerate(entries):
            data = payload.from_storage(entry.value)
            if i > 0:
                output.write(b'\n')
            logger.info(f"Got {as_key_str(entry.key)} [{len(data)} bytes{payload.describe()}]...")
            output.write(data)
        total += len(entries)

    output.flush()
    return total
