"""Bulk transfer between the store and directories or archives."""
import logging
from pathlib import Path, PurePosixPath
from typing import NamedTuple

from .common import InvalidArgument, require_arguments, default_to_namespace
from ..archive.sink import ArchiveSink, DirectorySink, TarSink, ZipSink
from ..codec.key_path import KeyPathCodec, as_key_str
from ..codec.payload import PayloadCodec
from ..store.namespace import NamespaceReader, NamespaceWriter
from ..utils.walker import DirectorySource

logger = logging.getLogger(__name__)


class TransferContext(NamedTuple):
    """Codecs shared by every transfer command."""
    key_codec: KeyPathCodec
    payload: PayloadCodec


class DumpArgs(NamedTuple):
    """Arguments for the dump command."""
    keys: list[str]
    directory: str | None = None  # Destination directory, current directory if None
    strip: bool = False  # Keep only the last path segment of each key


class UploadArgs(NamedTuple):
    """Arguments for the upload command."""
    paths: list[str]  # Files or directories, relative to directory if given
    directory: str | None = None  # Base directory; upload names are relative to it
    prefix: str = ''  # Prepended to every upload name


class TarArgs(NamedTuple):
    """Arguments for the tar command."""
    keys: list[str]  # Empty means the whole namespace
    file: str | None = None  # Output file, standard output if None
    gzip: bool = False


class ZipArgs(NamedTuple):
    """Arguments for the zip command."""
    keys: list[str]  # Empty means the whole namespace
    file: str | None = None  # Output file, required


def export_entries(
        reader: NamespaceReader,
        context: TransferContext,
        prefixes: list[str],
        sink: ArchiveSink,
        log_format: str) -> int:
    """Copy every entry under the prefixes into an open sink, in key order.

    Prefixes are processed in the order given; within a prefix, entries follow
    ascending key order. log_format receives the sink location, the key and the
    payload size.

    Returns:
        Number of entries written
    """
    written = 0
    for prefix in prefixes:
        for entry in reader.get(prefix, prefix=True):
            data = context.payload.from_storage(entry.value)
            location = sink.write_entry(context.key_codec.encode(entry.key), data)
            logger.info(log_format.format(
                location=location, key=as_key_str(entry.key), size=len(data), codec=context.payload.describe()))
            written += 1
    return written


def do_dump(reader: NamespaceReader, context: TransferContext, args: DumpArgs) -> int:
    """Write each key under the given prefixes as a file below a directory."""
    require_arguments(args.keys, 1, "must specify which keys to dump")

    with DirectorySink(args.directory, strip=args.strip) as sink:
        return export_entries(
            reader, context, args.keys, sink, "Wrote {location} [{size} bytes{codec}]...")


def do_tar(reader: NamespaceReader, context: TransferContext, args: TarArgs) -> int:
    """Stream the entries under the given prefixes into a TAR archive."""
    with TarSink(args.file or None, gzip=args.gzip) as sink:
        written = export_entries(
            reader, context, default_to_namespace(args.keys), sink, "Add {key} [{size}]...")
    logger.info(f"Done writing {sink.description}")
    return written


def do_zip(reader: NamespaceReader, context: TransferContext, args: ZipArgs) -> int:
    """Write the entries under the given prefixes into a ZIP file."""
    if not args.file:
        raise InvalidArgument("must specify output file (-f file)")

    with ZipSink(args.file) as sink:
        written = export_entries(
            reader, context, default_to_namespace(args.keys), sink, "Add {key} [{size}]...")
    logger.info(f"Done writing {sink.description}")
    return written


def upload_root(name_base: Path | None, path: str) -> Path:
    """Resolve an upload argument; with a base directory it is always taken relative to it.

    Raises:
        InvalidArgument: The argument leads outside the base directory
    """
    if name_base is None:
        return Path(path)

    relative = PurePosixPath(path.lstrip('/') or '.')
    if '..' in relative.parts:
        raise InvalidArgument(f"upload path {path!r} leads outside of {name_base}")
    return name_base.joinpath(*relative.parts)


def do_upload(writer: NamespaceWriter, context: TransferContext, args: UploadArgs) -> int:
    """Put every regular file below the given paths into the store.

    Returns:
        Number of keys written
    """
    require_arguments(args.paths, 1, "must specify which directory to upload")

    name_base = Path(args.directory) if args.directory else None
    written = 0

    for path in args.paths:
        root = upload_root(name_base, path)
        logger.debug(f"Doing PUT({root},XX)...")
        source = DirectorySource(root, codec=context.key_codec, prefix=args.prefix, name_base=name_base)
        for file in source.walk():
            data = file.read()
            logger.debug(f"Read {file.path} [{len(data)}] ...")
            data = context.payload.to_storage(data)
            writer.put(file.key, data)
            logger.info(f"Put {file.name} [{len(data)}{context.payload.describe()}]...")
            written += 1

    return written
