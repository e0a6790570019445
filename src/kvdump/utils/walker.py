import functools
import logging
import os
import posixpath
import stat
from pathlib import Path
from typing import Iterator, NamedTuple

from ..codec.key_path import KeyPathCodec

logger = logging.getLogger(__name__)


class FileContext:
    """A file or directory met during traversal.

    stat() is taken lazily without following symlinks and cached. depth counts
    the parents up to the walked root, which has depth 0.
    """
    def __init__(self, parent, name: str | None, path: Path | None = None, st: os.stat_result | None = None):
        self._parent: FileContext | None = parent
        self._name: str | None = name
        self._stat: os.stat_result | None = st
        self._path: Path | None = path

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def parent(self) -> 'FileContext':
        if self._parent is None:
            raise LookupError("no parent")

        return self._parent

    @property
    def stat(self) -> os.stat_result:
        if self._stat is None:
            if self._path is None:
                raise LookupError("stat not available and path not provided")
            self._stat = self._path.stat(follow_symlinks=False)
        return self._stat

    @functools.cached_property
    def depth(self) -> int:
        if self._parent is None:
            return 0
        return self._parent.depth + 1

    def is_file(self):
        return stat.S_ISREG(self.stat.st_mode)

    def is_dir(self):
        return stat.S_ISDIR(self.stat.st_mode)


def walk(path: Path, parent: FileContext) -> Iterator[tuple[Path, FileContext]]:
    """Recursively traverse a directory, children in name order, directories included."""
    for child in sorted(path.iterdir(), key=lambda p: p.name):
        context = FileContext(parent, child.name, path=child)
        yield child, context

        if context.is_dir():
            yield from walk(child, context)


class SourceFile(NamedTuple):
    """A regular file selected for upload.

    Attributes:
        path: Location on disk
        name: Upload name (prefix plus relative name), as a file name
        key: Store key decoded from name
    """
    path: Path
    name: str
    key: bytes

    def read(self) -> bytes:
        return self.path.read_bytes()


class DirectorySource:
    """Yields the regular files below a root as upload entries.

    Directories are descended into in name order, so the sequence is stable for
    a given filesystem state. Symlinks, devices, sockets and other non-regular
    files are skipped with a warning. A root that is itself a regular file
    yields just that file.

    The upload name of a file is ``prefix`` followed by its path relative to
    ``name_base`` (the directory given with --directory), or by its path as
    given when there is no base. The store key is KeyPathCodec.decode() of the
    name, so ``cfg/sub⁄`` becomes ``cfg/sub/`` again.

    Example:
        source = DirectorySource(Path('out/cfg'), name_base=Path('out'), codec=KeyPathCodec())
        for file in source.walk():
            writer.put(file.key, file.read())
    """

    def __init__(self, root: Path, *, codec: KeyPathCodec, prefix: str = '', name_base: Path | None = None):
        self._root = root
        self._codec = codec
        self._prefix = prefix
        self._name_base = name_base

    @property
    def root(self) -> Path:
        return self._root

    def walk(self) -> Iterator[SourceFile]:
        """Iterate files to upload.

        Raises:
            FileNotFoundError: The root does not exist
        """
        st = self._root.stat()
        if stat.S_ISREG(st.st_mode):
            yield self._source_file(self._root)
            return
        if not stat.S_ISDIR(st.st_mode):
            logger.warning(f"Skipping '{self._root}' (not a file or a directory)")
            return

        for file_path, context in walk(self._root, FileContext(None, None, self._root)):
            if context.is_file():
                yield self._source_file(file_path)
            elif context.is_dir():
                logger.debug(f"Entering {file_path} (depth {context.depth})")
            else:
                logger.warning(f"Skipping '{file_path}' (not a file or a directory)")

    def _source_file(self, path: Path) -> SourceFile:
        name = self._prefix + self._relative_name(path)
        return SourceFile(path, name, self._codec.decode(name))

    def _relative_name(self, path: Path) -> str:
        if self._name_base is not None:
            relative = path.relative_to(self._name_base)
        else:
            relative = path
        return posixpath.normpath(relative.as_posix())
