"""Destinations for an ordered stream of named byte payloads."""
import io
import logging
import os
import sys
import tarfile
import time
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from ..codec.key_path import InvalidKey

logger = logging.getLogger(__name__)

ENTRY_MODE = 0o666
DIRECTORY_MODE = 0o777


class ArchiveSink(ABC):
    """Receives (name, data) entries in order and writes them to a destination.

    Sinks are used as context managers: entering opens the destination,
    leaving finalizes it (TAR trailer, ZIP central directory) and releases it,
    on normal exit and on error alike. A failed write propagates immediately;
    whatever was written before stays behind and may be an incomplete archive.
    """

    def __init__(self):
        self.entries_written = 0
        self.bytes_written = 0
        self._opened = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    @abstractmethod
    def description(self) -> str:
        """Destination for log messages."""
        ...

    def open(self):
        if self._opened:
            raise RuntimeError(f"{self.description} is already open")
        self._open()
        self._opened = True

    def write_entry(self, name: str, data: bytes) -> str:
        """Write one entry; returns where it went (file path or member name)."""
        if not self._opened:
            raise RuntimeError(f"{self.description} is not open")
        location = self._write_entry(name, data)
        self.entries_written += 1
        self.bytes_written += len(data)
        return location

    def close(self):
        if not self._opened:
            return
        self._opened = False
        self._close()

    @abstractmethod
    def _open(self):
        ...

    @abstractmethod
    def _write_entry(self, name: str, data: bytes) -> str:
        ...

    @abstractmethod
    def _close(self):
        ...


def _relative_entry_path(name: str) -> PurePosixPath:
    """Turn an entry name into a path that stays inside the destination directory.

    Leading slashes are dropped so that keys like ``/registry/x`` land in
    ``<directory>/registry/x``.

    Raises:
        InvalidKey: The name is empty or climbs out with ``..``
    """
    path = PurePosixPath(name.lstrip('/'))
    if not path.parts or '..' in path.parts:
        raise InvalidKey(f"Unsafe entry name: {name!r}")
    return path


class DirectorySink(ArchiveSink):
    """Writes each entry as a file below a directory, mirroring the key hierarchy.

    With strip=True only the last path segment of each name is kept, so all
    entries land directly in the directory; entries sharing a last segment
    overwrite each other.
    """

    def __init__(self, directory: str | os.PathLike | None = None, *, strip: bool = False):
        super().__init__()
        self._directory = Path(directory) if directory else Path('.')
        self._strip = strip

    @property
    def description(self) -> str:
        return str(self._directory)

    def _open(self):
        pass

    def _write_entry(self, name: str, data: bytes):
        relative = _relative_entry_path(name)
        if self._strip:
            relative = PurePosixPath(relative.name)

        target = self._directory.joinpath(*relative.parts)
        target.parent.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)

        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, ENTRY_MODE)
        with open(fd, 'wb') as f:
            f.write(data)

        return str(target)

    def _close(self):
        pass


class TarSink(ArchiveSink):
    """Streams entries into a TAR archive, optionally gzip-compressed.

    Without a destination the archive goes to standard output. The archive is
    written in stream mode, so the destination does not need to be seekable.
    Each member carries mode 0666 and the current time as its mtime.
    """

    def __init__(self, destination: str | os.PathLike | BinaryIO | None = None, *, gzip: bool = False):
        super().__init__()
        self._destination = destination
        self._gzip = gzip
        self._stream: BinaryIO | None = None
        self._owns_stream = False
        self._tar: tarfile.TarFile | None = None

    @property
    def description(self) -> str:
        if self._destination is None:
            return 'STDOUT'
        if isinstance(self._destination, (str, os.PathLike)):
            return str(self._destination)
        return repr(self._destination)

    def _open(self):
        if self._destination is None:
            self._stream = sys.stdout.buffer
        elif isinstance(self._destination, (str, os.PathLike)):
            self._stream = open(self._destination, 'wb')
            self._owns_stream = True
        else:
            self._stream = self._destination

        try:
            self._tar = tarfile.open(fileobj=self._stream, mode='w|gz' if self._gzip else 'w|')
        except Exception:
            self._release_stream()
            raise

    def _write_entry(self, name: str, data: bytes):
        info = tarfile.TarInfo(name)
        info.size = len(data)
        info.mode = ENTRY_MODE
        info.mtime = time.time()
        self._tar.addfile(info, io.BytesIO(data))
        return name

    def _close(self):
        try:
            self._tar.close()
        finally:
            self._tar = None
            self._release_stream()

    def _release_stream(self):
        stream, self._stream = self._stream, None
        if stream is None:
            return
        if self._owns_stream:
            stream.close()
        else:
            stream.flush()


class ZipSink(ArchiveSink):
    """Writes entries as deflate-compressed members of a ZIP file.

    A destination is mandatory: the central directory is written at the end
    and ZIP readers locate it by seeking, which standard output cannot offer.
    """

    def __init__(self, destination: str | os.PathLike | BinaryIO | None):
        super().__init__()
        if destination is None or destination == '':
            raise ValueError("ZIP archives need an explicit destination file")
        self._destination = destination
        self._zip: zipfile.ZipFile | None = None

    @property
    def description(self) -> str:
        if isinstance(self._destination, (str, os.PathLike)):
            return str(self._destination)
        return repr(self._destination)

    def _open(self):
        self._zip = zipfile.ZipFile(self._destination, 'w', compression=zipfile.ZIP_DEFLATED)

    def _write_entry(self, name: str, data: bytes):
        # ZIP member names are stored as UTF-8 and cannot carry escaped raw bytes
        try:
            name.encode('utf-8')
        except UnicodeEncodeError as e:
            raise InvalidKey(f"Key {name!r} is not valid UTF-8 and cannot be a ZIP member name") from e

        info = zipfile.ZipInfo(name, date_time=time.localtime()[:6])
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = ENTRY_MODE << 16
        self._zip.writestr(info, data)
        return name

    def _close(self):
        try:
            self._zip.close()
        finally:
            self._zip = None
