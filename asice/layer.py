from __future__ import annotations

import io
import logging
import time
import zipfile
from typing import BinaryIO, Iterable, Optional

from .constants import ARCHIVE_COMMENT, ASICE_MIME_TYPE, MIMETYPE_ENTRY
from .digest import MultiDigest
from .errors import ArchiveClosedError, EntryInProgressError, ReservedPathError
from .model import Container, DataObject
from .pathutil import is_reserved, norm_path


logger = logging.getLogger(__name__)


class _ArchiveSink(io.RawIOBase):
    """Forwards archive bytes to the caller's stream until cut off.

    Once ``live`` is cleared, writes are counted but dropped, so a
    ``ZipFile`` that is finalized late (explicitly or from ``__del__``)
    cannot append a central directory to the caller's stream.
    """

    def __init__(self, fh: BinaryIO):
        super().__init__()
        self._fh = fh
        self.live = True
        try:
            self._pos = fh.tell()
        except (AttributeError, OSError):
            self._pos = 0

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return self.live and self._fh.seekable()

    def write(self, b) -> int:
        data = bytes(b)
        if self.live:
            self._fh.write(data)
        self._pos += len(data)
        return len(data)

    def tell(self) -> int:
        if self.live:
            return self._fh.tell()
        return self._pos

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if self.live:
            self._pos = self._fh.seek(offset, whence)
        elif whence == io.SEEK_SET:
            self._pos = offset
        elif whence == io.SEEK_CUR:
            self._pos += offset
        return self._pos

    def flush(self) -> None:
        if self.live and not self._fh.closed:
            self._fh.flush()


class EntryStream(io.RawIOBase):
    """Write handle for one archive entry.

    Bytes are digested and forwarded to the ZIP entry. Closing the stream
    stores the digests on the entry's :class:`DataObject` and commits the
    entry to the archive.
    """

    def __init__(self, layer: "AsicWriterLayer", handle: BinaryIO, digest: MultiDigest, data_object: DataObject):
        super().__init__()
        self._layer = layer
        self._handle = handle
        self._digest = digest
        self.data_object = data_object

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            raise ValueError(f"write to closed entry: {self.data_object.path}")
        data = bytes(b)
        self._digest.update(data)
        self._handle.write(data)
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._handle.close()
            self.data_object.digests = self._digest.digests()
            self.data_object.size = self._digest.length
            logger.debug("entry committed: %s (%d bytes)", self.data_object.path, self.data_object.size)
        finally:
            self._layer._entry_closed(self)
            super().close()

    def _detach(self) -> None:
        """Close without committing; used when the archive is discarded."""
        try:
            self._handle.close()
        finally:
            io.RawIOBase.close(self)


class AsicWriterLayer:
    """Owns the ZIP stream of one container and routes per-entry digesting.

    The ``mimetype`` entry is written first and uncompressed, as the ASiC-E
    profile requires; every later entry goes through :meth:`add_content`.
    """

    def __init__(
        self,
        fh: BinaryIO,
        algorithms: Iterable[str],
        container: Container,
        *,
        compression: int = zipfile.ZIP_DEFLATED,
        compress_level: Optional[int] = None,
        force_zip64: bool = False,
    ):
        self.algorithms = tuple(algorithms)
        # Fail on unknown algorithms before anything is written
        MultiDigest(self.algorithms)
        self.container = container
        self.force_zip64 = force_zip64
        self._active: Optional[EntryStream] = None
        self._sink = _ArchiveSink(fh)
        self._zip: Optional[zipfile.ZipFile] = zipfile.ZipFile(
            self._sink, mode="w", compression=compression, compresslevel=compress_level
        )
        self._zip.comment = ARCHIVE_COMMENT
        self._write_mimetype()

    @property
    def closed(self) -> bool:
        return self._zip is None

    def add_content(self, type: DataObject.Type, path: str, mime_type: str) -> EntryStream:
        """Open a new entry and return the stream its payload is written to."""
        if self._zip is None:
            raise ArchiveClosedError("Archive already closed")
        if self._active is not None:
            raise EntryInProgressError(f"Entry still open: {self._active.data_object.path}")
        path = norm_path(path)
        reserved = is_reserved(path)
        if type == DataObject.Type.DATA and reserved:
            raise ReservedPathError(f"Data entries may not be written to META-INF: {path}")
        if type != DataObject.Type.DATA and not reserved:
            raise ReservedPathError(f"{type.name} entries must be written to META-INF: {path}")
        if path == MIMETYPE_ENTRY:
            raise ReservedPathError("The mimetype entry is written by the container itself")
        try:
            handle = self._zip.open(path, mode="w", force_zip64=self.force_zip64)
        except ValueError as exc:
            raise ArchiveClosedError(f"Cannot open entry {path}: {exc}") from exc
        obj = self.container.add(DataObject(type=type, path=path, mime_type=mime_type))
        stream = EntryStream(self, handle, MultiDigest(self.algorithms), obj)
        self._active = stream
        logger.debug("entry opened: %s [%s, %s]", path, type.name, mime_type)
        return stream

    def close(self) -> None:
        """Write the central directory. The caller's stream is left open."""
        if self._zip is None:
            raise ArchiveClosedError("Archive already closed")
        if self._active is not None:
            raise EntryInProgressError(f"Entry still open: {self._active.data_object.path}")
        zf = self._zip
        self._zip = None
        zf.close()
        logger.debug("archive finalized with %d entries", len(self.container))

    def abort(self) -> None:
        """Drop the archive without writing the central directory.

        The caller's stream keeps whatever was already written and receives
        nothing further, so it never becomes a readable ZIP. An entry stream
        still held by the caller is closed without being committed.
        """
        self._sink.live = False
        active, self._active = self._active, None
        zf, self._zip = self._zip, None
        try:
            if active is not None:
                active._detach()
            if zf is not None:
                zf.close()
        except (OSError, ValueError, RuntimeError) as exc:
            logger.debug("ignored error while discarding archive: %s", exc)

    # internals
    def _write_mimetype(self) -> None:
        info = zipfile.ZipInfo(MIMETYPE_ENTRY, date_time=time.localtime(time.time())[:6])
        info.compress_type = zipfile.ZIP_STORED
        self._zip.writestr(info, ASICE_MIME_TYPE.encode("ascii"))

    def _entry_closed(self, stream: EntryStream) -> None:
        if self._active is stream:
            self._active = None
