from __future__ import annotations

import enum
import logging
import os
import shutil
from typing import BinaryIO, Optional, Union

from .config import WriterConfig
from .constants import COPY_BUFFER_SIZE
from .errors import ProtocolError, ReservedPathError, UnsignedContainerError
from .layer import AsicWriterLayer
from .model import Container, DataObject, Mode
from .pathutil import is_reserved, norm_path
from .processor import ProcessorState, perform_processors


logger = logging.getLogger(__name__)


class WriterState(enum.Enum):
    UNSIGNED = "unsigned"
    SIGNED = "signed"
    CLOSED = "closed"


class AsicWriter:
    """Builds one ASiC-E container: add entries, sign once, then close.

    ``INITIAL`` processors run during construction. ``sign()`` runs the
    ``BEFORE_SIGNATURE`` processors, the configured signature strategy and
    the ``AFTER_SIGNATURE`` processors. ``close()`` refuses unsigned
    containers. Not thread-safe.
    """

    def __init__(self, config: WriterConfig, fh: BinaryIO, close_stream_on_close: bool = False):
        self.config = config
        self.fh = fh
        self.close_stream_on_close = close_stream_on_close
        self.container = Container(Mode.WRITER)
        self.state = WriterState.UNSIGNED
        self._encrypt_next = False
        self.layer = AsicWriterLayer(
            fh,
            config.digest_algorithms,
            self.container,
            compression=config.compression,
            compress_level=config.compress_level,
            force_zip64=config.force_zip64,
        )
        self._perform(ProcessorState.INITIAL)

    @classmethod
    def open(cls, path: str, config: WriterConfig) -> "AsicWriter":
        """Write a new container to ``path``; the file is closed by :meth:`close`."""
        fh = open(path, "wb")
        try:
            return cls(config, fh, close_stream_on_close=True)
        except BaseException:
            fh.close()
            raise

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.state == WriterState.CLOSED:
            return
        if exc_type is not None:
            logger.warning("discarding unfinished container after %s", exc_type.__name__)
            self._discard()
            return
        try:
            self.close()
        except BaseException:
            self._discard()
            raise

    @property
    def signed(self) -> bool:
        return self.state == WriterState.SIGNED

    def add(self, path: str, mime_type: Optional[str] = None) -> BinaryIO:
        """Open a DATA entry and return the stream to write its payload to.

        When :meth:`encrypt_next` was called since the last ``add``, the entry
        is stored under the encryption filter's name and the returned stream
        encrypts what is written to it. The caller closes the stream before
        the next ``add``, ``sign`` or ``close``.
        """
        self._require(WriterState.UNSIGNED, "Adding content to container after signing container is not supported")
        path = norm_path(path)
        if is_reserved(path):
            raise ReservedPathError(f"Adding files to META-INF is not allowed: {path}")

        if self._encrypt_next:
            encryption_filter = self.config.encryption_filter
            if encryption_filter is None:
                raise ProtocolError("Encryption requested but no encryption filter is configured")
            self._encrypt_next = False
            stored = encryption_filter.filename(path)
            raw = self.layer.add_content(DataObject.Type.DATA, stored, self._resolve_mime_type(stored, mime_type))
            logger.debug("encrypting %s as %s", path, stored)
            return encryption_filter.create_filter(raw, self.config)

        return self.layer.add_content(DataObject.Type.DATA, path, self._resolve_mime_type(path, mime_type))

    def add_bytes(self, path: str, data: bytes, mime_type: Optional[str] = None) -> "AsicWriter":
        with self.add(path, mime_type) as out:
            out.write(data)
        return self

    def add_file(self, path: str, source: Union[str, os.PathLike], mime_type: Optional[str] = None) -> "AsicWriter":
        """Copy a filesystem file into a new entry named ``path``."""
        with open(source, "rb") as src, self.add(path, mime_type) as out:
            shutil.copyfileobj(src, out, COPY_BUFFER_SIZE)
        return self

    def encrypt_next(self) -> "AsicWriter":
        """Encrypt the entry opened by the next :meth:`add` call only."""
        self._encrypt_next = True
        return self

    def set_root_file(self, path: str) -> "AsicWriter":
        self._require(WriterState.UNSIGNED, "Root file must be set before signing")
        if not self.config.signature_creator.supports_root_file():
            raise ProtocolError("Root file is not supported with current configuration")
        self.container.set_root_file(norm_path(path))
        return self

    def sign(self) -> "AsicWriter":
        self._require(WriterState.UNSIGNED, "Container is already signed")
        self._perform(ProcessorState.BEFORE_SIGNATURE)
        self.config.signature_creator.create(self.layer, self.container, self.config)
        self.state = WriterState.SIGNED
        logger.debug("container signed (%d entries)", len(self.container))
        self._perform(ProcessorState.AFTER_SIGNATURE)
        return self

    def close(self) -> None:
        if self.state == WriterState.CLOSED:
            raise ProtocolError("Writer already closed")
        if self.state != WriterState.SIGNED:
            raise UnsignedContainerError("Unsigned ASiC-E is not possible")
        self.layer.close()
        if self.close_stream_on_close:
            self.fh.close()
        self.state = WriterState.CLOSED

    # internals
    def _discard(self) -> None:
        self.layer.abort()
        self.state = WriterState.CLOSED
        if self.close_stream_on_close:
            self.fh.close()

    def _require(self, state: WriterState, message: str) -> None:
        if self.state == state:
            return
        if self.state == WriterState.CLOSED:
            raise ProtocolError("Writer already closed")
        raise ProtocolError(message)

    def _resolve_mime_type(self, filename: str, mime_type: Optional[str]) -> str:
        if mime_type is not None:
            return mime_type
        return self.config.mime_type_detector.detect(filename)

    def _perform(self, state: ProcessorState) -> None:
        perform_processors(self.config.processors, state, self.layer, self.container, self.config)
