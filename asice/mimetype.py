from __future__ import annotations

import abc
import mimetypes
from typing import Dict, Optional

from .constants import MIME_OCTET_STREAM
from .pathutil import basename


# Common payloads whose platform mapping varies (e.g. text/xml vs application/xml)
_KNOWN_TYPES: Dict[str, str] = {
    ".xml": "application/xml",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".json": "application/json",
    ".html": "text/html",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".zip": "application/zip",
}


class MimeTypeDetector(abc.ABC):
    @abc.abstractmethod
    def detect(self, filename: str) -> str:
        """Return the MIME type for ``filename``; a pure function of the name."""


class FilenameMimeTypeDetector(MimeTypeDetector):
    """Extension-based detection with a fixed table, then the mimetypes module."""

    def __init__(self, extra: Optional[Dict[str, str]] = None, default: str = MIME_OCTET_STREAM):
        self._types = dict(_KNOWN_TYPES)
        if extra:
            self._types.update({k.lower(): v for k, v in extra.items()})
        self._db = mimetypes.MimeTypes()
        self.default = default

    def detect(self, filename: str) -> str:
        name = basename(filename).lower()
        dot = name.rfind(".")
        if dot > 0:
            known = self._types.get(name[dot:])
            if known is not None:
                return known
        guessed, encoding = self._db.guess_type(name, strict=False)
        if guessed is None or encoding is not None:
            return self.default
        return guessed
