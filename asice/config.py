from __future__ import annotations

import dataclasses
import hashlib
import zipfile
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .constants import DEFAULT_DIGEST_ALGORITHMS
from .encryption import EncryptionFilter
from .mimetype import FilenameMimeTypeDetector, MimeTypeDetector
from .processor import Processor
from .signature import SignatureCreator


_COMPRESSIONS = (zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED)


@dataclass(frozen=True)
class WriterConfig:
    """Immutable writer configuration: strategies plus archive options.

    ``digest_algorithms`` are hashlib names; the first one is what the
    bundled signature strategy puts in the manifest.
    """

    signature_creator: SignatureCreator
    digest_algorithms: Tuple[str, ...] = DEFAULT_DIGEST_ALGORITHMS
    encryption_filter: Optional[EncryptionFilter] = None
    mime_type_detector: MimeTypeDetector = field(default_factory=FilenameMimeTypeDetector)
    processors: Tuple[Processor, ...] = ()
    compression: int = zipfile.ZIP_DEFLATED
    compress_level: Optional[int] = None
    force_zip64: bool = False

    def __post_init__(self):
        if isinstance(self.digest_algorithms, str):
            raise TypeError("digest_algorithms must be a sequence of names, not a string")
        algorithms = tuple(a.lower() for a in self.digest_algorithms)
        if not algorithms:
            raise ValueError("At least one digest algorithm is required")
        for a in algorithms:
            if a not in hashlib.algorithms_available:
                raise ValueError(f"Unknown digest algorithm: {a}")
            if hashlib.new(a).digest_size == 0:
                raise ValueError(f"Variable-length digest algorithms are not supported: {a}")
        object.__setattr__(self, "digest_algorithms", algorithms)
        object.__setattr__(self, "processors", tuple(self.processors))
        if self.compression not in _COMPRESSIONS:
            raise ValueError(f"Unsupported compression: {self.compression}")

    def replace(self, **changes) -> "WriterConfig":
        return dataclasses.replace(self, **changes)

    def with_processors(self, *processors: Processor) -> "WriterConfig":
        """Copy with ``processors`` appended after the configured ones."""
        return self.replace(processors=self.processors + tuple(processors))
