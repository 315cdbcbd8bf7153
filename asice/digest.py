from __future__ import annotations

import hashlib
from typing import Dict, Iterable, Optional, Tuple

from .errors import DigestFinalizedError


class MultiDigest:
    """Feed several hashlib digests in lock-step over one byte stream.

    Once any algorithm has been finalised through :meth:`digest_for` or
    :meth:`digests`, further :meth:`update` calls fail fast so every value
    handed out covers exactly the same bytes.
    """

    def __init__(self, algorithms: Iterable[str]):
        names: list[str] = []
        for name in algorithms:
            name = name.lower()
            if name not in names:
                names.append(name)
        if not names:
            raise ValueError("At least one digest algorithm is required")
        self._hashes = {name: hashlib.new(name) for name in names}
        for name, h in self._hashes.items():
            # shake_128 and shake_256 need an output length per call
            if h.digest_size == 0:
                raise ValueError(f"Variable-length digest algorithms are not supported: {name}")
        self._final: Optional[Dict[str, bytes]] = None
        self.length = 0

    @property
    def algorithms(self) -> Tuple[str, ...]:
        return tuple(self._hashes)

    @property
    def finalized(self) -> bool:
        return self._final is not None

    def update(self, data: bytes) -> None:
        if self._final is not None:
            raise DigestFinalizedError("Digest already finalized; no further updates allowed")
        for h in self._hashes.values():
            h.update(data)
        self.length += len(data)

    def digest_for(self, name: str) -> bytes:
        name = name.lower()
        if name not in self._hashes:
            raise KeyError(f"Digest algorithm not configured: {name}")
        return self.digests()[name]

    def digests(self) -> Dict[str, bytes]:
        if self._final is None:
            self._final = {name: h.digest() for name, h in self._hashes.items()}
        return dict(self._final)
