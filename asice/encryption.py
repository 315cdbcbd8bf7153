"""Per-entry encryption filters.

An :class:`EncryptionFilter` renames the logical entry and wraps the raw entry
stream so payload bytes are encrypted before they reach the archive. The
bundled :class:`XChaChaEncryptionFilter` emits a framed XChaCha20-Poly1305
stream (PyCryptodomex) keyed directly or through Argon2id (argon2-cffi).
"""

from __future__ import annotations

import abc
import hashlib
import hmac
import io
import os
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Optional

from argon2.low_level import Type as ArgonType, hash_secret_raw
from Cryptodome.Cipher import ChaCha20_Poly1305

from .constants import (
    ARGON_MEMORY_COST_KIB,
    ARGON_PARALLELISM,
    ARGON_TIME_COST,
    ENC_EXTENSION,
    ENC_FRAME_SIZE,
    ENC_MAGIC,
    ENC_STREAM_ID_SIZE,
    KDF_ARGON2ID,
    KDF_NONE,
)
from .errors import EncryptedStreamError

if TYPE_CHECKING:  # pragma: no cover
    from .config import WriterConfig


NONCE_SIZE = 24
TAG_SIZE = 16
KEY_SIZE = 32
SALT_SIZE = 16

# magic[8], kdf_id u16, salt[16], argon_mem u32, argon_time u32, argon_lanes u32, stream_id[16]
_HEADER_STRUCT = struct.Struct("<8sH16sIII16s")
_FRAME_LEN_STRUCT = struct.Struct("<I")
_FRAME_AAD_STRUCT = struct.Struct("<QB")


@dataclass
class KdfParams:
    salt: bytes
    time_cost: int = ARGON_TIME_COST
    memory_cost_kib: int = ARGON_MEMORY_COST_KIB
    parallelism: int = ARGON_PARALLELISM


def derive_key(password: str, params: KdfParams) -> bytes:
    """Argon2id key derivation for entry encryption."""
    if len(params.salt) != SALT_SIZE:
        raise ValueError(f"Salt must be {SALT_SIZE} bytes")
    return hash_secret_raw(
        password.encode("utf-8"),
        params.salt,
        time_cost=params.time_cost,
        memory_cost=params.memory_cost_kib,
        parallelism=params.parallelism,
        hash_len=KEY_SIZE,
        type=ArgonType.ID,
    )


class EncryptionFilter(abc.ABC):
    """Strategy applied by ``AsicWriter.encrypt_next()`` to the next entry."""

    @abc.abstractmethod
    def filename(self, original: str) -> str:
        """Name under which the encrypted entry is stored."""

    @abc.abstractmethod
    def create_filter(self, stream: BinaryIO, config: "WriterConfig") -> BinaryIO:
        """Wrap ``stream``; bytes written to the result are encrypted into it.

        Closing the returned stream must close ``stream`` as well.
        """


class XChaChaEncryptionFilter(EncryptionFilter):
    def __init__(
        self,
        key: bytes,
        *,
        extension: str = ENC_EXTENSION,
        frame_size: int = ENC_FRAME_SIZE,
        kdf_params: Optional[KdfParams] = None,
    ):
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes for XChaCha20-Poly1305")
        if frame_size <= 0:
            raise ValueError("frame_size must be positive")
        self._key = key
        self.extension = extension
        self.frame_size = frame_size
        self.kdf_params = kdf_params

    @classmethod
    def from_password(
        cls,
        password: str,
        *,
        salt: Optional[bytes] = None,
        time_cost: int = ARGON_TIME_COST,
        memory_cost_kib: int = ARGON_MEMORY_COST_KIB,
        parallelism: int = ARGON_PARALLELISM,
        **kwargs,
    ) -> "XChaChaEncryptionFilter":
        params = KdfParams(
            salt=salt if salt is not None else os.urandom(SALT_SIZE),
            time_cost=time_cost,
            memory_cost_kib=memory_cost_kib,
            parallelism=parallelism,
        )
        return cls(derive_key(password, params), kdf_params=params, **kwargs)

    def filename(self, original: str) -> str:
        return original + self.extension

    def create_filter(self, stream: BinaryIO, config: "WriterConfig") -> BinaryIO:
        return EncryptingStream(stream, self._key, self._pack_header(os.urandom(ENC_STREAM_ID_SIZE)), self.frame_size)

    def decrypt(self, blob: bytes) -> bytes:
        """Recover the plaintext of one entry produced by this filter."""
        hsize = _HEADER_STRUCT.size
        if len(blob) < hsize:
            raise EncryptedStreamError("Encrypted entry too short")
        header = blob[:hsize]
        magic, _kdf_id, _salt, _mem, _time, _lanes, stream_id = _HEADER_STRUCT.unpack(header)
        if magic != ENC_MAGIC:
            raise EncryptedStreamError("Bad encrypted entry magic")
        out = bytearray()
        pos = hsize
        index = 0
        while True:
            if pos + _FRAME_LEN_STRUCT.size > len(blob):
                raise EncryptedStreamError("Encrypted entry truncated")
            (clen,) = _FRAME_LEN_STRUCT.unpack_from(blob, pos)
            pos += _FRAME_LEN_STRUCT.size
            end = pos + clen + TAG_SIZE
            if end > len(blob):
                raise EncryptedStreamError("Encrypted frame truncated")
            final = end == len(blob)
            ciphertext = blob[pos : pos + clen]
            tag = blob[pos + clen : end]
            cipher = ChaCha20_Poly1305.new(key=self._key, nonce=_frame_nonce(self._key, stream_id, index))
            cipher.update(header + _FRAME_AAD_STRUCT.pack(index, 1 if final else 0))
            try:
                out += cipher.decrypt_and_verify(ciphertext, tag)
            except ValueError as exc:
                raise EncryptedStreamError(f"Frame {index} failed authentication") from exc
            pos = end
            index += 1
            if final:
                return bytes(out)

    def _pack_header(self, stream_id: bytes) -> bytes:
        p = self.kdf_params
        if p is None:
            return _HEADER_STRUCT.pack(ENC_MAGIC, KDF_NONE, b"\x00" * SALT_SIZE, 0, 0, 0, stream_id)
        return _HEADER_STRUCT.pack(
            ENC_MAGIC, KDF_ARGON2ID, p.salt, p.memory_cost_kib, p.time_cost, p.parallelism, stream_id
        )


def _frame_nonce(key: bytes, stream_id: bytes, index: int) -> bytes:
    return hmac.new(key, b"ASICE_FRAME_NONCE" + stream_id + struct.pack("<Q", index), hashlib.sha512).digest()[
        :NONCE_SIZE
    ]


class EncryptingStream(io.RawIOBase):
    """Write-only stream that frames and encrypts into an entry stream."""

    def __init__(self, raw: BinaryIO, key: bytes, header: bytes, frame_size: int):
        super().__init__()
        self._raw = raw
        self._key = key
        self._header = header
        self._stream_id = header[-ENC_STREAM_ID_SIZE:]
        self._frame_size = frame_size
        self._buf = bytearray()
        self._index = 0
        self._raw.write(header)

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            raise ValueError("write to closed encrypting stream")
        data = bytes(b)
        self._buf += data
        # Hold back at least one byte so the final frame is never empty unless the payload is
        while len(self._buf) > self._frame_size:
            self._emit(bytes(self._buf[: self._frame_size]), final=False)
            del self._buf[: self._frame_size]
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        try:
            # The entry underneath is already gone once its archive was discarded
            if not self._raw.closed:
                self._emit(bytes(self._buf), final=True)
                self._raw.close()
            self._buf.clear()
        finally:
            super().close()

    def _emit(self, plaintext: bytes, *, final: bool) -> None:
        cipher = ChaCha20_Poly1305.new(key=self._key, nonce=_frame_nonce(self._key, self._stream_id, self._index))
        cipher.update(self._header + _FRAME_AAD_STRUCT.pack(self._index, 1 if final else 0))
        ciphertext, tag = cipher.encrypt_and_digest(plaintext)
        self._raw.write(_FRAME_LEN_STRUCT.pack(len(ciphertext)) + ciphertext + tag)
        self._index += 1
