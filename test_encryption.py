from __future__ import annotations

import io
import os
import unittest

from asice.encryption import XChaChaEncryptionFilter, derive_key, KdfParams
from asice.errors import EncryptedStreamError


class _Sink(io.BytesIO):
    """BytesIO that keeps its value readable after close()."""

    def close(self):
        self.final = self.getvalue()
        super().close()


def _encrypt(f: XChaChaEncryptionFilter, chunks) -> bytes:
    sink = _Sink()
    stream = f.create_filter(sink, None)
    for c in chunks:
        stream.write(c)
    stream.close()
    return sink.final


class EncryptionFilterTests(unittest.TestCase):
    def setUp(self):
        self.key = os.urandom(32)

    def test_filename_appends_extension(self):
        f = XChaChaEncryptionFilter(self.key)
        self.assertEqual(f.filename("docs/secret.txt"), "docs/secret.txt.enc")
        self.assertEqual(XChaChaEncryptionFilter(self.key, extension=".x").filename("a"), "a.x")

    def test_roundtrip_multiple_frames(self):
        f = XChaChaEncryptionFilter(self.key, frame_size=1000)
        payload = os.urandom(4500)
        blob = _encrypt(f, [payload[:10], payload[10:2500], payload[2500:]])
        self.assertNotIn(payload[:64], blob)
        self.assertEqual(f.decrypt(blob), payload)

    def test_roundtrip_empty_and_exact_frame(self):
        f = XChaChaEncryptionFilter(self.key, frame_size=16)
        self.assertEqual(f.decrypt(_encrypt(f, [])), b"")
        self.assertEqual(f.decrypt(_encrypt(f, [b"A" * 32])), b"A" * 32)

    def test_independent_streams(self):
        f = XChaChaEncryptionFilter(self.key)
        a = _encrypt(f, [b"same"])
        b = _encrypt(f, [b"same"])
        self.assertNotEqual(a, b)

    def test_wrong_key_fails(self):
        blob = _encrypt(XChaChaEncryptionFilter(self.key), [b"data"])
        with self.assertRaises(EncryptedStreamError):
            XChaChaEncryptionFilter(os.urandom(32)).decrypt(blob)

    def test_truncation_detected(self):
        f = XChaChaEncryptionFilter(self.key, frame_size=8)
        blob = _encrypt(f, [b"0123456789abcdef0123"])
        # Drop the final frame: the previous frame was not marked final
        last_frame = 4 + 4 + 16
        with self.assertRaises(EncryptedStreamError):
            f.decrypt(blob[:-last_frame])
        with self.assertRaises(EncryptedStreamError):
            f.decrypt(blob[:-1])

    def test_tampering_detected(self):
        f = XChaChaEncryptionFilter(self.key)
        blob = bytearray(_encrypt(f, [b"payload bytes"]))
        blob[-20] ^= 0x01
        with self.assertRaises(EncryptedStreamError):
            f.decrypt(bytes(blob))

    def test_invalid_key_size(self):
        with self.assertRaises(ValueError):
            XChaChaEncryptionFilter(b"short")

    def test_password_derived_key(self):
        salt = os.urandom(16)
        kw = dict(salt=salt, time_cost=1, memory_cost_kib=8, parallelism=1)
        f1 = XChaChaEncryptionFilter.from_password("correct horse", **kw)
        f2 = XChaChaEncryptionFilter.from_password("correct horse", **kw)
        f3 = XChaChaEncryptionFilter.from_password("wrong horse", **kw)
        blob = _encrypt(f1, [b"argon protected"])
        self.assertEqual(f2.decrypt(blob), b"argon protected")
        with self.assertRaises(EncryptedStreamError):
            f3.decrypt(blob)
        self.assertEqual(f1.kdf_params.salt, salt)
        self.assertEqual(len(derive_key("x", KdfParams(salt=salt, time_cost=1, memory_cost_kib=8, parallelism=1))), 32)


if __name__ == "__main__":
    unittest.main()
