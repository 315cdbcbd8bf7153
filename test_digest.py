from __future__ import annotations

import hashlib
import unittest

from asice.digest import MultiDigest
from asice.errors import DigestFinalizedError


class MultiDigestTests(unittest.TestCase):
    def test_lock_step_digests(self):
        md = MultiDigest(["sha256", "SHA512", "sha256"])
        self.assertEqual(md.algorithms, ("sha256", "sha512"))
        md.update(b"hello ")
        md.update(b"world")
        self.assertEqual(md.digest_for("sha256"), hashlib.sha256(b"hello world").digest())
        self.assertEqual(md.digest_for("sha512"), hashlib.sha512(b"hello world").digest())
        self.assertEqual(md.length, 11)

    def test_finalize_is_idempotent(self):
        md = MultiDigest(["sha256"])
        md.update(b"abc")
        first = md.digest_for("sha256")
        self.assertEqual(md.digest_for("sha256"), first)
        self.assertEqual(md.digests(), {"sha256": first})
        self.assertTrue(md.finalized)

    def test_update_after_finalize_fails(self):
        md = MultiDigest(["sha256", "sha1"])
        md.update(b"abc")
        md.digest_for("sha1")
        with self.assertRaises(DigestFinalizedError):
            md.update(b"more")
        self.assertEqual(md.digest_for("sha256"), hashlib.sha256(b"abc").digest())

    def test_rejects_empty_and_unknown(self):
        with self.assertRaises(ValueError):
            MultiDigest([])
        with self.assertRaises(ValueError):
            MultiDigest(["not-a-digest"])
        with self.assertRaises(KeyError):
            MultiDigest(["sha256"]).digest_for("sha1")

    def test_rejects_variable_length_algorithms(self):
        for name in ("shake_128", "SHAKE_256"):
            with self.assertRaises(ValueError):
                MultiDigest(["sha256", name])


if __name__ == "__main__":
    unittest.main()
