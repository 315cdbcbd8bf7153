from __future__ import annotations

import unittest

from asice.mimetype import FilenameMimeTypeDetector
from asice.pathutil import is_reserved, norm_path


class PathTests(unittest.TestCase):
    def test_norm_path(self):
        self.assertEqual(norm_path("/a//b/./c.txt"), "a/b/c.txt")
        self.assertEqual(norm_path("a\\b.txt"), "a/b.txt")
        for bad in ("", "/", "./", "a/../b"):
            with self.assertRaises(ValueError):
                norm_path(bad)

    def test_is_reserved(self):
        self.assertTrue(is_reserved("META-INF/signature.sig"))
        self.assertTrue(is_reserved("meta-inf/x"))
        self.assertTrue(is_reserved("/Meta-Inf/x"))
        self.assertFalse(is_reserved("META-INF"))
        self.assertFalse(is_reserved("data/META-INF/x"))


class MimeTypeDetectorTests(unittest.TestCase):
    def test_known_and_fallback(self):
        d = FilenameMimeTypeDetector()
        self.assertEqual(d.detect("doc.XML"), "application/xml")
        self.assertEqual(d.detect("dir/report.pdf"), "application/pdf")
        self.assertEqual(d.detect("README"), "application/octet-stream")
        self.assertEqual(d.detect(".hidden"), "application/octet-stream")
        self.assertEqual(d.detect("archive.tar.gz"), "application/octet-stream")

    def test_extra_types(self):
        d = FilenameMimeTypeDetector(extra={".SBD": "application/x-sbd"}, default="text/plain")
        self.assertEqual(d.detect("msg.sbd"), "application/x-sbd")
        self.assertEqual(d.detect("unknown.qqq"), "text/plain")


if __name__ == "__main__":
    unittest.main()
