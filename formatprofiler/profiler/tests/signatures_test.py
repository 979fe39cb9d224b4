#!/usr/bin/env python
import os
import shutil
import tempfile
import unittest

from formatprofiler.profiler.signatures import (
    IdentificationRequest,
    IdentificationResult,
    SignatureIdentifier,
    create_byte_array_identification_request,
    mime_type_from_result,
    signature_file_version,
)
from formatprofiler.profiler.tests.profiler_fakes import GARBAGE, HTML

SCRATCH_URI = "file:///tmp/scratch.tmp"


class SignatureIdentifierTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # Loading the signature files takes a while; share one engine.
        cls.identifier = SignatureIdentifier()

    def identify(self, payload, uri=SCRATCH_URI):
        return self.identifier.identify(IdentificationRequest(uri, payload))

    def test_engine_options(self):
        engine = self.identifier._fido
        self.assertTrue(engine.nocontainer)
        self.assertTrue(engine.quiet)
        self.assertTrue(engine.format_files[0].startswith("formats-v"))
        self.assertTrue(len(engine.formats) > 0)

    def test_identify_html(self):
        results = self.identify(HTML)
        self.assertTrue(len(results) > 0)
        self.assertEqual("text/html", results[0].mime_type)
        self.assertEqual("signature", results[0].method)
        self.assertTrue(mime_type_from_result(results[0]).startswith("text/html"))

    def test_identify_no_match(self):
        self.assertEqual([], self.identify(GARBAGE))

    def test_identify_empty_payload(self):
        self.assertEqual([], self.identify(b""))

    def test_identify_ignores_file_name(self):
        self.assertEqual([], self.identify(GARBAGE, uri="file:///tmp/page.html"))

    def test_identify_large_payload(self):
        payload = HTML + b" " * (2 * self.identifier._fido.bufsize) + b"</html>\n"
        results = self.identify(payload)
        self.assertEqual("text/html", results[0].mime_type)

    def test_identify_file(self):
        tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, tmp)
        filename = os.path.join(tmp, "page.html")
        with open(filename, "wb") as f:
            f.write(HTML)

        results = self.identifier.identify_file(filename)
        self.assertEqual("text/html", results[0].mime_type)

    def test_signature_file_version(self):
        version = signature_file_version()
        self.assertTrue(isinstance(version, str))
        self.assertNotEqual("", version)


class IdentificationHelpersTest(unittest.TestCase):
    def test_create_request(self):
        request = create_byte_array_identification_request("/tmp/scratch.tmp", b"abc")
        self.assertEqual(IdentificationRequest("file:///tmp/scratch.tmp", b"abc"), request)

    def test_mime_type_from_result(self):
        self.assertEqual(
            "text/html",
            mime_type_from_result(IdentificationResult("fmt/96", "HTML", None, "text/html", "signature")),
        )
        self.assertEqual(
            'application/pdf; version="1.4"',
            mime_type_from_result(IdentificationResult("fmt/18", "PDF", "1.4", "application/pdf", "signature")),
        )
        self.assertEqual(
            "application/octet-stream",
            mime_type_from_result(IdentificationResult("x-fmt/1", "Unknown", None, None, "signature")),
        )


if __name__ == "__main__":
    unittest.main()
