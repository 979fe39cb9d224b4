#!/usr/bin/env python
import io
import sys
import unittest
import zipfile

from mock import MagicMock, patch

from formatprofiler.profiler.sniff import (
    APPLICATION_NAME,
    APPLICATION_VERSION,
    ContentSniffer,
    application_id,
    with_application_id,
)
from formatprofiler.profiler.tests.profiler_fakes import GARBAGE, HTML

APP_XML = b"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Properties xmlns="http://schemas.openxmlformats.org/officeDocument/2006/extended-properties"
    xmlns:vt="http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes">
  <Template>Normal.dotm</Template>
  <Pages>1</Pages>
  <Application>Microsoft Office Word</Application>
  <AppVersion>12.0000</AppVersion>
</Properties>
"""

META_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<office:document-meta xmlns:office="urn:oasis:names:tc:opendocument:xmlns:office:1.0"
    xmlns:meta="urn:oasis:names:tc:opendocument:xmlns:meta:1.0" office:version="1.3">
  <office:meta>
    <meta:generator>LibreOffice/7.3.7.2$Linux_X86_64 LibreOffice_project/30$Build-2</meta:generator>
  </office:meta>
</office:document-meta>
"""


def make_zip(entries):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as z:
        for name, data in entries.items():
            z.writestr(name, data)
    return buf.getvalue()


class ContentSnifferTest(unittest.TestCase):
    def setUp(self):
        self.magic = MagicMock()
        patcher = patch.dict(sys.modules, {"magic": self.magic})
        patcher.start()
        self.addCleanup(patcher.stop)
        self.sniffer = ContentSniffer()

    def test_detect(self):
        self.magic.Magic.return_value.from_buffer.return_value = "text/html"
        self.assertEqual("text/html", self.sniffer.detect(b"<html></html>"))
        self.magic.Magic.assert_called_once_with(mime=True)
        self.magic.Magic.return_value.from_buffer.assert_called_once_with(b"<html></html>")

    def test_parse_ooxml(self):
        docx = make_zip({"[Content_Types].xml": b"<Types/>", "docProps/app.xml": APP_XML})
        metadata = self.sniffer.parse(docx)
        self.assertEqual("Microsoft Office Word", metadata[APPLICATION_NAME])
        self.assertEqual("12.0000", metadata[APPLICATION_VERSION])

    def test_parse_odf(self):
        odt = make_zip({"mimetype": b"application/vnd.oasis.opendocument.text", "meta.xml": META_XML})
        metadata = self.sniffer.parse(odt)
        self.assertEqual({APPLICATION_NAME: "LibreOffice", APPLICATION_VERSION: "7.3.7.2"}, metadata)

    def test_parse_plain_zip(self):
        self.assertEqual({}, self.sniffer.parse(make_zip({"a.txt": b"hello"})))

    def test_parse_not_a_package(self):
        self.assertEqual({}, self.sniffer.parse(b"%PDF-1.4\n"))
        self.assertEqual({}, self.sniffer.parse(b""))

    def test_parse_broken_xml(self):
        docx = make_zip({"docProps/app.xml": b"<Properties><Application>"})
        with self.assertRaises(Exception):
            self.sniffer.parse(docx)


class LibmagicDetectionTest(unittest.TestCase):
    def setUp(self):
        self.sniffer = ContentSniffer()

    def test_detect_html(self):
        self.assertEqual("text/html", self.sniffer.detect(HTML))

    def test_detect_unknown_bytes(self):
        self.assertEqual("application/octet-stream", self.sniffer.detect(GARBAGE))

    def test_detect_zip(self):
        self.assertEqual("application/zip", self.sniffer.detect(make_zip({"a.txt": b"hello"})))


class ApplicationIdTest(unittest.TestCase):
    def test_application_id(self):
        self.assertEqual("Word_12.0", application_id({APPLICATION_NAME: "Word", APPLICATION_VERSION: "12.0"}))
        self.assertEqual("Word", application_id({APPLICATION_NAME: "Word"}))
        self.assertEqual("_12.0", application_id({APPLICATION_VERSION: "12.0"}))
        self.assertEqual("", application_id({}))

    def test_with_application_id(self):
        self.assertEqual('application/pdf; appid="x_1"', with_application_id("application/pdf", "x_1"))
        self.assertEqual("application/pdf", with_application_id("application/pdf", ""))


if __name__ == "__main__":
    unittest.main()
