"""
Content sniffing: what the payload bytes look like, regardless of what the
server said.

Detection uses libmagic (via python-magic).  A full parse then looks for the
name and version of the application that produced the document.  Office Open
XML packages record this in `docProps/app.xml` and OpenDocument packages in
the `meta:generator` element of `meta.xml`.
"""

import io
import logging
import re
import zipfile

from lxml import etree

logger = logging.getLogger("profiler")

APPLICATION_NAME = "application_name"
APPLICATION_VERSION = "application_version"

OOXML_APP_PROPERTIES = "docProps/app.xml"
OOXML_EXTENDED_NS = (
    "{http://schemas.openxmlformats.org/officeDocument/2006/extended-properties}"
)
ODF_META = "meta.xml"
ODF_GENERATOR = ".//{urn:oasis:names:tc:opendocument:xmlns:meta:1.0}generator"

# e.g. "LibreOffice/7.3.7.2$Linux_X86_64 LibreOffice_project/30$Build-2"
ODF_GENERATOR_RE = re.compile(r"^([^/\s]+)(?:/([^$\s]+))?")

_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


class ContentSniffer(object):
    def __init__(self):
        # python-magic binds to libmagic at import time.
        import magic

        self._magic = magic.Magic(mime=True)

    def detect(self, payload):
        return self._magic.from_buffer(payload)

    def parse(self, payload):
        """Returns the document metadata found by a full parse of `payload`."""
        metadata = {}
        buf = io.BytesIO(payload)
        if not zipfile.is_zipfile(buf):
            return metadata

        with zipfile.ZipFile(buf) as package:
            names = set(package.namelist())
            if OOXML_APP_PROPERTIES in names:
                root = etree.fromstring(package.read(OOXML_APP_PROPERTIES), _XML_PARSER)
                _set(metadata, APPLICATION_NAME, root.findtext(OOXML_EXTENDED_NS + "Application"))
                _set(metadata, APPLICATION_VERSION, root.findtext(OOXML_EXTENDED_NS + "AppVersion"))
            elif ODF_META in names:
                root = etree.fromstring(package.read(ODF_META), _XML_PARSER)
                match = ODF_GENERATOR_RE.match((root.findtext(ODF_GENERATOR) or "").strip())
                if match:
                    _set(metadata, APPLICATION_NAME, match.group(1))
                    _set(metadata, APPLICATION_VERSION, match.group(2))

        logger.debug("Parsed metadata: %s", metadata)
        return metadata


def application_id(metadata):
    """`name_version`, `name`, `_version` or '' depending on what is known."""
    app_id = metadata.get(APPLICATION_NAME) or ""
    if metadata.get(APPLICATION_VERSION):
        app_id += "_" + metadata[APPLICATION_VERSION]
    return app_id


def with_application_id(mime_type, app_id):
    if not app_id:
        return mime_type
    return '%s; appid="%s"' % (mime_type, app_id)


def _set(metadata, key, value):
    if value and value.strip():
        metadata[key] = value.strip()
