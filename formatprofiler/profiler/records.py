"""
Read-only view of one web archive record: the archive header, the HTTP
response headers (if the record carries an HTTP message) and the payload.
"""


class ArchiveRecord(object):
    def __init__(
        self, header_fields, http_headers=None, payload=b"", url=None, record_type=None
    ):
        # Header fields are kept as (name, value) pairs; names may repeat.
        self.header_fields = list(header_fields or [])
        self.http_headers = list(http_headers or [])
        self.payload = payload
        self.url = url
        self.record_type = record_type

    @staticmethod
    def from_warcio(record):
        """Builds an ArchiveRecord from a warcio record, reading its payload."""
        http_headers = []
        if record.http_headers is not None:
            http_headers = record.http_headers.headers
        return ArchiveRecord(
            record.rec_headers.headers,
            http_headers=http_headers,
            payload=record.content_stream().read(),
            url=record.rec_headers.get_header("WARC-Target-URI"),
            record_type=record.rec_type,
        )

    def header_field(self, name):
        return _lookup(self.header_fields, name)

    @property
    def date(self):
        """The capture date: WARC-Date for WARC records, archive-date for ARC."""
        return self.header_field("WARC-Date") or self.header_field("archive-date")

    def http_header(self, name):
        """Case-insensitive HTTP response header lookup; None if absent."""
        return _lookup(self.http_headers, name)

    def __repr__(self):
        return "ArchiveRecord(type=%s, url=%s, date=%s, payload=%d bytes)" % (
            self.record_type,
            self.url,
            self.date,
            len(self.payload),
        )


def _lookup(headers, name):
    name = name.lower()
    for key, value in headers:
        if key.lower() == name:
            return value
    return None
