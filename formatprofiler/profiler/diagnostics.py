"""
Diagnostics are the anomalies found while profiling a record: missing
headers, detection failures and the like.  They travel on their own channel,
separate from the format tallies, and are written to a sink:

  DiagnosticList    -- keeps diagnostics in memory.
  DiagnosticLog     -- appends one JSON object per line to a file.
  MergedDiagnostics -- writes the legacy `LOG:` prefixed key/value pairs into
                       the map output, next to the tallies.
"""

import collections
import logging
import os

import simplejson as json

logger = logging.getLogger("profiler")

INFO = "info"
ERROR = "error"

# Reasons
EMPTY_HEADER_FIELDS = "empty-header-fields"
MISSING_DATE = "missing-date"
NULL_CONTENT_TYPE = "null-content-type"
SNIFF_FAILED = "sniff-failed"
NO_SIGNATURE_MATCH = "no-signature-match"
SIGNATURE_FAILED = "signature-failed"

_FIELDS = ["level", "reason", "message", "key", "archive_id", "detail", "traceback"]


class Diagnostic(collections.namedtuple("Diagnostic", _FIELDS)):
    __slots__ = ()

    @property
    def is_error(self):
        return self.level == ERROR

    def as_log_record(self):
        """The (key, value) pair of the legacy single-channel output."""
        prefix = "LOG:ERROR" if self.is_error else "LOG:"
        key = "%s %s" % (prefix, self.message)
        if self.traceback:
            key += "\n" + self.traceback
        return key, self.detail or ""

    def as_dict(self):
        return dict(self._asdict())


class DiagnosticList(list):
    def add(self, diagnostic):
        self.append(diagnostic)

    def close(self):
        pass


class DiagnosticLog(object):
    def __init__(self, filename):
        self.filename = filename
        os.makedirs(os.path.dirname(os.path.abspath(filename)), exist_ok=True)
        self._file = open(filename, "a")
        self.count = 0

    def add(self, diagnostic):
        self._file.write(json.dumps(diagnostic.as_dict()) + "\n")
        self.count += 1

    def close(self):
        logger.info("Wrote %d diagnostics to %s", self.count, self.filename)
        self._file.close()

    @staticmethod
    def read(filename):
        with open(filename) as f:
            return [Diagnostic(**json.loads(line)) for line in f if line.strip()]


class MergedDiagnostics(object):
    def __init__(self, output):
        self.output = output

    def add(self, diagnostic):
        self.output.add(*diagnostic.as_log_record())

    def close(self):
        pass
