#!/usr/bin/python

"""
Format profiling of web archive records.

For every record the mapper makes three independent guesses at the format of
the payload:

  * the Content-Type the server declared,
  * what libmagic detects in the payload bytes (plus the producing
    application, when a full parse finds one),
  * what PRONOM signature matching identifies.

It emits `<server>\t<sniffed>\t<signature>` -> `<crawl year>` so that a
reducer can tally the formats of a collection per year.  Every stage falls
back to a default value when it cannot produce an answer; the reason is sent
to the diagnostics channel and the record is always emitted.
"""

import collections
import logging
import os
import re
import tempfile
import traceback

from formatprofiler import parallel
from formatprofiler.profiler.diagnostics import (
    Diagnostic,
    DiagnosticLog,
    MergedDiagnostics,
    INFO,
    ERROR,
    EMPTY_HEADER_FIELDS,
    MISSING_DATE,
    NULL_CONTENT_TYPE,
    SNIFF_FAILED,
    NO_SIGNATURE_MATCH,
    SIGNATURE_FAILED,
)
from formatprofiler.profiler.signatures import (
    OCTET_STREAM,
    SignatureEngineError,
    SignatureIdentifier,
    create_byte_array_identification_request,
    mime_type_from_result,
)
from formatprofiler.profiler.sniff import (
    ContentSniffer,
    application_id,
    with_application_id,
)

logger = logging.getLogger("profiler")

UNKNOWN = "unknown"
DEFAULT_PREFIX = "BL"
ARCHIVE_NAME_PATTERN = r"^%s-([0-9]+).*\.warc(\.gz)?$"


class SnifferUnavailable(Exception):
    pass


class StageResult(collections.namedtuple("StageResult", ["value", "failure"])):
    """The outcome of one profiling stage.

    `value` is None when the stage has no answer, in which case the stage
    default is used.  `failure` is the Diagnostic explaining why the stage did
    not produce (all of) its answer.
    """

    __slots__ = ()

    @staticmethod
    def ok(value):
        return StageResult(value, None)

    @staticmethod
    def failed(failure, value=None):
        return StageResult(value, failure)


def describe_exception(e):
    return "%s: %s" % (e.__class__.__name__, e)


class FormatProfileMapper(parallel.Mapper):
    def __init__(
        self,
        prefix=DEFAULT_PREFIX,
        diagnostics=None,
        diagnostics_dir=None,
        merge_diagnostics=False,
        sniffer_factory=ContentSniffer,
        identifier_factory=SignatureIdentifier,
    ):
        self.archive_name_re = re.compile(ARCHIVE_NAME_PATTERN % re.escape(prefix))
        self.diagnostics = diagnostics
        self.diagnostics_dir = diagnostics_dir
        self.merge_diagnostics = merge_diagnostics
        self.sniffer_factory = sniffer_factory
        self.identifier_factory = identifier_factory
        self.working_directory = ""

        # Acquired by open(), released by close().
        self.sniffer = None
        self.identifier = None
        self.scratch_file = None
        self._diagnostic_log = None

    def configure(self, job):
        self.working_directory = job.get(parallel.WORK_OUTPUT_DIR, "")

    def open(self):
        """Sets up the engines and the scratch file.

        Failures are logged and leave the corresponding engine unset: records
        are still profiled, with the affected stage falling back to its
        default.
        """
        try:
            self.sniffer = self.sniffer_factory()
        except Exception as e:
            logger.error("Exception on content sniffer instantiation: %s", e, exc_info=True)

        try:
            self.identifier = self.identifier_factory()
            fd, self.scratch_file = tempfile.mkstemp(prefix="formatprofiler-", suffix=".tmp")
            os.close(fd)
        except Exception as e:
            logger.error("Exception on signature engine instantiation: %s", e, exc_info=True)

        if self.diagnostics_dir:
            filename = os.path.join(self.diagnostics_dir, "diagnostics-%d.jsonline" % os.getpid())
            try:
                self._diagnostic_log = DiagnosticLog(filename)
            except Exception as e:
                logger.error("Cannot write diagnostics to %s: %s", filename, e)
        return self

    def close(self):
        if self.scratch_file is not None and os.path.exists(self.scratch_file):
            os.unlink(self.scratch_file)
        self.scratch_file = None
        self.sniffer = None
        self.identifier = None

        if self._diagnostic_log is not None:
            self._diagnostic_log.close()
            self._diagnostic_log = None

    def __enter__(self):
        return self.open()

    def __exit__(self, type, value, tb):
        self.close()

    def archive_id(self, archive_name):
        """The numeric identifier in `<PREFIX>-<digits>...warc[.gz]`, or ''."""
        match = self.archive_name_re.match(archive_name)
        if match:
            return match.group(1)
        return ""

    def map(self, key, value, output):
        archive_id = self.archive_id(key)

        if value.header_fields:
            year = self._resolve(self.crawl_year(value, key, archive_id), UNKNOWN, output)
            server_type = self._resolve(self.server_type(value, key, archive_id), UNKNOWN, output)
        else:
            # Content-Type is not looked at when there are no header fields.
            self.report(
                Diagnostic(INFO, EMPTY_HEADER_FIELDS, "Empty header fields.", key, archive_id, key, None),
                output,
            )
            year = server_type = UNKNOWN

        sniffed_type = self._resolve(self.sniffed_type(value, key, archive_id), UNKNOWN, output)
        signature_type = self._resolve(
            self.signature_type(value, key, archive_id), OCTET_STREAM, output
        )

        output.add("\t".join([server_type, sniffed_type, signature_type]), year)

    def crawl_year(self, record, key, archive_id):
        digits = re.sub("[^0-9]", "", record.date or "")
        if len(digits) < 4:
            return StageResult.failed(
                Diagnostic(INFO, MISSING_DATE, "Crawl date is missing.", key, archive_id, archive_id, None)
            )
        return StageResult.ok(digits[:4])

    def server_type(self, record, key, archive_id):
        content_type = record.http_header("Content-Type")
        if content_type is None:
            return StageResult.failed(
                Diagnostic(
                    INFO, NULL_CONTENT_TYPE, "Server Content-Type is null.", key, archive_id, archive_id, None
                )
            )
        return StageResult.ok(content_type)

    def sniffed_type(self, record, key, archive_id):
        sniffed = None
        try:
            if self.sniffer is None:
                raise SnifferUnavailable("Content sniffer is not available.")
            sniffed = self.sniffer.detect(record.payload)
            app_id = application_id(self.sniffer.parse(record.payload))
            return StageResult.ok(with_application_id(sniffed, app_id))
        except Exception as e:
            logger.error("Analysis of %s failed: %s", key, e)
            return StageResult.failed(
                Diagnostic(
                    ERROR,
                    SNIFF_FAILED,
                    "Analysis threw exception: %s" % describe_exception(e),
                    key,
                    archive_id,
                    "%s %s %r" % (key, self.scratch_file, record),
                    traceback.format_exc(),
                ),
                value=sniffed,
            )

    def signature_type(self, record, key, archive_id):
        try:
            if self.identifier is None or self.scratch_file is None:
                raise SignatureEngineError("Signature engine is not available.")
            results = self.identifier.identify(
                create_byte_array_identification_request(self.scratch_file, record.payload)
            )
            if results:
                return StageResult.ok(mime_type_from_result(results[0]))
            return StageResult.failed(
                Diagnostic(INFO, NO_SIGNATURE_MATCH, "Droid found no match.", key, archive_id, archive_id, None)
            )
        except Exception as e:
            logger.error("Exception on signature engine invocation: %s", e, exc_info=True)
            return StageResult.failed(
                Diagnostic(
                    ERROR,
                    SIGNATURE_FAILED,
                    "Droid threw exception: %s" % describe_exception(e),
                    key,
                    archive_id,
                    archive_id,
                    traceback.format_exc(),
                )
            )

    def _resolve(self, result, default, output):
        if result.failure is not None:
            self.report(result.failure, output)
        if result.value is None:
            return default
        return result.value

    def report(self, diagnostic, output):
        if diagnostic.is_error:
            logger.error("%s [%s]", diagnostic.message, diagnostic.key)
        else:
            logger.debug("%s [%s]", diagnostic.message, diagnostic.key)

        if self.diagnostics is not None:
            self.diagnostics.add(diagnostic)
        if self._diagnostic_log is not None:
            self._diagnostic_log.add(diagnostic)
        if self.merge_diagnostics:
            MergedDiagnostics(output).add(diagnostic)
