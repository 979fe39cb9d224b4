#!/usr/bin/env python
import glob
import os
import shutil
import tempfile
import unittest
from os.path import join

import simplejson as json
from mock import patch

import formatprofiler.profiler.pipeline
from formatprofiler.profiler.diagnostics import DiagnosticLog, NULL_CONTENT_TYPE
from formatprofiler.profiler.pipeline import FormatProfile, FormatProfileReport
from formatprofiler.profiler.tests.profiler_fakes import (
    HTML,
    PNG,
    FakeIdentifier,
    FakeSniffer,
    response,
    write_warc,
)

HTML_KEY = "text/html\ttext/html\ttext/html"
PNG_KEY = 'image/png\timage/png\timage/png; version="1.0"'
NO_TYPE_PNG_KEY = 'unknown\timage/png\timage/png; version="1.0"'


class FormatProfilePipelineTests(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        pipeline = formatprofiler.profiler.pipeline
        self.old_dirs = pipeline.PROFILE_DIR, pipeline.DIAGNOSTICS_DIR
        pipeline.PROFILE_DIR = join(self.test_dir, "format_profile")
        pipeline.DIAGNOSTICS_DIR = join(pipeline.PROFILE_DIR, "diagnostics")

        warc_dir = join(self.test_dir, "warcs")
        os.makedirs(warc_dir)
        write_warc(
            join(warc_dir, "BL-42-crawl.warc.gz"),
            [
                response("http://example.com/", HTML),
                response("http://example.com/old", HTML, date="2011-06-01T12:00:00Z"),
                response("http://example.com/a.png", PNG, content_type="image/png"),
                response("http://example.com/b.png", PNG, content_type=None),
            ],
        )
        write_warc(
            join(warc_dir, "BL-43-crawl.warc.gz"),
            [response("http://example.com/other", HTML)],
        )

        patchers = [
            patch("formatprofiler.config.warc_glob", return_value=join(warc_dir, "*.warc.gz")),
            patch("formatprofiler.config.merge_diagnostics", return_value=False),
        ]
        mocks = []
        for p in patchers:
            mocks.append(p.start())
            self.addCleanup(p.stop)
        self.merge_diagnostics = mocks[1]

    def tearDown(self):
        pipeline = formatprofiler.profiler.pipeline
        pipeline.PROFILE_DIR, pipeline.DIAGNOSTICS_DIR = self.old_dirs
        shutil.rmtree(self.test_dir)

    def run_profile(self):
        task = FormatProfile()
        task.sniffer_factory = FakeSniffer
        task.identifier_factory = FakeIdentifier
        task.run()
        with open(task.output().path) as f:
            return json.load(f)

    def test_profile(self):
        profile = self.run_profile()
        self.assertEqual(
            {
                HTML_KEY: {"2011": 1, "2012": 2},
                PNG_KEY: {"2012": 1},
                NO_TYPE_PNG_KEY: {"2012": 1},
            },
            profile,
        )

    def test_diagnostics(self):
        self.run_profile()
        files = glob.glob(join(formatprofiler.profiler.pipeline.DIAGNOSTICS_DIR, "*.jsonline"))
        logged = []
        for filename in files:
            logged.extend(DiagnosticLog.read(filename))

        self.assertEqual(1, len(logged))
        self.assertEqual(NULL_CONTENT_TYPE, logged[0].reason)
        self.assertEqual("BL-42-crawl.warc.gz", logged[0].key)
        self.assertEqual("42", logged[0].archive_id)

    def test_merged_diagnostics(self):
        self.merge_diagnostics.return_value = True
        profile = self.run_profile()
        self.assertEqual({"42": 1}, profile["LOG: Server Content-Type is null."])
        self.assertEqual({"2012": 1}, profile[NO_TYPE_PNG_KEY])

    def test_report(self):
        self.merge_diagnostics.return_value = True
        self.run_profile()
        report = FormatProfileReport()
        report.run()

        with open(report.output().path) as f:
            lines = f.read().splitlines()
        self.assertEqual("server_type\tsniffed_type\tsignature_type\tyear\tcount", lines[0])
        self.assertEqual(
            [
                PNG_KEY + "\t2012\t1",
                HTML_KEY + "\t2011\t1",
                HTML_KEY + "\t2012\t2",
                NO_TYPE_PNG_KEY + "\t2012\t1",
            ],
            lines[1:],
        )


if __name__ == "__main__":
    unittest.main()
