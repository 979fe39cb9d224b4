#!/usr/bin/python

""" Pipeline for profiling the formats of a web archive collection.

FormatProfile runs FormatProfileMapper over every WARC/ARC file matching the
configured glob and tallies the crawl years per format triple into a JSON
profile.  FormatProfileReport flattens the profile into a TSV table.
"""

import glob
import logging
import os
from os.path import join

import luigi
import simplejson as json

from formatprofiler import config, parallel
from formatprofiler.profiler.mapper import FormatProfileMapper
from formatprofiler.profiler.reducer import FormatProfileReducer
from formatprofiler.profiler.signatures import SignatureIdentifier
from formatprofiler.profiler.sniff import ContentSniffer

PROFILE_DIR = config.data_dir("format_profile")
DIAGNOSTICS_DIR = join(PROFILE_DIR, "diagnostics")

REPORT_HEADER = ["server_type", "sniffed_type", "signature_type", "year", "count"]


class FormatProfile(luigi.Task):
    sniffer_factory = ContentSniffer
    identifier_factory = SignatureIdentifier

    def output(self):
        return luigi.LocalTarget(join(PROFILE_DIR, "profile.json"))

    def mapreduce_inputs(self):
        input_files = sorted(glob.glob(config.warc_glob()))
        if len(input_files) == 0:
            logging.warning("No archives match %s", config.warc_glob())
        return parallel.Collection.from_list(input_files, parallel.WARCInput())

    def run(self):
        os.system('rm -rf "%s"' % DIAGNOSTICS_DIR)
        parallel.mapreduce(
            self.mapreduce_inputs(),
            mapper=FormatProfileMapper(
                prefix=config.identifier_prefix(),
                diagnostics_dir=DIAGNOSTICS_DIR,
                merge_diagnostics=config.merge_diagnostics(),
                sniffer_factory=self.sniffer_factory,
                identifier_factory=self.identifier_factory,
            ),
            reducer=FormatProfileReducer(),
            output_prefix=self.output().path,
            output_format=parallel.JSONOutput(indent=2, sort_keys=True),
            num_shards=1,
        )


class FormatProfileReport(luigi.Task):
    def requires(self):
        return FormatProfile()

    def output(self):
        return luigi.LocalTarget(join(PROFILE_DIR, "profile.tsv"))

    def run(self):
        with self.input().open("r") as input_f:
            profile = json.load(input_f)

        with self.output().open("w") as out_f:
            out_f.write("\t".join(REPORT_HEADER) + "\n")
            for key in sorted(profile):
                # Diagnostics merged into the output are not part of the table.
                if key.startswith("LOG:"):
                    continue
                for year, count in sorted(profile[key].items()):
                    out_f.write("%s\t%s\t%d\n" % (key, year, count))


if __name__ == "__main__":
    luigi.run()
