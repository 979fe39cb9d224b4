"""
Configuration options shared by the format profiling tasks.

They are grouped under the ProfilerConfig 'pseudo-task' and can be adjusted
using command-line flags (e.g. `--ProfilerConfig-data-dir`) or the
[ProfilerConfig] section of the luigi config file.
"""

import os.path

import luigi
from luigi import Parameter


class ProfilerConfig(luigi.WrapperTask):
    data_dir = Parameter(default="./data")
    tmp_dir = Parameter(default="./data/formatprofiler-tmp")
    warc_glob = Parameter(default="./data/warcs/*.*arc*")
    identifier_prefix = Parameter(default="BL")
    merge_diagnostics = luigi.BoolParameter(default=False)


def data_dir(*subdirs):
    return os.path.join(ProfilerConfig().data_dir, *subdirs)


def tmp_dir(*subdirs):
    return os.path.join(ProfilerConfig().tmp_dir, *subdirs)


def warc_glob():
    return ProfilerConfig().warc_glob


def identifier_prefix():
    return ProfilerConfig().identifier_prefix


def merge_diagnostics():
    return ProfilerConfig().merge_diagnostics
