#!/usr/bin/python

import setuptools

setuptools.setup(
    name="formatprofiler",
    version="1.0",
    description=(
        "Profiles the formats found in a web archive collection by comparing "
        "the server declared Content-Type, libmagic content sniffing and "
        "PRONOM signature identification of every WARC/ARC record."
    ),
    python_requires=">=3.6",
    install_requires=[
        "arrow",
        "leveldb",
        "luigi",
        "lxml",
        "opf-fido",
        "python-gflags",
        "python-magic",
        "setproctitle",
        "simplejson",
        "warcio",
    ],
    extras_require={
        "test": [
            "mock",
            "nose2[coverage_plugin]",
        ],
    },
    packages=[
        "formatprofiler",
        "formatprofiler.parallel",
        "formatprofiler.profiler",
    ],
    zip_safe=False,
    test_suite="nose2.collector.collector",
)
