import collections

from formatprofiler import parallel


class FormatProfileReducer(parallel.Reducer):
    """Counts the crawl years seen for each format triple.

    The output value is a dictionary of year -> number of records.  When the
    mapper merges its diagnostics into the output, `LOG:` keys are tallied
    the same way, by the detail value they carry.
    """

    def reduce(self, key, values, output):
        output.put(key, dict(collections.Counter(values)))
