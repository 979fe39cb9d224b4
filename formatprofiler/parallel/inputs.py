''' A set of input classes used by the mapreduce() function to parse, split and
    stream data to Mapper. Web archives (WARC, and ARC converted on the fly)
    are read with warcio, one record at a time.
'''
import logging
import os

from warcio.archiveiterator import ArchiveIterator

from formatprofiler.profiler.records import ArchiveRecord

logger = logging.getLogger('mapreduce')

class FileSplit(object):
  '''
  A split represents a subset (potentially all) of an input file.

  The start_pos and end_pos are interpreted by the input format (for example
  they could be line numbers for a line oriented format, or start/stop keys
  for a key-value format).
  '''
  def __init__(self, filename, mr_input, start_pos, end_pos):
    self.filename = filename
    self.mr_input = mr_input
    self.start_pos = start_pos
    self.end_pos = end_pos

  def __repr__(self):
    return 'Split(%s -- %s:%s)' % (self.filename, self.start_pos, self.end_pos)


class MRInput(object):
  class Reader(object):
    def __init__(self, split, **kw):
      self.filename = split.filename
      self.start_pos = split.start_pos
      self.end_pos = split.end_pos
      self.split = split

      for k, v in kw.items():
        setattr(self, k, v)

    def __repr__(self):
      return 'Reader(%s)' % self.filename

    def __iter__(self):
      for k, v in self.entries():
        yield k, v

  def compute_splits(self, filename, desired_splits):
    '''
    The default behavior for splitting files is to have one split per file.
    '''
    return [FileSplit(filename, self, 0, -1)]

  def create_reader(self, split):
    return self.__class__.Reader(split)


class WARCInput(MRInput):
  ''' Streams the records of a WARC or ARC file (optionally gzipped).

      Keys are the base name of the archive file, values are ArchiveRecord
      objects.  Only records whose WARC-Type is listed in `record_types` are
      passed on; `record_types=None` passes every record.  Compressed archives
      cannot be split, so there is always one split per file.
  '''
  def __init__(self, record_types=('response', 'resource')):
    MRInput.__init__(self)
    self.record_types = record_types

  def create_reader(self, split):
    return WARCInput.Reader(split, record_types=self.record_types)

  class Reader(MRInput.Reader):
    def entries(self):
      key = os.path.basename(self.filename)
      skipped = 0
      with open(self.filename, 'rb') as stream:
        for record in ArchiveIterator(stream, arc2warc=True):
          if self.record_types and record.rec_type not in self.record_types:
            skipped += 1
            continue
          # The payload must be read before the iterator moves on.
          yield key, ArchiveRecord.from_warcio(record)

      logger.debug('Skipped %d records of other types in %s', skipped, self.filename)
