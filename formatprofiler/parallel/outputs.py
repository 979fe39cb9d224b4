import glob
import logging
import os
import subprocess

import simplejson as json

logger = logging.getLogger('mapreduce')

class MROutput(object):
  suffix = None

  class Writer(object):
    def __init__(self, filename, **kw):
      self.filename = filename

    def put(self, key, value):
      assert False, "Don't use this class directly: use an output like JSONOutput"

    def flush(self):
      pass

  def __init__(self, **kw):
    self.writer_args = kw

  def create_writer(self, prefix, shard_idx, num_shards):
    assert prefix, 'No output prefix specified for output'
    assert shard_idx < num_shards, 'Invalid shard index (%d > %d)' % (shard_idx, num_shards)
    os.system('mkdir -p "%s"' % prefix)
    return self.__class__.Writer(
      prefix + '/shard-%05d-of-%05d.%s' % (shard_idx, num_shards, self.suffix),
      **self.writer_args)

  def recommended_shards(self):
    raise NotImplementedError

  def finalize(self, tmp_dir, final_dir):
    raise NotImplementedError


class JSONOutput(MROutput):
  suffix = 'json'

  class Writer(MROutput.Writer):
    def __init__(self, filename, **kw):
      self.db = {}
      self.json_args = kw
      self.filename = filename

    def put(self, key, value):
      assert isinstance(key, str)
      self.db[key] = value

    def flush(self):
      with open(self.filename, 'w') as out_file:
        json.dump(self.db, out_file, **self.json_args)

  def create_writer(self, prefix, shard_idx, num_shards):
    assert num_shards == 1, 'JSONOutput only works with a single output shard!'
    return MROutput.create_writer(self, prefix, shard_idx, num_shards)

  def recommended_shards(self):
    return 1

  def finalize(self, tmp_dir, final_dir):
    '''
    Move the output JSON file to the final location.

    There should only be one file -- this will fail if the user specified multiple shards!
    '''
    files = glob.glob('%s/*.json' % tmp_dir)
    assert len(files) == 1, 'JSONOutput expected one temporary file, got: %s' % files
    logger.info('Moving temporary file: %s to final destination: %s', files[0], final_dir)
    os.system('mkdir -p "%s"' % os.path.dirname(os.path.abspath(final_dir)))
    subprocess.check_output('mv "%s" "%s"' % (files[0], final_dir), shell=True)
