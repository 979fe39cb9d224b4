import logging

logger = logging.getLogger('mapreduce')

class Mapper(object):
  '''
  Base class for user mappers.

  The framework calls `configure` once with the job properties before the
  mapper is shipped to the worker processes.  Within a worker, every shard is
  processed between a call to `open` and a call to `close`; `close` runs even
  if mapping the shard fails.
  '''
  def configure(self, job):
    pass

  def open(self):
    pass

  def close(self):
    pass

  def map(self, key, value, output):
    raise NotImplementedError

  def map_shard(self, map_input, map_output):
    self.filename = map_input.filename
    self.map_input = map_input
    self.map_output = map_output

    logger.info('Starting mapper: input=%s', map_input)
    mapper = self.map
    self.open()
    try:
      for idx, (key, value) in enumerate(map_input):
        if idx % 1000 == 0:
          logger.info('Mapping records=%d input=%s key=%s', idx, map_input, key)
        mapper(key, value, map_output)
    finally:
      self.close()
