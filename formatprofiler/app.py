#!/usr/local/bin/python
#
# Helper for running python programs. Invokes flag parsing logic.

import inspect
import logging
import sys

import gflags as flags

flags.DEFINE_enum('log_level', 'INFO',
                  ['DEBUG', 'INFO', 'WARN', 'ERROR', 'FATAL'],
                  'Default logging level.')

LOG_FORMAT = '%(levelname).1s %(created)f %(filename)s:%(lineno)s [%(funcName)s] %(message)s'

def run(main=None):
  argv = sys.argv
  # default to the `main` function of the calling module
  if main is None:
    main = inspect.currentframe().f_back.f_globals['main']

  try:
    # parse flags
    other_argv = flags.FLAGS(argv)
  except flags.FlagsError as e:
    print('%s\n\nUsage: %s ARGS\n%s' % (e, sys.argv[0], flags.FLAGS))
    sys.exit(1)

  logging.basicConfig(level=getattr(logging, flags.FLAGS.log_level),
                      format=LOG_FORMAT)
  main(other_argv)
