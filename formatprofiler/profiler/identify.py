#!/usr/bin/env python

'''
Checks that the signature engine can be set up on this machine.

Prints the version of the PRONOM signature file in use and identifies the
given file:

  python -m formatprofiler.profiler.identify <file>
'''

import sys

from formatprofiler import app
from formatprofiler.profiler.signatures import (
  SignatureIdentifier,
  mime_type_from_result,
  signature_file_version,
)


def main(argv):
  if len(argv) != 2:
    print('Usage: %s <file>' % argv[0])
    sys.exit(1)

  identifier = SignatureIdentifier()
  print('Using binary signature file version %s' % signature_file_version())

  results = identifier.identify_file(argv[1])
  if not results:
    print('%s: no match' % argv[1])
  for result in results:
    print('%s: %s %s (%s)' % (argv[1], result.puid, mime_type_from_result(result), result.name))


if __name__ == '__main__':
  app.run()
