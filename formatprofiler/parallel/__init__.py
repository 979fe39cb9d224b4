from .mapreduce import Collection, mapreduce, MRException, WORK_OUTPUT_DIR, OUTPUT_DIR
from .mapper import Mapper
from .reducer import Reducer
from .outputs import MROutput, JSONOutput
from .inputs import MRInput, WARCInput
