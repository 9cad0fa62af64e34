from seqpipe.pipe.value import Value, ValueState
from seqpipe.pipe.core import Pipeline, AbstractSource, source
from seqpipe.pipe.sources import (
    from_array, from_iterable, from_string, from_strings, from_cursor, from_range, from_source
)
from seqpipe.util.cursors import AbstractCursor, RecordCursor, DBAPICursor

import logging

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())
