from lazystream.pipe.core import (
    PullSource, IteratorSource, StreamExhausted, UnsupportedOperationError, StreamConsumedError
)
from lazystream.pipe.stream import Stream, IteratorStream, stream
