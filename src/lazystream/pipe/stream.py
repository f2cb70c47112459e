"""Stream front-end

A Stream is a thin wrapper around one PullSource.  Chaining an operation
(map, filter, take_while, drop_while, map_multi) wraps the current source in
the matching adapter and returns a new Stream; nothing is traversed until a
terminal operation such as collect() pulls the chain end to end.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, Iterator, List, TypeVar, Annotated
from lazystream.pipe.core import (
    PullSource, IteratorSource, UnsupportedOperationError, StreamConsumedError
)
from lazystream.pipe.adapters import (
    MapAdapter, FilterAdapter, TakeWhileAdapter, DropWhileAdapter, MultiMapAdapter
)

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')
A = TypeVar('A')


class Stream(ABC, Generic[T]):
    """Abstract base class for lazy, single-pass streams.

    Subclasses decide how adapters are attached; the terminal operations
    defined here only rely on the pull protocol of pull_source().

    A stream is single-consumer.  The first call that needs its pull source
    (chaining an operation, a terminal operation, or iterating it) takes
    ownership of the source, and any later call raises StreamConsumedError.
    Streams returned by chaining are new objects, so a chain is built as
    `s.filter(f).map(g)` rather than by reusing `s`.  Chaining never changes
    the receiver's own chain; the ownership claim is the only state a call
    records on the receiver.
    """

    def __init__(self):
        self._claimed = False

    @abstractmethod
    def _open(self) -> PullSource[T]:
        """Return the pull source this stream wraps."""

    def pull_source(self) -> PullSource[T]:
        """Take ownership of the raw pull source for external iteration."""
        if self._claimed:
            raise StreamConsumedError(f"{self.__class__.__name__} has already been consumed")
        self._claimed = True
        return self._open()

    def __iter__(self) -> Iterator[T]:
        return self.pull_source()

    @abstractmethod
    def map(self, function: Callable[[T], R]) -> 'Stream[R]':
        """Project every value with function."""

    @abstractmethod
    def filter(self, predicate: Callable[[T], bool]) -> 'Stream[T]':
        """Keep only the values that satisfy predicate."""

    @abstractmethod
    def take_while(self, predicate: Callable[[T], bool]) -> 'Stream[T]':
        """Keep values up to, but not including, the first one failing predicate."""

    @abstractmethod
    def drop_while(self, predicate: Callable[[T], bool]) -> 'Stream[T]':
        """Drop the leading values that satisfy predicate."""

    def map_multi(self, mapper: Callable[[T, Callable[[R], None]], None]) -> 'Stream[R]':
        """Map every value to zero or more values.

        Not every front-end supports this; the default raises
        UnsupportedOperationError.
        """
        raise UnsupportedOperationError(f"{self.__class__.__name__} does not support map_multi")

    def collect(self,
                supplier: Annotated[Callable[[], A], "Creates the empty accumulator"],
                accumulator: Annotated[Callable[[A, T], Any], "Adds one value to the accumulator in place"]) -> A:
        """Drain the stream into a mutable accumulator.

        Creates the accumulator with supplier(), then calls
        accumulator(acc, value) for every value in order.  The return value
        of accumulator is ignored, so it must mutate acc in place
        (e.g. `collect(list, list.append)`).

        This is the only point at which the chain is traversed.  It
        terminates iff the stream is finite, so an infinite source must be
        bounded upstream with take_while().

        Returns:
            The populated accumulator.
        """
        source = self.pull_source()
        logger.debug(f"Collecting {self.__class__.__name__}")
        result = supplier()
        count = 0
        while source.peek():
            accumulator(result, source.consume())
            count += 1
        logger.debug(f"Finished collecting {self.__class__.__name__} after {count} values")
        return result

    def to_list(self) -> List[T]:
        """Drain the stream into a new list."""
        return self.collect(list, list.append)

    def reduce(self,
               function: Annotated[Callable[[A, T], A], "Combines the running value with the next item"],
               initial: Annotated[A, "The starting value, returned unchanged for an empty stream"]) -> A:
        """Left fold for accumulators that are replaced rather than mutated.

        Example:
            stream([1, 2, 3]).reduce(lambda total, x: total + x, 0)  # 6
        """
        source = self.pull_source()
        result = initial
        while source.peek():
            result = function(result, source.consume())
        return result


class IteratorStream(Stream[T]):
    """Stream over any PullSource, built by wrapping adapters around it.

    Examples:
        evens = IteratorStream.from_iterable(range(10)).filter(lambda x: x % 2 == 0)
        evens.collect(list, list.append)  # [0, 2, 4, 6, 8]

        # Bounding an infinite source
        IteratorStream.from_iterable(itertools.count()).take_while(lambda x: x < 3).to_list()
    """

    def __init__(self, source: PullSource[T]):
        super().__init__()
        self._source = source

    @classmethod
    def from_iterable(cls, iterable: Iterable[T]) -> 'IteratorStream[T]':
        logger.debug(f"Creating stream over {type(iterable).__name__}")
        return cls(IteratorSource(iterable))

    @classmethod
    def from_source(cls, source: PullSource[T]) -> 'IteratorStream[T]':
        logger.debug(f"Creating stream over {source.__class__.__name__}")
        return cls(source)

    def _open(self) -> PullSource[T]:
        return self._source

    def _chain(self, adapter_class, function) -> 'IteratorStream':
        logger.debug(f"Attaching {adapter_class.__name__}")
        return IteratorStream(adapter_class(self.pull_source(), function))

    def map(self, function: Callable[[T], R]) -> 'IteratorStream[R]':
        return self._chain(MapAdapter, function)

    def filter(self, predicate: Callable[[T], bool]) -> 'IteratorStream[T]':
        return self._chain(FilterAdapter, predicate)

    def take_while(self, predicate: Callable[[T], bool]) -> 'IteratorStream[T]':
        return self._chain(TakeWhileAdapter, predicate)

    def drop_while(self, predicate: Callable[[T], bool]) -> 'IteratorStream[T]':
        return self._chain(DropWhileAdapter, predicate)

    def map_multi(self, mapper: Callable[[T, Callable[[R], None]], None]) -> 'IteratorStream[R]':
        """Map every value to zero or more values emitted through a callback.

        Example:
            stream([1, 2, 3]).map_multi(lambda x, emit: [emit(x) for _ in range(x)]).to_list()
            # [1, 2, 2, 3, 3, 3]
        """
        return self._chain(MultiMapAdapter, mapper)


def stream(iterable: Iterable[T]) -> IteratorStream[T]:
    """Create a stream over an iterable.  Shorthand for IteratorStream.from_iterable."""
    return IteratorStream.from_iterable(iterable)
