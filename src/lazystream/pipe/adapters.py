"""Lazy adapters over pull sources.

Each adapter wraps exactly one PullSource, owns it exclusively and is itself
a PullSource.  None of them traverses its source on construction; work only
happens when peek() or consume() is called on the outermost adapter.
"""
import logging
from typing import Callable, TypeVar
from greenlet import greenlet
from lazystream.pipe.core import (
    PullSource, LookaheadSource, SlotState, Buffered, StreamExhausted, EXHAUSTED, STARTED
)

logger = logging.getLogger(__name__)

T = TypeVar('T')
U = TypeVar('U')


class MapAdapter(PullSource[U]):
    """Applies a projection to every value pulled from the wrapped source.

    No buffering is needed: peek() only asks the wrapped source whether a
    value exists and never calls the projection.  The projection is called
    exactly once per consumed value, in source order, and any exception it
    raises reaches the caller of consume().
    """

    def __init__(self, source: PullSource[T], function: Callable[[T], U]):
        self._source = source
        self._function = function

    def peek(self) -> bool:
        return self._source.peek()

    def consume(self) -> U:
        return self._function(self._source.consume())


class FilterAdapter(LookaheadSource[T]):
    """Yields only the values that satisfy a predicate.

    To answer peek() the adapter has to find the next accepted value, so it
    pulls and tests values until one is accepted and keeps it in the slot.
    Rejected values are dropped as they are seen.  consume() without a
    prior peek() runs the same skip loop.
    """

    def __init__(self, source: PullSource[T], predicate: Callable[[T], bool]):
        super().__init__()
        self._source = source
        self._predicate = predicate

    def _advance(self) -> SlotState:
        while self._source.peek():
            value = self._source.consume()
            if self._predicate(value):
                return Buffered(value=value)
        return EXHAUSTED


class TakeWhileAdapter(LookaheadSource[T]):
    """Yields values until the predicate first fails, then stops for good.

    The value that fails the predicate is discarded.  Later values of the
    wrapped source are never pulled, even if they would satisfy the
    predicate, which is what makes take-while safe over infinite sources.
    """

    def __init__(self, source: PullSource[T], predicate: Callable[[T], bool]):
        super().__init__()
        self._source = source
        self._predicate = predicate

    def _advance(self) -> SlotState:
        if not self._source.peek():
            return EXHAUSTED
        value = self._source.consume()
        if self._predicate(value):
            return Buffered(value=value)
        logger.debug(f"{self.__class__.__name__} predicate failed, finishing")
        return EXHAUSTED


class DropWhileAdapter(LookaheadSource[T]):
    """Discards the leading values that satisfy a predicate.

    The skip phase runs on the first peek() or consume().  The first value
    that fails the predicate is kept in the slot and is part of the output.
    Once it has been consumed the slot is Started and the adapter is a plain
    pass-through: peek() and consume() delegate to the wrapped source and the
    predicate is not called again.
    """

    def __init__(self, source: PullSource[T], predicate: Callable[[T], bool]):
        super().__init__()
        self._source = source
        self._predicate = predicate
        self._dropped = 0

    def _advance(self) -> SlotState:
        while self._source.peek():
            value = self._source.consume()
            if not self._predicate(value):
                logger.debug(f"{self.__class__.__name__} dropped {self._dropped} values")
                return Buffered(value=value)
            self._dropped += 1
        logger.debug(f"{self.__class__.__name__} dropped all {self._dropped} values")
        return EXHAUSTED

    def _drained(self) -> SlotState:
        return STARTED

    def peek(self) -> bool:
        if self._slot is STARTED:
            if self._source.peek():
                return True
            self._slot = EXHAUSTED
            return False
        return super().peek()

    def consume(self) -> T:
        if self._slot is STARTED:
            if not self.peek():
                raise StreamExhausted()
            return self._source.consume()
        return super().consume()


class MultiMapAdapter(LookaheadSource[U]):
    """Maps every input value to zero or more output values.

    The mapper is called as mapper(value, emit) and calls emit(output) once
    per output value.  Outputs appear in emission order and inputs are
    processed in source order; an input that emits nothing contributes
    nothing.

    The mapper runs in a greenlet that is suspended inside emit() until the
    caller pulls again, so at most one output is ever held in the slot no
    matter how many values a single input emits.  An exception raised by the
    mapper reaches the pulling caller and leaves the adapter exhausted.
    """

    def __init__(self, source: PullSource[T], mapper: Callable[[T, Callable[[U], None]], None]):
        super().__init__()
        self._source = source
        self._mapper = mapper
        self._worker = None
        self._caller = None

    def _run(self):
        logger.debug(f"Starting {self.__class__.__name__} worker")
        try:
            while self._source.peek():
                self._mapper(self._source.consume(), self._emit)
        except Exception as e:
            self._caller.switch(("error", e))
        else:
            logger.debug(f"Finished {self.__class__.__name__} worker")
            self._caller.switch(("end", None))

    def _emit(self, value: U):
        if greenlet.getcurrent() is not self._worker:
            raise RuntimeError("emit() may only be called while the mapper is running")
        self._caller.switch(("item", value))

    def _advance(self) -> SlotState:
        if self._worker is None:
            self._worker = greenlet(self._run)
        self._caller = greenlet.getcurrent()
        msg_type, payload = self._worker.switch()

        if msg_type == "item":
            return Buffered(value=payload)
        elif msg_type == "end":
            return EXHAUSTED
        elif msg_type == "error":
            self._slot = EXHAUSTED
            raise payload
        else:
            raise RuntimeError(f"Unexpected message from mapper: {msg_type}")
