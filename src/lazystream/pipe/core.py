"""Core definitions for the pull protocol

This module contains the building blocks every stream is made of: the
abstract PullSource capability (peek/consume), the lookahead slot states
that stateful sources use to remember a value they had to pull early, the
exceptions raised while pulling, and IteratorSource, which adapts any
Python iterable into a PullSource.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Iterator, TypeVar, Annotated
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

T = TypeVar('T')


class StreamExhausted(StopIteration):
    """Raised by consume() when no further element is available.

    Subclasses StopIteration so that a PullSource ends a for loop (or a
    call to next()) the same way a regular Python iterator does.
    """


class UnsupportedOperationError(NotImplementedError):
    """Raised by stream operations that a front-end declares but does not implement."""


class StreamConsumedError(RuntimeError):
    """Raised when a stream's pull source is requested a second time.

    A stream is single-pass and single-consumer.  Once its source has been
    handed to an adapter, a terminal operation or an external iterator,
    the stream itself cannot be used again.
    """


class SlotState(BaseModel):
    """State of a single-element lookahead slot.

    The slot is modelled as a tagged variant rather than a nullable field so
    that a buffered None is never confused with an empty slot.  The
    variants are:

    - Unprimed: nothing is buffered and the next state is not known yet.
    - Buffered: one value was pulled but has not been consumed.
    - Started: the slot is empty and the source is in pass-through mode
      (used by drop-while once its skip phase is over).
    - Exhausted: no value will ever be produced again.  Sticky.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Unprimed(SlotState):
    pass


class Started(SlotState):
    pass


class Exhausted(SlotState):
    pass


class Buffered(SlotState):
    value: Any


UNPRIMED = Unprimed()
STARTED = Started()
EXHAUSTED = Exhausted()


class PullSource(ABC, Generic[T]):
    """Abstract base class for anything that can be pulled from.

    A pull source answers two questions: is there another value
    (peek), and what is it (consume).  Every adapter wraps exactly one pull
    source and is itself a pull source, so adapters nest to any depth.

    Contract:
    - peek() never raises StreamExhausted and is idempotent: calling it
      repeatedly without an intervening consume() returns the same answer
      and does not advance the source.
    - consume() returns the next value, or raises StreamExhausted if
      peek() would have returned False.
    - Once peek() returns False it keeps returning False.

    Pull sources also implement the iterator protocol, so they can be used
    directly in a for loop.
    """

    @abstractmethod
    def peek(self) -> bool:
        """Report whether a further value can be consumed."""

    @abstractmethod
    def consume(self) -> T:
        """Return the next value, raising StreamExhausted if there is none."""

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        return self.consume()


class LookaheadSource(PullSource[T]):
    """A pull source that holds at most one value in a lookahead slot.

    Subclasses implement _advance(), which is called only while the slot is
    Unprimed or Started and returns the next slot state: Buffered with the
    next value to yield, or Exhausted.  Peek and consume are defined here
    once for all lookahead sources, so the idempotence and stickiness rules
    hold uniformly.
    """

    def __init__(self):
        self._slot: SlotState = UNPRIMED

    @property
    def slot(self) -> SlotState:
        return self._slot

    @abstractmethod
    def _advance(self) -> SlotState:
        """Pull from upstream until the next slot state is known."""

    def _drained(self) -> SlotState:
        """The state the slot returns to after its buffered value is consumed."""
        return UNPRIMED

    def peek(self) -> bool:
        if isinstance(self._slot, (Unprimed, Started)):
            self._slot = self._advance()
        return isinstance(self._slot, Buffered)

    def consume(self) -> T:
        if not self.peek():
            raise StreamExhausted()
        value = self._slot.value
        self._slot = self._drained()
        return value


class IteratorSource(LookaheadSource[T]):
    """Adapts a Python iterable to the pull protocol.

    Python iterators only signal exhaustion by raising StopIteration from
    next(), so answering peek() requires pulling one value ahead.
    """

    def __init__(self, iterable: Annotated[Iterable[T], "The iterable to pull values from"]):
        super().__init__()
        self._iterator = iter(iterable)

    def _advance(self) -> SlotState:
        try:
            return Buffered(value=next(self._iterator))
        except StopIteration:
            logger.debug(f"Source {self._iterator.__class__.__name__} is exhausted")
            return EXHAUSTED
