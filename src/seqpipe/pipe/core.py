"""Core definitions for seqpipe

This module contains the Pipeline class, the abstract base class for the
sources that drive a pipeline, and the `source` decorator that turns a
generator function into a pipeline factory.

A pipeline pairs a recipe for its composed transform (see
seqpipe.pipe.stages) with the driver of the source it was created from.
Combinator methods only extend the recipe; the transform is built and the
source walked once per terminal evaluation.
"""
import logging
from abc import ABC, abstractmethod
from typing import (
    Any, Callable, Generic, Iterator, List, TypeVar, Annotated
)
from seqpipe.pipe import stages
from seqpipe.pipe.stages import ValueFunc, StopPredicate
from seqpipe.pipe.value import Value

logger = logging.getLogger(__name__)

T = TypeVar('T')
U = TypeVar('U')
R = TypeVar('R')

Driver = Callable[[StopPredicate], None]


class AbstractSource(ABC, Generic[T]):
    """Abstract base class for the sources that drive a pipeline.

    A source knows how to enumerate the elements of one kind of data
    container.  It does not buffer the container and it does not know
    anything about the pipeline stages; it only hands each element to a
    stop predicate and stops as soon as the predicate returns True.

    Instances are callable, so a source object is itself the driver stored
    in a Pipeline.

    Examples:
        class Countdown(AbstractSource[int]):
            def __init__(self, start):
                self.start = start

            def iterate(self, stop_on):
                for i in range(self.start, 0, -1):
                    if stop_on(i):
                        break

        Pipeline(stages.identity, Countdown(3)).to_list()    # [3, 2, 1]
    """

    @abstractmethod
    def iterate(self, stop_on: Annotated[StopPredicate, "Called once per element; returning True halts the enumeration"]) -> None:
        """Enumerate the source in order until stop_on returns True.

        Notes:
            - stop_on must be called exactly once per element, in a fixed order
            - no element may be visited after stop_on returned True
            - the whole source must never be loaded into memory at once
        """

    def __call__(self, stop_on: StopPredicate) -> None:
        logger.debug(f"Running source {self.__class__.__name__}")
        self.iterate(stop_on)
        logger.debug(f"Finished source {self.__class__.__name__}")


class GeneratorSource(AbstractSource[T]):
    """A source backed by a generator function.

    A new generator is created for every pass, so pipelines built on it can
    be evaluated more than once.  When the pass stops early the generator is
    closed, which runs any pending finally blocks or context managers in it.
    """

    def __init__(self, factory: Callable[[], Iterator[T]]):
        self.factory = factory

    def iterate(self, stop_on: StopPredicate) -> None:
        items = self.factory()
        try:
            for item in items:
                if stop_on(item):
                    break
        finally:
            close = getattr(items, "close", None)
            if close is not None:
                close()


class Pipeline(Generic[T, U]):
    """An immutable, lazily evaluated chain of operations over a source.

    T is the element type of the source, U the element type produced by
    the last stage.  Every combinator returns a new Pipeline and leaves the
    receiver untouched; nothing is read from the source until one of the
    terminal evaluators (for_each, to_list, fold) runs.

    Pipelines are normally created by the factories in seqpipe.pipe.sources
    or by a function decorated with `source`.

    Examples:
        from seqpipe import from_range

        evens = from_range(1, 10).filter(lambda x: x % 2 == 0)
        evens.map(lambda x: x * x).to_list()            # [4, 16, 36, 64, 100]
        evens.take(2).to_list()                          # [2, 4]
        evens.fold(lambda v, acc: v + acc, 0)            # 30

    Notes:
        Evaluating a pipeline more than once is only meaningful if the
        source supports repeated iteration.  Lists, strings and ranges do;
        a one-shot iterator or a forward-only database cursor does not.

        A pipeline keeps how to build its transform, not the transform
        itself.  Every terminal evaluation builds a new chain of stage
        closures, so take/skip counters are never shared between pipelines
        or between two evaluations of the same pipeline, even when one runs
        inside the other.
    """

    def __init__(self, func: Annotated[ValueFunc, "The initial transform; must not keep state between calls"], iterate: Driver):
        self._build = lambda: func
        self._iterate = iterate

    @classmethod
    def _from_builder(cls, build: Callable[[], ValueFunc], iterate: Driver) -> 'Pipeline':
        pipeline = cls.__new__(cls)
        pipeline._build = build
        pipeline._iterate = iterate
        return pipeline

    @property
    def func(self) -> ValueFunc:
        """A newly built transform of this pipeline, with its own stage state."""
        return self._build()

    @property
    def iterate(self) -> Driver:
        """The driver of the source this pipeline was created from."""
        return self._iterate

    def _chain(self, compose: Callable[[ValueFunc], ValueFunc]) -> 'Pipeline':
        build = self._build
        return Pipeline._from_builder(lambda: compose(build()), self._iterate)

    def filter(self, predicate: Annotated[Callable[[U], bool], "Keep the items for which this returns True"]) -> 'Pipeline[T, U]':
        """Keep only the items that satisfy predicate."""
        return self._chain(lambda func: stages.filter_func(func, predicate))

    def where(self, predicate: Callable[[U], bool]) -> 'Pipeline[T, U]':
        """Synonym for filter."""
        return self.filter(predicate)

    def map(self, mapper: Annotated[Callable[[U], R], "Applied to every item; may change the item type"]) -> 'Pipeline[T, R]':
        """Replace every item with mapper(item)."""
        return self._chain(lambda func: stages.map_func(func, mapper))

    def select(self, mapper: Callable[[U], R]) -> 'Pipeline[T, R]':
        """Synonym for map."""
        return self.map(mapper)

    def take(self, count: Annotated[int, "Maximum number of items to keep"]) -> 'Pipeline[T, U]':
        """Keep the first count items and stop reading the source after them.

        Raises:
            TypeError: if count is not an integer
            ValueError: if count is negative
        """
        count = _check_count(count)
        return self._chain(lambda func: stages.take_func(func, count))

    def skip(self, count: Annotated[int, "Number of leading items to drop"]) -> 'Pipeline[T, U]':
        """Drop the first count items.

        Raises:
            TypeError: if count is not an integer
            ValueError: if count is negative
        """
        count = _check_count(count)
        return self._chain(lambda func: stages.skip_func(func, count))

    def take_while(self, predicate: Callable[[U], bool]) -> 'Pipeline[T, U]':
        """Keep items up to, but excluding, the first one failing predicate.

        The source is not read past the failing item.
        """
        return self._chain(lambda func: stages.take_while_func(func, predicate))

    def skip_while(self, predicate: Callable[[U], bool]) -> 'Pipeline[T, U]':
        """Drop items up to, but excluding, the first one failing predicate."""
        return self._chain(lambda func: stages.skip_while_func(func, predicate))

    def for_each(self, action: Annotated[Callable[[U], Any], "Called with every item, in order"]) -> None:
        """Run the pipeline, calling action on every resulting item."""
        logger.debug("Running for_each")
        func = self._build()
        func(Value.start())
        self._iterate(stages.for_each_sink(func, action))
        logger.debug("Finished for_each")

    def to_list(self) -> List[U]:
        """Run the pipeline and return the resulting items as a new list."""
        logger.debug("Running to_list")
        items = []
        func = self._build()
        func(Value.start())
        self._iterate(stages.add_item_sink(func, items))
        logger.debug(f"Finished to_list with {len(items)} items")
        return items

    def fold(self,
             folder: Annotated[Callable[[U, R], R], "Called as folder(item, accumulator) and returns the new accumulator"],
             initial: Annotated[R, "The starting accumulator, returned as is for an empty pipeline"]) -> R:
        """Run the pipeline and combine the resulting items into one value.

        Note the argument order of folder: the new item comes first and the
        running accumulator second.

        Examples:
            from_array([1, 2, 3, 4]).fold(lambda v, acc: v + acc, 0)     # 10
            from_string("abc").fold(lambda c, acc: c + acc, "")         # "cba"
        """
        logger.debug("Running fold")
        accumulator = initial

        def accumulate(item):
            nonlocal accumulator
            accumulator = folder(item, accumulator)

        func = self._build()
        func(Value.start())
        self._iterate(lambda item: stages.consume(func(Value.produced(item)), accumulate))
        logger.debug("Finished fold")
        return accumulator


def _check_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise TypeError(f"count must be an integer, got {type(count).__name__}")
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    return count


def source(*decorator_args: Annotated[Any, "The decorated function when used without arguments"],
           **decorator_kwargs: Annotated[Any, "Default keyword arguments for the decorated function"]):
    """Decorator to convert a generator function into a pipeline factory.

    Calling the decorated function returns a Pipeline over the items the
    generator yields.  The generator itself only runs when a terminal
    evaluator is called, once per evaluation, and is closed as soon as the
    pipeline stops reading from it.

    Can be used with or without arguments:

        # Without arguments
        @source
        def numbers():
            for i in range(10):
                yield i

        # With arguments - keyword arguments become defaults
        @source(encoding="utf-8")
        def lines(filename: str, encoding: str):
            with open(filename, encoding=encoding) as f:
                for line in f:
                    yield line.rstrip("\\n")

    Examples:
        numbers().take(3).to_list()                  # [0, 1, 2]
        lines("data.txt").filter(bool).to_list()     # file is closed afterwards
    """
    def decorator(func: Callable[..., Iterator[T]]) -> Callable[..., Pipeline[T, T]]:
        def factory(*init_args, **init_kwargs) -> Pipeline[T, T]:
            # Constructor arguments take precedence
            merged_kwargs = {**decorator_kwargs, **init_kwargs}
            return Pipeline(stages.identity, GeneratorSource(lambda: func(*init_args, **merged_kwargs)))

        factory.__name__ = func.__name__
        factory.__qualname__ = func.__qualname__
        factory.__doc__ = func.__doc__
        factory.__module__ = func.__module__
        factory._original_func = func
        return factory

    # Determine if used with or without arguments
    if len(decorator_args) == 1 and callable(decorator_args[0]) and not decorator_kwargs:
        return decorator(decorator_args[0])
    return decorator
