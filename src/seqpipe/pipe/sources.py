"""Source adapters and the factories that start a pipeline from them.

Each adapter implements AbstractSource.iterate for one kind of container.
The `from_*` functions wrap an adapter in a Pipeline with no stages.
"""
import io
from collections import abc
from typing import Any, Iterable, Sequence, TypeVar, Union, Annotated
from seqpipe.pipe import stages
from seqpipe.pipe.core import AbstractSource, Pipeline
from seqpipe.pipe.stages import StopPredicate
from seqpipe.util.cursors import AbstractCursor

T = TypeVar('T')


class ArraySource(AbstractSource[T]):
    """Items of a fixed-size sequence such as a list or tuple."""

    def __init__(self, items: Sequence[T]):
        self.items = items

    def iterate(self, stop_on: StopPredicate) -> None:
        for item in self.items:
            if stop_on(item):
                break


class IterableSource(AbstractSource[T]):
    """Items of any iterable.

    The iterable is iterated afresh on every pass.  Collections such as sets
    or dict views support this; an iterator or generator object is exhausted
    after the first pass and yields nothing afterwards.
    """

    def __init__(self, iterable: Iterable[T]):
        self.iterable = iterable

    def iterate(self, stop_on: StopPredicate) -> None:
        for item in self.iterable:
            if stop_on(item):
                break


class StringSource(AbstractSource[str]):
    """The characters of a string."""

    def __init__(self, text: str):
        self.text = text

    def iterate(self, stop_on: StopPredicate) -> None:
        for char in self.text:
            if stop_on(char):
                break


class StringsSource(AbstractSource[str]):
    """The strings of a list of strings, each passed on unchanged.

    A multi-line str or a text file object is read one line at a time, with
    the line terminator removed, so that it behaves like the list of its
    lines.
    """

    def __init__(self, lines: Union[str, Iterable[str]]):
        self.lines = lines

    def iterate(self, stop_on: StopPredicate) -> None:
        if isinstance(self.lines, str):
            lines = _without_terminators(io.StringIO(self.lines))
        elif isinstance(self.lines, io.IOBase):
            lines = _without_terminators(self.lines)
        else:
            lines = self.lines
        for line in lines:
            if stop_on(line):
                break


def _without_terminators(f):
    return (line.rstrip("\r\n") for line in f)


class CursorSource(AbstractSource[Any]):
    """The records of a cursor, from the first one until end of data."""

    def __init__(self, cursor: AbstractCursor):
        self.cursor = cursor

    def iterate(self, stop_on: StopPredicate) -> None:
        cursor = self.cursor
        cursor.first()
        while not cursor.eof:
            if stop_on(cursor.current):
                break
            cursor.next()


class RangeSource(AbstractSource[int]):
    """The integers from start to finish, both inclusive."""

    def __init__(self, start: int, finish: int):
        self.start = start
        self.finish = finish

    def iterate(self, stop_on: StopPredicate) -> None:
        for i in range(self.start, self.finish + 1):
            if stop_on(i):
                break


def from_array(items: Annotated[Sequence[T], "A list, tuple or other fixed-size sequence"]) -> Pipeline[T, T]:
    """Start a pipeline over the items of a sequence."""
    return Pipeline(stages.identity, ArraySource(items))


def from_iterable(iterable: Annotated[Iterable[T], "Any iterable"]) -> Pipeline[T, T]:
    """Start a pipeline over the items of an iterable."""
    return Pipeline(stages.identity, IterableSource(iterable))


def from_string(text: Annotated[str, "The string whose characters are enumerated"]) -> Pipeline[str, str]:
    """Start a pipeline over the characters of a string."""
    return Pipeline(stages.identity, StringSource(text))


def from_strings(lines: Annotated[Union[str, Iterable[str]], "A list of strings, a multi-line string or a text file"]) -> Pipeline[str, str]:
    """Start a pipeline over a list of strings or the lines of a text."""
    return Pipeline(stages.identity, StringsSource(lines))


def from_cursor(cursor: Annotated[AbstractCursor, "A cursor providing first(), next(), eof and current"]) -> Pipeline[Any, Any]:
    """Start a pipeline over the records of a cursor."""
    return Pipeline(stages.identity, CursorSource(cursor))


def from_range(start: int, finish: int) -> Pipeline[int, int]:
    """Start a pipeline over the integers start..finish, both inclusive.

    The range is empty when start > finish.
    """
    return Pipeline(stages.identity, RangeSource(start, finish))


def from_source(data: Any) -> Pipeline:
    """Start a pipeline over data, choosing the adapter from its type.

    Strings are enumerated by character, cursors by record, lists and
    tuples as arrays and any other iterable as an iterable.

    Raises:
        TypeError: if data is none of the supported kinds
    """
    if isinstance(data, str):
        return from_string(data)
    if isinstance(data, AbstractCursor):
        return from_cursor(data)
    if isinstance(data, (list, tuple)):
        return from_array(data)
    if isinstance(data, abc.Iterable):
        return from_iterable(data)
    raise TypeError(f"Cannot create a pipeline from {type(data).__name__}")
