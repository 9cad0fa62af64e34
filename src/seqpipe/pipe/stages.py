"""Stage composition for pipelines.

A stage function ("transform") maps the Value wrapping a raw source element
to the Value produced by the last stage of the pipeline.  Each function in
this module takes an existing transform and returns a new one that applies
one more operation to the output of the old one.  No intermediate results
are buffered; the composed function is evaluated once per source element.

All composed transforms follow the same rules:
    - START is passed through unchanged after the stage resets its own state.
    - STOP from upstream is returned without running the new operation.
    - SUPPRESSED from upstream is returned unchanged.
    - PRODUCED from upstream gets the semantics of the new operation.

The sinks at the bottom of the module turn a transform into the stop
predicate handed to a source driver by the terminal evaluators.
"""
from typing import Any, Callable, List, TypeVar
from seqpipe.pipe.value import Value, ValueState

T = TypeVar('T')
U = TypeVar('U')
R = TypeVar('R')

ValueFunc = Callable[[Value[T]], Value[U]]
StopPredicate = Callable[[T], bool]


def identity(item: Value[T]) -> Value[T]:
    """The transform of a pipeline with no stages."""
    return item


def filter_func(func: ValueFunc, predicate: Callable[[U], bool]) -> ValueFunc:
    """Suppress produced values for which predicate is false."""
    def composed(item):
        result = func(item)
        if result.is_produced() and not predicate(result.value):
            return Value.suppressed()
        return result
    return composed


def map_func(func: ValueFunc, mapper: Callable[[U], R]) -> ValueFunc:
    """Replace each produced value with mapper(value)."""
    def composed(item):
        result = func(item)
        if result.is_produced():
            return Value.produced(mapper(result.value))
        return result
    return composed


def take_func(func: ValueFunc, count: int) -> ValueFunc:
    """Pass through the first count produced values, then stop.

    The element following the last taken value receives STOP without the
    upstream transform being evaluated for it.  With count == 0 the very
    first element stops the pass.
    """
    taken = 0

    def composed(item):
        nonlocal taken
        if item.state is ValueState.START:
            taken = 0
            return func(item)
        if taken >= count:
            return Value.stop()
        result = func(item)
        if result.is_produced():
            taken += 1
        return result
    return composed


def skip_func(func: ValueFunc, count: int) -> ValueFunc:
    """Suppress the first count produced values."""
    skipped = 0

    def composed(item):
        nonlocal skipped
        result = func(item)
        if result.state is ValueState.START:
            skipped = 0
        elif result.is_produced() and skipped < count:
            skipped += 1
            return Value.suppressed()
        return result
    return composed


def take_while_func(func: ValueFunc, predicate: Callable[[U], bool]) -> ValueFunc:
    """Stop at the first produced value for which predicate is false."""
    def composed(item):
        result = func(item)
        if result.is_produced() and not predicate(result.value):
            return Value.stop()
        return result
    return composed


def skip_while_func(func: ValueFunc, predicate: Callable[[U], bool]) -> ValueFunc:
    """Suppress produced values until predicate is false for the first time."""
    skipping = True

    def composed(item):
        nonlocal skipping
        result = func(item)
        if result.state is ValueState.START:
            skipping = True
        elif skipping and result.is_produced():
            if predicate(result.value):
                return Value.suppressed()
            skipping = False
        return result
    return composed


def consume(result: Value[U], on_produced: Callable[[U], Any]) -> bool:
    """React to the final value of a transform.

    Calls on_produced for a produced value.  Returns True when the driver
    must stop and False when it should continue with the next element.

    Raises:
        RuntimeError: if the value is in any other state.  This can only
            happen if a stage function broke the composition rules.
    """
    state = result.state
    if state is ValueState.PRODUCED:
        on_produced(result.value)
        return False
    if state is ValueState.SUPPRESSED:
        return False
    if state is ValueState.STOP:
        return True
    raise RuntimeError(f"Unexpected value state reached a pipeline sink: {state}")


def for_each_sink(func: ValueFunc, action: Callable[[U], Any]) -> StopPredicate:
    """Build a stop predicate that runs action on every produced value."""
    def stop_on(item):
        return consume(func(Value.produced(item)), action)
    return stop_on


def add_item_sink(func: ValueFunc, items: List[U]) -> StopPredicate:
    """Build a stop predicate that appends every produced value to items."""
    return for_each_sink(func, items.append)
