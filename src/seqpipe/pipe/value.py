"""Sentinel values flowing between pipeline stages.

Every stage of a pipeline returns a Value.  The state of the value tells the
next stage (and finally the terminal evaluator) what happened to the element:
it was produced, it was suppressed, the pass is starting, or the whole
enumeration has to stop.
"""
from enum import Enum
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict

T = TypeVar('T')


class ValueState(Enum):
    """Lifecycle markers carried by a Value."""
    START = "start"
    PRODUCED = "produced"
    SUPPRESSED = "suppressed"
    STOP = "stop"


class Value(BaseModel, Generic[T]):
    """A tagged value passed from one pipeline stage to the next.

    Values are immutable.  Only values in the PRODUCED state carry a
    meaningful payload; for the other states `value` is always None.

    Examples:
        Value.produced(42).is_produced()    # True
        Value.suppressed().is_produced()    # False
        Value.stop().state                  # ValueState.STOP
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    state: ValueState
    value: Optional[T] = None

    @classmethod
    def start(cls) -> 'Value':
        """The marker sent once at the beginning of every pass."""
        return _START

    @classmethod
    def produced(cls, value: T) -> 'Value[T]':
        return cls(state=ValueState.PRODUCED, value=value)

    @classmethod
    def suppressed(cls) -> 'Value':
        return _SUPPRESSED

    @classmethod
    def stop(cls) -> 'Value':
        return _STOP

    def is_produced(self) -> bool:
        return self.state is ValueState.PRODUCED


_START = Value(state=ValueState.START)
_SUPPRESSED = Value(state=ValueState.SUPPRESSED)
_STOP = Value(state=ValueState.STOP)
