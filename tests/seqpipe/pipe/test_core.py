import itertools
import pytest
from seqpipe.pipe.core import Pipeline, source
from seqpipe.pipe.sources import ArraySource, from_array, from_range, from_string
from seqpipe.pipe.stages import identity
from seqpipe.pipe.value import Value

even = lambda x: x % 2 == 0


def test_filter():
    assert from_range(1, 10).filter(even).to_list() == [2, 4, 6, 8, 10]
    assert from_range(1, 10).filter(lambda x: False).to_list() == []


def test_where_is_filter():
    data = from_array([5, 2, 8, 1, 4])
    assert data.where(lambda x: x > 3).to_list() == data.filter(lambda x: x > 3).to_list() == [5, 8, 4]


def test_map():
    data = from_array([1, 2, 3])
    assert data.map(lambda x: x * 10).to_list() == [10, 20, 30]
    assert data.map(str).to_list() == ["1", "2", "3"]


def test_select_is_map():
    data = from_string("abc")
    assert data.select(str.upper).to_list() == data.map(str.upper).to_list() == ["A", "B", "C"]


def test_map_composition():
    f = lambda x: x + 1
    g = lambda x: x * 3
    data = from_range(-3, 3)
    assert data.map(f).map(g).to_list() == data.map(lambda x: g(f(x))).to_list()


@pytest.mark.parametrize("n", [0, 1, 3, 5, 8])
def test_take(n):
    items = [10, 20, 30, 40, 50]
    result = from_array(items).take(n).to_list()
    assert len(result) == min(n, len(items))
    assert result == items[:n]


@pytest.mark.parametrize("n", [0, 1, 3, 5, 8])
def test_skip(n):
    items = [10, 20, 30, 40, 50]
    result = from_array(items).skip(n).to_list()
    assert len(result) == max(0, len(items) - n)
    assert result == items[n:]


def test_take_while_and_skip_while_split_at_first_failure():
    data = from_array([1, 2, 5, 1, 7])
    assert data.take_while(lambda x: x < 4).to_list() == [1, 2]
    assert data.skip_while(lambda x: x < 4).to_list() == [5, 1, 7]
    assert data.take_while(lambda x: x < 10).to_list() == [1, 2, 5, 1, 7]
    assert data.skip_while(lambda x: x < 10).to_list() == []


def test_take_zero_never_runs_the_stages(counting_pipeline):
    calls = []
    src, pipe = counting_pipeline([1, 2, 3])
    result = pipe.map(lambda x: calls.append(x) or x).take(0).to_list()
    assert result == []
    assert calls == []
    assert src.visited == [1]


def test_filter_then_take_stops_the_source(counting_pipeline):
    checked = []

    def is_even(x):
        checked.append(x)
        return even(x)

    src, pipe = counting_pipeline(list(range(1, 101)))
    assert pipe.filter(is_even).take(3).to_list() == [2, 4, 6]
    assert checked == [1, 2, 3, 4, 5, 6]
    # one more element is handed over, and immediately answered with STOP
    assert src.visited == [1, 2, 3, 4, 5, 6, 7]


def test_take_while_stops_the_source(counting_pipeline):
    src, pipe = counting_pipeline([1, 2, 3, 4, 5])
    assert pipe.take_while(lambda x: x < 3).to_list() == [1, 2]
    assert src.visited == [1, 2, 3]


def test_take_then_filter_counts_raw_elements():
    data = from_range(1, 100)
    assert data.take(4).filter(even).to_list() == [2, 4]
    assert data.filter(even).take(4).to_list() == [2, 4, 6, 8]


def test_chained_stages():
    result = (from_range(1, 50)
              .skip_while(lambda x: x < 5)
              .filter(lambda x: x % 3 == 0)
              .map(lambda x: x * x)
              .skip(1)
              .take_while(lambda x: x < 500)
              .take(3)
              .to_list())
    assert result == [81, 144, 225]


def test_combinators_do_not_mutate_the_receiver():
    base = from_array([1, 2, 3, 4])
    filtered = base.filter(even)
    taken = base.take(1)

    assert filtered is not base
    assert base.func is identity
    assert filtered.iterate is base.iterate
    assert base.to_list() == [1, 2, 3, 4]
    assert filtered.to_list() == [2, 4]
    assert taken.to_list() == [1]


def test_nested_evaluation_of_a_derived_pipeline():
    base = from_range(1, 3).take(2)
    derived = base.map(str)
    seen = []
    inner = []

    def visit(x):
        seen.append(x)
        inner.append(derived.to_list())

    base.for_each(visit)
    assert seen == [1, 2]
    assert inner == [["1", "2"], ["1", "2"]]


def test_nested_evaluation_of_the_same_pipeline():
    pipe = from_array([1, 2, 3, 4]).skip(1).take(2)
    inner = []
    assert pipe.fold(lambda v, acc: (inner.append(pipe.to_list()), acc + [v])[1], []) == [2, 3]
    assert inner == [[2, 3], [2, 3]]


def test_each_transform_has_its_own_counters():
    pipe = from_array([1, 2, 3]).take(1)
    first, second = pipe.func, pipe.func
    assert first is not second
    assert first(Value.produced(1)).value == 1
    assert second(Value.produced(1)).value == 1
    assert first(Value.produced(2)) is Value.stop()


def test_combinators_do_not_read_the_source(counting_pipeline):
    src, pipe = counting_pipeline([1, 2, 3])
    pipe.filter(even).map(str).take(1).skip(1).take_while(bool).skip_while(bool)
    assert src.passes == 0
    assert src.visited == []


def test_to_list_is_repeatable(counting_pipeline):
    src, pipe = counting_pipeline(list(range(10)))
    pipe = pipe.skip(2).skip_while(lambda x: x < 4).take(3)
    first = pipe.to_list()
    second = pipe.to_list()
    assert first == second == [4, 5, 6]
    assert src.passes == 2


def test_to_list_returns_a_new_list():
    pipe = from_array([1, 2])
    first = pipe.to_list()
    first.append(3)
    assert pipe.to_list() == [1, 2]


def test_for_each():
    seen = []
    from_string("hello world").filter(str.isalpha).take(7).for_each(seen.append)
    assert "".join(seen) == "hellowo"


def test_for_each_on_empty_source():
    seen = []
    from_array([]).take(2).for_each(seen.append)
    assert seen == []


def test_fold():
    assert from_array([1, 2, 3, 4]).fold(lambda v, acc: v + acc, 0) == 10
    assert from_array([]).fold(lambda v, acc: v + acc, 0) == 0
    assert from_array([]).fold(lambda v, acc: acc + [v], "initial") == "initial"


def test_fold_argument_order():
    assert from_array([1, 2, 3]).fold(lambda v, acc: acc + [v], []) == [1, 2, 3]
    assert from_string("abc").fold(lambda c, acc: c + acc, "") == "cba"


def test_fold_ignores_suppressed_and_stops(counting_pipeline):
    src, pipe = counting_pipeline(list(range(1, 20)))
    assert pipe.filter(even).take(3).fold(lambda v, acc: v + acc, 0) == 12
    assert src.visited == list(range(1, 8))


def test_fold_is_repeatable():
    pipe = from_range(1, 10).skip(8)
    assert pipe.fold(lambda v, acc: v + acc, 0) == 19
    assert pipe.fold(lambda v, acc: v + acc, 0) == 19


def test_terminal_evaluators_send_start_once():
    starts = []

    def recording(item):
        if not item.is_produced():
            starts.append(item.state)
        return item

    pipe = Pipeline(recording, ArraySource([1, 2]))
    pipe.to_list()
    pipe.for_each(lambda x: None)
    pipe.fold(lambda v, acc: acc, None)
    assert len(starts) == 3


def test_errors_propagate():
    with pytest.raises(ZeroDivisionError):
        from_array([1, 0]).map(lambda x: 1 / x).to_list()
    with pytest.raises(KeyError):
        from_array([{}]).filter(lambda d: d["missing"]).for_each(print)
    with pytest.raises(ValueError):
        from_array(["x"]).fold(lambda v, acc: int(v), 0)


def test_broken_stage_is_not_ignored():
    pipe = Pipeline(lambda item: Value.start(), ArraySource([1, 2]))
    with pytest.raises(RuntimeError, match="Unexpected value state"):
        pipe.to_list()


@pytest.mark.parametrize("count", [-1, -10])
def test_negative_counts_are_rejected(count):
    with pytest.raises(ValueError):
        from_array([1]).take(count)
    with pytest.raises(ValueError):
        from_array([1]).skip(count)


@pytest.mark.parametrize("count", ["3", 2.0, None, True])
def test_non_integer_counts_are_rejected(count):
    with pytest.raises(TypeError):
        from_array([1]).take(count)
    with pytest.raises(TypeError):
        from_array([1]).skip(count)


class TestSourceDecorator:

    def test_without_arguments(self):

        @source
        def letters():
            yield from "abc"

        pipe = letters()
        assert isinstance(pipe, Pipeline)
        assert pipe.map(str.upper).to_list() == ["A", "B", "C"]
        assert letters.__name__ == "letters"

    def test_with_default_arguments(self):

        @source(step=1)
        def counter(start, step):
            """Count up from start."""
            yield from itertools.count(start, step)

        assert counter(5).take(3).to_list() == [5, 6, 7]
        assert counter(5, step=10).take(2).to_list() == [5, 15]
        assert counter.__doc__ == "Count up from start."

    def test_generator_runs_lazily_and_per_pass(self):
        runs = []

        @source()
        def numbers():
            runs.append(True)
            yield from range(5)

        pipe = numbers().skip(1).take(2)
        assert runs == []
        assert pipe.to_list() == [1, 2]
        assert pipe.to_list() == [1, 2]
        assert len(runs) == 2

    def test_generator_is_closed_on_stop(self):
        closed = []

        @source
        def naturals():
            try:
                yield from itertools.count()
            finally:
                closed.append(True)

        assert naturals().take(3).to_list() == [0, 1, 2]
        assert closed == [True]
        assert naturals().take_while(lambda x: x < 2).fold(lambda v, acc: v + acc, 0) == 1
        assert closed == [True, True]

    def test_generator_is_closed_on_error(self):
        closed = []

        @source
        def naturals():
            try:
                yield from itertools.count()
            finally:
                closed.append(True)

        with pytest.raises(ZeroDivisionError):
            naturals().map(lambda x: 1 / (x - 2)).to_list()
        assert closed == [True]
