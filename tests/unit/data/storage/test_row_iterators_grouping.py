"""
Tests for GroupingRowIterator: one aggregate per run of equal adjacent keys.
"""

from itertools import groupby

import pytest

from data.base import DataAccessError, ExhaustedError
from data.storage.row_iterators import GroupingRowIterator, IteratorState, PullStatus
from tests.shared_stubs import FakeCursorSource, InjectedReadError

QUERY = "SELECT user_id, item_id, preference FROM taste_preferences ORDER BY user_id"


def _key_and_value(row):
    return row[0], row[1]


def _aggregate(key, values):
    return key, list(values)


def _grouping(source, **kwargs):
    return GroupingRowIterator(source, QUERY, _key_and_value, _aggregate, **kwargs)


class TestGroupingScenarios:
    """Test aggregation of pre-sorted rows"""

    def test_two_runs_then_exhausted(self):
        """[(A,1),(A,2),(B,3)] yields aggregate(A,[1,2]) then aggregate(B,[3])"""
        source = FakeCursorSource([("A", 1), ("A", 2), ("B", 3)])
        it = _grouping(source)

        assert it.next() == ("A", [1, 2])
        assert it.next() == ("B", [3])
        with pytest.raises(ExhaustedError):
            it.next()
        assert source.close_calls == 1

    def test_has_next_next_protocol(self):
        """has_next() stays True until the last group has been returned"""
        source = FakeCursorSource([("A", 1), ("A", 2), ("B", 3)])
        it = _grouping(source)
        groups = []

        while it.has_next():
            groups.append(it.next())

        assert groups == [("A", [1, 2]), ("B", [3])]
        assert it.has_next() is False
        assert source.close_calls == 1

    @pytest.mark.parametrize(
        "rows",
        [
            [("A", 1)],
            [("A", 1), ("B", 2), ("C", 3)],
            [("A", 1), ("A", 2), ("A", 3), ("A", 4)],
            [("A", 3), ("A", 1), ("B", 9), ("B", 8), ("B", 7), ("C", 0)],
            [(1, "x"), (1, "y"), (2, "z"), (3, "w"), (3, "v")],
        ],
        ids=["single-row", "all-distinct", "one-run", "mixed-runs", "int-keys"],
    )
    def test_one_aggregate_per_maximal_run(self, rows):
        """Groups match maximal runs and keep source order inside each run"""
        source = FakeCursorSource(rows)
        expected = [(key, [value for _, value in run]) for key, run in groupby(rows, key=lambda r: r[0])]

        assert list(_grouping(source)) == expected
        assert source.close_calls == 1

    def test_unsorted_keys_repeat_groups(self):
        """A key reappearing after another run forms a separate aggregate"""
        source = FakeCursorSource([("A", 1), ("B", 2), ("A", 3)])

        assert list(_grouping(source)) == [("A", [1]), ("B", [2]), ("A", [3])]

    def test_none_is_a_valid_group_key(self):
        """Rows keyed by None group together like any other value"""
        source = FakeCursorSource([(None, 1), (None, 2), ("A", 3)])

        assert list(_grouping(source)) == [(None, [1, 2]), ("A", [3])]

    def test_empty_cursor(self):
        """Zero rows: no groups, has_next() False, resources released"""
        source = FakeCursorSource([])
        it = _grouping(source)

        assert it.has_next() is False
        assert source.close_calls == 1
        with pytest.raises(ExhaustedError):
            it.next()


class TestGroupingLookahead:
    """Test the single-slot pushback buffer"""

    def test_boundary_row_is_held_not_reread(self):
        """The first row of the next run is read once and served from the slot"""
        source = FakeCursorSource([("A", 1), ("A", 2), ("B", 3), ("B", 4)])
        it = _grouping(source)

        assert it.next() == ("A", [1, 2])
        assert source.handle.pulls == 3

        assert it.has_next() is True
        assert source.handle.pulls == 3

        assert it.next() == ("B", [3, 4])
        assert source.handle.pulls == 5

    def test_cursor_released_once_last_group_is_read(self):
        """Reaching end of data inside next() releases before returning the last group"""
        source = FakeCursorSource([("A", 1), ("B", 2)])
        it = _grouping(source)
        it.next()

        assert it.next() == ("B", [2])

        assert it.state is IteratorState.CLOSED
        assert source.close_calls == 1

    def test_never_rewinds_handle(self):
        """Grouping works over a strictly forward-only handle"""
        source = FakeCursorSource([("A", 1), ("B", 2), ("B", 3), ("C", 4)])

        result = list(_grouping(source))

        assert result == [("A", [1]), ("B", [2, 3]), ("C", [4])]
        assert source.handle.pulls == 5


class TestGroupingFailures:
    """Test read and mapping failures mid-stream"""

    def test_read_failure_on_second_pull(self):
        """Failure on the 2nd pull inside next(): DataAccessError, then has_next() False"""
        source = FakeCursorSource([("A", 1), ("A", 2), ("B", 3)], fail_on_pull=2)
        it = _grouping(source)

        with pytest.raises(DataAccessError) as excinfo:
            it.next()

        assert isinstance(excinfo.value.__cause__, InjectedReadError)
        assert it.has_next() is False
        assert source.close_calls == 1

    def test_read_failure_after_has_next(self):
        """Same failure when has_next() performed the first pull"""
        source = FakeCursorSource([("A", 1), ("A", 2)], fail_on_pull=2)
        it = _grouping(source)
        assert it.has_next() is True

        with pytest.raises(DataAccessError):
            it.next()

        assert it.has_next() is False
        assert source.close_calls == 1

    def test_failure_surfacing_in_has_next_ends_stream(self):
        """A pull failure hit by has_next() is reported as no more groups"""
        source = FakeCursorSource([("A", 1), ("B", 2)], fail_on_pull=1)
        it = _grouping(source)

        assert it.has_next() is False
        assert source.close_calls == 1
        with pytest.raises(ExhaustedError):
            it.next()

    def test_poll_after_failure_in_next(self):
        """Once next() has failed, poll() reports EXHAUSTED without pulling again"""
        source = FakeCursorSource([("A", 1), ("B", 2), ("C", 3)], fail_on_pull=3)
        it = _grouping(source)
        assert it.next() == ("A", [1])

        # B waits in the slot; the failing pull happens inside next()
        with pytest.raises(DataAccessError):
            it.next()

        assert it.poll().status is PullStatus.EXHAUSTED
        assert source.handle.pulls == 3
        assert source.close_calls == 1

    def test_poll_surfaces_failure_before_first_group(self):
        """poll() returns FAILED where has_next() would return False"""
        source = FakeCursorSource([("A", 1)], fail_on_pull=1)
        it = _grouping(source)

        result = it.poll()

        assert result.status is PullStatus.FAILED
        assert isinstance(result.error.__cause__, InjectedReadError)

    def test_key_extraction_failure(self):
        """A failing key_and_sub_item releases and raises DataAccessError"""

        def bad_key(row):
            raise KeyError("user_id")

        source = FakeCursorSource([("A", 1)])
        it = GroupingRowIterator(source, QUERY, bad_key, _aggregate)

        with pytest.raises(DataAccessError) as excinfo:
            it.next()

        assert isinstance(excinfo.value.__cause__, KeyError)
        assert source.close_calls == 1

    def test_aggregate_failure(self):
        """A failing build_aggregate releases and raises DataAccessError"""

        def bad_aggregate(key, values):
            raise ValueError("cannot build")

        source = FakeCursorSource([("A", 1), ("B", 2)])
        it = GroupingRowIterator(source, QUERY, _key_and_value, bad_aggregate)

        with pytest.raises(DataAccessError):
            it.next()

        assert it.has_next() is False
        assert source.close_calls == 1

    def test_drain_sees_clean_end_or_error_never_both(self):
        """A failing stream ends with DataAccessError and no further elements"""
        source = FakeCursorSource([("A", 1), ("B", 2), ("B", 3)], fail_on_pull=3)
        it = _grouping(source)
        produced = []

        with pytest.raises(DataAccessError):
            for group in it:
                produced.append(group)

        assert produced == [("A", [1])]
        assert list(it) == []
        assert source.close_calls == 1


class TestGroupingTermination:
    """Test exactly-once release on early abandonment"""

    def test_close_mid_stream(self):
        """Closing with a pending boundary row releases once and discards it"""
        source = FakeCursorSource([("A", 1), ("B", 2)])
        it = _grouping(source)
        it.next()

        it.close()
        it.close()

        assert source.close_calls == 1
        with pytest.raises(ExhaustedError):
            it.next()

    def test_context_manager(self):
        """with-block exit releases an undrained stream"""
        source = FakeCursorSource([("A", 1), ("B", 2), ("C", 3)])

        with _grouping(source) as it:
            assert it.next() == ("A", [1])

        assert source.close_calls == 1

    def test_iter_strict_yields_groups(self):
        """iter_strict() yields the same aggregates on a healthy cursor"""
        source = FakeCursorSource([("A", 1), ("A", 2), ("B", 3)])

        assert list(_grouping(source).iter_strict()) == [("A", [1, 2]), ("B", [3])]
        assert source.close_calls == 1
