"""Hypothesis property-based tests.

Properties that must hold for all valid inputs, verified by random generation.
"""

from __future__ import annotations

from datetime import date, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import TODAY, FixedClock, make_engine, make_store


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------
_percentages = st.integers(min_value=0, max_value=100)
_any_percentage = st.integers(min_value=-50, max_value=200)
_day_offsets = st.integers(min_value=-400, max_value=400)

# One step of a random write sequence against eng-001.
_steps = st.one_of(
    st.tuples(st.just("allocate"), _any_percentage, _day_offsets),
    st.tuples(st.just("update"), _any_percentage, st.integers(min_value=0, max_value=20)),
    st.tuples(st.just("advance"), st.integers(min_value=0, max_value=60), st.just(0)),
)


def _iso(offset: int) -> str:
    return (TODAY + timedelta(days=offset)).isoformat()


# ---------------------------------------------------------------------------
# Property: ceiling invariant
# ---------------------------------------------------------------------------
class TestCeilingInvariant:

    @given(steps=st.lists(_steps, max_size=25))
    @settings(max_examples=60, deadline=None)
    def test_active_sum_never_exceeds_100(self, steps):
        """No sequence of allocate/update ever commits eng-001 past 100%,
        and every rejection leaves the stored collection unchanged."""
        clock = FixedClock()
        store = make_store(with_allocations=False)
        engine = make_engine(store, clock)
        created: list[str] = []

        for kind, a, b in steps:
            if kind == "advance":
                clock.advance(a)
                continue

            before = store.load_allocations()
            if kind == "allocate":
                result = engine.allocate("eng-001", "proj-001", a,
                                         _iso(-10), _iso(b))
                if result.ok:
                    created.append(result.payload.id)
            else:
                if not created:
                    continue
                result = engine.update(created[b % len(created)], percentage=a)

            if not result.ok:
                assert store.load_allocations() == before
            assert engine.active_capacity("eng-001") <= 100


# ---------------------------------------------------------------------------
# Property: activity monotonicity
# ---------------------------------------------------------------------------
class TestActivityMonotonicity:

    @given(end_offset=_day_offsets, eval_offset=_day_offsets)
    @settings(max_examples=100)
    def test_active_until_end_date(self, end_offset, eval_offset):
        """is_active(E, t) is exactly t <= E."""
        from allocation_engine.activity import is_active

        end = TODAY + timedelta(days=end_offset)
        when = TODAY + timedelta(days=eval_offset)
        assert is_active(end.isoformat(), when) is (when <= end)

    @given(end_offset=st.integers(min_value=0, max_value=400))
    @settings(max_examples=30)
    def test_transition_without_write(self, end_offset):
        """An allocation drops out of capacity the day after it ends."""
        clock = FixedClock()
        store = make_store(with_allocations=False)
        engine = make_engine(store, clock)
        engine.allocate("eng-001", "proj-001", 40, _iso(-1), _iso(end_offset))
        saves = store.save_count

        clock.advance(end_offset)
        assert engine.active_capacity("eng-001") == 40
        clock.advance(1)
        assert engine.active_capacity("eng-001") == 0
        assert store.save_count == saves


# ---------------------------------------------------------------------------
# Property: bench transition
# ---------------------------------------------------------------------------
class TestBenchProperties:

    @given(percentages=st.lists(st.integers(min_value=1, max_value=25), max_size=4))
    @settings(max_examples=30)
    def test_bench_empties_and_preserves(self, percentages):
        store = make_store(with_allocations=False)
        engine = make_engine(store)
        for pct in percentages:
            assert engine.allocate("eng-001", "proj-002", pct, _iso(-5), _iso(30)).ok

        result = engine.end_allocations("eng-001")
        assert result.count == len(percentages)
        assert engine.active_capacity("eng-001") == 0
        assert len(engine.history_for_engineer("eng-001")) == len(percentages)

        again = engine.end_allocations("eng-001")
        assert again.ok and again.count == 0

    @given(percentage=_percentages)
    @settings(max_examples=30)
    def test_allocation_fits_iff_room(self, percentage):
        """eng-003 has 60% committed; a request fits exactly when it is <= 40."""
        engine = make_engine()
        result = engine.allocate("eng-003", "proj-003", percentage, _iso(0), _iso(10))
        assert result.ok is (percentage <= 40)


# ---------------------------------------------------------------------------
# Property: history order
# ---------------------------------------------------------------------------
class TestHistoryOrder:

    @given(starts=st.lists(_day_offsets, min_size=1, max_size=8))
    @settings(max_examples=30)
    def test_sorted_by_start(self, starts):
        store = make_store(with_allocations=False)
        engine = make_engine(store)
        for offset in starts:
            engine.allocate("eng-001", "proj-001", 0, _iso(offset), _iso(offset + 1))

        history = list(engine.history_for_engineer("eng-001"))
        seen = [date.fromisoformat(h.allocation.start_date) for h in history]
        assert seen == sorted(seen)
