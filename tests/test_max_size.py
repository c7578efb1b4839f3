import logging

import pytest

from apps.option_query.config import QuerySettings
from apps.option_query.constants import INT64_MAX, MAX_POSITION_SIZE, SIZING_LADDER
from apps.option_query.errors import (
    ExceedsMaximumSizeError,
    InvalidNotional,
    InvalidPositionError,
    NonConvergentError,
    Ok,
    OracleError,
    OtherFailure,
)
from apps.option_query.max_size import bracket_step_caps, max_position_size, solve_ladder_entry

from tests.fakes import FakeMath, FakePool, FakeTracker, constant_margin, linear_required


@pytest.mark.parametrize("slope,budget", [(1, 1_000), (2, 500_000), (3, 999_999), (7, 10**12)])
def test_bisection_lands_within_epsilon_of_root(settings, slope, budget):
    size = solve_ladder_entry(lambda s: Ok(slope * s), budget, settings)
    root = budget / slope
    assert abs(size - root) <= settings.EPSILON


def test_exact_root_on_first_midpoint_stops_early(settings):
    calls = []

    def requirement(size):
        calls.append(size)
        return Ok(size)

    # first midpoint of [1, INT64_MAX] is 2**62, which is the exact root
    size = solve_ladder_entry(requirement, 2**62, settings)
    assert size == 2**62
    assert calls == [1, INT64_MAX, 2**62]


def test_bracket_caps_cover_whole_range(settings):
    shrink_cap, grow_cap = bracket_step_caps(settings)
    slack = settings.BRACKET_SLACK_STEPS
    assert INT64_MAX * 0.95 ** (shrink_cap - slack) <= 1
    assert INT64_MAX * 1.1 ** (grow_cap - slack) >= MAX_POSITION_SIZE


@pytest.mark.parametrize("cap", [10**15, 10**9, 10**7, 10**5, 10**3])
def test_invalid_notional_shrinks_bracket_to_small_caps(settings, cap):
    def requirement(size):
        if size > cap:
            return InvalidNotional("too large")
        return Ok(2 * size)

    size = solve_ladder_entry(requirement, 1_000, settings)
    assert abs(size - 500) <= settings.EPSILON


@pytest.mark.parametrize("cap", [10**15, 10**7, 10**6])
def test_invalid_notional_shrinks_bracket_above_flat_floor(settings, cap):
    floor = 1_000

    def requirement(size):
        if size > cap:
            return InvalidNotional("too large")
        return Ok(max(size - floor, 0) * 2)

    size = solve_ladder_entry(requirement, 1_000_000, settings)
    assert abs(size - (floor + 500_000)) <= settings.EPSILON


def test_bracket_grows_past_int64_max(settings):
    seen_sizes = []

    def requirement(size):
        seen_sizes.append(size)
        return Ok(size)

    size = solve_ladder_entry(requirement, 10**20, settings)
    assert abs(size - 10**20) <= settings.EPSILON
    assert max(seen_sizes) > INT64_MAX


def test_no_sign_change_exceeds_maximum_size(settings):
    with pytest.raises(ExceedsMaximumSizeError) as exc:
        solve_ladder_entry(lambda s: Ok(0), 1_000, settings, ladder_index=3)
    assert exc.value.ladder_index == 3


def test_unaffordable_minimum_exceeds_maximum_size(settings):
    # f < 0 everywhere: even size 1 needs more than the budget
    with pytest.raises(ExceedsMaximumSizeError):
        solve_ladder_entry(lambda s: Ok(10 + s), 5, settings)


def test_oscillating_bracket_is_bounded(settings):
    # requirement is flat below the cap and invalid above: grow and shrink forever
    def requirement(size):
        if size > 10**15:
            return InvalidNotional("too large")
        return Ok(0)

    with pytest.raises(NonConvergentError):
        solve_ladder_entry(requirement, 1_000, settings)


def test_always_invalid_notional_is_invalid_position():
    settings = QuerySettings(_env_file=None, SHRINK_PCT=50)
    with pytest.raises(InvalidPositionError):
        solve_ladder_entry(lambda s: InvalidNotional("never valid"), 1_000, settings)


def test_other_failure_is_fatal(settings):
    err = OracleError("oracle down")
    with pytest.raises(InvalidPositionError) as exc:
        solve_ladder_entry(lambda s: OtherFailure("oracle down", err), 1_000, settings, ladder_index=0)
    assert exc.value.__cause__ is err
    assert "ladder_index=0" in str(exc.value)


def test_invalid_notional_inside_bracket_is_fatal(settings):
    # the root at 100_000 sits inside a band the oracle rejects
    def requirement(size):
        if 100 < size < 10**6:
            return InvalidNotional("gap")
        return Ok(size)

    with pytest.raises(InvalidPositionError):
        solve_ladder_entry(requirement, 10**5, settings)


def test_bisection_cap_raises_non_convergent():
    settings = QuerySettings(_env_file=None, MAX_BISECTION_STEPS=3)
    with pytest.raises(NonConvergentError):
        solve_ladder_entry(lambda s: Ok(s), 10**9, settings)


def _linear_pool(balance, slope, required=0):
    tracker0 = FakeTracker(required=linear_required(slope), margin=constant_margin(balance, required))
    return FakePool(tracker0=tracker0)


def test_fifty_percent_of_million_headroom(settings, call_position):
    pool = _linear_pool(1_000_000, 2)
    sizes = max_position_size(pool, FakeMath(), "0xabc", [], call_position, 0, 0, 10_000, settings)
    assert len(sizes) == len(SIZING_LADDER)
    assert abs(sizes[SIZING_LADDER.index(50)] - 250_000) <= settings.EPSILON


def test_ladder_is_monotone(settings, call_position):
    pool = _linear_pool(1_000_000, 2)
    sizes = max_position_size(pool, FakeMath(), "0xabc", [], call_position, 0, 0, 10_000, settings)
    assert list(sizes) == sorted(sizes)
    for pct, size in zip(SIZING_LADDER, sizes):
        assert abs(size - 5_000 * pct) <= settings.EPSILON


def test_maintenance_margin_reduces_headroom(settings, call_position):
    # balance 1_000_000, required 400_000 at 150 % -> headroom 400_000
    pool = _linear_pool(1_000_000, 1, required=400_000)
    sizes = max_position_size(pool, FakeMath(), "0xabc", [], call_position, 0, 0, 15_000, settings)
    assert abs(sizes[-1] - 400_000) <= settings.EPSILON


def test_oracle_failure_aborts_whole_ladder(settings, call_position):
    def broken(position, size, tick, utilization):
        raise OracleError("stale price")

    tracker0 = FakeTracker(required=broken, margin=constant_margin(1_000_000))
    pool = FakePool(tracker0=tracker0)
    with pytest.raises(InvalidPositionError) as exc:
        max_position_size(pool, FakeMath(), "0xabc", [], call_position, 0, 0, 10_000, settings)
    assert exc.value.ladder_index == 0


def test_non_monotone_ladder_is_logged(settings, monkeypatch, caplog):
    sizes = iter([10, 50, 40, 60, 70, 80, 90])
    monkeypatch.setattr(
        "apps.option_query.max_size.solve_ladder_entry",
        lambda requirement, budget, settings, ladder_index: next(sizes),
    )
    pool = _linear_pool(1_000_000, 1)
    with caplog.at_level(logging.WARNING, logger="apps.option_query.max_size"):
        result = max_position_size(pool, FakeMath(), "0xabc", [], None, 0, 0, 10_000, settings)
    assert result == (10, 50, 40, 60, 70, 80, 90)
    assert "not monotone" in caplog.text
