"""Tests for availability freshness and the stale-opening check."""

from datetime import timedelta

import pytest

from placement_matching.domain.freshness import (
    calculate_freshness_score,
    find_stale_openings,
    hours_since,
)
from placement_matching.domain.matching_config import FreshnessBand, RankingPolicy
from tests.support.builders import AS_OF, make_opening


def _confirmed(hours: float):
    return make_opening(last_confirmed_at=AS_OF - timedelta(hours=hours))


@pytest.mark.parametrize(
    ("hours", "expected"),
    [
        (0, 1.0),
        (12, 1.0),
        (13, 0.9),
        (24, 0.9),
        (30, 0.8),
        (40, 0.7),
        (48, 0.7),
        (48.9, 0.7),
        (49, 0.0),
        (500, 0.0),
    ],
)
def test_freshness_bands(hours: float, expected: float) -> None:
    assert calculate_freshness_score(_confirmed(hours), as_of=AS_OF) == expected


def test_never_confirmed_opening_gets_neutral_freshness() -> None:
    opening = make_opening(last_confirmed_at=None)

    assert calculate_freshness_score(opening, as_of=AS_OF) == 0.5


def test_custom_bands_move_the_stale_cut_off() -> None:
    policy = RankingPolicy(
        freshness_bands=(FreshnessBand(max_hours=6, score=1.0), FreshnessBand(max_hours=24, score=0.6))
    )

    assert policy.stale_after_hours == 24
    assert calculate_freshness_score(_confirmed(10), as_of=AS_OF, policy=policy) == 0.6
    assert calculate_freshness_score(_confirmed(30), as_of=AS_OF, policy=policy) == 0.0


def test_hours_since_truncates() -> None:
    assert hours_since(AS_OF - timedelta(hours=5, minutes=59), AS_OF) == 5


def test_find_stale_openings_reports_reasons_sorted_by_id() -> None:
    openings = [
        make_opening("op-z", last_confirmed_at=AS_OF - timedelta(hours=50)),
        make_opening(
            "op-a",
            last_confirmed_at=None,
            created_at=AS_OF - timedelta(hours=72),
        ),
        make_opening("op-fresh", last_confirmed_at=AS_OF - timedelta(hours=47)),
        make_opening(
            "op-inactive",
            status="inactive",
            last_confirmed_at=AS_OF - timedelta(hours=100),
        ),
        make_opening("op-new", last_confirmed_at=None, created_at=AS_OF - timedelta(hours=3)),
        make_opening("op-unknown", last_confirmed_at=None, created_at=None),
    ]

    stale = find_stale_openings(openings, as_of=AS_OF)

    assert [(item.opening_id, item.reason) for item in stale] == [
        ("op-a", "Stale: never confirmed since creation 72 hours ago"),
        ("op-z", "Stale: not confirmed in 48 hours"),
    ]
    assert stale[0].hours_since_confirmation is None
    assert stale[0].hours_since_creation == 72
    assert stale[1].hours_since_confirmation == 50


def test_find_stale_openings_respects_window() -> None:
    openings = [make_opening("op-1", last_confirmed_at=AS_OF - timedelta(hours=30))]

    assert find_stale_openings(openings, as_of=AS_OF) == []
    assert [item.opening_id for item in find_stale_openings(openings, as_of=AS_OF, max_age_hours=24)] == [
        "op-1"
    ]


def test_naive_times_are_read_as_utc() -> None:
    naive_as_of = AS_OF.replace(tzinfo=None)

    assert hours_since(AS_OF - timedelta(hours=30), naive_as_of) == 30
    assert hours_since(naive_as_of - timedelta(hours=30), AS_OF) == 30
    assert calculate_freshness_score(_confirmed(20), as_of=naive_as_of) == 0.9


def test_find_stale_openings_accepts_naive_reference_time() -> None:
    openings = [make_opening("op-1", last_confirmed_at=AS_OF - timedelta(hours=60))]

    stale = find_stale_openings(openings, as_of=AS_OF.replace(tzinfo=None))

    assert [item.hours_since_confirmation for item in stale] == [60]
