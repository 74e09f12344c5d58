import pytest

from remounter.services.share_monitor.backoff import backoff_delay


@pytest.mark.parametrize(
    "failures,expected",
    [(1, 5.0), (2, 10.0), (3, 20.0), (4, 40.0), (7, 300.0)],
)
def test_backoff_doubles_until_cap(failures, expected):
    assert backoff_delay(failures, base_delay=5, max_delay=300) == expected


def test_no_failures_means_no_delay():
    assert backoff_delay(0, base_delay=5, max_delay=300) == 0.0


def test_backoff_is_non_decreasing_and_capped():
    delays = [backoff_delay(n, base_delay=2.5, max_delay=120) for n in range(1, 200)]
    assert all(a <= b for a, b in zip(delays, delays[1:]))
    assert max(delays) == 120


def test_long_outage_does_not_overflow():
    assert backoff_delay(10_000, base_delay=5, max_delay=300) == 300
