from herd.pacing import DelayPolicy, ExponentialBackoff


def test_delay_policy_sleeps_for_configured_delay() -> None:
    waits = []

    DelayPolicy(0.1).pause(waits.append)

    assert waits == [0.1]


def test_zero_delay_does_not_sleep() -> None:
    waits = []

    DelayPolicy().pause(waits.append)

    assert waits == []


def test_backoff_grows_by_multiplier() -> None:
    backoff = ExponentialBackoff(initial_seconds=1.0, multiplier=3.0)

    assert [backoff.delay_for(attempt) for attempt in (1, 2, 3)] == [1.0, 3.0, 9.0]
    assert list(backoff.schedule(1)) == []
