"""Unit tests for backoff_policy.py - Capped exponential delays."""

import pytest

from backoff_policy import BackoffPolicy


class TestBackoffPolicy:
    """Tests for BackoffPolicy."""

    def test_default_values(self):
        policy = BackoffPolicy()
        assert policy.initial_delay == 1.0
        assert policy.max_delay == 10.0
        assert policy.settle_delay == 0.0

    def test_next_delay_doubles(self):
        policy = BackoffPolicy(initial_delay=1.0, max_delay=10.0)
        assert policy.next_delay(1.0) == 2.0
        assert policy.next_delay(4.0) == 8.0

    def test_next_delay_capped(self):
        policy = BackoffPolicy(initial_delay=1.0, max_delay=10.0)
        assert policy.next_delay(8.0) == 10.0
        assert policy.next_delay(10.0) == 10.0

    def test_initial_clamped_to_cap(self):
        policy = BackoffPolicy(initial_delay=30.0, max_delay=10.0)
        assert policy.initial() == 10.0

    def test_credential_schedule(self):
        policy = BackoffPolicy(initial_delay=1.0, max_delay=10.0)
        assert list(policy.delays(5)) == [1.0, 2.0, 4.0, 8.0]

    def test_model_schedule(self):
        policy = BackoffPolicy(initial_delay=0.5, max_delay=10.0, settle_delay=0.2)
        assert list(policy.delays(8)) == [0.5, 1.0, 2.0, 4.0, 8.0, 10.0, 10.0]
        assert policy.worst_case(8) == pytest.approx(35.7)

    @pytest.mark.parametrize("attempts", [1, 2, 3, 8, 20])
    def test_one_sleep_fewer_than_attempts(self, attempts):
        policy = BackoffPolicy(initial_delay=0.5, max_delay=10.0)
        assert len(list(policy.delays(attempts))) == attempts - 1

    def test_delays_monotonic_and_capped(self):
        policy = BackoffPolicy(initial_delay=0.3, max_delay=7.0)
        delays = list(policy.delays(15))
        assert all(d <= 7.0 for d in delays)
        assert all(a <= b for a, b in zip(delays, delays[1:]))

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            list(BackoffPolicy().delays(0))

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            BackoffPolicy(initial_delay=-1.0)
