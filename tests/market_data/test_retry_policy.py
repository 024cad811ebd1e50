from spread_advisor.config import FeedConfig, FallbackConfig
from spread_advisor.market_data import FixedDelayRetryPolicy, ImmediateRetryPolicy


class TestRetryPolicies:

    def test_fixed_delays_ignore_attempt(self):
        policy = FixedDelayRetryPolicy(reconnect=3.0, snapshot_retry=4.0, poll=1.0)
        assert [policy.reconnect_delay(n) for n in (1, 2, 50)] == [3.0, 3.0, 3.0]
        assert policy.snapshot_retry_delay(7) == 4.0
        assert policy.poll_interval() == 1.0

    def test_from_config(self):
        config = FeedConfig(reconnect_delay=1.0, snapshot_retry_delay=2.0,
                            fallback=FallbackConfig(poll_interval=0.5))
        policy = FixedDelayRetryPolicy.from_config(config)

        assert policy.reconnect_delay(1) == 1.0
        assert policy.snapshot_retry_delay(1) == 2.0
        assert policy.poll_interval() == 0.5

    def test_immediate(self):
        policy = ImmediateRetryPolicy()
        assert policy.reconnect_delay(1) == policy.snapshot_retry_delay(1) == policy.poll_interval() == 0.0
