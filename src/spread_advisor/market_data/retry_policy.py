from abc import ABC, abstractmethod

from spread_advisor.config.structs import FeedConfig


class RetryPolicy(ABC):
    """Delay source for the feed's reconnect, snapshot retry and poll timers."""

    @abstractmethod
    def reconnect_delay(self, attempt: int) -> float:
        """Seconds to wait before reconnect attempt ``attempt`` (1-based)."""
        pass

    @abstractmethod
    def snapshot_retry_delay(self, attempt: int) -> float:
        """Seconds to wait before retrying a failed snapshot fetch."""
        pass

    @abstractmethod
    def poll_interval(self) -> float:
        """Seconds between fallback polls."""
        pass


class FixedDelayRetryPolicy(RetryPolicy):
    """Constant delays, retried forever: no backoff, no jitter, no cap."""

    def __init__(self, reconnect: float = 5.0, snapshot_retry: float = 5.0, poll: float = 2.0):
        self._reconnect = reconnect
        self._snapshot_retry = snapshot_retry
        self._poll = poll

    @classmethod
    def from_config(cls, config: FeedConfig) -> "FixedDelayRetryPolicy":
        return cls(
            reconnect=config.reconnect_delay,
            snapshot_retry=config.snapshot_retry_delay,
            poll=config.fallback.poll_interval,
        )

    def reconnect_delay(self, attempt: int) -> float:
        return self._reconnect

    def snapshot_retry_delay(self, attempt: int) -> float:
        return self._snapshot_retry

    def poll_interval(self) -> float:
        return self._poll


class ImmediateRetryPolicy(FixedDelayRetryPolicy):
    """Zero delays for deterministic tests."""

    def __init__(self):
        super().__init__(reconnect=0.0, snapshot_retry=0.0, poll=0.0)
