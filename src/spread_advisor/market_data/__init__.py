from .retry_policy import RetryPolicy, FixedDelayRetryPolicy, ImmediateRetryPolicy
from .book_synchronizer import BookSynchronizer, SyncState, SyncStatus
from .fallback_poller import FallbackPoller
from .feed_supervisor import FeedSupervisor, FeedEvent, FeedEventType, start_feed

__all__ = [
    "RetryPolicy",
    "FixedDelayRetryPolicy",
    "ImmediateRetryPolicy",
    "BookSynchronizer",
    "SyncState",
    "SyncStatus",
    "FallbackPoller",
    "FeedSupervisor",
    "FeedEvent",
    "FeedEventType",
    "start_feed",
]
