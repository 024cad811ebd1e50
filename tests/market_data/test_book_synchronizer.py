"""
Unit tests for the sequence-checked local order book.
"""

from unittest.mock import Mock

import pytest

from spread_advisor.exchanges.structs import FeedSource
from spread_advisor.infrastructure.exceptions.market_data import MalformedSnapshotError
from spread_advisor.market_data import BookSynchronizer, SyncState, SyncStatus


@pytest.fixture
def on_update():
    return Mock()


@pytest.fixture
def book(market, on_update, logger):
    return BookSynchronizer(market, depth=25, max_pending=5, on_update=on_update,
                            clock=lambda: 1700000000.0, logger=logger)


class TestSnapshot:
    """Applying full snapshots"""

    def test_initial_state(self, book):
        assert book.state == SyncState.UNSYNCED
        assert not book.is_ready
        assert book.last_applied_sequence == 0
        assert book.bids == ()
        assert book.asks == ()
        assert book.build_tick() is None

    def test_snapshot_syncs_and_emits(self, book, on_update, snapshot_factory):
        status = book.apply_snapshot(snapshot_factory(100))

        assert status == SyncStatus.APPLIED
        assert book.is_ready
        assert book.last_applied_sequence == 100
        assert [level.price for level in book.bids] == [0.5, 0.499, 0.498]
        assert [level.price for level in book.asks] == [0.501, 0.502, 0.503]

        on_update.assert_called_once()
        tick = on_update.call_args[0][0]
        assert tick.bid == 0.5
        assert tick.ask == 0.501
        assert tick.source == FeedSource.WS
        assert tick.timestamp == 1700000000000

    def test_snapshot_sorts_unsorted_levels(self, book, snapshot_factory):
        book.apply_snapshot(snapshot_factory(1, bids=[["1", "1"], ["3", "1"], ["2", "1"]],
                                             asks=[["6", "1"], ["4", "1"], ["5", "1"]]))
        assert [level.price for level in book.bids] == [3.0, 2.0, 1.0]
        assert [level.price for level in book.asks] == [4.0, 5.0, 6.0]

    @pytest.mark.parametrize("nonce", [0, -5, None])
    def test_invalid_nonce_raises(self, book, snapshot_factory, nonce):
        with pytest.raises(MalformedSnapshotError):
            book.apply_snapshot(snapshot_factory(nonce))
        assert book.state == SyncState.UNSYNCED

    def test_empty_side_raises_and_keeps_state(self, book, on_update, snapshot_factory):
        book.apply_snapshot(snapshot_factory(100))
        on_update.reset_mock()

        with pytest.raises(MalformedSnapshotError):
            book.apply_snapshot(snapshot_factory(200, asks=[["abc", "1"], ["0.6", "0"]]))

        assert book.is_ready
        assert book.last_applied_sequence == 100
        assert book.asks[0].price == 0.501
        on_update.assert_not_called()

    def test_snapshot_replaces_book(self, book, snapshot_factory):
        book.apply_snapshot(snapshot_factory(100))
        book.apply_snapshot(snapshot_factory(300, bids=[["0.40", "1"]], asks=[["0.41", "1"]]))

        assert book.last_applied_sequence == 300
        assert [level.price for level in book.bids] == [0.4]
        assert [level.price for level in book.asks] == [0.41]

    def test_views_are_depth_capped(self, market, logger, snapshot_factory):
        book = BookSynchronizer(market, depth=2, logger=logger)
        book.apply_snapshot(snapshot_factory(1))
        assert len(book.bids) == 2
        assert len(book.asks) == 2


class TestDiffs:
    """Sequenced incremental updates"""

    def test_successor_applies(self, book, on_update, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(49))
        on_update.reset_mock()

        status = book.apply_diff(update_factory(50, bids=[["0.5005", "10"]]))

        assert status == SyncStatus.APPLIED
        assert book.last_applied_sequence == 50
        assert book.bids[0].price == 0.5005
        on_update.assert_called_once()

    def test_replayed_diff_is_duplicate(self, book, on_update, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(49))
        update = update_factory(50, bids=[["0.5005", "10"]])
        book.apply_diff(update)
        bids_before = book.bids
        on_update.reset_mock()

        assert book.apply_diff(update) == SyncStatus.DUPLICATE
        assert book.last_applied_sequence == 50
        assert book.bids == bids_before
        on_update.assert_not_called()
        assert book.logger.get_metrics()["book_duplicate_count"] == 1

    def test_zero_size_removes_level(self, book, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(1))
        book.apply_diff(update_factory(2, bids=[["0.5", "0"]], asks=[["0.5010", "-1"]]))

        assert book.bids[0].price == 0.499
        assert book.asks[0].price == 0.502

    def test_equivalent_price_strings_address_one_level(self, book, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(1))
        book.apply_diff(update_factory(2, bids=[["0.50", "42"]]))

        assert book.bids[0].price == 0.5
        assert book.bids[0].size == 42
        assert len(book.bids) == 3

    def test_invalid_levels_are_skipped(self, book, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(1))
        status = book.apply_diff(update_factory(2, bids=[["abc", "1"], ["-1", "5"], ["0.4995", "7"]]))

        assert status == SyncStatus.APPLIED
        assert [level.price for level in book.bids] == [0.5, 0.4995, 0.499, 0.498]

    def test_gap_resets_book(self, book, on_update, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(10))
        on_update.reset_mock()

        status = book.apply_diff(update_factory(12, bids=[["0.6", "1"]]))

        assert status == SyncStatus.GAP
        assert book.state == SyncState.UNSYNCED
        assert book.last_applied_sequence == 0
        assert book.bids == ()
        assert book.pending_count == 1
        on_update.assert_not_called()
        assert book.logger.get_metrics()["book_gap_count"] == 1

    @pytest.mark.parametrize("nonce", [0, -1])
    def test_non_positive_nonce_rejected(self, book, snapshot_factory, update_factory, nonce):
        book.apply_snapshot(snapshot_factory(10))
        assert book.apply_diff(update_factory(nonce)) == SyncStatus.REJECTED
        assert book.last_applied_sequence == 10

    def test_sequence_of_diffs(self, book, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(100))
        for offset in range(1, 11):
            price = f"0.{4900 - offset}"
            assert book.apply_diff(update_factory(100 + offset, bids=[[price, "1"]])) == SyncStatus.APPLIED

        assert book.last_applied_sequence == 110
        prices = [level.price for level in book.bids]
        assert prices == sorted(prices, reverse=True)
        assert all(level.size > 0 for level in book.bids + book.asks)


class TestPendingQueue:
    """Diffs received before the snapshot"""

    def test_diffs_queue_until_snapshot(self, book, on_update, update_factory):
        assert book.apply_diff(update_factory(101)) == SyncStatus.QUEUED
        assert book.pending_count == 1
        on_update.assert_not_called()

    def test_snapshot_replays_successors_and_drops_stale(self, book, on_update, snapshot_factory,
                                                         update_factory):
        book.apply_diff(update_factory(102, bids=[["0.5002", "2"]]))
        book.apply_diff(update_factory(99, bids=[["0.9", "1"]]))
        book.apply_diff(update_factory(101, bids=[["0.5001", "1"]]))

        status = book.apply_snapshot(snapshot_factory(100))

        assert status == SyncStatus.APPLIED
        assert book.last_applied_sequence == 102
        assert book.pending_count == 0
        assert book.bids[0].price == 0.5002
        assert all(level.price != 0.9 for level in book.bids)
        on_update.assert_called_once()

    def test_gap_in_queue_returns_gap(self, book, on_update, snapshot_factory, update_factory):
        book.apply_diff(update_factory(103))

        status = book.apply_snapshot(snapshot_factory(100))

        assert status == SyncStatus.GAP
        assert book.state == SyncState.UNSYNCED
        assert book.pending_count == 0
        on_update.assert_not_called()

    def test_queue_is_bounded(self, book, update_factory):
        for nonce in range(1, 9):
            book.apply_diff(update_factory(nonce))
        assert book.pending_count == 5

    def test_gap_update_replays_after_resync(self, book, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(10))
        book.apply_diff(update_factory(12, bids=[["0.5003", "1"]]))

        assert book.apply_snapshot(snapshot_factory(11)) == SyncStatus.APPLIED
        assert book.last_applied_sequence == 12
        assert book.bids[0].price == 0.5003


class TestReset:

    def test_reset_clears_everything(self, book, snapshot_factory, update_factory):
        book.apply_snapshot(snapshot_factory(10))
        book.reset("test")
        book.apply_diff(update_factory(20))
        book.reset("test")

        assert book.state == SyncState.UNSYNCED
        assert book.last_applied_sequence == 0
        assert book.pending_count == 0
        assert book.build_tick() is None

    def test_build_tick_with_source(self, book, snapshot_factory):
        book.apply_snapshot(snapshot_factory(10))
        tick = book.build_tick(FeedSource.POLL)

        assert tick.source == FeedSource.POLL
        assert tick.mid == pytest.approx(0.5005)
        assert tick.spread_abs == pytest.approx(0.001)
        assert tick.depth.bid_volume == 600
