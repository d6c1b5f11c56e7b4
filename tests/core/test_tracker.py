"""Tests for the dedup tracker and operation gate."""

from autorip.core.status import LifecyclePhase
from autorip.core.tracker import DedupTracker, OperationGate
from autorip.disc.models import DiscRecord


class TestDedupTracker:
    """Test DedupTracker bookkeeping."""

    def test_starts_empty(self):
        tracker = DedupTracker()

        assert len(tracker) == 0
        assert tracker.snapshot() == {}

    def test_mark_records_drive_and_title(self):
        tracker = DedupTracker()
        tracker.mark([DiscRecord(0, "Movie A"), DiscRecord(1, "Movie B")])

        assert tracker.snapshot() == {0: "Movie A", 1: "Movie B"}
        assert 0 in tracker
        assert tracker.get(1) == "Movie B"

    def test_mark_overwrites_title_for_same_drive(self):
        tracker = DedupTracker()
        tracker.mark([DiscRecord(0, "Movie A")])
        tracker.mark([DiscRecord(0, "Movie B")])

        assert tracker.snapshot() == {0: "Movie B"}

    def test_prune_keeps_unchanged_drive(self):
        tracker = DedupTracker()
        tracker.mark([DiscRecord(0, "Movie A")])

        removed = tracker.prune({0: "Movie A"})

        assert removed == []
        assert tracker.snapshot() == {0: "Movie A"}

    def test_prune_forgets_empty_drive(self):
        tracker = DedupTracker()
        tracker.mark([DiscRecord(0, "Movie A"), DiscRecord(1, "Movie B")])

        removed = tracker.prune({1: "Movie B"})

        assert removed == [0]
        assert tracker.snapshot() == {1: "Movie B"}

    def test_prune_forgets_changed_title(self):
        tracker = DedupTracker()
        tracker.mark([DiscRecord(0, "Movie A")])

        removed = tracker.prune({0: "Movie B"})

        assert removed == [0]
        assert 0 not in tracker

    def test_filter_new_uses_drive_identity(self):
        tracker = DedupTracker()
        tracker.mark([DiscRecord(0, "Movie A")])

        new = tracker.filter_new([DiscRecord(0, "Movie A"), DiscRecord(2, "Movie C")])

        assert new == [DiscRecord(2, "Movie C")]

    def test_clear(self):
        tracker = DedupTracker()
        tracker.mark([DiscRecord(0, "Movie A")])
        tracker.clear()

        assert len(tracker) == 0


class TestOperationGate:
    """Test OperationGate transitions."""

    def test_initial_state_idle(self):
        gate = OperationGate()

        assert gate.state is LifecyclePhase.IDLE
        assert not gate.busy
        assert not gate.scan_active
        assert not gate.processing_active

    def test_only_one_scan_at_a_time(self):
        gate = OperationGate()

        assert gate.try_begin_scan() is True
        assert gate.try_begin_scan() is False
        assert gate.scan_active

        gate.end_scan()
        assert gate.try_begin_scan() is True

    def test_processing_inside_scan(self):
        gate = OperationGate()
        gate.try_begin_scan()

        assert gate.try_begin_processing() is True
        assert gate.state is LifecyclePhase.PROCESSING
        assert gate.scan_active
        assert gate.processing_active

        gate.end_processing()
        assert gate.state is LifecyclePhase.SCANNING
        assert not gate.processing_active

        gate.end_scan()
        assert gate.state is LifecyclePhase.IDLE

    def test_no_scan_while_processing(self):
        gate = OperationGate()
        gate.try_begin_processing()

        assert gate.try_begin_scan() is False
        assert gate.try_begin_processing() is False

        gate.end_processing()
        assert gate.state is LifecyclePhase.IDLE
        assert gate.try_begin_scan() is True

    def test_end_processing_when_not_processing_is_noop(self):
        gate = OperationGate()
        gate.try_begin_scan()
        gate.end_processing()

        assert gate.state is LifecyclePhase.SCANNING
