"""
NIBP Cycling Tests.

Tests verify:
- Measuring / deflating / complete timeline
- Automatic restart after the configured interval
- Manual start and stop handling
"""

import pytest

from vitalmon.core.enums import NIBPStatus
from vitalmon.monitors.nibp import NIBPCycle, NIBPReading


@pytest.fixture
def updates():
    return []


@pytest.fixture
def cycle(scheduler, updates):
    nibp = NIBPCycle(scheduler, interval_minutes=5, pressure_source=lambda: (120, 80))
    nibp.listeners.append(updates.append)
    return nibp


class TestNIBPTimeline:
    def test_full_cycle(self, cycle, scheduler):
        assert cycle.status == NIBPStatus.IDLE
        cycle.start()
        assert cycle.status == NIBPStatus.MEASURING

        scheduler.advance_to(2999)
        assert cycle.status == NIBPStatus.MEASURING
        scheduler.advance_to(3000)
        assert cycle.status == NIBPStatus.DEFLATING
        scheduler.advance_to(4999)
        assert cycle.status == NIBPStatus.DEFLATING
        scheduler.advance_to(5000)
        assert cycle.status == NIBPStatus.COMPLETE

    def test_reading_latched_on_complete(self, cycle, scheduler):
        cycle.start()
        scheduler.advance_to(5000)
        reading = cycle.latest_reading
        assert reading.systolic == 120 and reading.diastolic == 80
        assert reading.map == pytest.approx(93.33, abs=0.01)
        assert reading.timestamp == 5000
        assert str(reading) == "120/80 (93)"

    def test_auto_restart_after_interval(self, cycle, scheduler):
        cycle.start()
        scheduler.advance_to(304_999)
        assert cycle.status == NIBPStatus.COMPLETE
        scheduler.advance_to(305_000)
        assert cycle.status == NIBPStatus.MEASURING

    def test_interval_zero_disables_restart(self, scheduler):
        nibp = NIBPCycle(scheduler, interval_minutes=0, pressure_source=lambda: (110, 70))
        nibp.start()
        scheduler.advance_to(10 * 60_000)
        assert nibp.status == NIBPStatus.COMPLETE
        assert nibp.next_transition_at is None

    def test_interval_change_applies_to_next_completion(self, cycle, scheduler):
        cycle.start()
        cycle.set_interval(1)
        scheduler.advance_to(5000)
        assert cycle.next_transition_at == 65_000

    def test_updates_published(self, cycle, scheduler, updates):
        cycle.start()
        scheduler.advance_to(5000)
        assert [u.text for u in updates] == ["Measuring...", "Deflating...", "Complete"]
        assert updates[-1].reading is cycle.latest_reading


class TestNIBPCommands:
    def test_stop_cancels_pending(self, cycle, scheduler):
        cycle.start()
        scheduler.advance_to(1000)
        cycle.stop()
        assert cycle.status == NIBPStatus.STOPPED
        scheduler.advance_to(400_000)
        assert cycle.status == NIBPStatus.STOPPED
        assert cycle.latest_reading is None

    def test_stop_cancels_restart(self, cycle, scheduler):
        cycle.start()
        scheduler.advance_to(5000)
        cycle.stop()
        scheduler.advance_to(400_000)
        assert cycle.status == NIBPStatus.STOPPED

    def test_start_ignored_while_measuring(self, cycle, scheduler):
        cycle.start()
        scheduler.advance_to(2000)
        cycle.start()
        assert cycle.next_transition_at == 3000

    def test_manual_start_replaces_scheduled_restart(self, cycle, scheduler):
        cycle.start()
        scheduler.advance_to(10_000)
        cycle.start()
        assert cycle.status == NIBPStatus.MEASURING
        assert cycle.next_transition_at == 13_000
        assert scheduler.pending() == 1


def test_reading_from_pressures():
    reading = NIBPReading.from_pressures(150, 90, 1234.0)
    assert reading.map == pytest.approx(110.0)
