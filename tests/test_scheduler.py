import pytest

from vitalmon.core.scheduler import Scheduler


class TestOneShotTimers:
    def test_fire_in_time_order(self, scheduler):
        fired = []
        scheduler.call_later(300, fired.append, "c")
        scheduler.call_later(100, fired.append, "a")
        scheduler.call_later(200, fired.append, "b")
        scheduler.advance(250)
        assert fired == ["a", "b"]
        scheduler.advance(50)
        assert fired == ["a", "b", "c"]

    def test_same_time_fifo(self, scheduler):
        fired = []
        for tag in "xyz":
            scheduler.call_later(50, fired.append, tag)
        scheduler.advance(50)
        assert fired == ["x", "y", "z"]

    def test_cancel(self, scheduler):
        fired = []
        handle = scheduler.call_later(10, fired.append, 1)
        handle.cancel()
        scheduler.advance(100)
        assert fired == []
        assert scheduler.pending() == 0

    def test_clock_set_to_timer_time_while_firing(self, scheduler):
        seen = []
        scheduler.call_later(40, lambda: seen.append(scheduler.now))
        scheduler.advance(100)
        assert seen == [40.0]
        assert scheduler.now == 100.0

    def test_timer_scheduled_from_callback(self, scheduler):
        """A callback may schedule follow-ups that fall inside the same advance."""
        fired = []

        def first():
            fired.append(scheduler.now)
            scheduler.call_later(30, lambda: fired.append(scheduler.now))

        scheduler.call_later(10, first)
        scheduler.advance_to(100)
        assert fired == [10.0, 40.0]


class TestRepeatingTasks:
    def test_cadence(self, scheduler):
        ticks = []
        scheduler.call_every(100, lambda: ticks.append(scheduler.now))
        scheduler.advance(1000)
        assert ticks == [100.0 * i for i in range(1, 11)]

    def test_first_delay_zero(self, scheduler):
        ticks = []
        scheduler.call_every(100, lambda: ticks.append(scheduler.now), first_delay_ms=0)
        scheduler.advance(1000)
        assert len(ticks) == 11
        assert ticks[0] == 0.0

    def test_cancel_stops_task(self, scheduler):
        ticks = []
        task = scheduler.call_every(10, lambda: ticks.append(1))
        scheduler.advance(55)
        task.cancel()
        scheduler.advance(100)
        assert len(ticks) == 5
        assert task.next_run is None

    def test_set_interval_applies_after_next_run(self, scheduler):
        ticks = []
        task = scheduler.call_every(10, lambda: ticks.append(scheduler.now))
        scheduler.advance(15)
        task.set_interval(100)
        scheduler.advance(300)
        assert ticks == [10.0, 20.0, 120.0, 220.0]

    def test_set_interval_restart(self, scheduler):
        ticks = []
        task = scheduler.call_every(10, lambda: ticks.append(scheduler.now))
        scheduler.advance(15)
        task.set_interval(100, restart=True)
        assert task.next_run == 115.0
        scheduler.advance(100)
        assert ticks == [10.0, 115.0]

    def test_invalid_interval(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.call_every(0, lambda: None)
        task = scheduler.call_every(10, lambda: None)
        with pytest.raises(ValueError):
            task.set_interval(-5)
