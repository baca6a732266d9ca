"""
Monitor engine integration tests.

Exercise the full command surface through MonitorEngine with the virtual
clock: waveform frames, freeze, alarms wiring, NIBP, audio cues.
"""

import logging

import numpy as np
import pytest

from vitalmon.core.constants import FROZEN_FRAME_INTERVAL_MS
from vitalmon.core.enums import NIBPStatus, RhythmType, ToneProfile, VitalKind
from vitalmon.core.events import WaveformSample


class TestWaveformFrames:
    def test_frame_per_tick(self, engine_factory):
        engine = engine_factory(start=True, canvas_width=200)
        frames = []
        engine.ecg_listeners.append(frames.append)
        engine.step(1000)
        # 60 Hz cadence, first tick immediately
        assert 60 <= len(frames) <= 61
        frame = frames[-1]
        assert len(frame) == 200
        samples = list(frame)
        assert [s.x for s in samples] == list(range(200))
        assert all(isinstance(s, WaveformSample) for s in samples)

    def test_frame_times_span_window(self, engine_factory):
        engine = engine_factory(start=True, canvas_width=100, sweep_window_s=2.0)
        engine.step(500)
        times = engine.last_ecg_frame.times()
        assert times[0] == pytest.approx(engine.last_ecg_frame.start_s)
        assert times[-1] - times[0] == pytest.approx(2.0 * 99 / 100)

    def test_frame_is_restartable(self, engine_factory):
        engine = engine_factory(start=True, canvas_width=50)
        engine.step(100)
        frame = engine.last_pleth_frame
        assert len(list(frame)) == len(list(frame)) == 50

    def test_deterministic_rhythm_with_seed(self, engine_factory):
        a = engine_factory(start=True, rng_seed=7)
        b = engine_factory(start=True, rng_seed=7)
        a.step(300)
        b.step(300)
        np.testing.assert_allclose(a.last_ecg_frame.amplitudes(), b.last_ecg_frame.amplitudes())

    def test_ecg_peaks_follow_rhythm(self, engine_factory):
        engine = engine_factory(start=True)
        engine.set_rhythm("VT")
        engine.step(50)
        peak = engine.last_ecg_frame.amplitudes().max()
        assert 1.1 < peak < 1.3

    def test_emitted_frame_keeps_its_settings(self, engine_factory):
        engine = engine_factory(start=True)
        frames = []
        engine.ecg_listeners.append(frames.append)
        engine.pleth_listeners.append(frames.append)
        engine.step(10)
        ecg, pleth = frames[0], frames[1]
        ecg_peak = ecg.amplitudes().max()
        pleth_peak = pleth.amplitudes().max()

        engine.set_rhythm("VT")
        engine.set_vital("heartRate", 150)
        engine.set_vital("spo2", 50)
        engine.set_st_elevation(0.5)
        engine.set_artifact("baselineDrift", True)

        # Replays differ only by the per-sample jitter.
        assert abs(ecg.amplitudes().max() - ecg_peak) < 0.1
        assert abs(pleth.amplitudes().max() - pleth_peak) < 0.15
        assert not np.allclose(engine.ecg_frame().amplitudes(), ecg.amplitudes(), atol=0.1)

    def test_artifacts_reach_ecg(self, engine_factory):
        engine = engine_factory(start=True, rng_seed=3)
        engine.step(20)
        clean = engine.ecg_frame().amplitudes()
        engine.set_artifact("baselineDrift", True)
        drifted = engine.ecg_frame().amplitudes()
        t = engine.ecg_frame().times()
        assert np.abs((drifted - clean) - np.sin(t * 0.1) * 0.5).max() < 0.06


class TestFreeze:
    def test_frozen_holds_time(self, engine_factory):
        engine = engine_factory(start=True)
        engine.step(1000)
        engine.set_frozen(True)
        held = engine.sample_time()
        engine.step(2000)
        assert engine.last_ecg_frame.start_s == pytest.approx(held)
        assert engine.sample_time() == pytest.approx(held)

    def test_frozen_tick_rate(self, engine_factory):
        engine = engine_factory(start=True)
        engine.step(100)
        engine.set_frozen(True)
        engine.step(50)
        frames = []
        engine.ecg_listeners.append(frames.append)
        engine.step(1000)
        assert 9 <= len(frames) <= 11
        assert engine._ecg_task.interval == FROZEN_FRAME_INTERVAL_MS

    def test_unfreeze_resumes(self, engine_factory):
        engine = engine_factory(start=True)
        engine.set_frozen(True)
        engine.step(500)
        engine.set_frozen(False)
        engine.step(200)
        assert engine.last_ecg_frame.start_s == pytest.approx(engine.now_ms / 1000.0, abs=0.02)


class TestCommands:
    def test_set_vital_raises_alarm(self, engine_factory):
        engine = engine_factory()
        events = []
        engine.alarm_listeners.append(events.append)
        engine.set_vital("heartRate", 45)
        assert events[-1].active
        assert "heartRate: 45 (Normal: 60-100)" in events[-1].message
        state = engine.get_latest_state()
        assert state.alarm_active and state.overlays["hr"]

    def test_bp_overlay_or(self, engine_factory):
        engine = engine_factory()
        engine.set_vital(VitalKind.DIASTOLIC_BP, 50)
        engine.set_vital(VitalKind.SYSTOLIC_BP, 150)
        engine.set_vital(VitalKind.SYSTOLIC_BP, 120)
        assert engine.get_latest_state().overlays["bp"]

    def test_unknown_vital(self, engine_factory):
        with pytest.raises(ValueError):
            engine_factory().set_vital("glucose", 5)

    def test_unknown_rhythm_uses_sinus(self, engine_factory, caplog):
        engine = engine_factory(start=True)
        engine.set_rhythm("VT")
        with caplog.at_level(logging.INFO):
            engine.set_rhythm("Torsades")
        assert engine.rhythm is None
        assert engine.rhythm_label == "Torsades"
        assert not engine.get_latest_state().overlays["arrhythmia"]
        assert "Unknown rhythm" in caplog.text
        engine.step(50)
        assert np.isfinite(engine.last_ecg_frame.amplitudes()).all()

    def test_rhythm_enum_accepted(self, engine_factory):
        engine = engine_factory()
        engine.set_rhythm(RhythmType.AF)
        assert engine.rhythm_label == "AF"
        assert engine.get_latest_state().overlays["arrhythmia"]

    def test_zero_heart_rate(self, engine_factory):
        engine = engine_factory(start=True)
        engine.set_vital("heartRate", 0)
        engine.step(200)
        assert np.isfinite(engine.last_ecg_frame.amplitudes()).all()
        assert np.isfinite(engine.last_pleth_frame.amplitudes()).all()

    def test_st_and_qt(self, engine_factory):
        engine = engine_factory()
        engine.set_st_elevation(0.2)
        engine.set_qt_interval(520)
        state = engine.get_latest_state()
        assert state.overlays["st"]
        assert state.qt_prolonged
        assert state.st_elevation == 0.2

    def test_lead_selection(self, engine_factory, caplog):
        engine = engine_factory()
        assert engine.get_latest_state().ecg_lead == "II"
        with caplog.at_level(logging.INFO):
            engine.set_lead("avf")
        assert engine.ecg_lead == "aVF"
        assert engine.get_latest_state().ecg_lead == "aVF"
        assert "Switched to ECG lead aVF" in caplog.text

    def test_unknown_lead_rejected(self, engine_factory):
        engine = engine_factory()
        with pytest.raises(ValueError):
            engine.set_lead("V7")
        assert engine.ecg_lead == "II"

    def test_lead_from_config(self, engine_factory):
        assert engine_factory(ecg_lead="V5").get_latest_state().ecg_lead == "V5"

    def test_big_numbers_setting(self, engine_factory):
        engine = engine_factory()
        assert not engine.get_latest_state().big_numbers
        engine.set_big_numbers(True)
        assert engine.get_latest_state().big_numbers

    def test_check_alarms_skipped_returns_none(self, engine_factory):
        engine = engine_factory()
        engine.set_vital("heartRate", 45)
        assert engine.check_alarms().alarms == ["heartRate: 45 (Normal: 60-100)"]
        engine.silence_alarm()
        assert engine.check_alarms() is None
        engine.reset_alarms()
        engine.set_alarm_enabled(False)
        assert engine.check_alarms() is None

    def test_silence_via_engine(self, engine_factory):
        engine = engine_factory()
        engine.set_vital("spo2", 85)
        engine.silence_alarm()
        engine.set_vital("spo2", 80)
        assert not engine.get_latest_state().alarm_active
        engine.step(120_000)
        state = engine.get_latest_state()
        assert not state.alarm_silenced
        engine.check_alarms()
        assert engine.get_latest_state().alarm_active

    def test_initial_vitals_from_config(self, engine_factory):
        engine = engine_factory(initial_vitals={"heartRate": 110, "temperature": 38.2})
        assert engine.store.get(VitalKind.HEART_RATE) == 110
        assert engine.get_latest_state().vitals.temperature == 38.2

    def test_snapshot_is_detached(self, engine_factory):
        engine = engine_factory()
        state = engine.get_latest_state()
        engine.set_vital("heartRate", 90)
        assert state.vitals.heart_rate == 72


class TestNIBPThroughEngine:
    def test_reading_uses_current_pressures(self, engine_factory):
        engine = engine_factory(start=True)
        updates = []
        engine.nibp_listeners.append(updates.append)
        engine.start_nibp()
        engine.step(4000)
        engine.set_vital("systolicBP", 150)
        engine.set_vital("diastolicBP", 90)
        engine.step(1000)
        state = engine.get_latest_state()
        assert state.nibp_status == NIBPStatus.COMPLETE
        assert (state.nibp_sys, state.nibp_dia) == (150, 90)
        assert state.nibp_map == pytest.approx(110.0)
        assert updates[-1].text == "Complete"

    def test_interval_setting(self, engine_factory):
        engine = engine_factory(nibp_interval_min=0)
        engine.start_nibp()
        engine.step(5000)
        assert engine.nibp.next_transition_at is None
        engine.set_nibp_interval(2)
        engine.start_nibp()
        engine.step(5000)
        assert engine.nibp.next_transition_at == pytest.approx(10_000 + 120_000)


class TestAudio:
    def test_heartbeat_cues(self, engine_factory, advance_time):
        engine = engine_factory(start=True, initial_vitals={"heartRate": 60})
        requests = []
        engine.tone_listeners.append(requests.append)
        advance_time(engine, 5000)
        beats = [r for r in requests if r.profile == ToneProfile.HEARTBEAT]
        assert 5 <= len(beats) <= 6
        assert beats[0].volume == 0.5

    def test_alarm_cue_on_trigger(self, engine_factory):
        engine = engine_factory()
        requests = []
        engine.tone_listeners.append(requests.append)
        engine.test_alarm()
        assert requests[-1].profile == ToneProfile.ALARM
        assert requests[-1].envelope.voices[0].frequency == 1200

    def test_volume_applied(self, engine_factory):
        engine = engine_factory()
        engine.set_volume(0.2)
        request = engine.request_tone(ToneProfile.ALARM)
        assert request.volume == 0.2
        assert request.envelope.voices[0].peak_gain == pytest.approx(0.08)
        engine.set_volume(3.0)
        assert engine.volume == 1.0

    def test_audio_disabled(self, engine_factory):
        engine = engine_factory(start=True)
        engine.set_audio_enabled(False)
        requests = []
        engine.tone_listeners.append(requests.append)
        engine.step(3000)
        engine.test_alarm()
        assert requests == []

    def test_audio_unavailable(self, engine_factory, caplog):
        with caplog.at_level(logging.WARNING):
            engine = engine_factory(start=True, audio_available=False)
        assert "Audio output not available" in caplog.text
        engine.set_audio_enabled(True)
        assert not engine.audio_enabled
        requests = []
        engine.tone_listeners.append(requests.append)
        engine.step(3000)
        engine.test_alarm()
        assert requests == []
        assert engine.alarms.active


class TestLifecycle:
    def test_stop_halts_ticks(self, engine_factory):
        engine = engine_factory(start=True)
        engine.step(100)
        engine.stop()
        frames = []
        engine.ecg_listeners.append(frames.append)
        engine.step(1000)
        assert frames == []
        assert not engine.heartbeat.running

    def test_step_ignores_non_positive(self, engine_factory):
        engine = engine_factory(start=True)
        engine.step(0)
        engine.step(-5)
        assert engine.now_ms == 0.0
