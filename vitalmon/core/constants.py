"""
Timing constants and clinical thresholds for VitalMon.

All scheduler times are in milliseconds; waveform time is in seconds.
"""

from vitalmon.core.enums import RhythmType

# Heart rate floor (bpm) for phase and beat-interval math.
# A rate of 0 would otherwise divide by zero in 60000 / hr.
HR_FLOOR_BPM = 1.0

# Alarm timing.
ALARM_SILENCE_MS = 120_000.0
TEST_ALARM_MESSAGE = "Test Alarm - All systems functioning"

# Rhythms that raise the arrhythmia overlay.
ABNORMAL_RHYTHMS = frozenset({
    RhythmType.AF,
    RhythmType.AFL,
    RhythmType.VT,
    RhythmType.VF,
    RhythmType.PVC,
    RhythmType.PAC,
})

# ST elevation > 1 mm or depression > 0.5 mm is abnormal (display units of mV).
ST_ELEVATION_LIMIT = 0.1
ST_DEPRESSION_LIMIT = -0.05

# QT prolongation (ms). Logged only, does not alarm.
QT_PROLONGED_MS = 500.0

# NIBP cycle timing.
NIBP_INFLATE_MS = 3000.0
NIBP_DEFLATE_MS = 2000.0
NIBP_DEFAULT_INTERVAL_MIN = 5

# Rendering ticks.
FRAME_INTERVAL_MS = 1000.0 / 60.0
FROZEN_FRAME_INTERVAL_MS = 100.0
SWEEP_WINDOW_S = 2.0
DEFAULT_CANVAS_WIDTH = 800

# Heartbeat scheduling.
HEARTBEAT_POLL_MS = 25.0
BRADY_THRESHOLD_BPM = 60.0
TACHY_THRESHOLD_BPM = 100.0
# Full width of the uniform beat-to-beat variation (fraction of the base interval).
HR_VARIATION_BRADY = 0.15   # +/-7.5%
HR_VARIATION_TACHY = 0.05   # +/-2.5%
HR_VARIATION_NORMAL = 0.08  # +/-4%

# PVC ectopy probability.
PVC_PROBABILITY = 0.1

# Tone silence floor for exponential ramps (cannot reach zero).
TONE_SILENCE_FLOOR = 0.001

# ECG leads offered by the lead selector. Lead choice is display only.
ECG_LEADS = ("I", "II", "III", "aVR", "aVL", "aVF", "V1", "V2", "V3", "V4", "V5", "V6")
DEFAULT_ECG_LEAD = "II"
