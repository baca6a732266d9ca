import argparse
import json
import logging
import sys

from vitalmon.core.engine import MonitorEngine
from vitalmon.core.state import MonitorConfig

logger = logging.getLogger(__name__)


def load_config(path: str = None, seed: int = None) -> MonitorConfig:
    """Build a MonitorConfig from an optional JSON file."""
    config_data = {}
    if path:
        try:
            with open(path, 'r') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error loading config: {e}")
            sys.exit(1)

    return MonitorConfig(
        rng_seed=seed if seed is not None else config_data.get('rng_seed'),
        canvas_width=config_data.get('canvas_width', 800),
        sweep_window_s=config_data.get('sweep_window_s', 2.0),
        ectopy_per_beat=config_data.get('ectopy_per_beat', True),
        audio_available=config_data.get('audio_available', True),
        initial_vitals=config_data.get('vitals', {}),
        alarm_limits=config_data.get('alarm_limits', {}),
        alarm_priority=config_data.get('alarm_priority', 'critical'),
        nibp_interval_min=config_data.get('nibp_interval_min', 5),
        volume=config_data.get('volume', 0.5),
        ecg_lead=config_data.get('ecg_lead', 'II'),
        big_numbers=config_data.get('big_numbers', False),
    )


def run_headless(args):
    """Run the monitor without a display, printing a status line each second."""
    print(f"Starting Headless Monitor (Duration: {args.duration}s)...")
    config = load_config(args.config, args.seed)
    engine = MonitorEngine(config)
    if args.rhythm:
        engine.set_rhythm(args.rhythm)
    if args.hr is not None:
        engine.set_vital('heartRate', args.hr)

    tones = {'heartbeat': 0, 'alarm': 0}
    engine.tone_listeners.append(lambda req: tones.__setitem__(req.profile.value, tones[req.profile.value] + 1))
    engine.nibp_listeners.append(lambda update: print(f"  NIBP: {update.text}"))

    engine.start()
    engine.start_nibp()

    dt_ms = 10.0
    steps = int(args.duration * 1000.0 / dt_ms)
    for i in range(steps):
        engine.step(dt_ms)
        if i % 100 == 0:
            state = engine.get_latest_state()
            frame = engine.last_ecg_frame.amplitudes() if engine.last_ecg_frame else None
            peak = frame.max() if frame is not None else 0.0
            alarm = state.alarm_message if state.alarm_active else "-"
            print(f"Time: {state.time_ms / 1000.0:.2f}s | HR: {state.vitals.heart_rate} | "
                  f"SpO2: {state.vitals.spo2} | Rhythm: {state.rhythm_label} | "
                  f"ECG peak: {peak:.2f} | Alarm: {alarm}")

    engine.stop()
    print(f"Completed: {tones['heartbeat']} heartbeat cues, {tones['alarm']} alarm cues.")


def run_ui(args):
    """Run the monitor with the Qt window."""
    from PySide6.QtWidgets import QApplication
    from vitalmon.ui.main_window import MainWindow

    app = QApplication.instance()
    if not app:
        app = QApplication(sys.argv)

    window = MainWindow(load_config(args.config, args.seed))
    window.show()
    sys.exit(app.exec())


def main():
    parser = argparse.ArgumentParser(description="VitalMon - Bedside Monitor Simulator")
    parser.add_argument("--mode", choices=["ui", "headless"], default="ui", help="Run mode (default: ui)")
    parser.add_argument("--duration", type=float, default=10.0, help="Duration for headless mode in seconds")
    parser.add_argument("--config", type=str, help="Path to JSON configuration file")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible waveforms")
    parser.add_argument("--rhythm", type=str, help="Initial rhythm (NSR, AF, AFL, VT, VF, PVC, PAC)")
    parser.add_argument("--hr", type=int, help="Initial heart rate (bpm)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.mode == "headless":
        run_headless(args)
        return

    try:
        run_ui(args)
    except ImportError as e:
        logger.warning("Display unavailable (%s) - running headless", e)
        run_headless(args)


if __name__ == "__main__":
    main()
