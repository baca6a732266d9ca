import sys
import time
from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QHBoxLayout,
    QVBoxLayout,
    QLabel,
    QFrame,
)
from PySide6.QtCore import QTimer

from vitalmon.core.engine import MonitorEngine
from vitalmon.core.state import MonitorConfig
from vitalmon.ui.monitor_widget import PatientMonitorWidget
from vitalmon.ui.controls_widget import ControlPanelWidget
from vitalmon.ui.styles import COLORS, FONTS, get_base_widget_style


class MainWindow(QMainWindow):
    """Main application window: monitor display on the left, controls on the right."""
    def __init__(self, config: MonitorConfig = None, engine: MonitorEngine = None):
        super().__init__()
        self.setWindowTitle("VitalMon - Bedside Monitor Simulator")
        self.resize(1400, 850)
        self.setStyleSheet(get_base_widget_style())

        self.engine = engine or MonitorEngine(config)
        self.tone_count = 0
        self.engine.tone_listeners.append(self._on_tone)

        self.setup_ui()

        # Game Loop
        self.timer = QTimer()
        self.timer.setInterval(50)  # 20 FPS UI Update
        self.timer.timeout.connect(self.game_loop)

        self.engine.start()
        self.last_real_time = time.time()
        self.timer.start()

    def setup_ui(self):
        central = QWidget()
        self.setCentralWidget(central)

        base_layout = QVBoxLayout(central)
        base_layout.setContentsMargins(0, 0, 0, 0)
        base_layout.setSpacing(0)

        # Top bar
        bar = QFrame()
        bar.setFixedHeight(32)
        bar.setStyleSheet(f"background-color: {COLORS['header']}; border-bottom: 1px solid {COLORS['border']};")
        bar_layout = QHBoxLayout(bar)
        bar_layout.setContentsMargins(12, 0, 12, 0)
        lbl_brand = QLabel("VitalMon")
        lbl_brand.setStyleSheet(f"color: {COLORS['text_dim']}; font-size: {FONTS['size_small']};")
        bar_layout.addWidget(lbl_brand)
        bar_layout.addStretch()
        self.lbl_status = QLabel("")
        self.lbl_status.setStyleSheet(f"color: {COLORS['text_secondary']}; font-size: {FONTS['size_small']};")
        bar_layout.addWidget(self.lbl_status)
        self.lbl_time = QLabel("00:00:00")
        self.lbl_time.setStyleSheet(f"color: {COLORS['text']}; font-size: {FONTS['size_medium']}; font-weight: 600;")
        bar_layout.addWidget(self.lbl_time)
        base_layout.addWidget(bar)

        main_layout = QHBoxLayout()
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)
        base_layout.addLayout(main_layout, stretch=1)

        self.monitor = PatientMonitorWidget()
        main_layout.addWidget(self.monitor, stretch=70)

        self.controls = ControlPanelWidget(self.engine)
        self.controls.setFixedWidth(380)
        main_layout.addWidget(self.controls)

    def _on_tone(self, request):
        self.tone_count += 1

    def game_loop(self):
        now = time.time()
        dt_real = now - self.last_real_time
        self.last_real_time = now

        if dt_real > 0.2: dt_real = 0.2

        self.engine.step(dt_real * 1000.0)

        state = self.engine.get_latest_state()

        total_seconds = int(state.time_ms / 1000.0)
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        self.lbl_time.setText(f"{hours:02d}:{minutes:02d}:{seconds:02d}")

        audio = f"Audio {int(state.volume * 100)}%" if state.audio_enabled else "Audio off"
        frozen = " | FROZEN" if state.frozen else ""
        self.lbl_status.setText(f"{audio} | {state.waveform_speed} mm/s{frozen}   ")

        self.monitor.update_numerics(state)
        self.monitor.update_alarms(state)
        self.monitor.update_waveforms(self.engine)
        self.controls.sync_with_engine()

    def closeEvent(self, event):
        self.timer.stop()
        self.engine.stop()
        super().closeEvent(event)


def main():
    app = QApplication.instance() or QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
