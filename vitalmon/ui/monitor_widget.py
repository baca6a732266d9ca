import pyqtgraph as pg
from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QFrame
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont
import numpy as np

from vitalmon.core.enums import NIBPStatus
from .styles import (
    COLORS,
    PRIORITY_COLORS,
    get_base_widget_style,
    get_rgba,
    get_tinted_frame_style,
)

# (compact, big numbers) -> value font size
VALUE_SIZES = {
    (False, False): "38px",
    (True, False): "24px",
    (False, True): "60px",
    (True, True): "40px",
}


def format_st(st_elevation):
    """Signed ST value with one decimal, e.g. '+0.2' or '-0.1'."""
    sign = "+" if st_elevation >= 0 else ""
    return f"{sign}{st_elevation:.1f}"


class NumericDisplay(QFrame):
    """
    A single vital sign numeric value.
    Switches to an alarm style while its overlay flag is raised.
    """
    def __init__(self, label, unit="", color=COLORS['text'], initial_value="--", compact=False):
        super().__init__()
        self.base_color = color
        self.label_text = label
        self.alarm_active = False
        self.compact = compact
        self.big = False
        self.val_size = VALUE_SIZES[(compact, False)]

        self.layout = QVBoxLayout(self)
        self.layout.setSpacing(0)
        self.layout.setContentsMargins(10, 6, 10, 8)

        self.lbl_title = QLabel(label)
        self.layout.addWidget(self.lbl_title, alignment=Qt.AlignRight)

        self.lbl_val = QLabel(initial_value)
        self._apply_value_style()
        self.lbl_val.setAlignment(Qt.AlignRight)
        self.layout.addWidget(self.lbl_val)

        if unit:
            self.lbl_unit = QLabel(unit)
            self.lbl_unit.setStyleSheet(f"color: {COLORS['text_dim']}; font-size: 11px; font-family: Arial;")
            self.layout.addWidget(self.lbl_unit, alignment=Qt.AlignRight)

        self._apply_base_style()

    def _apply_base_style(self):
        self.setStyleSheet(get_tinted_frame_style(self.base_color, alpha=0.05))
        self.lbl_title.setText(self.label_text)
        self.lbl_title.setStyleSheet(f"color: {self.base_color}; font-size: 12px; font-weight: 600; font-family: Arial;")

    def _apply_alarm_style(self):
        color = COLORS['danger']
        self.setStyleSheet(get_tinted_frame_style(color, alpha=0.15, border_color=color, border_width=2))
        self.lbl_title.setText(f"{self.label_text} ALARM")
        self.lbl_title.setStyleSheet(f"color: {color}; font-size: 12px; font-weight: 700; font-family: Arial;")

    def _apply_value_style(self):
        self.lbl_val.setStyleSheet(f"color: {self.base_color}; font-size: {self.val_size}; font-weight: 700; font-family: Arial;")

    def set_value(self, text):
        self.lbl_val.setText(text)

    def set_big(self, big: bool):
        if self.big != big:
            self.big = big
            self.val_size = VALUE_SIZES[(self.compact, big)]
            self._apply_value_style()

    def set_alarm(self, active: bool):
        if self.alarm_active != active:
            self.alarm_active = active
            if active:
                self._apply_alarm_style()
            else:
                self._apply_base_style()


class PatientMonitorWidget(QWidget):
    """Bedside monitor display: ECG and pleth sweeps, numerics, alarm banner and NIBP panel."""
    def __init__(self):
        super().__init__()
        self.setStyleSheet(get_base_widget_style())

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)
        self.layout.setSpacing(0)

        self.setup_ui()

    def setup_ui(self):
        # --- Alarm banner ---
        self.alarm_banner = QLabel("")
        self.alarm_banner.setFixedHeight(32)
        self.alarm_banner.setAlignment(Qt.AlignCenter)
        self.alarm_banner.setVisible(False)
        self.layout.addWidget(self.alarm_banner)

        # --- Main Content ---
        content = QFrame()
        content.setStyleSheet(f"background-color: {COLORS['background_alt']};")
        content_layout = QHBoxLayout(content)
        content_layout.setContentsMargins(4, 4, 4, 4)
        content_layout.setSpacing(4)
        self.layout.addWidget(content, stretch=1)

        # Left Column: Waveforms
        wave_frame = QFrame()
        wave_frame.setStyleSheet("background: transparent; border: none;")
        wave_layout = QVBoxLayout(wave_frame)
        wave_layout.setContentsMargins(0, 0, 0, 0)
        wave_layout.setSpacing(2)
        content_layout.addWidget(wave_frame, stretch=70)

        self.lbl_rhythm = QLabel("NSR")
        self.lbl_rhythm.setStyleSheet(f"color: {COLORS['ecg']}; font-size: 13px; font-weight: 600;")
        wave_layout.addWidget(self.lbl_rhythm)

        self.ecg_plot, self.ecg_curve, self.ecg_title = self.create_plot(COLORS['ecg'], "ECG  Lead II", y_range=(-1.5, 2.0))
        self.pleth_plot, self.pleth_curve, _title = self.create_plot(COLORS['spo2'], "SpO₂  Pleth", y_range=(-0.6, 1.2))
        wave_layout.addWidget(self.ecg_plot)
        wave_layout.addWidget(self.pleth_plot)

        # Right Column: Numerics
        num_frame = QFrame()
        num_frame.setStyleSheet(f"background-color: {COLORS['panel']}; border-left: 1px solid {COLORS['border']};")
        num_layout = QVBoxLayout(num_frame)
        num_layout.setContentsMargins(6, 6, 6, 6)
        num_layout.setSpacing(6)
        content_layout.addWidget(num_frame, stretch=25)

        self.num_hr = NumericDisplay("Heart rate", "bpm", COLORS['ecg'], "72")
        self.num_spo2 = NumericDisplay("SpO₂", "%", COLORS['spo2'], "98")
        self.num_bp = NumericDisplay("BP", "mmHg", COLORS['bp'], "120/80")
        self.num_rr = NumericDisplay("Resp rate", "/min", COLORS['rr'], "16", compact=True)
        self.num_temp = NumericDisplay("Temp", "°C", COLORS['temp'], "36.5", compact=True)
        for widget in (self.num_hr, self.num_spo2, self.num_bp, self.num_rr, self.num_temp):
            num_layout.addWidget(widget)

        self.nibp_panel = self._create_nibp_panel()
        num_layout.addWidget(self.nibp_panel)

        self.ecg_panel = self._create_ecg_panel()
        num_layout.addWidget(self.ecg_panel)

        self.lbl_ecg_flags = QLabel("")
        self.lbl_ecg_flags.setStyleSheet(f"color: {COLORS['warning']}; font-size: 12px; font-weight: 600;")
        num_layout.addWidget(self.lbl_ecg_flags)
        num_layout.addStretch()

        # Overlay key -> numeric widget
        self.overlay_widgets = {
            'hr': self.num_hr,
            'spo2': self.num_spo2,
            'bp': self.num_bp,
            'rr': self.num_rr,
            'temp': self.num_temp,
        }

    def _create_nibp_panel(self):
        frame = QFrame()
        frame.setStyleSheet(get_tinted_frame_style(COLORS['bp'], alpha=0.05))
        layout = QVBoxLayout(frame)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(2)

        title = QLabel("NIBP")
        title.setStyleSheet(f"color: {COLORS['bp']}; font-weight: 700; font-size: 11px;")
        layout.addWidget(title, alignment=Qt.AlignRight)

        self.lbl_nibp_value = QLabel("--/-- (--)")
        self.lbl_nibp_value.setStyleSheet(f"color: {COLORS['bp']}; font-size: 22px; font-weight: 700;")
        layout.addWidget(self.lbl_nibp_value, alignment=Qt.AlignRight)

        self.lbl_nibp_status = QLabel(NIBPStatus.IDLE.value)
        self.lbl_nibp_status.setStyleSheet(f"color: {COLORS['text_secondary']}; font-size: 11px;")
        layout.addWidget(self.lbl_nibp_status, alignment=Qt.AlignRight)
        return frame

    def _create_ecg_panel(self):
        frame = QFrame()
        frame.setStyleSheet(get_tinted_frame_style(COLORS['ecg'], alpha=0.05))
        layout = QHBoxLayout(frame)
        layout.setContentsMargins(8, 4, 8, 4)
        layout.setSpacing(12)

        self.lbl_st_value = QLabel("ST +0.0")
        self.lbl_qt_value = QLabel("QT 400 ms")
        for label in (self.lbl_st_value, self.lbl_qt_value):
            label.setStyleSheet(f"color: {COLORS['ecg']}; font-size: 13px; font-weight: 600;")
            layout.addWidget(label)
        layout.addStretch()
        return frame

    def create_plot(self, color, title, y_range):
        plot = pg.PlotWidget()
        plot.setBackground(COLORS['background_alt'])
        plot.showGrid(x=False, y=False)
        plot.setMouseEnabled(x=False, y=False)
        plot.hideAxis('bottom')

        axis = plot.getAxis('left')
        axis.setWidth(35)
        axis.setStyle(showValues=False, tickLength=0)
        axis.setPen(pg.mkPen(color=COLORS['background_alt']))
        plot.setYRange(y_range[0], y_range[1], padding=0.05)
        plot.setMinimumHeight(120)

        text = pg.TextItem(text=title, color=color, anchor=(0, 0))
        text.setFont(QFont('Arial', 9, QFont.Weight.Medium))
        plot.addItem(text)
        text.setPos(5, y_range[1])

        plot.setAntialiasing(True)
        pen = pg.mkPen(color=color, width=2.0)
        curve = plot.plot(pen=pen)
        return plot, curve, text

    def update_numerics(self, state):
        v = state.vitals
        self.num_hr.set_value(f"{v.heart_rate:.0f}")
        self.num_spo2.set_value(f"{v.spo2:.0f}")
        self.num_bp.set_value(f"{v.systolic_bp:.0f}/{v.diastolic_bp:.0f}")
        self.num_rr.set_value(f"{v.respiratory_rate:.0f}")
        self.num_temp.set_value(f"{v.temperature:.1f}")
        for widget in self.overlay_widgets.values():
            widget.set_big(state.big_numbers)

        self.lbl_rhythm.setText(state.rhythm_label)
        self.ecg_title.setText(f"ECG  Lead {state.ecg_lead}")
        self.lbl_st_value.setText(f"ST {format_st(state.st_elevation)}")
        self.lbl_qt_value.setText(f"QT {state.qt_interval:.0f} ms")
        if state.nibp_sys is not None:
            self.lbl_nibp_value.setText(f"{state.nibp_sys:.0f}/{state.nibp_dia:.0f} ({state.nibp_map:.0f})")
        self.lbl_nibp_status.setText(state.nibp_status.value)

    def update_waveforms(self, engine):
        for frame, curve in ((engine.last_ecg_frame, self.ecg_curve),
                             (engine.last_pleth_frame, self.pleth_curve)):
            if frame is None:
                continue
            curve.setData(np.arange(len(frame)), frame.amplitudes())

    def update_alarms(self, state):
        overlays = state.overlays
        for key, widget in self.overlay_widgets.items():
            widget.set_alarm(overlays.get(key, False))

        flags = []
        if overlays.get('arrhythmia'):
            flags.append("ARRHYTHMIA")
        if overlays.get('st'):
            flags.append("ST CHANGE")
        if state.qt_prolonged:
            flags.append("QT PROLONGED")
        self.lbl_ecg_flags.setText("  ".join(flags))

        if state.alarm_active:
            color = PRIORITY_COLORS.get(state.alarm_priority.value, COLORS['danger'])
            self.alarm_banner.setText(state.alarm_message)
            self.alarm_banner.setStyleSheet(
                f"background-color: {get_rgba(color, 0.85)}; color: white; font-size: 14px; font-weight: 700;"
            )
            self.alarm_banner.setVisible(True)
        elif state.alarm_silenced:
            self.alarm_banner.setText("ALARMS SILENCED")
            self.alarm_banner.setStyleSheet(
                f"background-color: {COLORS['card']}; color: {COLORS['text_dim']}; font-size: 12px; font-weight: 600;"
            )
            self.alarm_banner.setVisible(True)
        else:
            self.alarm_banner.setVisible(False)
