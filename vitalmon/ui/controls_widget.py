from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QGroupBox,
    QDoubleSpinBox,
    QPushButton,
    QFormLayout,
    QComboBox,
    QSpinBox,
    QSlider,
    QCheckBox,
    QTabWidget,
)
from PySide6.QtCore import Qt

from vitalmon.core.constants import ECG_LEADS
from vitalmon.core.enums import AlarmPriority, RhythmType, VitalKind

from .styles import (
    COLORS,
    get_base_widget_style,
    get_button_style,
    get_groupbox_style,
    get_input_style,
)

# (kind, label, minimum, maximum, decimals)
VITAL_INPUTS = [
    (VitalKind.HEART_RATE, "Heart rate (bpm)", 0, 300, 0),
    (VitalKind.SPO2, "SpO₂ (%)", 0, 100, 0),
    (VitalKind.RESPIRATORY_RATE, "Resp rate (/min)", 0, 60, 0),
    (VitalKind.SYSTOLIC_BP, "Systolic (mmHg)", 0, 300, 0),
    (VitalKind.DIASTOLIC_BP, "Diastolic (mmHg)", 0, 200, 0),
    (VitalKind.TEMPERATURE, "Temp (°C)", 25, 45, 1),
]

ARTIFACT_INPUTS = [
    ("motion", "Motion"),
    ("poor_contact", "Poor contact"),
    ("muscle_tremor", "Muscle tremor"),
    ("baseline_drift", "Baseline drift"),
]


class ControlPanelWidget(QWidget):
    """
    Instructor controls for the monitor.
    Tabs: Patient (vitals, rhythm, artifacts), Alarms & Audio, NIBP & Display.
    Every control calls a MonitorEngine command directly.
    """
    def __init__(self, engine):
        super().__init__()
        self.engine = engine
        self.setStyleSheet(f"""
            {get_base_widget_style()}
            {get_input_style()}
        """)
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)

        self.tabs = QTabWidget()
        layout.addWidget(self.tabs)

        self.tab_patient = QWidget()
        self.setup_patient_tab()
        self.tabs.addTab(self.tab_patient, "Patient")

        self.tab_alarms = QWidget()
        self.setup_alarms_tab()
        self.tabs.addTab(self.tab_alarms, "Alarms")

        self.tab_display = QWidget()
        self.setup_display_tab()
        self.tabs.addTab(self.tab_display, "NIBP / Display")

    # --- Patient tab ---

    def setup_patient_tab(self):
        layout = QVBoxLayout(self.tab_patient)

        grp_vitals = QGroupBox("Vital signs")
        grp_vitals.setStyleSheet(get_groupbox_style(COLORS['ecg']))
        form = QFormLayout(grp_vitals)
        self.vital_inputs = {}
        for kind, label, lo, hi, decimals in VITAL_INPUTS:
            sb = QDoubleSpinBox()
            sb.setRange(lo, hi)
            sb.setDecimals(decimals)
            sb.setValue(self.engine.store.get(kind))
            sb.valueChanged.connect(self._make_vital_setter(kind, decimals))
            form.addRow(label, sb)
            self.vital_inputs[kind] = sb
        layout.addWidget(grp_vitals)

        grp_ecg = QGroupBox("ECG")
        grp_ecg.setStyleSheet(get_groupbox_style(COLORS['ecg']))
        ecg_form = QFormLayout(grp_ecg)

        self.cb_rhythm = QComboBox()
        for rhythm in RhythmType:
            self.cb_rhythm.addItem(rhythm.value, rhythm.name)
        self.cb_rhythm.currentIndexChanged.connect(
            lambda _i: self.engine.set_rhythm(self.cb_rhythm.currentData())
        )
        ecg_form.addRow("Rhythm", self.cb_rhythm)

        self.cb_lead = QComboBox()
        self.cb_lead.addItems(list(ECG_LEADS))
        self.cb_lead.setCurrentText(self.engine.ecg_lead)
        self.cb_lead.currentTextChanged.connect(self.engine.set_lead)
        ecg_form.addRow("Lead", self.cb_lead)

        self.sb_st = QDoubleSpinBox()
        self.sb_st.setRange(-0.5, 0.5)
        self.sb_st.setSingleStep(0.05)
        self.sb_st.setDecimals(2)
        self.sb_st.valueChanged.connect(self.engine.set_st_elevation)
        ecg_form.addRow("ST (mV)", self.sb_st)

        self.sb_qt = QSpinBox()
        self.sb_qt.setRange(200, 700)
        self.sb_qt.setSingleStep(10)
        self.sb_qt.setValue(int(self.engine.qt_interval))
        self.sb_qt.valueChanged.connect(self.engine.set_qt_interval)
        ecg_form.addRow("QT (ms)", self.sb_qt)
        layout.addWidget(grp_ecg)

        grp_art = QGroupBox("Artifacts")
        grp_art.setStyleSheet(get_groupbox_style(COLORS['warning']))
        art_layout = QVBoxLayout(grp_art)
        self.artifact_inputs = {}
        for flag, label in ARTIFACT_INPUTS:
            chk = QCheckBox(label)
            chk.toggled.connect(lambda checked, f=flag: self.engine.set_artifact(f, checked))
            art_layout.addWidget(chk)
            self.artifact_inputs[flag] = chk
        layout.addWidget(grp_art)
        layout.addStretch()

    def _make_vital_setter(self, kind, decimals):
        def setter(value):
            self.engine.set_vital(kind, round(value, decimals) if decimals else int(value))
        return setter

    # --- Alarms tab ---

    def setup_alarms_tab(self):
        layout = QVBoxLayout(self.tab_alarms)

        grp_alarm = QGroupBox("Alarms")
        grp_alarm.setStyleSheet(get_groupbox_style(COLORS['danger']))
        alarm_layout = QVBoxLayout(grp_alarm)

        self.chk_alarms = QCheckBox("Alarms enabled")
        self.chk_alarms.setChecked(self.engine.alarms.enabled)
        self.chk_alarms.toggled.connect(self.engine.set_alarm_enabled)
        alarm_layout.addWidget(self.chk_alarms)

        prio_row = QHBoxLayout()
        prio_row.addWidget(QLabel("Priority"))
        self.cb_priority = QComboBox()
        for priority in AlarmPriority:
            self.cb_priority.addItem(priority.value.capitalize(), priority.value)
        self.cb_priority.setCurrentIndex(self.cb_priority.findData(self.engine.alarms.priority.value))
        self.cb_priority.currentIndexChanged.connect(
            lambda _i: self.engine.set_alarm_priority(self.cb_priority.currentData())
        )
        prio_row.addWidget(self.cb_priority)
        alarm_layout.addLayout(prio_row)

        btn_row = QHBoxLayout()
        self.btn_test = QPushButton("Test")
        self.btn_test.setStyleSheet(get_button_style("warning"))
        self.btn_test.clicked.connect(self.engine.test_alarm)
        self.btn_silence = QPushButton("Silence 2 min")
        self.btn_silence.setStyleSheet(get_button_style("neutral"))
        self.btn_silence.clicked.connect(self.engine.silence_alarm)
        self.btn_reset = QPushButton("Reset")
        self.btn_reset.setStyleSheet(get_button_style("danger"))
        self.btn_reset.clicked.connect(self.engine.reset_alarms)
        for btn in (self.btn_test, self.btn_silence, self.btn_reset):
            btn_row.addWidget(btn)
        alarm_layout.addLayout(btn_row)
        layout.addWidget(grp_alarm)

        grp_audio = QGroupBox("Audio")
        grp_audio.setStyleSheet(get_groupbox_style(COLORS['info']))
        audio_layout = QVBoxLayout(grp_audio)
        self.chk_audio = QCheckBox("Audio enabled")
        self.chk_audio.setChecked(self.engine.audio_enabled)
        self.chk_audio.setEnabled(self.engine.audio_available)
        self.chk_audio.toggled.connect(self.engine.set_audio_enabled)
        audio_layout.addWidget(self.chk_audio)

        self.sl_volume = QSlider(Qt.Horizontal)
        self.sl_volume.setRange(0, 100)
        self.sl_volume.setValue(int(self.engine.volume * 100))
        self.sl_volume.valueChanged.connect(lambda v: self.engine.set_volume(v / 100.0))
        audio_layout.addWidget(QLabel("Volume"))
        audio_layout.addWidget(self.sl_volume)
        layout.addWidget(grp_audio)
        layout.addStretch()

    # --- NIBP / Display tab ---

    def setup_display_tab(self):
        layout = QVBoxLayout(self.tab_display)

        grp_nibp = QGroupBox("NIBP")
        grp_nibp.setStyleSheet(get_groupbox_style(COLORS['bp']))
        nibp_layout = QVBoxLayout(grp_nibp)
        row = QHBoxLayout()
        self.btn_nibp_start = QPushButton("Start")
        self.btn_nibp_start.setStyleSheet(get_button_style("primary"))
        self.btn_nibp_start.clicked.connect(self.engine.start_nibp)
        self.btn_nibp_stop = QPushButton("Stop")
        self.btn_nibp_stop.setStyleSheet(get_button_style("neutral"))
        self.btn_nibp_stop.clicked.connect(self.engine.stop_nibp)
        row.addWidget(self.btn_nibp_start)
        row.addWidget(self.btn_nibp_stop)
        nibp_layout.addLayout(row)

        form = QFormLayout()
        self.sb_nibp_interval = QSpinBox()
        self.sb_nibp_interval.setRange(0, 60)
        self.sb_nibp_interval.setSuffix(" min")
        self.sb_nibp_interval.setValue(self.engine.nibp.interval_minutes)
        self.sb_nibp_interval.valueChanged.connect(self.engine.set_nibp_interval)
        form.addRow("Auto interval", self.sb_nibp_interval)
        nibp_layout.addLayout(form)
        layout.addWidget(grp_nibp)

        grp_display = QGroupBox("Display")
        grp_display.setStyleSheet(get_groupbox_style(COLORS['primary']))
        disp_layout = QFormLayout(grp_display)
        self.cb_speed = QComboBox()
        for speed in (25, 50):
            self.cb_speed.addItem(f"{speed} mm/s", speed)
        self.cb_speed.setCurrentIndex(self.cb_speed.findData(self.engine.waveform_speed))
        self.cb_speed.currentIndexChanged.connect(
            lambda _i: self.engine.set_waveform_speed(self.cb_speed.currentData())
        )
        disp_layout.addRow("Sweep speed", self.cb_speed)

        self.btn_freeze = QPushButton("Freeze")
        self.btn_freeze.setCheckable(True)
        self.btn_freeze.setStyleSheet(get_button_style("neutral"))
        self.btn_freeze.toggled.connect(self.engine.set_frozen)
        disp_layout.addRow(self.btn_freeze)

        self.btn_big_numbers = QPushButton("Big numbers")
        self.btn_big_numbers.setCheckable(True)
        self.btn_big_numbers.setChecked(self.engine.big_numbers)
        self.btn_big_numbers.setStyleSheet(get_button_style("neutral"))
        self.btn_big_numbers.toggled.connect(self.engine.set_big_numbers)
        disp_layout.addRow(self.btn_big_numbers)
        layout.addWidget(grp_display)
        layout.addStretch()

    def sync_with_engine(self):
        """Update controls that the engine can change on its own."""
        self.chk_audio.blockSignals(True)
        self.chk_audio.setChecked(self.engine.audio_enabled)
        self.chk_audio.blockSignals(False)
        self.btn_nibp_start.setEnabled(not self.engine.nibp.in_progress)
