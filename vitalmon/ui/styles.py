"""
Shared look for the VitalMon window.

Monitor palette, font sizes and the Qt stylesheet snippets used by the
monitor display, the control panel and the top bar.
"""

# -----------------------------------------------------------------------------
# Palette
# -----------------------------------------------------------------------------

COLORS = {
    # Surfaces
    'background': '#0B0F14',
    'background_alt': '#0F141C',
    'panel': '#151B24',
    'card': '#1C2431',
    'header': '#10151D',
    'border': '#2A3341',

    # Text
    'text': '#E7ECF4',
    'text_secondary': '#C1CAD8',
    'text_dim': '#7E8A9C',

    # Inputs
    'control': '#1A2230',
    'control_hover': '#222C3A',

    # Status
    'primary': '#4C86F7',
    'warning': '#E1A644',
    'danger': '#E26D5C',
    'info': '#4BA3C7',

    # Traces and numerics
    'ecg': '#35C679',
    'spo2': '#4BA3C7',
    'bp': '#D05757',
    'rr': '#D6A34D',
    'temp': '#5A8CC6',
}

# Alarm banner color per priority.
PRIORITY_COLORS = {
    'critical': COLORS['danger'],
    'warning': COLORS['warning'],
    'advisory': COLORS['info'],
}

FONTS = {
    'family': 'Arial',
    'size_small': '11px',
    'size_normal': '12px',
    'size_medium': '13px',
}

# Button variant -> background.
BUTTON_COLORS = {
    "primary": COLORS['primary'],
    "warning": COLORS['warning'],
    "danger": COLORS['danger'],
    "neutral": COLORS['control'],
}

# -----------------------------------------------------------------------------
# Stylesheets
# -----------------------------------------------------------------------------

def get_base_widget_style():
    return f"""
        QWidget {{
            background-color: {COLORS['background']};
            color: {COLORS['text']};
            font-family: {FONTS['family']};
            font-size: {FONTS['size_normal']};
        }}
        QLabel {{
            background: none;
            color: {COLORS['text']};
        }}
    """

def get_groupbox_style(accent_color=None):
    """Card-like QGroupBox; `accent_color` draws a bar on the left edge."""
    accent = f"border-left: 4px solid {accent_color};" if accent_color else ""
    return f"""
        QGroupBox {{
            font-weight: 600;
            font-size: {FONTS['size_medium']};
            border: 1px solid {COLORS['border']};
            border-radius: 8px;
            margin-top: 14px;
            padding: 10px;
            background-color: {COLORS['card']};
            {accent}
        }}
        QGroupBox::title {{
            subcontrol-origin: margin;
            left: 10px;
            padding: 0 4px;
            color: {COLORS['text_secondary']};
        }}
    """

def get_input_style():
    """Spin boxes, combo boxes and check boxes of the control panel."""
    return f"""
        QSpinBox, QDoubleSpinBox, QComboBox {{
            background-color: {COLORS['control']};
            border: 1px solid {COLORS['border']};
            border-radius: 4px;
            padding: 3px 6px;
            min-width: 70px;
        }}
        QSpinBox:focus, QDoubleSpinBox:focus, QComboBox:focus {{
            border-color: {COLORS['primary']};
        }}
        QComboBox QAbstractItemView {{
            background-color: {COLORS['panel']};
            selection-background-color: {COLORS['primary']};
        }}
        QCheckBox {{
            color: {COLORS['text_secondary']};
        }}
    """

def get_button_style(variant="neutral"):
    """QPushButton in one of BUTTON_COLORS; checkable buttons turn primary when checked."""
    base = BUTTON_COLORS.get(variant, COLORS['control'])
    neutral = base == COLORS['control']
    hover = COLORS['control_hover'] if neutral else get_rgba(base, 0.85)
    return f"""
        QPushButton {{
            background-color: {base};
            color: {COLORS['text'] if neutral else 'white'};
            padding: 6px 12px;
            border: 1px solid {COLORS['border']};
            border-radius: 6px;
            font-weight: 600;
        }}
        QPushButton:hover {{
            background-color: {hover};
        }}
        QPushButton:checked {{
            background-color: {COLORS['primary']};
            color: white;
        }}
        QPushButton:disabled {{
            color: {COLORS['text_dim']};
        }}
    """

def get_tinted_frame_style(color, alpha=0.06, border_color=None, border_width=1):
    """Translucent panel background in `color`, used behind numerics."""
    return f"""
        QFrame {{
            background-color: {get_rgba(color, alpha)};
            border: {border_width}px solid {border_color or COLORS['border']};
            border-radius: 6px;
        }}
    """

def get_rgba(hex_color, alpha):
    """'#RRGGBB' plus alpha (0-1) -> 'rgba(r, g, b, a)'."""
    h = hex_color.lstrip('#')
    r, g, b = (int(h[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"
