"""
Application stylesheet.
Soft light palette: warm paper background, indigo accent.
"""

# Shared colors, also used by widgets that style themselves
PAPER = "#f8f7f4"
SURFACE = "#ffffff"
BORDER = "#e4e2dc"
INK = "#2b2a33"
MUTED = "#7a7886"
ACCENT = "#5b5bd6"
ACCENT_SOFT = "#ececfb"
SUCCESS = "#2f9e6e"
WARNING = "#d9822b"
DANGER = "#d64545"

APP_STYLESHEET = f"""
/* ── Base ────────────────────────────────────────────────────────── */
QWidget {{
    background-color: {PAPER};
    color: {INK};
    font-family: "Segoe UI", "Inter", sans-serif;
    font-size: 13px;
}}

/* ── Buttons ─────────────────────────────────────────────────────── */
QPushButton {{
    background-color: {SURFACE};
    color: {INK};
    border: 1px solid {BORDER};
    border-radius: 10px;
    padding: 6px 14px;
    font-weight: 600;
}}

QPushButton:hover {{
    border-color: {ACCENT};
    color: {ACCENT};
}}

QPushButton:disabled {{
    color: #b9b7c2;
    border-color: {BORDER};
}}

QPushButton#primary {{
    background-color: {ACCENT};
    color: white;
    border: none;
}}

QPushButton#primary:hover {{
    background-color: #4a4ac4;
}}

QPushButton#chip {{
    background-color: {ACCENT_SOFT};
    color: {ACCENT};
    border: none;
    border-radius: 12px;
    padding: 3px 12px;
    font-size: 11px;
}}

QPushButton#link {{
    background: transparent;
    border: none;
    color: {MUTED};
    padding: 2px 6px;
}}

QPushButton#link:hover {{
    color: {ACCENT};
}}

/* ── Inputs ──────────────────────────────────────────────────────── */
QLineEdit, QTextEdit, QPlainTextEdit, QComboBox, QDateEdit,
QSpinBox, QDoubleSpinBox {{
    background-color: {SURFACE};
    border: 1px solid {BORDER};
    border-radius: 8px;
    padding: 5px 8px;
    selection-background-color: {ACCENT};
    selection-color: white;
}}

QLineEdit:focus, QTextEdit:focus, QComboBox:focus {{
    border-color: {ACCENT};
}}

QComboBox::drop-down {{
    border: none;
    width: 20px;
}}

/* ── Labels ──────────────────────────────────────────────────────── */
QLabel {{
    background: transparent;
}}

QLabel#greeting {{
    font-size: 22px;
    font-weight: 700;
}}

QLabel#countdown {{
    font-size: 15px;
    font-weight: 600;
    color: {ACCENT};
}}

QLabel#subtitle {{
    color: {MUTED};
}}

QLabel#quote {{
    font-style: italic;
    color: {MUTED};
}}

/* ── Toast ───────────────────────────────────────────────────────── */
QFrame#toast {{
    background-color: {INK};
    border-radius: 10px;
}}

QFrame#toast QLabel {{
    color: white;
}}

/* ── Tree / lists ────────────────────────────────────────────────── */
QTreeWidget, QListWidget, QTextBrowser {{
    background-color: {SURFACE};
    border: 1px solid {BORDER};
    border-radius: 10px;
    padding: 4px;
}}

QTreeWidget::item, QListWidget::item {{
    padding: 4px 2px;
}}

QTreeWidget::item:selected, QListWidget::item:selected {{
    background-color: {ACCENT_SOFT};
    color: {INK};
}}

QHeaderView::section {{
    background-color: {PAPER};
    color: {MUTED};
    border: none;
    padding: 4px;
    font-weight: 600;
}}

/* ── Tabs ────────────────────────────────────────────────────────── */
QTabWidget::pane {{
    border: none;
}}

QTabBar::tab {{
    background: transparent;
    color: {MUTED};
    padding: 8px 16px;
    font-weight: 600;
}}

QTabBar::tab:selected {{
    color: {ACCENT};
    border-bottom: 2px solid {ACCENT};
}}

/* ── Misc ────────────────────────────────────────────────────────── */
QToolTip {{
    background-color: {INK};
    color: white;
    border: none;
    padding: 4px 8px;
}}

QCheckBox {{
    spacing: 8px;
}}

QStatusBar {{
    color: {MUTED};
}}
"""
