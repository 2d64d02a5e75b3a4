from .main_window import MainWindow, run_onboarding
from .dashboard_widget import DashboardWidget
from .settings_widget import SettingsWidget

__all__ = ["MainWindow", "DashboardWidget", "SettingsWidget", "run_onboarding"]
