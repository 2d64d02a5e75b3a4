"""
Vision Tracker — plan the year, one life area at a time.
Entry point for the application.
"""

import faulthandler
import logging
import sys
from pathlib import Path

faulthandler.enable()

# Ensure src is importable
sys.path.insert(0, str(Path(__file__).resolve().parent))

from PySide6.QtWidgets import QApplication

from src.config import load_config
from src.context import AppContext
from src.ui.main_window import MainWindow, run_onboarding
from src.ui.styles import APP_STYLESHEET


def setup_logging(log_file: str) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def main() -> None:
    config = load_config()
    setup_logging(config.log_file)
    logger = logging.getLogger(__name__)
    logger.info("Starting Vision Tracker...")

    app = QApplication(sys.argv)
    app.setApplicationName("Vision Tracker")
    app.setOrganizationName("VisionTracker")
    app.setStyleSheet(APP_STYLESHEET)

    ctx = AppContext.create(config)

    # First run: nothing else is reachable until a profile exists
    if not ctx.repo.is_onboarded and not run_onboarding(ctx):
        logger.info("Onboarding cancelled; exiting.")
        ctx.close()
        sys.exit(0)

    window = MainWindow(ctx)
    window.show()

    logger.info("Application started.")
    sys.exit(app.exec())


if __name__ == "__main__":
    main()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The entry point. Reads the configuration, sets up logging, creates the
#   Qt application, builds the AppContext (database, repository, AI client)
#   and opens MainWindow, running onboarding first on a fresh install.
#
# Key points:
#   - load_config() runs before logging is configured so the log file
#     location itself can come from the environment.
#   - QApplication: required singleton for any Qt app. Must be created
#     before any widget, including the welcome dialog.
#   - app.exec(): starts the Qt event loop. The program "lives" inside
#     this loop until the user quits.
#
# Interviewer-friendly talking points:
#   1. The event loop is the heartbeat of GUI apps. All timers, button
#      clicks, and repaints are processed by app.exec().
#   2. Logging to both console and file: console for development, file
#      for debugging user-reported issues.
#   3. The window never builds its own dependencies; main() wires them
#      once and hands them over.
