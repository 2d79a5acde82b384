# dailywall/ui/tray.py
import logging
from datetime import datetime

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal, Slot
from PySide6.QtGui import QAction, QGuiApplication, QIcon
from PySide6.QtWidgets import (
    QApplication,
    QInputDialog,
    QLineEdit,
    QMenu,
    QStyle,
    QSystemTrayIcon,
)

from ..core import config as core_config
from ..core.errors import RefreshStatus
from ..core.pipeline import RefreshResult, WallpaperPipeline

logger = logging.getLogger(__name__)

STARTUP_DELAY_MS = 1000

STATUS_TEXT = {
    RefreshStatus.SUCCESS: "Wallpaper updated",
    RefreshStatus.TRANSPORT_ERROR: "Could not reach the API",
    RefreshStatus.PARSE_ERROR: "Unrecognised API response",
    RefreshStatus.CONTENT_ERROR: "API did not point at an image",
    RefreshStatus.FILESYSTEM_ERROR: "Could not save the image",
    RefreshStatus.PLATFORM_ERROR: "Could not set the wallpaper",
    RefreshStatus.BUSY: "Refresh already running",
}


def qt_primary_display_available() -> bool:
    return QGuiApplication.primaryScreen() is not None


class RefreshSignals(QObject):
    finished = Signal(object)  # RefreshResult


class RefreshWorker(QRunnable):
    """Runs one pipeline refresh on a QThreadPool thread."""

    def __init__(self, pipeline: WallpaperPipeline, display_available: bool):
        super().__init__()
        self.pipeline = pipeline
        self.display_available = display_available # Queried on the GUI thread
        self.signals = RefreshSignals()

    @Slot()
    def run(self):
        # Settings are re-read for every run so dialog edits apply next time
        config = core_config.load_pipeline_config()
        result = self.pipeline.refresh(config, display_available=self.display_available)
        self.signals.finished.emit(result)


class TrayApp(QObject):
    """System tray icon with the refresh / custom API / quit menu and the daily timer."""

    def __init__(self, app: QApplication, pipeline: WallpaperPipeline | None = None):
        super().__init__()
        self.app = app
        self.pipeline = pipeline or WallpaperPipeline()
        self.thread_pool = QThreadPool.globalInstance()

        self.tray = QSystemTrayIcon(self)
        icon = QIcon.fromTheme("preferences-desktop-wallpaper")
        if icon.isNull():
            icon = app.style().standardIcon(QStyle.StandardPixmap.SP_DesktopIcon)
        self.tray.setIcon(icon)
        self.tray.setToolTip("DailyWall")

        self._setup_menu()
        self._show_last_status()

        interval_hours = core_config.get_update_interval_hours()
        self.timer = QTimer(self)
        self.timer.timeout.connect(self.refresh)
        self.timer.start(int(interval_hours * 60 * 60 * 1000))
        logger.info(f"Refresh timer started, interval {interval_hours} hours.")

        self.tray.setVisible(True)
        QTimer.singleShot(STARTUP_DELAY_MS, self.refresh)

    def _setup_menu(self):
        self.menu = QMenu()

        self.refresh_action = QAction("Refresh Now", self.menu)
        self.refresh_action.triggered.connect(self.refresh)
        self.menu.addAction(self.refresh_action)

        self.custom_api_action = QAction("Set Custom API...", self.menu)
        self.custom_api_action.triggered.connect(self.show_custom_api_dialog)
        self.menu.addAction(self.custom_api_action)

        self.status_action = QAction("", self.menu)
        self.status_action.setEnabled(False)
        self.menu.addAction(self.status_action)

        self.menu.addSeparator()

        self.quit_action = QAction("Quit", self.menu)
        self.quit_action.triggered.connect(self.app.quit)
        self.menu.addAction(self.quit_action)

        self.tray.setContextMenu(self.menu)

    @Slot()
    def refresh(self):
        if self.pipeline.busy:
            logger.info("Refresh requested while another is running. Ignoring.")
            return
        logger.info("Starting wallpaper refresh.")
        self.status_action.setText("Refreshing...")
        worker = RefreshWorker(self.pipeline, qt_primary_display_available())
        worker.signals.finished.connect(self.on_refresh_finished)
        self.thread_pool.start(worker)

    @Slot(object)
    def on_refresh_finished(self, result: RefreshResult):
        logger.info(f"Refresh finished: {result.status.value} {result.message}")
        if result.status is RefreshStatus.BUSY:
            return
        timestamp = datetime.now().isoformat(timespec="seconds")
        core_config.record_last_result(result.status.value, result.message, timestamp)
        self._set_status_text(result.status, timestamp)

    def _show_last_status(self):
        config = core_config.load_config()
        last_status = config.get('State', 'last_status', fallback='')
        last_run = config.get('State', 'last_run', fallback='')
        try:
            status = RefreshStatus(last_status)
        except ValueError:
            self.status_action.setText("Not refreshed yet")
            return
        self._set_status_text(status, last_run)

    def _set_status_text(self, status: RefreshStatus, timestamp: str):
        text = STATUS_TEXT.get(status, status.value)
        if timestamp:
            text = f"{text} ({timestamp.replace('T', ' ')})"
        self.status_action.setText(text)

    @Slot()
    def show_custom_api_dialog(self):
        current = core_config.get_custom_api()
        text, ok = QInputDialog.getText(
            None,
            "Set Custom API",
            "Custom wallpaper API URL (leave empty for Bing):",
            QLineEdit.EchoMode.Normal,
            current,
        )
        if ok:
            core_config.set_custom_api(text.strip())
            logger.info(f"Custom API saved: {text.strip() or '(default)'}")
