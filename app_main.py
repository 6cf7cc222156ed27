"""Application entry point for CourseQt."""

from __future__ import annotations

import argparse
import socket
import sys

import uvicorn

from course_app.constants.about import APP_NAME
from course_app.core.course_manager import CourseManager
from course_app.core.sheet_sync import SheetSyncClient
from course_app.core.storage import CourseRepository, JsonFileStore
from course_app.server.api_server import create_api_app, start_api_server
from course_app.utils.logging_config import configure_logging
from course_app.utils.settings import AppSettings


def _determine_learner_url(port: int) -> str:
    """Best-effort determination of the local IP for the learner-facing URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="courseqt", description=f"{APP_NAME} admin console and learner API")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="serve the learner API only, without the Qt admin console",
    )
    parser.add_argument(
        "--no-sync",
        action="store_true",
        help="skip the initial pull from the sync endpoint",
    )
    return parser.parse_args(argv)


def build_manager(settings: AppSettings) -> CourseManager:
    repository = CourseRepository(JsonFileStore(settings.data_path))
    sync = SheetSyncClient(settings.sync_url) if settings.sync_url else None
    return CourseManager(repository=repository, sync=sync, seek_tolerance=settings.seek_tolerance)


def main(argv: list[str] | None = None) -> None:
    """Load settings, sync, start the API server, and launch the Qt UI."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logger = configure_logging()

    try:
        settings = AppSettings.from_env()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)

    logger.info("Starting %s with data file %s", APP_NAME, settings.data_path)
    course_manager = build_manager(settings)

    if course_manager.is_sync_enabled() and not args.no_sync:
        if not course_manager.sync_now():
            logger.warning("Initial sync failed; continuing with local data")

    if args.headless:
        uvicorn.run(create_api_app(course_manager), host=settings.host, port=settings.port, log_level="info")
        return

    # Qt is only needed for the console.
    from PySide6.QtWidgets import QApplication

    from course_app.ui.admin_main_window import AdminMainWindow

    start_api_server(course_manager, host=settings.host, port=settings.port)
    learner_url = _determine_learner_url(settings.port)
    logger.info("Learner API available at %s", learner_url)

    app = QApplication(sys.argv)
    window = AdminMainWindow(course_manager=course_manager, learner_url=learner_url)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
