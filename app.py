# app.py
import os
import sys

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from PySide6.QtCore import QThreadPool
from PySide6.QtWidgets import QApplication

from data_acquisition import ApiDataSource
from logging_setup import get_logger, setup_logging
from settings import SettingsManager
from ui_main_window import MainWindow


def shutdown(settings: SettingsManager, source: ApiDataSource, pool: QThreadPool) -> None:
    settings.save()
    # las lecturas en curso siguen usando el cliente HTTP
    pool.waitForDone()
    source.close()


def main() -> None:
    settings = SettingsManager()
    setup_logging(settings.get("log_level"), settings.get("log_file"))
    logger = get_logger("app")

    app = QApplication(sys.argv)

    source = ApiDataSource(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
    )
    logger.info("Usando API %s", source.base_url)

    window = MainWindow(source=source, settings=settings)
    window.resize(1000, 750)
    window.show()

    exit_code = app.exec()

    shutdown(settings, source, QThreadPool.globalInstance())

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
