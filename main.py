import logging
import os
import sys

logger = logging.getLogger("orbit_viewer")


def configure_logging() -> None:
    level_name = os.environ.get("ORBIT_VIEWER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="[%(asctime)s] %(levelname)s | %(name)s | %(message)s", datefmt="%H:%M:%S")


def run_default_app() -> int:
    configure_logging()
    try:
        from qt_app.main_window import run_qt_app
    except ImportError as exc:
        logger.error("Qt viewer unavailable: %s", exc)
        return 1
    return int(run_qt_app())


if __name__ == "__main__":
    sys.exit(run_default_app())
