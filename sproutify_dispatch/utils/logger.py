import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install a single stdout handler on the root logger.

    Calling it again replaces the handler instead of stacking a second one.
    """

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if getattr(handler, "_sproutify_handler", False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._sproutify_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root_logger.setLevel(level)

    # uvicorn logs every request line on its own
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
