import logging
from pathlib import Path

__all__ = ["logger", "setup_logging"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "focusbuddy.log"

logger = logging.getLogger("focusbuddy")
logger.setLevel(logging.INFO)


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> None:
    """Attach console and (optionally) file handlers once."""
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    has_console = any(
        type(h) is logging.StreamHandler for h in logger.handlers
    )
    if not has_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    if log_dir is None:
        return
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = (log_dir / LOG_FILE_NAME).resolve()
    for handler in logger.handlers:
        if (
            isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == log_path
        ):
            return
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setFormatter(formatter)
    logger.addHandler(fh)
