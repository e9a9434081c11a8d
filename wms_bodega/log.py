import logging
import logging.handlers
from pathlib import Path

from . import config

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging(level: str | None = None, log_dir: str | None = None, to_file: bool | None = None):
    """Consola + archivo rotativo ``logs/main.log``. Idempotente."""
    global _configured
    if _configured:
        return

    level = (level or config.LOG_LEVEL).upper()
    log_dir = log_dir or config.LOG_DIR
    to_file = config.LOG_TO_FILE if to_file is None else to_file

    root = logging.getLogger("wms_bodega")
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(FORMAT))
    root.addHandler(console)

    if to_file:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            Path(log_dir) / "main.log", maxBytes=2 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        fh.setFormatter(logging.Formatter(FORMAT))
        root.addHandler(fh)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    if not name.startswith("wms_bodega"):
        name = f"wms_bodega.{name}"
    return logging.getLogger(name)
