"""
Logging configuration for the registry.

``setup_logging`` attaches a console handler (and optionally a file
handler) to the root logger exactly once.  Registry modules log
through ``logging.getLogger(__name__)``; successful writes are logged
at INFO and authorization denials at WARNING, so the log doubles as a
lightweight trail of who changed which asset.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None, debug: bool = False) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to INFO.
    logfile : Optional[str]
        Path of a file to mirror log records to.  Empty or ``None``
        disables the file handler.
    debug : bool
        Forces DEBUG and keeps per-request access logs from the ASGI
        server, which are otherwise raised to WARNING.
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured, e.g. by pytest or a repeated create_app call.
        return

    numeric_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if not debug:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
