"""Package logging.

Handlers live on the ``shelfscan`` root logger only. Module loggers returned
by :func:`get_logger` are children that propagate to it, so ``LOG_FILE`` is
opened once however many modules log.
"""

import logging
import os
from typing import Optional, Union

ROOT_NAME = "shelfscan"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _coerce_level(value: Optional[Union[str, int]]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    if isinstance(value, int):
        return value
    return logging.INFO


def configure_root(*, force: bool = False) -> logging.Logger:
    """Attach console (and optional LOG_FILE) handlers to the package root.

    Reads LOG_LEVEL and LOG_FILE from the environment. Runs once unless
    ``force`` is set, which drops and closes existing handlers first.
    """
    root = logging.getLogger(ROOT_NAME)
    if getattr(root, "_shelfscan_configured", False) and not force:
        return root

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    level = _coerce_level(os.environ.get("LOG_LEVEL", "INFO"))
    root.setLevel(level)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
        except OSError:
            root.warning("LOG_FILE could not be opened; continuing without file logging")
        else:
            fh.setFormatter(formatter)
            root.addHandler(fh)

    # Host applications configure their own root logger; keep ours separate.
    root.propagate = False
    setattr(root, "_shelfscan_configured", True)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return the ``shelfscan.<name>`` logger, configuring the package root on first use."""
    configure_root()
    return logging.getLogger(f"{ROOT_NAME}.{name}")
