from __future__ import annotations
import logging
import sys

ROOT_LOGGER = "client_patcher"
LOG_FORMAT = "%(levelname)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Route package logs to the current stderr.

    Repeated calls replace the handler installed by the previous call, so there
    is only ever one.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(root.handlers):
        if getattr(handler, "_client_patcher", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._client_patcher = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.propagate = False
    return root
