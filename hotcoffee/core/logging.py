from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def configure_logging(level: str | int = logging.INFO) -> None:
    """Attach a single stream handler to the ``hotcoffee`` logger tree."""
    global _configured
    root = logging.getLogger("hotcoffee")
    root.setLevel(level)
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True
