from __future__ import annotations

import logging
import sys

from .config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Attach a single stderr handler to the `direct_relay` logger tree."""
    settings = settings or get_settings()
    root = logging.getLogger("direct_relay")
    root.setLevel(settings.log_level.upper())
    if any(getattr(h, "_direct_relay", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._direct_relay = True  # type: ignore[attr-defined]
    root.addHandler(handler)
