from __future__ import annotations

import logging
import sys
import threading
from typing import TextIO

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_init_lock = threading.Lock()
_initialised = False


def init_logging(level: str = "INFO", stream: TextIO | None = None) -> bool:
    """Install the root log handler once per process.

    Returns True if this call configured logging, False if an earlier call
    already had. Later calls never replace the first configuration.
    """
    global _initialised
    if _initialised:
        return False

    with _init_lock:
        if _initialised:
            return False
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.INFO),
            format=_FORMAT,
            stream=stream if stream is not None else sys.stderr,
            force=True,
        )
        _initialised = True
    return True
