"""Logging-related utilities.

Query results are printed to stdout; everything diagnostic goes through
``logging`` on stderr so it can be silenced or redirected separately.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "[%(levelname)s] %(message)s"
VERBOSE_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_cli_logging(verbose: bool = False, stream: Optional[TextIO] = None) -> None:
    """Configure the root logger for command line use.

    Does nothing if logging is already configured (e.g. when embedded or
    under pytest's log capture), apart from lowering the level for
    ``verbose``.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format=VERBOSE_LOG_FORMAT if verbose else LOG_FORMAT,
            handlers=[logging.StreamHandler(stream or sys.stderr)],
        )
    elif verbose:
        root.setLevel(logging.DEBUG)
