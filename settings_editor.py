#!/usr/bin/env python3
"""Convenience entry point.

Runs the ``mindustry_settings`` command line tool without installing the
package.
"""

from mindustry_settings.api import *  # re-export for scripts
from mindustry_settings.cli import main as _main


if __name__ == "__main__":
    raise SystemExit(_main())
