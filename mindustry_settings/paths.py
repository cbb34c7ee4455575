from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, Optional

SETTINGS_FILENAME = "settings.bin"
ENV_SETTINGS_PATH = "MINDUSTRY_SETTINGS"


def mindustry_data_dir(env: Optional[Mapping[str, str]] = None, platform: Optional[str] = None) -> Path:
    """Folder where the desktop game keeps its data (saves, maps, settings)."""
    env = os.environ if env is None else env
    platform = sys.platform if platform is None else platform

    if platform.startswith("win"):
        appdata = env.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / "Mindustry"
    if platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "Mindustry"
    xdg = env.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "Mindustry"


def default_settings_path(env: Optional[Mapping[str, str]] = None, platform: Optional[str] = None) -> Path:
    """``$MINDUSTRY_SETTINGS`` if set, else ``settings.bin`` in the game's data folder."""
    env = os.environ if env is None else env
    override = (env.get(ENV_SETTINGS_PATH) or "").strip()
    if override:
        return Path(override).expanduser()
    return mindustry_data_dir(env, platform) / SETTINGS_FILENAME
