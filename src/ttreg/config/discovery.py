"""Config file discovery.

Walk-up finder locates ttreg.toml the way git finds .git/, so the tool
can be run from any directory below the deployment root.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "ttreg.toml"
CONFIG_ENV_VAR = "TTREG_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the ttreg.toml governing *start* (default: cwd), or None.

    ``TTREG_CONFIG`` wins over the walk-up when set; if it points at a
    missing file, no config is used.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
