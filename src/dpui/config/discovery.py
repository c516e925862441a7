"""Config file discovery.

Lookup order: ``DPUI_CONFIG`` env var, then a walk-up from the working
directory for ``dpui.toml`` (like git finds ``.git/``), then the per-user
file ``~/.config/dpui/dpui.toml``.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "dpui.toml"
CONFIG_ENV_VAR = "DPUI_CONFIG"
USER_CONFIG_PATH = Path("~/.config/dpui") / CONFIG_FILENAME


def find_config(start: Path | None = None, *, user_config: Path | None = None) -> Path | None:
    """Return the config file to use, or None if there is none.

    An explicit ``DPUI_CONFIG`` that points nowhere disables discovery.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    fallback = (user_config or USER_CONFIG_PATH).expanduser()
    return fallback if fallback.is_file() else None
