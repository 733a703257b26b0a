from __future__ import annotations

from pathlib import Path
import os

DATA_DIR_ENV = "LEAGUESIM_DATA_DIR"


def get_base_dir() -> Path:
    """Return the directory holding the ``leaguesim`` package."""
    return Path(__file__).resolve().parent.parent


def get_data_dir() -> Path:
    """Return the directory with the bundled tables and tuning defaults.

    ``LEAGUESIM_DATA_DIR`` points the engine at an alternative copy, e.g. a
    directory of recalibrated gate files.
    """
    override = os.getenv(DATA_DIR_ENV)
    if override:
        return Path(override)
    return get_base_dir() / "leaguesim" / "data"
