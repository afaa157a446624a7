import os
import tempfile
from pathlib import Path

from fetchexec.internal.constants import APP_NAME, ENV_CACHE_DIR, ENV_HOME, LOG_FILE_NAME


# ---------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------

def get_app_data_dir() -> Path:
    """
    Returns the application data directory.

    - FETCHEXEC_HOME when set
    - Windows: %APPDATA%\\fetchexec
    - Linux/macOS: ~/.fetchexec
    """
    override = os.environ.get(ENV_HOME)
    if override:
        path = Path(override)
    elif os.name == "nt":  # Windows
        base = os.environ.get("APPDATA", str(Path.home()))
        path = Path(base) / APP_NAME
    else:  # Linux / macOS
        path = Path.home() / f".{APP_NAME}"

    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """
    Directory holding downloaded installers.

    Defaults to the platform temporary directory so the OS can reclaim it.
    """
    override = os.environ.get(ENV_CACHE_DIR)
    if override:
        path = Path(override)
        path.mkdir(parents=True, exist_ok=True)
        return path
    return Path(tempfile.gettempdir())


# ---------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------

def get_log_dir() -> Path:
    path = get_app_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_log_file() -> Path:
    return get_log_dir() / LOG_FILE_NAME
