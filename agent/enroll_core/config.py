"""
Paths, logging setup, config load/save, safe_print.
"""

import os
import json
import sys
import logging
from pathlib import Path


# ─── Paths ───────────────────────────────────────────────────────
# One config/log per machine, independent of where the exe runs from.
_FOLDER_NAME = "HybridMdmEnroll"

if sys.platform == "win32":
    BASE_DIR = Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData")) / _FOLDER_NAME
else:
    BASE_DIR = Path(__file__).parent.parent

CONFIG_FILE = BASE_DIR / "config.json"
LOG_FILE = BASE_DIR / "enroll.log"

LOG_FORMAT = "%(asctime)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


# ─── Safe print (no crash when --noconsole) ──────────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except Exception:
        pass


# ─── Logging ─────────────────────────────────────────────────────

log = logging.getLogger("mdmenroll")


def setup_logging(log_file=LOG_FILE):
    """Attach the append-only file sink and the console mirror.

    The log is never rotated or truncated; it is the only place failures
    surface, so it is kept whole for manual inspection.
    """
    if log.handlers:
        return log

    log.setLevel(logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)
    except OSError as e:
        safe_print(f"Cannot open log file {log_file}: {e}")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    log.addHandler(console_handler)
    return log


# ─── Config Management ──────────────────────────────────────────

def load_config(config_file=CONFIG_FILE):
    """Load config from disk. Returns dict or None."""
    config_file = Path(config_file)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else None
        except (json.JSONDecodeError, IOError):
            return None
    return None


def save_config(config, config_file=CONFIG_FILE):
    """Save config dict to disk."""
    config_file = Path(config_file)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
    log.info("Config saved to %s", config_file)
