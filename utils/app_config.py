"""Pre-DB bootstrap configuration. Zero imports from storage or services.

Stores user preferences that must be known before opening the DB (db_folder)
plus forecast defaults. Config lives in ~/.cashflow/config.json.
"""
import json
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path

from utils.constants import DEFAULT_HORIZON_MONTHS, SEED_BALANCE

CONFIG_DIR = Path.home() / ".cashflow"
CONFIG_FILE = CONFIG_DIR / "config.json"


def load_config(path: Path | None = None) -> dict:
    """Returns {} on missing or corrupt file; never raises."""
    try:
        with open(path or CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict, path: Path | None = None) -> None:
    """Creates the config dir if needed; atomic write via .tmp + os.replace()."""
    target = Path(path or CONFIG_FILE)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, target)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def get_db_folder(path: Path | None = None) -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config(path).get("db_folder")


def set_db_folder(folder: str | None, path: Path | None = None) -> None:
    """Update db_folder in config and save."""
    config = load_config(path)
    if folder is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = folder
    save_config(config, path)


def get_horizon_months(path: Path | None = None) -> int:
    value = load_config(path).get("horizon_months", DEFAULT_HORIZON_MONTHS)
    try:
        months = int(value)
    except (TypeError, ValueError):
        return DEFAULT_HORIZON_MONTHS
    return months if months > 0 else DEFAULT_HORIZON_MONTHS


def get_seed_balance(path: Path | None = None) -> Decimal:
    """Opening balance used for the first projected month. Stored as a string."""
    value = load_config(path).get("seed_balance")
    if value is None:
        return SEED_BALANCE
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return SEED_BALANCE
