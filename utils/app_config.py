"""Bootstrap configuration. Zero imports from the rest of the app besides constants.

Two layers, read before the DB is opened:
  * ~/.expense_engine/config.json for user preferences written by the app
  * environment variables (optionally from a .env file) which win over it
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from utils.constants import (
    CONFIG_DIR_NAME,
    MAX_ALERTS,
    OVERDUE_HIGH_AMOUNT,
    PROCESSING_THROTTLE_MINUTES,
)

load_dotenv()

CONFIG_DIR = Path.home() / CONFIG_DIR_NAME
CONFIG_FILE = CONFIG_DIR / "config.json"


@dataclass
class EngineSettings:
    db_folder: str | None = None
    throttle_minutes: float = PROCESSING_THROTTLE_MINUTES
    overdue_high_amount: float = OVERDUE_HIGH_AMOUNT
    max_alerts: int = MAX_ALERTS
    log_level: str = "INFO"


def load_config(config_file: Path = CONFIG_FILE) -> dict:
    """Returns {} on missing or corrupt file, never raises."""
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return {}


def save_config(config: dict, config_file: Path = CONFIG_FILE) -> None:
    """Creates the config dir if needed; atomic write via .tmp + os.replace()."""
    config_file.parent.mkdir(parents=True, exist_ok=True)
    tmp = config_file.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, config_file)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def get_db_folder(config_file: Path = CONFIG_FILE) -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config(config_file).get("db_folder")


def set_db_folder(path: str | None, config_file: Path = CONFIG_FILE) -> None:
    """Update db_folder in config and save."""
    config = load_config(config_file)
    if path is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = path
    save_config(config, config_file)


def _env_number(name: str, fallback, cast=float):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return fallback
    try:
        return cast(raw)
    except ValueError:
        return fallback


def get_settings(config_file: Path = CONFIG_FILE) -> EngineSettings:
    """Merge config.json with EXPENSE_ENGINE_* environment overrides."""
    config = load_config(config_file)
    base = EngineSettings(
        db_folder=config.get("db_folder"),
        throttle_minutes=config.get("throttle_minutes", PROCESSING_THROTTLE_MINUTES),
        overdue_high_amount=config.get("overdue_high_amount", OVERDUE_HIGH_AMOUNT),
        max_alerts=config.get("max_alerts", MAX_ALERTS),
        log_level=config.get("log_level", "INFO"),
    )
    return EngineSettings(
        db_folder=os.getenv("EXPENSE_ENGINE_DB_FOLDER") or base.db_folder,
        throttle_minutes=_env_number("EXPENSE_ENGINE_THROTTLE_MINUTES", base.throttle_minutes),
        overdue_high_amount=_env_number("EXPENSE_ENGINE_OVERDUE_HIGH_AMOUNT", base.overdue_high_amount),
        max_alerts=_env_number("EXPENSE_ENGINE_MAX_ALERTS", base.max_alerts, int),
        log_level=(os.getenv("EXPENSE_ENGINE_LOG_LEVEL") or base.log_level).upper(),
    )
