import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _get_env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip() in {"1", "true", "True", "yes", "YES", "y"}


def _get_env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _get_env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return float(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a float") from exc


@dataclass
class Config:
    store_path: Path
    store_write_retries: int
    alarm_sound_path: Path
    check_interval_s: float
    learning_rate: float
    discount_factor: float
    exploration_rate: float
    time_bucket_min: int
    learning_seed: Optional[int]
    debug: bool
    log_level: str
    log_dir: Path


def load_config(env_path: Optional[Path] = None) -> Config:
    if env_path is None:
        env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    store_path = Path(os.getenv("ALARM_STORE_PATH", "data/store.json"))
    store_write_retries = _get_env_int("STORE_WRITE_RETRIES", 2)
    alarm_sound_path = Path(os.getenv("ALARM_SOUND_PATH", "data/alarm.wav"))
    check_interval_s = _get_env_float("ALARM_CHECK_INTERVAL_S", 60.0)
    learning_rate = _get_env_float("LEARNING_RATE", 0.1)
    discount_factor = _get_env_float("DISCOUNT_FACTOR", 0.9)
    exploration_rate = _get_env_float("EXPLORATION_RATE", 0.2)
    time_bucket_min = _get_env_int("LEARNING_TIME_BUCKET_MIN", 1)
    seed_env = os.getenv("LEARNING_SEED")
    learning_seed = _get_env_int("LEARNING_SEED", 0) if seed_env else None
    debug = _get_env_bool("DEBUG", False)
    log_level = os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO").upper()
    log_dir = Path(os.getenv("LOG_DIR", "logs"))

    for name, value in (
        ("LEARNING_RATE", learning_rate),
        ("DISCOUNT_FACTOR", discount_factor),
        ("EXPLORATION_RATE", exploration_rate),
    ):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Environment variable {name} must be between 0 and 1")
    if time_bucket_min < 1:
        logging.warning("LEARNING_TIME_BUCKET_MIN=%s is below 1, using exact times", time_bucket_min)
        time_bucket_min = 1

    return Config(
        store_path=store_path,
        store_write_retries=store_write_retries,
        alarm_sound_path=alarm_sound_path,
        check_interval_s=check_interval_s,
        learning_rate=learning_rate,
        discount_factor=discount_factor,
        exploration_rate=exploration_rate,
        time_bucket_min=time_bucket_min,
        learning_seed=learning_seed,
        debug=debug,
        log_level=log_level,
        log_dir=log_dir,
    )


def setup_logging(log_level: str = "INFO", logs_dir: Path = Path("logs")) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_path = logs_dir / "adaptive_alarm.log"
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=[file_handler, console_handler],
    )
