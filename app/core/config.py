import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    log_level: str
    log_path: Optional[str]
    draw_max_steps: Optional[int]
    draw_seed: Optional[int]


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None


def load_settings() -> Settings:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_path = os.getenv("LOG_PATH", "logs/secret_santa.log") or None
    draw_max_steps = _optional_int("DRAW_MAX_STEPS")
    draw_seed = _optional_int("DRAW_SEED")

    if draw_max_steps is not None and draw_max_steps <= 0:
        raise ValueError("DRAW_MAX_STEPS must be a positive integer.")

    return Settings(
        log_level=log_level,
        log_path=log_path,
        draw_max_steps=draw_max_steps,
        draw_seed=draw_seed,
    )
