"""Runtime configuration read from environment variables.

Values may come from the process environment or from a `.env` file loaded by
`main.py`. Invalid values raise `RuntimeError` naming the offending variable so
misconfiguration fails at startup rather than mid-round.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_REFERENCE_DIR = BASE_DIR / "public" / "reference-images"
DEFAULT_UPSTREAM_URL = "https://image.pollinations.ai/prompt/"
MAX_ROUND_DURATION = 60


def _env_int(name: str, default: int, minimum: int, maximum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not an integer") from exc
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise RuntimeError(f"{name}={value} must be {bounds}")
    return value


def _env_float(name: str, default: float, minimum: float, maximum: Optional[float] = None, strict: bool = False) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a number") from exc
    too_small = value <= minimum if strict else value < minimum
    if too_small or (maximum is not None and value > maximum):
        raise RuntimeError(f"{name}={value} is out of range")
    return value


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    """Configuration for rounds, scoring and the upstream image provider."""

    round_duration_seconds: int = MAX_ROUND_DURATION
    tick_interval_seconds: float = 1.0
    min_prompt_length: int = 4
    score_canvas_size: int = 256
    score_threshold: float = 0.15
    upstream_base_url: str = DEFAULT_UPSTREAM_URL
    upstream_timeout_seconds: float = 60.0
    generation_width: int = 512
    generation_height: int = 512
    reference_image_dir: Path = field(default=DEFAULT_REFERENCE_DIR)
    generation_endpoint: Optional[str] = None
    round_retention_seconds: float = 300.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        reference_dir = _env_str("REFERENCE_IMAGE_DIR", None)
        return cls(
            round_duration_seconds=_env_int("ROUND_DURATION_SECONDS", MAX_ROUND_DURATION, 1, MAX_ROUND_DURATION),
            tick_interval_seconds=_env_float("TICK_INTERVAL_SECONDS", 1.0, 0.0, strict=True),
            min_prompt_length=_env_int("MIN_PROMPT_LENGTH", 4, 1),
            score_canvas_size=_env_int("SCORE_CANVAS_SIZE", 256, 1),
            score_threshold=_env_float("SCORE_THRESHOLD", 0.15, 0.0, 1.0),
            upstream_base_url=_env_str("UPSTREAM_BASE_URL", DEFAULT_UPSTREAM_URL),
            upstream_timeout_seconds=_env_float("UPSTREAM_TIMEOUT_SECONDS", 60.0, 0.0, strict=True),
            generation_width=_env_int("GENERATION_WIDTH", 512, 1),
            generation_height=_env_int("GENERATION_HEIGHT", 512, 1),
            reference_image_dir=Path(reference_dir).expanduser() if reference_dir else DEFAULT_REFERENCE_DIR,
            generation_endpoint=_env_str("GENERATION_ENDPOINT", None),
            round_retention_seconds=_env_float("ROUND_RETENTION_SECONDS", 300.0, 0.0),
            log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        )
