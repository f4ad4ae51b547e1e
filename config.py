"""
config.py

Typed configuration loading and validation for TapDance.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If TAPDANCE_CONFIG_PATH is set, that file is used and must exist.
- Otherwise TapDance searches these paths in order and uses the first one that exists:
  1) ./tapdance_config.json (current working directory)
  2) <user config dir>/TapDance/tapdance_config.json
  3) <user config dir>/TapDance/config.json
- If none exists the built-in defaults are used.

Example config file (tapdance_config.json)
{
  "gameplay": {
    "base_fall_speed": 1.5,
    "hit_window": 60,
    "play_duration_ms": 60000
  },
  "difficulty": {
    "easy_interval_ms": 1200,
    "medium_interval_ms": 900,
    "hard_interval_ms": 600,
    "default_tier": "medium"
  },
  "storage": {
    "high_score_path": null
  },
  "web_server": {
    "enabled": true,
    "host": "0.0.0.0",
    "port": 5178
  }
}
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


logger = logging.getLogger(__name__)


APP_NAME = "TapDance"


class GameplayConfig(BaseModel):
    base_fall_speed: float = Field(default=1.5, gt=0.0, description="Fall progress per reference frame at combo 0.")
    line_distance: float = Field(default=500.0, gt=0.0, description="Fall progress at which a note sits on the judgement line.")
    overrun_margin: float = Field(default=100.0, ge=0.0, description="Progress past the line before an unjudged note despawns.")
    hit_window: float = Field(default=60.0, gt=0.0, description="Maximum distance from the line that still counts as a hit.")
    frame_interval_ms: int = Field(default=16, ge=1, le=1000, description="Ticker period.")
    play_duration_ms: int = Field(default=60000, ge=1000, description="Length of one session.")
    countdown_start: int = Field(default=3, ge=0, le=10)
    countdown_step_ms: int = Field(default=1000, ge=1)
    loading_delay_ms: int = Field(default=1500, ge=0, description="Simulated asset loading time.")
    feedback_cue_ms: int = Field(default=300, ge=1, description="Lifetime of a lane hit or miss cue.")
    dance_cue_ms: int = Field(default=3000, ge=1, description="How long the dancer keeps dancing after a hit.")
    score_popup_ms: int = Field(default=1000, ge=1, description="Lifetime of a floating +points popup.")

    @field_validator("play_duration_ms")
    @classmethod
    def validate_whole_seconds(cls, value: int) -> int:
        if int(value) % 1000 != 0:
            raise ValueError("play_duration_ms must be a whole number of seconds")
        return int(value)


class DifficultyConfig(BaseModel):
    easy_interval_ms: float = Field(default=1200.0, gt=0.0)
    medium_interval_ms: float = Field(default=900.0, gt=0.0)
    hard_interval_ms: float = Field(default=600.0, gt=0.0)
    default_tier: str = Field(default="medium", description="easy, medium or hard")

    @field_validator("default_tier")
    @classmethod
    def normalize_default_tier(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if normalized not in {"easy", "medium", "hard"}:
            return "medium"
        return normalized

    @model_validator(mode="after")
    def validate_strictly_decreasing(self) -> "DifficultyConfig":
        if not (self.easy_interval_ms > self.medium_interval_ms > self.hard_interval_ms):
            raise ValueError("spawn intervals must strictly decrease from easy to medium to hard")
        return self


class StorageConfig(BaseModel):
    high_score_path: Optional[str] = Field(default=None, description="Override for the high score JSON file.")

    @field_validator("high_score_path")
    @classmethod
    def normalize_optional_path(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class WebServerConfig(BaseModel):
    enabled: bool = Field(default=True, description="Start the phone controller web server.")
    host: str = Field(default="0.0.0.0", description="Bind address for local web server.")
    port: int = Field(default=5178, ge=1, le=65535, description="Port for local web server.")


class AppConfig(BaseModel):
    gameplay: GameplayConfig = Field(default_factory=GameplayConfig)
    difficulty: DifficultyConfig = Field(default_factory=DifficultyConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    web_server: WebServerConfig = Field(default_factory=WebServerConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir(APP_NAME, False))
    return [
        Path.cwd() / "tapdance_config.json",
        config_directory / "tapdance_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("TAPDANCE_CONFIG_PATH", "").strip()
    if explicit_path_text:
        explicit_path = Path(explicit_path_text)
        if not explicit_path.exists():
            raise FileNotFoundError(f"TAPDANCE_CONFIG_PATH points at a missing file: {explicit_path}")
        return explicit_path

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_config_object(config_path: Path) -> Dict[str, Any]:
    with config_path.open("r", encoding="utf-8") as config_file:
        try:
            loaded = json.load(config_file)
        except json.JSONDecodeError as exception:
            raise ValueError(f"{config_path} is not valid JSON ({exception})") from exception

    if not isinstance(loaded, dict):
        raise ValueError(f"{config_path} must hold a JSON object at the top level")
    return loaded


def _parse_env_bool(value_text: str) -> bool:
    lowered = value_text.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(value_text)


# (environment variable, config section, field, parser)
_ENVIRONMENT_OVERRIDES: Tuple[Tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("TAPDANCE_BASE_FALL_SPEED", "gameplay", "base_fall_speed", float),
    ("TAPDANCE_HIT_WINDOW", "gameplay", "hit_window", float),
    ("TAPDANCE_PLAY_DURATION_MS", "gameplay", "play_duration_ms", int),
    ("TAPDANCE_DEFAULT_TIER", "difficulty", "default_tier", str),
    ("TAPDANCE_HIGH_SCORE_PATH", "storage", "high_score_path", str),
    ("TAPDANCE_WEB_ENABLED", "web_server", "enabled", _parse_env_bool),
    ("TAPDANCE_WEB_HOST", "web_server", "host", str),
    ("TAPDANCE_WEB_PORT", "web_server", "port", int),
)


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Layer TAPDANCE_* variables over the file values. Unparseable values are skipped."""
    merged: Dict[str, Any] = dict(config_dict)
    for env_name, section_name, field_name, parse in _ENVIRONMENT_OVERRIDES:
        raw_value = os.environ.get(env_name, "").strip()
        if not raw_value:
            continue
        try:
            parsed_value = parse(raw_value)
        except ValueError:
            logger.warning("Ignoring %s=%r (not a valid %s)", env_name, raw_value, field_name)
            continue
        existing_section = merged.get(section_name)
        section = dict(existing_section) if isinstance(existing_section, dict) else {}
        section[field_name] = parsed_value
        merged[section_name] = section
    return merged


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_config_object(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "(defaults)"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def main() -> int:
    """Print the effective config (or the load error) as JSON."""
    try:
        config, resolved_path = load_config()
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False))
        return 2

    print(
        json.dumps(
            {"ok": True, "config_path": None if resolved_path is None else str(resolved_path), "config": config.model_dump()},
            ensure_ascii=False,
            indent=2,
        )
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
