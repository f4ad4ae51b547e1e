# -*- coding: utf-8 -*-
########################
# score_store.py
########################
# Purpose:
# - Persists the best score ever achieved across process restarts.
# - One JSON record: {"high_score": <int>}.
#
# Design notes:
# - No Qt usage.
# - load() never fails a session start: absent, unreadable or malformed files read as 0.
# - save() overwrites through a temporary file and an atomic replace.
#
########################
# Interfaces:
# Public classes:
# - class ScoreStoreError(RuntimeError)
# - class ScoreStore
#   - __init__(file_path: Optional[pathlib.Path] = None)
#   - file_path -> pathlib.Path
#   - load() -> int
#   - save(score: int) -> None
#
# Public functions:
# - default_high_score_path() -> pathlib.Path
# - from_app_config(app_config: AppConfig) -> ScoreStore
#
########################

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir

from config import APP_NAME, AppConfig


logger = logging.getLogger(__name__)

_RECORD_KEY = "high_score"


class ScoreStoreError(RuntimeError):
    pass


def default_high_score_path() -> Path:
    return Path(user_data_dir(APP_NAME, False)) / "high_score.json"


class ScoreStore:
    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = Path(file_path) if file_path is not None else default_high_score_path()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> int:
        if not self._file_path.exists():
            return 0
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exception:
            logger.warning("Ignoring unreadable high score file %s: %s", self._file_path, exception)
            return 0

        value = payload.get(_RECORD_KEY) if isinstance(payload, dict) else None
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning("Ignoring malformed high score record in %s: %r", self._file_path, payload)
            return 0
        return int(value)

    def save(self, score: int) -> None:
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise ValueError(f"High score must be a non-negative integer, got {score!r}")

        temporary_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            temporary_path.write_text(json.dumps({_RECORD_KEY: int(score)}, ensure_ascii=False), encoding="utf-8")
            temporary_path.replace(self._file_path)
        except OSError as exception:
            raise ScoreStoreError(f"Failed to write high score to {self._file_path}: {exception}") from exception


def from_app_config(app_config: AppConfig) -> ScoreStore:
    configured_path = app_config.storage.high_score_path
    if configured_path:
        return ScoreStore(Path(configured_path).expanduser())
    return ScoreStore()


def _run_unit_tests() -> None:
    import tempfile

    with tempfile.TemporaryDirectory() as temporary_directory:
        store = ScoreStore(Path(temporary_directory) / "nested" / "high_score.json")
        assert store.load() == 0
        store.save(340)
        assert store.load() == 340
        store.save(120)
        assert store.load() == 120

        store.file_path.write_text("{not json", encoding="utf-8")
        assert store.load() == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("score_store.py: ok")
