from __future__ import annotations

import random
from pathlib import Path

import pytest

import score_store
import session
import task_scope


class RecordingScoreStore(score_store.ScoreStore):
    """ScoreStore that counts writes."""

    def __init__(self, file_path: Path) -> None:
        super().__init__(file_path)
        self.saved_scores = []

    def save(self, score: int) -> None:
        self.saved_scores.append(score)
        super().save(score)


@pytest.fixture
def backend() -> task_scope.ManualTimerBackend:
    return task_scope.ManualTimerBackend()


@pytest.fixture
def store(tmp_path: Path) -> RecordingScoreStore:
    return RecordingScoreStore(tmp_path / "high_score.json")


@pytest.fixture
def make_session(backend, store):
    def factory(**kwargs) -> session.SessionStateMachine:
        kwargs.setdefault("random_generator", random.Random(1234))
        return session.SessionStateMachine(backend=backend, score_store_obj=store, **kwargs)

    return factory
