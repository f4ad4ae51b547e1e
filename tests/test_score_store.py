import json

import pytest

import score_store
from config import AppConfig


def test_missing_file_reads_as_zero(tmp_path):
    assert score_store.ScoreStore(tmp_path / "absent.json").load() == 0


def test_save_then_load(tmp_path):
    store = score_store.ScoreStore(tmp_path / "nested" / "high_score.json")
    store.save(340)
    assert store.load() == 340
    assert json.loads(store.file_path.read_text(encoding="utf-8")) == {"high_score": 340}


@pytest.mark.parametrize("content", ["{broken", "[]", '{"high_score": -5}', '{"high_score": true}', '{"high_score": "9"}'])
def test_malformed_records_read_as_zero(tmp_path, content):
    path = tmp_path / "high_score.json"
    path.write_text(content, encoding="utf-8")
    assert score_store.ScoreStore(path).load() == 0


@pytest.mark.parametrize("value", [-1, True, 1.5, "10"])
def test_save_rejects_invalid_scores(tmp_path, value):
    with pytest.raises(ValueError):
        score_store.ScoreStore(tmp_path / "high_score.json").save(value)


def test_unwritable_location_raises_store_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = score_store.ScoreStore(blocker / "high_score.json")
    with pytest.raises(score_store.ScoreStoreError):
        store.save(10)


def test_from_app_config_uses_configured_path(tmp_path):
    app_config = AppConfig.model_validate({"storage": {"high_score_path": str(tmp_path / "best.json")}})
    assert score_store.from_app_config(app_config).file_path == tmp_path / "best.json"
