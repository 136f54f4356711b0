import json
from datetime import datetime, timezone
from pathlib import Path

import yaml

from newsdigest.pipelines.curate import run_pipeline
from newsdigest.utils.io import read_json

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

CANDIDATES = [
    {
        "title": "OpenAI releases GPT-5 with stronger reasoning",
        "url": "https://news.example.com/gpt-5",
        "source": "TechCrunch",
        "publishedAt": "2026-10-19T09:00:00Z",
        "region": "overseas",
    },
    {
        "title": "OpenAI GPT-5 release: what changed",
        "url": "https://news.example.com/gpt-5",
        "source": "The Verge",
        "publishedAt": "2026-10-19T10:00:00Z",
        "region": "overseas",
    },
    {
        "title": "百度发布文心大模型新版本",
        "url": "https://news.example.com/wenxin",
        "source": "机器之心",
        "publishedAt": "2026-10-19T07:00:00Z",
        "region": "国内",
    },
    {
        "title": "Best hotel deals for the holidays",
        "url": "https://news.example.com/hotels",
        "source": "Travel Weekly",
        "region": "overseas",
    },
]


def write_config(tmp_path: Path) -> Path:
    candidates_path = tmp_path / "candidates.json"
    candidates_path.write_text(json.dumps(CANDIDATES, ensure_ascii=False), encoding="utf-8")
    config = {
        "data": {
            "candidates_path": str(candidates_path),
            "history_path": str(tmp_path / "history.json"),
        },
        "selection": {"target_count": 14},
        "output": {
            "selection_path": str(tmp_path / "out" / "selection.json"),
            "metrics_path": str(tmp_path / "out" / "metrics.json"),
            "history_path": str(tmp_path / "history.json"),
        },
    }
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text(yaml.safe_dump(config, allow_unicode=True), encoding="utf-8")
    return config_path


def test_run_pipeline_writes_selection_metrics_and_history(tmp_path: Path):
    config_path = write_config(tmp_path)

    result = run_pipeline(config_path, now=NOW)

    selection = read_json(tmp_path / "out" / "selection.json")
    metrics = read_json(tmp_path / "out" / "metrics.json")
    history = read_json(tmp_path / "history.json")

    assert [record["url"] for record in selection] == [scored.url for scored in result.selected]
    assert {record["url"] for record in selection} == {
        "https://news.example.com/gpt-5",
        "https://news.example.com/wenxin",
    }
    assert all("score" in record and "breakdown" in record for record in selection)
    assert metrics["selected_count"] == 2
    assert metrics["dropped_count"] == 2
    assert metrics["dedup"]["duplicates_found"] == 1
    assert {entry["reason"] for entry in metrics["dropped"]} == {"duplicate (same URL)", "rejected (off-topic)"}
    assert history["count"] == 2


def test_second_run_drops_what_was_already_published(tmp_path: Path):
    config_path = write_config(tmp_path)
    run_pipeline(config_path, now=NOW)

    result = run_pipeline(config_path, now=NOW)

    assert result.selected == []
    assert read_json(tmp_path / "out" / "selection.json") == []
    assert read_json(tmp_path / "history.json")["count"] == 0


def test_target_override(tmp_path: Path):
    config_path = write_config(tmp_path)
    result = run_pipeline(config_path, target_count=1, now=NOW)
    assert len(result.selected) == 1
