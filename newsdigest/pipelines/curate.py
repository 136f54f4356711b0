"""End-to-end curation: load candidates, deduplicate, score, select, export."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ..data.loader import load_candidates, load_history, write_history
from ..data.models import SelectionResult
from ..dedup.engine import DedupConfig, DeduplicationEngine
from ..nlp.extraction import FingerprintExtractor, default_extractor
from ..nlp.lexicon import Lexicon
from ..scoring.scorer import DEFAULT_SCORING_PATH, QualityScorer, ScoringConfig, ScoringTables
from ..selection.selector import SelectionConfig, TopNewsSelector
from ..utils.config import config_section, load_config
from ..utils.io import write_json
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


def run_pipeline(
    config_path: str | Path = "config/pipeline.yaml",
    target_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> SelectionResult:
    config = load_config(config_path)

    data_cfg = config_section(config, "data")
    candidates_path = data_cfg.get("candidates_path", "data/candidates.json")
    candidates = load_candidates(candidates_path, now=now)

    history = load_history(data_cfg.get("history_path"))

    engine = _build_engine(config)
    selector = TopNewsSelector(
        SelectionConfig.from_mapping(config_section(config, "selection")),
        engine=engine,
        scorer=_build_scorer(config),
    )
    result = selector.select(candidates, target_count, prior_day_items=history, now=now)
    if not result.selected:
        LOGGER.warning("Selection is empty; writing empty outputs")

    output_cfg = config_section(config, "output")
    selection_path = output_cfg.get("selection_path", "artifacts/selection.json")
    metrics_path = output_cfg.get("metrics_path", "artifacts/selection_metrics.json")
    history_path = output_cfg.get("history_path") or data_cfg.get("history_path")

    write_json(selection_path, [scored.to_record() for scored in result.selected])
    write_json(metrics_path, _metrics_payload(result, engine))
    if history_path:
        write_history(history_path, result.items)
    LOGGER.info("Selection saved to %s", selection_path)
    return result


def _build_engine(config: Dict[str, Any]) -> DeduplicationEngine:
    lexicon_path = config.get("lexicon_path")
    extractor: FingerprintExtractor
    if lexicon_path:
        extractor = FingerprintExtractor(Lexicon.from_yaml(lexicon_path))
    else:
        extractor = default_extractor()
    return DeduplicationEngine(DedupConfig.from_mapping(config_section(config, "dedup")), extractor=extractor)


def _build_scorer(config: Dict[str, Any]) -> QualityScorer:
    scoring_cfg = dict(config_section(config, "scoring"))
    tables_path = scoring_cfg.pop("tables_path", None) or DEFAULT_SCORING_PATH
    return QualityScorer(ScoringTables.from_yaml(tables_path), ScoringConfig.from_mapping(scoring_cfg))


def _metrics_payload(result: SelectionResult, engine: DeduplicationEngine) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(result.stats)
    payload["dedup"] = engine.report()
    payload["dropped"] = [{"title": item.title, "url": item.url, "reason": reason} for item, reason in result.dropped]
    return payload
