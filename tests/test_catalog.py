from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from progression_engine.catalog import dump_catalog, load_catalog, parse_card, parse_catalog
from progression_engine.models import ChapterComplete, FirstLesson, PerfectQuiz, Streak, UnknownCondition

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_CATALOG = PROJECT_ROOT / "data" / "cards.yaml"


def test_sample_catalog_loads() -> None:
    cards = load_catalog(SAMPLE_CATALOG)
    by_id = {card.id: card for card in cards}

    assert len(cards) == 7
    assert by_id["first-steps"].condition == FirstLesson()
    assert by_id["monthly-master"].condition == Streak(30)
    assert by_id["monthly-master"].rarity == "legendary"
    assert by_id["chapter-master"].condition == ChapterComplete("chapter-1")
    assert by_id["buddha-bodhi"].condition == PerfectQuiz("lesson-1")


def test_default_path_comes_from_config(tmp_path, monkeypatch) -> None:
    path = tmp_path / "cards.yaml"
    path.write_text(
        "- id: only\n  nameEn: Only\n  unlockCondition:\n    type: level_up\n    level: 3\n",
        encoding="utf-8",
    )
    monkeypatch.setattr("progression_engine.config.CATALOG_PATH", path)

    (card,) = load_catalog()
    assert card.id == "only"
    assert card.rarity == "common"


def test_unknown_condition_survives_loading() -> None:
    card = parse_card({"id": "x", "nameEn": "X", "unlockCondition": {"type": "solar_eclipse", "hours": 2}})
    assert card.condition == UnknownCondition("solar_eclipse", {"hours": 2})


def test_missing_id_rejected() -> None:
    with pytest.raises(ValueError, match="missing an id"):
        parse_card({"nameEn": "Nameless", "unlockCondition": {"type": "first_lesson"}})


def test_missing_condition_rejected() -> None:
    with pytest.raises(ValueError, match="unlockCondition"):
        parse_card({"id": "x", "unlockCondition": "first_lesson"})


def test_bad_rarity_rejected() -> None:
    with pytest.raises(ValueError, match="rarity"):
        parse_card({"id": "x", "rarity": "mythic", "unlockCondition": {"type": "first_lesson"}})


def test_duplicate_ids_rejected() -> None:
    entry = {"id": "dup", "unlockCondition": {"type": "first_lesson"}}
    with pytest.raises(ValueError, match="Duplicate"):
        parse_catalog([entry, entry])


def test_dump_matches_persisted_shape() -> None:
    cards = load_catalog(SAMPLE_CATALOG)
    dumped = yaml.safe_load(dump_catalog(cards))

    original = yaml.safe_load(SAMPLE_CATALOG.read_text(encoding="utf-8"))
    assert [entry["unlockCondition"] for entry in dumped["cards"]] == [
        entry["unlockCondition"] for entry in original["cards"]
    ]
    assert parse_catalog(dumped["cards"]) == cards
