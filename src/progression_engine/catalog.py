"""Reward card catalog: YAML loader that parses unlock conditions once."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from . import config
from .models import RewardCard, ensure_rarity
from .unlocks import condition_to_dict, parse_condition


def parse_card(entry: Mapping[str, Any]) -> RewardCard:
    card_id = entry.get("id")
    if not card_id:
        raise ValueError(f"Card entry is missing an id: {dict(entry)!r}")
    raw_condition = entry.get("unlockCondition")
    if not isinstance(raw_condition, Mapping):
        raise ValueError(f"Card '{card_id}' has no unlockCondition mapping")
    return RewardCard(
        id=str(card_id),
        name=entry.get("nameEn") or entry.get("name") or str(card_id),
        description=entry.get("descriptionEn") or entry.get("description", ""),
        rarity=ensure_rarity(entry.get("rarity")),
        category=entry.get("category", ""),
        image_url=entry.get("imageUrl"),
        condition=parse_condition(raw_condition),
    )


def parse_catalog(entries: Iterable[Mapping[str, Any]]) -> tuple[RewardCard, ...]:
    """Parse card entries, rejecting duplicate ids."""
    cards: list[RewardCard] = []
    seen: set[str] = set()
    for entry in entries:
        card = parse_card(entry)
        if card.id in seen:
            raise ValueError(f"Duplicate card id '{card.id}' in catalog")
        seen.add(card.id)
        cards.append(card)
    return tuple(cards)


def load_catalog(path: Path | None = None) -> tuple[RewardCard, ...]:
    """Read the YAML catalog at ``path`` (default: ``config.CATALOG_PATH``)."""
    file_path = path or config.CATALOG_PATH
    with open(file_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or []
    if isinstance(raw, Mapping):
        raw = raw.get("cards", [])
    return parse_catalog(raw)


def card_to_dict(card: RewardCard) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": card.id,
        "nameEn": card.name,
        "descriptionEn": card.description,
        "rarity": card.rarity,
        "category": card.category,
        "unlockCondition": condition_to_dict(card.condition),
    }
    if card.image_url:
        data["imageUrl"] = card.image_url
    return data


def dump_catalog(cards: Iterable[RewardCard]) -> str:
    return yaml.safe_dump({"cards": [card_to_dict(card) for card in cards]}, sort_keys=False, allow_unicode=True)


__all__ = ["card_to_dict", "dump_catalog", "load_catalog", "parse_card", "parse_catalog"]
