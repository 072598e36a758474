from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping

from questions import TRAIT_ORDER, Trait, is_image_path

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
RESULTS_CONTENT_PATH = BASE_DIR / "data" / "personality_results.json"
DEFAULT_TRAIT = TRAIT_ORDER[0]
DEFAULT_ITEM_LABEL = "The item you should always carry is..."

FALLBACK_TITLES: Dict[Trait, str] = {
    Trait.C: "The Campus Cruiser",
    Trait.P: "The Power Planner",
    Trait.F: "The Free Spirit",
    Trait.L: "The Life of the Party",
}


@dataclass(frozen=True)
class PersonalityResult:
    key: Trait
    title: str
    desc: str = ""
    emoji: str = "🌟"
    img: str = ""
    item_label: str = DEFAULT_ITEM_LABEL
    item_name: str = ""
    item_desc: str = ""
    item_emoji: str = "📦"
    item_img: str = ""

    @property
    def display_name(self) -> str:
        return " ".join(self.title.split("\n"))

    @property
    def has_image(self) -> bool:
        return is_image_path(self.img)

    @property
    def has_item_image(self) -> bool:
        return is_image_path(self.item_img)


def resolve_personality(scores: Mapping[Trait, int]) -> Trait:
    """Dominant trait; the first trait in declared order wins every tie."""
    best = DEFAULT_TRAIT
    best_count = 0
    for trait in TRAIT_ORDER:
        count = scores.get(trait, 0)
        if count > best_count:
            best_count = count
            best = trait
    return best


def load_results(path: Path = RESULTS_CONTENT_PATH) -> Dict[Trait, PersonalityResult]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("Result content missing at %s, using built-in titles", path)
        raw = {}
    except json.JSONDecodeError:
        logger.warning("Result content at %s is not valid JSON, using built-in titles", path)
        raw = {}

    results: Dict[Trait, PersonalityResult] = {}
    for trait in TRAIT_ORDER:
        entry = raw.get(trait.value) or {}
        results[trait] = PersonalityResult(
            key=trait,
            title=entry.get("title") or FALLBACK_TITLES[trait],
            desc=entry.get("desc", ""),
            emoji=entry.get("emoji") or "🌟",
            img=entry.get("img", ""),
            item_label=entry.get("item_label") or DEFAULT_ITEM_LABEL,
            item_name=entry.get("item_name", ""),
            item_desc=entry.get("item_desc", ""),
            item_emoji=entry.get("item_emoji") or "📦",
            item_img=entry.get("item_img", ""),
        )
    return results


PERSONALITY_RESULTS: Dict[Trait, PersonalityResult] = load_results()


def get_result(trait: Trait) -> PersonalityResult:
    return PERSONALITY_RESULTS[trait]
