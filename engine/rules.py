"""Variant descriptors and their YAML loader.

A variant is read once when a game is built and never mutated afterwards. The
bundled variants live next to this module in ``rules/<name>.yml``; any other
path to a YAML file with the same shape can be loaded too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigurationError

LOGGER = logging.getLogger("pls7.rules")

RULES_DIR = Path(__file__).parent / "rules"

POT_LIMIT = "pot_limit"
NO_LIMIT = "no_limit"
BETTING_LIMITS = (POT_LIMIT, NO_LIMIT)

USE_ANY = "any"
USE_EXACTLY = "exactly"


@dataclass(frozen=True)
class HoleCardRules:
    count: int
    use_constraint: str = USE_ANY
    # Only read when use_constraint is "exactly".
    use_count: int = 0


@dataclass(frozen=True)
class CommunityCardRules:
    count: int = 5
    streets: Tuple[int, ...] = (3, 1, 1)


@dataclass(frozen=True)
class LowHandRules:
    enabled: bool = False
    max_rank: int = 8


@dataclass(frozen=True)
class GameRules:
    name: str
    abbreviation: str
    betting_limit: str
    hole_cards: HoleCardRules
    community_cards: CommunityCardRules = field(default_factory=CommunityCardRules)
    low_hand: LowHandRules = field(default_factory=LowHandRules)

    def __post_init__(self) -> None:
        validate_rules(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "abbreviation": self.abbreviation,
            "betting_limit": self.betting_limit,
            "hole_cards": {
                "count": self.hole_cards.count,
                "use_constraint": self.hole_cards.use_constraint,
                "use_count": self.hole_cards.use_count,
            },
            "community_cards": {
                "count": self.community_cards.count,
                "streets": list(self.community_cards.streets),
            },
            "low_hand": {
                "enabled": self.low_hand.enabled,
                "max_rank": self.low_hand.max_rank,
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> "GameRules":
        if not isinstance(data, dict):
            raise ConfigurationError("Game rules must be a mapping")
        try:
            hole = data["hole_cards"]
            name = data["name"]
            betting_limit = data["betting_limit"]
        except KeyError as exc:
            raise ConfigurationError(f"Game rules missing required field {exc.args[0]!r}") from None
        community = data.get("community_cards") or {}
        low = data.get("low_hand") or {}
        if not isinstance(hole, dict) or not isinstance(community, dict) or not isinstance(low, dict):
            raise ConfigurationError("hole_cards, community_cards and low_hand must be mappings")

        community_count = _as_int(community.get("count", 5), "community_cards.count")
        streets = community.get("streets")
        if streets is None:
            streets = _default_streets(community_count)
        if not isinstance(streets, (list, tuple)):
            raise ConfigurationError("community_cards.streets must be a list")

        return cls(
            name=str(name),
            abbreviation=str(data.get("abbreviation", name)),
            betting_limit=str(betting_limit),
            hole_cards=HoleCardRules(
                count=_as_int(hole.get("count"), "hole_cards.count"),
                use_constraint=str(hole.get("use_constraint", USE_ANY)),
                use_count=_as_int(hole.get("use_count", 0), "hole_cards.use_count"),
            ),
            community_cards=CommunityCardRules(
                count=community_count,
                streets=tuple(_as_int(value, "community_cards.streets") for value in streets),
            ),
            low_hand=LowHandRules(
                enabled=bool(low.get("enabled", False)),
                max_rank=_as_int(low.get("max_rank", 8), "low_hand.max_rank"),
            ),
        )


def _as_int(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{label} must be an integer, got {value!r}")
    return value


def _default_streets(count: int) -> List[int]:
    # Hold'em style flop/turn/river when there are five cards, one street otherwise.
    if count == 5:
        return [3, 1, 1]
    if count <= 0:
        return []
    return [count]


def validate_rules(rules: GameRules) -> None:
    if not rules.name:
        raise ConfigurationError("Game rules need a name")
    if rules.betting_limit not in BETTING_LIMITS:
        raise ConfigurationError(f"Unknown betting limit type: {rules.betting_limit}")

    hole = rules.hole_cards
    if hole.count <= 0:
        raise ConfigurationError("hole_cards.count must be positive")
    if hole.use_constraint not in (USE_ANY, USE_EXACTLY):
        raise ConfigurationError(f"Unknown hole card constraint: {hole.use_constraint}")

    community = rules.community_cards
    if community.count < 0:
        raise ConfigurationError("community_cards.count cannot be negative")
    if sum(community.streets) != community.count or any(n <= 0 for n in community.streets):
        raise ConfigurationError("community_cards.streets must be positive and add up to community_cards.count")
    if len(community.streets) > 3:
        raise ConfigurationError("At most three community streets are supported")

    if hole.use_constraint == USE_EXACTLY:
        if not 0 < hole.use_count <= min(hole.count, 5):
            raise ConfigurationError("hole_cards.use_count must be between 1 and the hole card count")
        if community.count < 5 - hole.use_count:
            raise ConfigurationError("Not enough community cards for the hole card constraint")
    elif hole.count + community.count < 5:
        raise ConfigurationError("A variant needs at least five cards per player")

    if rules.low_hand.enabled and not 5 <= rules.low_hand.max_rank <= 13:
        raise ConfigurationError("low_hand.max_rank must be between 5 and 13")


def available_rules() -> List[str]:
    return sorted(path.stem for path in RULES_DIR.glob("*.yml"))


def load_rules(name_or_path: Optional[str]) -> GameRules:
    """Load a variant by bundled name (``"pls7"``) or by path to a YAML file."""
    if not name_or_path:
        raise ConfigurationError("No game rule specified")

    candidate = Path(name_or_path)
    if candidate.suffix not in (".yml", ".yaml"):
        candidate = RULES_DIR / f"{name_or_path.lower()}.yml"

    try:
        with candidate.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Game rules not found: {name_or_path} (available: {', '.join(available_rules())})"
        ) from None
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse game rules {candidate}: {exc}") from exc

    rules = GameRules.from_dict(data)
    LOGGER.debug("Loaded game rules %s from %s", rules.abbreviation, candidate)
    return rules
