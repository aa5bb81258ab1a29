from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .cards import RANK_LABEL, RANK_NAMES, Card, full_deck
from .errors import InvariantViolation
from .rules import USE_EXACTLY, GameRules


class HandCategory(IntEnum):
    HIGH_CARD = 0
    PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8

    @property
    def title(self) -> str:
        return self.name.replace("_", " ").title()


class HandRank(NamedTuple):
    """Comparable high-hand strength. Higher is better."""

    category: HandCategory
    tiebreak: Tuple[int, ...]


# Descending rank vector with Ace as 1. Lower is better.
LowRank = Tuple[int, ...]


@dataclass(frozen=True)
class HandResult:
    high: HandRank
    low: Optional[LowRank]
    best_cards: Tuple[Card, ...]

    @property
    def description(self) -> str:
        return describe_rank(self.high)


def evaluate_five(cards: Sequence[Card]) -> HandRank:
    """Score exactly five cards."""
    if len(cards) != 5:
        raise InvariantViolation(f"evaluate_five needs 5 cards, got {len(cards)}")

    ranks = sorted((card.rank for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    straight_high = _straight_high(ranks)

    counts = {}
    for rank in ranks:
        counts[rank] = counts.get(rank, 0) + 1
    # Groups ordered by size, then rank: [(rank, count), ...]
    groups = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    shape = [count for _, count in groups]

    if straight_high and is_flush:
        return HandRank(HandCategory.STRAIGHT_FLUSH, (straight_high,))
    if shape[0] == 4:
        return HandRank(HandCategory.FOUR_OF_A_KIND, (groups[0][0], groups[1][0]))
    if shape == [3, 2]:
        return HandRank(HandCategory.FULL_HOUSE, (groups[0][0], groups[1][0]))
    if is_flush:
        return HandRank(HandCategory.FLUSH, tuple(ranks))
    if straight_high:
        return HandRank(HandCategory.STRAIGHT, (straight_high,))
    if shape[0] == 3:
        return HandRank(HandCategory.THREE_OF_A_KIND, tuple(rank for rank, _ in groups))
    if shape[:2] == [2, 2]:
        return HandRank(HandCategory.TWO_PAIR, tuple(rank for rank, _ in groups))
    if shape[0] == 2:
        return HandRank(HandCategory.PAIR, tuple(rank for rank, _ in groups))
    return HandRank(HandCategory.HIGH_CARD, tuple(ranks))


def _straight_high(ranks: Sequence[int]) -> Optional[int]:
    distinct = set(ranks)
    if len(distinct) != 5:
        return None
    if max(distinct) - min(distinct) == 4:
        return max(distinct)
    if distinct == {14, 5, 4, 3, 2}:  # wheel
        return 5
    return None


def evaluate_low(cards: Sequence[Card], max_rank: int = 8) -> Optional[LowRank]:
    """Return the low rank of five cards, or None when they do not qualify."""
    ranks = sorted({1 if card.rank == 14 else card.rank for card in cards}, reverse=True)
    if len(ranks) != 5 or ranks[0] > max_rank:
        return None
    return tuple(ranks)


def candidate_hands(
    hole_cards: Sequence[Card], community_cards: Sequence[Card], rules: GameRules
) -> Iterator[Tuple[Card, ...]]:
    """Yield every legal five-card hand for the variant."""
    hole_rules = rules.hole_cards
    if hole_rules.use_constraint == USE_EXACTLY:
        from_hole = hole_rules.use_count
        from_board = 5 - from_hole
        if len(hole_cards) < from_hole or len(community_cards) < from_board:
            raise InvariantViolation(
                f"{rules.abbreviation} needs {from_hole} hole and {from_board} community cards, "
                f"got {len(hole_cards)} and {len(community_cards)}"
            )
        for hole_combo in itertools.combinations(hole_cards, from_hole):
            for board_combo in itertools.combinations(community_cards, from_board):
                yield hole_combo + board_combo
        return

    pool = list(hole_cards) + list(community_cards)
    if len(pool) < 5:
        raise InvariantViolation(f"Hand evaluation needs at least 5 cards, got {len(pool)}")
    yield from itertools.combinations(pool, 5)


def evaluate(hole_cards: Sequence[Card], community_cards: Sequence[Card], rules: GameRules) -> HandResult:
    """Best high hand (and qualifying low, for hi-lo variants) a player can make."""
    best: Optional[HandRank] = None
    best_cards: Tuple[Card, ...] = ()
    best_low: Optional[LowRank] = None
    low_enabled = rules.low_hand.enabled

    for combo in candidate_hands(hole_cards, community_cards, rules):
        rank = evaluate_five(combo)
        if best is None or rank >= best:
            # Ties between subsets are equivalent; keep a canonical pick so the
            # reported cards do not depend on input order.
            ordered = tuple(sorted(combo, key=_card_key, reverse=True))
            if best is None or rank > best or _cards_key(ordered) > _cards_key(best_cards):
                best = rank
                best_cards = ordered
        if low_enabled:
            low = evaluate_low(combo, rules.low_hand.max_rank)
            if low is not None and (best_low is None or low < best_low):
                best_low = low

    if best is None:
        raise InvariantViolation("No candidate hands to evaluate")
    return HandResult(high=best, low=best_low, best_cards=best_cards)


def _card_key(card: Card) -> Tuple[int, str]:
    return card.rank, card.suit.value


def _cards_key(cards: Iterable[Card]) -> Tuple[Tuple[int, str], ...]:
    return tuple(_card_key(card) for card in cards)


def calculate_outs(
    hole_cards: Sequence[Card], community_cards: Sequence[Card], rules: GameRules
) -> List[Card]:
    """Unseen cards that would lift the player's high hand into a better category."""
    remaining_streets = rules.community_cards.count - len(community_cards)
    if remaining_streets <= 0:
        return []
    try:
        current = evaluate(hole_cards, community_cards, rules).high
    except InvariantViolation:
        return []

    known = set(hole_cards) | set(community_cards)
    outs: List[Card] = []
    for card in full_deck():
        if card in known:
            continue
        improved = evaluate(hole_cards, list(community_cards) + [card], rules).high
        if improved.category > current.category:
            outs.append(card)
    return outs


def _plural(rank: int) -> str:
    name = RANK_NAMES[rank]
    return f"{name}es" if name == "Six" else f"{name}s"


def describe_rank(rank: HandRank) -> str:
    category, tiebreak = rank
    top = tiebreak[0]
    if category == HandCategory.STRAIGHT_FLUSH:
        return "Royal Flush" if top == 14 else f"Straight Flush, {RANK_NAMES[top]}-high"
    if category == HandCategory.FOUR_OF_A_KIND:
        return f"Four of a Kind, {_plural(top)}"
    if category == HandCategory.FULL_HOUSE:
        return f"Full House, {_plural(top)} full of {_plural(tiebreak[1])}"
    if category == HandCategory.FLUSH:
        return f"Flush, {RANK_NAMES[top]}-high"
    if category == HandCategory.STRAIGHT:
        return f"Straight, {RANK_NAMES[top]}-high"
    if category == HandCategory.THREE_OF_A_KIND:
        return f"Three of a Kind, {_plural(top)}"
    if category == HandCategory.TWO_PAIR:
        return f"Two Pair, {_plural(top)} and {_plural(tiebreak[1])}"
    if category == HandCategory.PAIR:
        return f"Pair of {_plural(top)}"
    return f"High Card, {RANK_NAMES[top]}"


def describe_low(low: LowRank) -> str:
    labels = ["A" if rank == 1 else RANK_LABEL[rank] for rank in low]
    return f"{'-'.join(labels)} low"
