from __future__ import annotations

import itertools
import random
from typing import TYPE_CHECKING, Sequence

from .cards import Card
from .errors import InvariantViolation
from .evaluator import HandCategory, HandRank, LowRank, calculate_outs, evaluate
from .models import PROFILES, ActionType, AIProfile, Difficulty, Player, PlayerAction
from .rules import GameRules

if TYPE_CHECKING:
    from .game import Game

# (floor, span) of the strength band for each made-hand category. The top card
# of the hand moves the score within its band.
_CATEGORY_BANDS = {
    HandCategory.HIGH_CARD: (0.0, 0.2),
    HandCategory.PAIR: (0.2, 0.25),
    HandCategory.TWO_PAIR: (0.5, 0.12),
    HandCategory.THREE_OF_A_KIND: (0.62, 0.1),
    HandCategory.STRAIGHT: (0.72, 0.07),
    HandCategory.FLUSH: (0.79, 0.07),
    HandCategory.FULL_HOUSE: (0.86, 0.08),
    HandCategory.FOUR_OF_A_KIND: (0.94, 0.05),
    HandCategory.STRAIGHT_FLUSH: (0.99, 0.01),
}


def _two_card_score(first: Card, second: Card) -> int:
    """Very rough proxy for the quality of a two-card starting combination."""
    values = sorted((first.rank, second.rank), reverse=True)
    score = sum(values)
    if values[0] == values[1]:
        score += 14  # pairs are quite strong pre-flop
    else:
        gap = values[0] - values[1]
        if gap == 1:
            score += 4
        elif gap == 2:
            score += 2
    if first.suit == second.suit:
        score += 3
    if values[1] >= 11:
        score += 2
    return score


def preflop_strength(hole: Sequence[Card]) -> float:
    if len(hole) < 2:
        return 0.0
    best = max(_two_card_score(a, b) for a, b in itertools.combinations(hole, 2))
    return min(1.0, best / 45.0)


def made_hand_strength(rank: HandRank) -> float:
    floor, span = _CATEGORY_BANDS[rank.category]
    return floor + span * (rank.tiebreak[0] - 2) / 12.0


def low_hand_strength(low: LowRank, max_rank: int) -> float:
    # A five-high low is the nuts; a low at the qualifier is barely worth half a pot.
    quality = (max_rank - low[0] + 1) / float(max_rank - 4)
    return 0.3 + 0.4 * quality


def hand_strength(hole: Sequence[Card], community: Sequence[Card], rules: GameRules) -> float:
    """Score in [0, 1] combining the made hand, drawing outs and low potential."""
    if not community:
        return preflop_strength(hole)
    try:
        result = evaluate(hole, community, rules)
    except InvariantViolation:
        return preflop_strength(hole)

    strength = made_hand_strength(result.high)

    cards_to_come = rules.community_cards.count - len(community)
    if cards_to_come > 0:
        # Rule of 2 and 4: about 2% equity per out per card still to come.
        outs = len(calculate_outs(hole, community, rules))
        draw = min(0.35, outs * 0.02 * min(cards_to_come, 2))
        strength += draw * (1.0 - strength)

    if rules.low_hand.enabled and result.low is not None:
        strength = max(strength, low_hand_strength(result.low, rules.low_hand.max_rank))
    return min(1.0, strength)


def _raise_action(game: "Game", player: Player, profile: AIProfile, rng: random.Random) -> PlayerAction:
    min_to, max_to = game.betting_bounds(player)
    multiplier = rng.uniform(profile.min_raise_multiplier, profile.max_raise_multiplier)
    amount = max(min_to, min(max_to, int(max_to * multiplier)))
    kind = ActionType.BET if game.bet_to_call == 0 else ActionType.RAISE
    return PlayerAction(kind, amount)


def decide(game: "Game", player: Player, rng: random.Random) -> PlayerAction:
    """Pick an action for a CPU player. Reads the game, never mutates it."""
    profile = player.profile or PROFILES[Difficulty.MEDIUM]
    strength = hand_strength(player.hand, game.community_cards, game.rules)
    to_call = game.bet_to_call - player.current_bet
    can_raise = player.chips > to_call

    if to_call > 0:
        if strength < profile.play_hand_threshold:
            if can_raise and rng.random() < profile.bluffing_frequency:
                return _raise_action(game, player, profile, rng)
            return PlayerAction(ActionType.FOLD)
        if can_raise and (strength >= profile.raise_hand_threshold or rng.random() < profile.aggression_factor):
            return _raise_action(game, player, profile, rng)
        return PlayerAction(ActionType.CALL)

    if can_raise and (strength >= profile.raise_hand_threshold or rng.random() < profile.aggression_factor):
        return _raise_action(game, player, profile, rng)
    return PlayerAction(ActionType.CHECK)
