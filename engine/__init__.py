"""Poker engine primitives: cards, hand ranking, betting limits and the table state machine."""

from .betting import BettingLimitCalculator, NoLimitCalculator, PotLimitCalculator, calculator_for
from .cards import Card, Suit, build_deck, deal, parse_cards
from .errors import ConfigurationError, InvalidActionError, InvariantViolation, SaveFileError
from .evaluator import HandCategory, HandRank, HandResult, calculate_outs, describe_rank, evaluate
from .game import Game
from .models import (
    PROFILES,
    ActionEvent,
    ActionType,
    AIProfile,
    BlindChange,
    Difficulty,
    Phase,
    Player,
    PlayerAction,
    PlayerStatus,
    PotResult,
    TableConfig,
)
from .rules import GameRules, load_rules

__all__ = [
    "BettingLimitCalculator",
    "NoLimitCalculator",
    "PotLimitCalculator",
    "calculator_for",
    "Card",
    "Suit",
    "build_deck",
    "deal",
    "parse_cards",
    "ConfigurationError",
    "InvalidActionError",
    "InvariantViolation",
    "SaveFileError",
    "HandCategory",
    "HandRank",
    "HandResult",
    "calculate_outs",
    "describe_rank",
    "evaluate",
    "Game",
    "PROFILES",
    "ActionEvent",
    "ActionType",
    "AIProfile",
    "BlindChange",
    "Difficulty",
    "Phase",
    "Player",
    "PlayerAction",
    "PlayerStatus",
    "PotResult",
    "TableConfig",
    "GameRules",
    "load_rules",
]
