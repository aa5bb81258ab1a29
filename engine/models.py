from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .cards import Card
from .errors import ConfigurationError


class Phase(str, Enum):
    PRE_FLOP = "PRE_FLOP"
    FLOP = "FLOP"
    TURN = "TURN"
    RIVER = "RIVER"
    SHOWDOWN = "SHOWDOWN"
    HAND_OVER = "HAND_OVER"

    @property
    def title(self) -> str:
        return self.value.replace("_", "-").title()


STREETS = (Phase.FLOP, Phase.TURN, Phase.RIVER)
BETTING_PHASES = (Phase.PRE_FLOP,) + STREETS


class ActionType(str, Enum):
    FOLD = "FOLD"
    CHECK = "CHECK"
    CALL = "CALL"
    BET = "BET"
    RAISE = "RAISE"


class PlayerStatus(str, Enum):
    PLAYING = "PLAYING"
    FOLDED = "FOLDED"
    ALL_IN = "ALL_IN"
    ELIMINATED = "ELIMINATED"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class AIProfile:
    name: str
    play_hand_threshold: float
    raise_hand_threshold: float
    bluffing_frequency: float
    aggression_factor: float
    min_raise_multiplier: float
    max_raise_multiplier: float

    def __post_init__(self) -> None:
        for label in ("play_hand_threshold", "raise_hand_threshold", "bluffing_frequency", "aggression_factor"):
            value = getattr(self, label)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{label} must be within [0, 1], got {value}")
        if self.min_raise_multiplier < 0 or self.min_raise_multiplier > self.max_raise_multiplier:
            raise ConfigurationError("min_raise_multiplier must be non-negative and not above max_raise_multiplier")


PROFILES: Dict[Difficulty, AIProfile] = {
    Difficulty.EASY: AIProfile(
        name="Easy",
        play_hand_threshold=0.35,
        raise_hand_threshold=0.8,
        bluffing_frequency=0.02,
        aggression_factor=0.1,
        min_raise_multiplier=0.25,
        max_raise_multiplier=0.5,
    ),
    Difficulty.MEDIUM: AIProfile(
        name="Medium",
        play_hand_threshold=0.3,
        raise_hand_threshold=0.65,
        bluffing_frequency=0.08,
        aggression_factor=0.25,
        min_raise_multiplier=0.35,
        max_raise_multiplier=0.75,
    ),
    Difficulty.HARD: AIProfile(
        name="Hard",
        play_hand_threshold=0.25,
        raise_hand_threshold=0.55,
        bluffing_frequency=0.15,
        aggression_factor=0.4,
        min_raise_multiplier=0.5,
        max_raise_multiplier=1.0,
    ),
}


@dataclass
class TableConfig:
    initial_chips: int = 300_000
    small_blind: int = 500
    big_blind: int = 0  # 0 means twice the small blind
    blind_up_interval: int = 2
    difficulty: Difficulty = Difficulty.MEDIUM
    seed: Optional[int] = None
    cpu_think_ms: int = 0

    def __post_init__(self) -> None:
        if self.big_blind == 0:
            self.big_blind = self.small_blind * 2
        if self.initial_chips <= 0:
            raise ConfigurationError(f"initial_chips must be positive, got {self.initial_chips}")
        if self.small_blind <= 0 or self.big_blind < self.small_blind:
            raise ConfigurationError(f"Invalid blinds {self.small_blind}/{self.big_blind}")
        if self.blind_up_interval < 0:
            raise ConfigurationError("blind_up_interval cannot be negative")
        self.difficulty = Difficulty(self.difficulty)


@dataclass
class Player:
    name: str
    chips: int
    is_cpu: bool = False
    position: int = 0
    status: PlayerStatus = PlayerStatus.PLAYING
    current_bet: int = 0
    total_bet_in_hand: int = 0
    hand: List[Card] = field(default_factory=list)
    profile: Optional[AIProfile] = None
    last_action_desc: str = ""

    @property
    def is_active(self) -> bool:
        """Still holding cards in the current hand."""
        return self.status in (PlayerStatus.PLAYING, PlayerStatus.ALL_IN)

    def reset_for_hand(self) -> None:
        if self.status != PlayerStatus.ELIMINATED:
            self.status = PlayerStatus.PLAYING
        self.current_bet = 0
        self.total_bet_in_hand = 0
        self.hand.clear()
        self.last_action_desc = ""

    def reset_for_round(self) -> None:
        self.current_bet = 0


@dataclass(frozen=True)
class PlayerAction:
    action: ActionType
    # Bets and raises carry the "raise to" total for the street.
    amount: int = 0


@dataclass(frozen=True)
class ActionEvent:
    player_name: str
    action: ActionType
    amount: int = 0


@dataclass(frozen=True)
class BlindChange:
    small_blind: int
    big_blind: int


@dataclass
class PotResult:
    player_name: str
    amount_won: int
    hand_desc: str


@dataclass(frozen=True)
class SidePot:
    amount: int
    contenders: List[int]  # seat positions eligible to win
