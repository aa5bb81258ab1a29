from __future__ import annotations

from .errors import ConfigurationError
from .rules import NO_LIMIT, POT_LIMIT

# Amounts returned here are "raise to" totals for the current street, not
# increments. The game converts them to chips moved.


class BettingLimitCalculator:
    """Legal raise bounds for one betting structure."""

    kind = ""

    def max_raise(
        self,
        pot: int,
        bet_to_call: int,
        player_stack: int,
        last_raise_amount: int,
        current_bet: int = 0,
    ) -> int:
        raise NotImplementedError

    def min_raise(
        self,
        pot: int,
        bet_to_call: int,
        player_stack: int,
        last_raise_amount: int,
        current_bet: int = 0,
        big_blind: int = 0,
    ) -> int:
        increment = last_raise_amount if last_raise_amount > 0 else big_blind
        # All-in for less than a full raise is always allowed.
        return min(bet_to_call + increment, player_stack + current_bet)


class PotLimitCalculator(BettingLimitCalculator):
    kind = POT_LIMIT

    def max_raise(
        self,
        pot: int,
        bet_to_call: int,
        player_stack: int,
        last_raise_amount: int,
        current_bet: int = 0,
    ) -> int:
        # Call, then raise by the size of the pot after the call.
        pot_raise_to = bet_to_call + (pot + bet_to_call * 2)
        return min(pot_raise_to, player_stack + current_bet)


class NoLimitCalculator(BettingLimitCalculator):
    kind = NO_LIMIT

    def max_raise(
        self,
        pot: int,
        bet_to_call: int,
        player_stack: int,
        last_raise_amount: int,
        current_bet: int = 0,
    ) -> int:
        return player_stack + current_bet


_CALCULATORS = {
    POT_LIMIT: PotLimitCalculator,
    NO_LIMIT: NoLimitCalculator,
}


def calculator_for(kind: str) -> BettingLimitCalculator:
    try:
        return _CALCULATORS[kind]()
    except KeyError:
        raise ConfigurationError(f"Unknown betting limit type: {kind}") from None
