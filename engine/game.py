from __future__ import annotations

import logging
import random
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import ai
from .betting import calculator_for
from .cards import Card, build_deck, deal
from .errors import ConfigurationError, InvalidActionError, InvariantViolation
from .evaluator import HandResult, describe_low, describe_rank, evaluate
from .models import (
    BETTING_PHASES,
    PROFILES,
    STREETS,
    ActionEvent,
    ActionType,
    BlindChange,
    Phase,
    Player,
    PlayerAction,
    PlayerStatus,
    PotResult,
    SidePot,
    TableConfig,
)
from .rules import GameRules

LOGGER = logging.getLogger("pls7.engine")

# Game keeps all table state in memory. Prompting, printing and saving live in
# the callers; this module only knows poker rules, chip accounting and
# betting order.


def build_transitions(rules: GameRules) -> Dict[Phase, Phase]:
    """Phase transition table for a variant: only streets that deal cards exist."""
    streets = list(STREETS[: len(rules.community_cards.streets)])
    order = [Phase.PRE_FLOP] + streets + [Phase.SHOWDOWN, Phase.HAND_OVER]
    return dict(zip(order, order[1:]))


class Game:
    """Pot-limit / no-limit engine for a single table of human and CPU players."""

    def __init__(
        self,
        player_names: Sequence[str],
        rules: GameRules,
        config: Optional[TableConfig] = None,
        human_seats: Sequence[int] = (0,),
    ) -> None:
        if rules is None:
            raise ConfigurationError("Game rules are required")
        if len(player_names) < 2:
            raise ConfigurationError("At least two players are required")
        if len(set(player_names)) != len(player_names):
            raise ConfigurationError("Player names must be unique")
        cards_needed = len(player_names) * rules.hole_cards.count + rules.community_cards.count
        if cards_needed > 52:
            raise ConfigurationError(
                f"{rules.abbreviation} needs {cards_needed} cards for {len(player_names)} players; a deck has 52"
            )

        self.config = config or TableConfig()
        self.rules = rules
        self.betting_calculator = calculator_for(rules.betting_limit)
        self.transitions = build_transitions(rules)

        self.seed = self.config.seed
        if self.seed is None:
            self.seed = int(time.time() * 1000) & 0xFFFFFFFF
        self.rng = random.Random(self.seed)

        profile = PROFILES[self.config.difficulty]
        self.players: List[Player] = []
        for idx, name in enumerate(player_names):
            is_cpu = idx not in human_seats
            self.players.append(
                Player(
                    name=name,
                    chips=self.config.initial_chips,
                    is_cpu=is_cpu,
                    position=idx,
                    profile=profile if is_cpu else None,
                )
            )

        self.deck: List[Card] = []
        self.community_cards: List[Card] = []
        self.pot = 0
        self.dealer_pos = -1
        self.current_turn_pos = 0
        self.phase = Phase.HAND_OVER
        self.bet_to_call = 0
        self.last_raise_amount = 0
        self.hand_count = 0
        self.small_blind = self.config.small_blind
        self.big_blind = self.config.big_blind
        self.blind_up_interval = self.config.blind_up_interval
        self.actions_taken_this_round = 0
        self.action_closer_pos = 0
        self.last_actor_pos: Optional[int] = None
        self.big_blind_pos: Optional[int] = None
        self.total_initial_chips = sum(player.chips for player in self.players)
        self.hand_results: Dict[str, HandResult] = {}
        self.showdown_results: List[PotResult] = []
        self._round_prepared = False

    # Seat helpers ----------------------------------------------------

    def _next_seat(self, start: int, predicate: Callable[[Player], bool]) -> Optional[int]:
        count = len(self.players)
        for offset in range(1, count + 1):
            idx = (start + offset) % count
            if predicate(self.players[idx]):
                return idx
        return None

    def _previous_seat(self, start: int, predicate: Callable[[Player], bool]) -> Optional[int]:
        count = len(self.players)
        for offset in range(1, count + 1):
            idx = (start - offset) % count
            if predicate(self.players[idx]):
                return idx
        return None

    @staticmethod
    def _in_game(player: Player) -> bool:
        return player.status != PlayerStatus.ELIMINATED

    @staticmethod
    def _can_act(player: Player) -> bool:
        return player.status == PlayerStatus.PLAYING

    def count_non_folded_players(self) -> int:
        return sum(1 for player in self.players if player.is_active)

    def count_remaining_players(self) -> int:
        return sum(1 for player in self.players if self._in_game(player))

    def is_game_over(self) -> bool:
        return self.count_remaining_players() <= 1

    def current_player(self) -> Player:
        return self.players[self.current_turn_pos]

    def cpu_think_time(self) -> float:
        return self.config.cpu_think_ms / 1000.0

    def get_cpu_action(self, player: Player) -> PlayerAction:
        return ai.decide(self, player, self.rng)

    # Hand lifecycle --------------------------------------------------

    def start_new_hand(self) -> Optional[BlindChange]:
        if self.count_remaining_players() < 2:
            raise RuntimeError("Not enough active players to start a hand")

        blind_event = None
        if self.blind_up_interval > 0 and self.hand_count > 0 and self.hand_count % self.blind_up_interval == 0:
            self.small_blind *= 2
            self.big_blind *= 2
            blind_event = BlindChange(self.small_blind, self.big_blind)
            LOGGER.info("Blinds up to %d/%d", self.small_blind, self.big_blind)

        for player in self.players:
            player.reset_for_hand()
        self.pot = 0
        self.community_cards = []
        self.bet_to_call = 0
        self.last_raise_amount = 0
        self.actions_taken_this_round = 0
        self.last_actor_pos = None
        self.hand_results = {}
        self.showdown_results = []
        self._round_prepared = False

        self.deck = build_deck(self.rng)
        self.dealer_pos = self._next_seat(self.dealer_pos, self._in_game)
        self.phase = Phase.PRE_FLOP

        self._deal_hole_cards()
        self._post_blinds()
        LOGGER.info(
            "Hand #%d (%s): dealer %s, blinds %d/%d",
            self.hand_count + 1,
            self.rules.abbreviation,
            self.players[self.dealer_pos].name,
            self.small_blind,
            self.big_blind,
        )
        return blind_event

    def _deal_hole_cards(self) -> None:
        ordered = []
        idx = self.dealer_pos
        for _ in range(self.count_remaining_players()):
            idx = self._next_seat(idx, self._in_game)
            ordered.append(idx)
        for _ in range(self.rules.hole_cards.count):
            for seat_idx in ordered:
                self.players[seat_idx].hand.extend(deal(self.deck, 1))

    def _post_blinds(self) -> None:
        sb_pos = self._next_seat(self.dealer_pos, self._in_game)
        bb_pos = self._next_seat(sb_pos, self._in_game)
        sb_player = self.players[sb_pos]
        bb_player = self.players[bb_pos]

        posted_sb = self._commit_chips(sb_player, self.small_blind)
        posted_bb = self._commit_chips(bb_player, self.big_blind)
        sb_player.last_action_desc = f"Small blind {posted_sb}"
        bb_player.last_action_desc = f"Big blind {posted_bb}"

        self.bet_to_call = max(sb_player.current_bet, bb_player.current_bet)
        self.last_raise_amount = self.big_blind
        self.big_blind_pos = bb_pos

    def _commit_chips(self, player: Player, amount: int) -> int:
        amount = min(amount, player.chips)
        player.chips -= amount
        player.current_bet += amount
        player.total_bet_in_hand += amount
        self.pot += amount
        if player.chips == 0 and player.status == PlayerStatus.PLAYING:
            player.status = PlayerStatus.ALL_IN
        return amount

    # Betting rounds --------------------------------------------------

    def prepare_new_betting_round(self) -> None:
        if self.phase not in BETTING_PHASES:
            raise RuntimeError(f"No betting round in phase {self.phase.value}")
        if self._round_prepared:
            raise RuntimeError(f"Betting round for {self.phase.value} already prepared")

        if self.phase == Phase.PRE_FLOP:
            # Blinds stay in front of the players; action starts left of the big blind.
            anchor = self.big_blind_pos if self.big_blind_pos is not None else self.dealer_pos
        else:
            count = self.rules.community_cards.streets[STREETS.index(self.phase)]
            cards = deal(self.deck, count)
            self.community_cards.extend(cards)
            LOGGER.debug("%s: %s", self.phase.title, " ".join(card.label for card in cards))
            for player in self.players:
                player.reset_for_round()
            self.bet_to_call = 0
            self.last_raise_amount = 0
            anchor = self.dealer_pos

        self.actions_taken_this_round = 0
        self.last_actor_pos = None
        first = self._next_seat(anchor, self._can_act)
        self.current_turn_pos = first if first is not None else anchor
        closer = self._previous_seat(self.current_turn_pos, self._can_act)
        self.action_closer_pos = closer if closer is not None else self.current_turn_pos
        self._round_prepared = True

    def betting_bounds(self, player: Player) -> Tuple[int, int]:
        """Minimum and maximum legal "raise to" totals for the player right now."""
        # Pot excluding the outstanding bet and the player's own street bet.
        pot = max(0, self.pot - self.bet_to_call - player.current_bet)
        calculator = self.betting_calculator
        max_to = calculator.max_raise(pot, self.bet_to_call, player.chips, self.last_raise_amount, player.current_bet)
        min_to = calculator.min_raise(
            pot,
            self.bet_to_call,
            player.chips,
            self.last_raise_amount,
            player.current_bet,
            self.big_blind,
        )
        return min_to, max(max_to, min_to)

    def process_action(self, player: Player, action: PlayerAction) -> Tuple[bool, ActionEvent]:
        """Validate and apply one action.

        Returns whether the hand is decided (one player left) and the event to
        announce. Raises InvalidActionError without touching any state when
        the action is illegal.
        """
        if not self._round_prepared or self.phase not in BETTING_PHASES:
            raise InvalidActionError("No betting round in progress")
        if player is not self.players[self.current_turn_pos]:
            raise InvalidActionError(f"It is not {player.name}'s turn")
        if player.status != PlayerStatus.PLAYING:
            raise InvalidActionError(f"{player.name} cannot act while {player.status.value}")

        kind = action.action
        to_call = self.bet_to_call - player.current_bet

        if kind == ActionType.FOLD:
            player.status = PlayerStatus.FOLDED
            event = ActionEvent(player.name, kind)
            player.last_action_desc = "Fold"
        elif kind == ActionType.CHECK:
            if to_call > 0:
                raise InvalidActionError("Cannot check when facing a bet")
            event = ActionEvent(player.name, kind)
            player.last_action_desc = "Check"
        elif kind == ActionType.CALL:
            if to_call <= 0:
                raise InvalidActionError("Nothing to call")
            paid = self._commit_chips(player, to_call)
            event = ActionEvent(player.name, kind, paid)
            player.last_action_desc = f"Call {paid}"
        elif kind == ActionType.BET:
            if self.bet_to_call > 0:
                raise InvalidActionError("Cannot bet when facing a bet; raise instead")
            target = self._checked_raise_to(player, action.amount)
            self._apply_raise(player, target)
            event = ActionEvent(player.name, kind, target)
            player.last_action_desc = f"Bet {target}"
        elif kind == ActionType.RAISE:
            if self.bet_to_call == 0:
                raise InvalidActionError("Nothing to raise; bet instead")
            target = self._checked_raise_to(player, action.amount)
            self._apply_raise(player, target)
            event = ActionEvent(player.name, kind, target)
            player.last_action_desc = f"Raise to {target}"
        else:
            raise InvalidActionError(f"Unsupported action {kind}")

        if player.status == PlayerStatus.ALL_IN:
            player.last_action_desc += " (all-in)"
        self.actions_taken_this_round += 1
        self.last_actor_pos = player.position
        LOGGER.debug("%s: %s", player.name, player.last_action_desc)
        return self.count_non_folded_players() <= 1, event

    def _checked_raise_to(self, player: Player, amount: int) -> int:
        # Anything beyond the stack is an all-in, never an error.
        target = min(amount, player.chips + player.current_bet)
        if target <= self.bet_to_call:
            raise InvalidActionError("Raise must exceed current bet")
        min_to, max_to = self.betting_bounds(player)
        if target > max_to:
            raise InvalidActionError(f"Raise to {target} exceeds the {self.rules.betting_limit} maximum of {max_to}")
        if target < min_to:
            raise InvalidActionError(f"Raise below minimum of {min_to}")
        return target

    def _apply_raise(self, player: Player, target: int) -> None:
        previous_bet = self.bet_to_call
        self._commit_chips(player, target - player.current_bet)
        increment = target - previous_bet
        # A short all-in raise moves the price but not the minimum increment.
        if increment >= (self.last_raise_amount or self.big_blind):
            self.last_raise_amount = increment
        self.bet_to_call = target

        closer = self._previous_seat(player.position, lambda p: p is not player and self._can_act(p))
        self.action_closer_pos = closer if closer is not None else player.position

    def advance_turn(self) -> None:
        nxt = self._next_seat(self.current_turn_pos, self._can_act)
        if nxt is not None:
            self.current_turn_pos = nxt

    def is_betting_round_over(self) -> bool:
        if self.count_non_folded_players() <= 1:
            return True
        playing = [player for player in self.players if player.status == PlayerStatus.PLAYING]
        if not playing:
            return True
        if len(playing) == 1 and playing[0].current_bet >= self.bet_to_call:
            # Everyone else is all-in or folded and nothing is owed.
            return True
        if any(player.current_bet != self.bet_to_call for player in playing):
            return False
        return self.actions_taken_this_round > 0 and self.last_actor_pos == self.action_closer_pos

    def advance(self) -> Phase:
        if self.phase == Phase.HAND_OVER:
            raise RuntimeError("Hand is over; start a new hand")
        if self.phase in BETTING_PHASES and self.count_non_folded_players() <= 1:
            # Uncontested: the caller settles with award_pot_to_last_player.
            return self.phase
        if self.phase in BETTING_PHASES and not self.is_betting_round_over():
            raise RuntimeError(f"Betting round for {self.phase.value} is not over")

        self.phase = self.transitions[self.phase]
        self._round_prepared = False
        if self.phase == Phase.SHOWDOWN:
            self._deal_remaining_board()
            self.showdown_results = self._resolve_showdown()
        return self.phase

    def _deal_remaining_board(self) -> None:
        missing = self.rules.community_cards.count - len(self.community_cards)
        if missing > 0:
            self.community_cards.extend(deal(self.deck, missing))

    # Settlement ------------------------------------------------------

    def award_pot_to_last_player(self) -> List[PotResult]:
        active = [player for player in self.players if player.is_active]
        if len(active) != 1:
            raise RuntimeError("Pot can only be awarded when exactly one player remains")
        winner = active[0]
        amount = self.pot
        winner.chips += amount
        self.pot = 0
        LOGGER.info("%s wins %d uncontested", winner.name, amount)
        self.showdown_results = [PotResult(winner.name, amount, "Uncontested")]
        return list(self.showdown_results)

    def _resolve_showdown(self) -> List[PotResult]:
        contenders = [player for player in self.players if player.is_active]
        self.hand_results = {
            player.name: evaluate(player.hand, self.community_cards, self.rules) for player in contenders
        }
        for player in contenders:
            LOGGER.info("%s shows %s", player.name, self.hand_results[player.name].description)

        awards: Dict[int, int] = {}
        descriptions: Dict[int, List[str]] = {}
        # Highest tier first; each tier only involves the players who covered it.
        for side_pot in reversed(self.build_side_pots()):
            self._award_side_pot(side_pot, awards, descriptions)

        if self.pot != 0:
            raise InvariantViolation(f"{self.pot} chips left in the pot after showdown")

        return [
            PotResult(self.players[pos].name, amount, "; ".join(descriptions[pos]))
            for pos, amount in awards.items()
        ]

    def build_side_pots(self) -> List[SidePot]:
        """Main pot first, then each side pot formed by a smaller all-in."""
        levels = sorted({player.total_bet_in_hand for player in self.players if player.total_bet_in_hand > 0})
        pots: List[SidePot] = []
        previous = 0
        carry = 0
        for level in levels:
            amount = sum(
                min(player.total_bet_in_hand, level) - min(player.total_bet_in_hand, previous)
                for player in self.players
            )
            previous = level
            contenders = [
                player.position
                for player in self.players
                if player.is_active and player.total_bet_in_hand >= level
            ]
            if not contenders:
                # Dead money above every live stack goes to the tier below.
                if pots:
                    pots[-1] = SidePot(pots[-1].amount + amount, pots[-1].contenders)
                else:
                    carry += amount
                continue
            if pots and pots[-1].contenders == contenders:
                pots[-1] = SidePot(pots[-1].amount + amount + carry, contenders)
            else:
                pots.append(SidePot(amount + carry, contenders))
            carry = 0
        return pots

    def _award_side_pot(self, side_pot: SidePot, awards: Dict[int, int], descriptions: Dict[int, List[str]]) -> None:
        results = {pos: self.hand_results[self.players[pos].name] for pos in side_pot.contenders}
        best_high = max(result.high for result in results.values())
        high_winners = [pos for pos, result in results.items() if result.high == best_high]

        low_winners: List[int] = []
        best_low = None
        if self.rules.low_hand.enabled:
            lows = {pos: result.low for pos, result in results.items() if result.low is not None}
            if lows:
                best_low = min(lows.values())
                low_winners = [pos for pos, low in lows.items() if low == best_low]

        if low_winners:
            low_share = side_pot.amount // 2
            high_share = side_pot.amount - low_share
        else:
            low_share = 0
            high_share = side_pot.amount

        self._split(high_share, high_winners, describe_rank(best_high), awards, descriptions)
        if low_winners:
            self._split(low_share, low_winners, describe_low(best_low), awards, descriptions)

    def _split(
        self,
        amount: int,
        winners: List[int],
        description: str,
        awards: Dict[int, int],
        descriptions: Dict[int, List[str]],
    ) -> None:
        share, remainder = divmod(amount, len(winners))
        for idx, pos in enumerate(sorted(winners)):
            payout = share + (1 if idx < remainder else 0)
            self.players[pos].chips += payout
            self.pot -= payout
            awards[pos] = awards.get(pos, 0) + payout
            labels = descriptions.setdefault(pos, [])
            if description not in labels:
                labels.append(description)
            LOGGER.info("%s wins %d with %s", self.players[pos].name, payout, description)

    def cleanup_hand(self) -> List[str]:
        if self.pot != 0:
            raise InvariantViolation(f"Pot of {self.pot} was never awarded")
        total = sum(player.chips for player in self.players)
        if total != self.total_initial_chips:
            raise InvariantViolation(f"Chip total drifted to {total}, expected {self.total_initial_chips}")

        messages: List[str] = []
        for player in self.players:
            player.current_bet = 0
            if player.status != PlayerStatus.ELIMINATED and player.chips == 0:
                player.status = PlayerStatus.ELIMINATED
                messages.append(f"{player.name} has been eliminated.")
                LOGGER.info("%s eliminated after hand #%d", player.name, self.hand_count + 1)

        self.hand_count += 1
        self.phase = Phase.HAND_OVER
        self._round_prepared = False
        return messages
