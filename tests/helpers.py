from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from engine.cards import Card, full_deck, parse_cards
from engine.game import Game
from engine.models import ActionType, Phase, Player, PlayerAction, PlayerStatus, TableConfig
from engine.rules import GameRules, load_rules


def create_game(
    *,
    players: int = 4,
    rule: str = "nlh",
    initial_chips: int = 1_000,
    small_blind: int = 10,
    big_blind: int = 20,
    blind_up_interval: int = 0,
    seed: int = 42,
    rules: Optional[GameRules] = None,
) -> Game:
    """Instantiate an all-CPU game with a populated table."""
    config = TableConfig(
        initial_chips=initial_chips,
        small_blind=small_blind,
        big_blind=big_blind,
        blind_up_interval=blind_up_interval,
        seed=seed,
    )
    names = [f"Player{idx}" for idx in range(players)]
    return Game(names, rules or load_rules(rule), config, human_seats=())


def set_stacks(game: Game, stacks: Sequence[int]) -> None:
    for player, chips in zip(game.players, stacks):
        player.chips = chips
    game.total_initial_chips = sum(player.chips for player in game.players)


def arrange_deck(game: Game, holes: Sequence[Sequence[str]], board: Sequence[str] = ()) -> List[Card]:
    """Deck that deals ``holes[seat]`` to each seat and then ``board``, for the next hand.

    Assumes every seat is still in the game, so the next dealer is the seat
    after the current one.
    """
    count = len(game.players)
    dealer = (game.dealer_pos + 1) % count
    order = [(dealer + offset) % count for offset in range(1, count + 1)]
    labels: List[str] = []
    for round_idx in range(game.rules.hole_cards.count):
        for seat in order:
            labels.append(holes[seat][round_idx])
    labels.extend(board)

    chosen = parse_cards(labels)
    assert len(set(chosen)) == len(chosen), "duplicate card in arranged deck"
    rest = [card for card in full_deck() if card not in chosen]
    return chosen + rest


def stack_deck(monkeypatch, game: Game, holes: Sequence[Sequence[str]], board: Sequence[str] = ()) -> None:
    cards = arrange_deck(game, holes, board)
    monkeypatch.setattr("engine.game.build_deck", lambda rng: list(cards))


def passive_action(game: Game, player: Player) -> PlayerAction:
    if game.bet_to_call > player.current_bet:
        return PlayerAction(ActionType.CALL)
    return PlayerAction(ActionType.CHECK)


def play_betting_round(
    game: Game,
    decide: Callable[[Game, Player], PlayerAction] = passive_action,
) -> int:
    """Drive one prepared betting round to completion; returns actions taken."""
    actions = 0
    while not game.is_betting_round_over():
        player = game.current_player()
        if player.status != PlayerStatus.PLAYING:
            game.advance_turn()
            continue
        game.process_action(player, decide(game, player))
        actions += 1
        game.advance_turn()
    return actions


def finish_hand(
    game: Game,
    decide: Callable[[Game, Player], PlayerAction] = passive_action,
) -> List[str]:
    """Play the rest of the current hand the way the console loop does.

    Starts from a phase whose betting round has not been prepared yet.
    """
    while game.phase not in (Phase.SHOWDOWN, Phase.HAND_OVER):
        if game.count_non_folded_players() <= 1:
            break
        game.prepare_new_betting_round()
        play_betting_round(game, decide)
        game.advance()
    if game.count_non_folded_players() == 1:
        game.award_pot_to_last_player()
    return game.cleanup_hand()


def play_hand(
    game: Game,
    decide: Callable[[Game, Player], PlayerAction] = passive_action,
) -> List[str]:
    game.start_new_hand()
    return finish_hand(game, decide)


def cpu_decide(game: Game, player: Player) -> PlayerAction:
    return game.get_cpu_action(player)


def chips_in_play(game: Game) -> int:
    return sum(player.chips for player in game.players) + game.pot
