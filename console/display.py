from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from engine.cards import Card
from engine.errors import InvalidActionError
from engine.evaluator import calculate_outs, describe_low
from engine.game import Game
from engine.models import ActionEvent, ActionType, Player, PlayerAction, PlayerStatus

# Everything the terminal shows is built here; the engine never prints.

_ALIASES = {
    "f": ActionType.FOLD,
    "fold": ActionType.FOLD,
    "k": ActionType.CHECK,
    "check": ActionType.CHECK,
    "c": ActionType.CALL,
    "call": ActionType.CALL,
    "b": ActionType.BET,
    "bet": ActionType.BET,
    "r": ActionType.RAISE,
    "raise": ActionType.RAISE,
}


def format_number(value: int) -> str:
    return f"{value:,}"


def format_cards(cards: Sequence[Card]) -> str:
    return " ".join(card.pretty for card in cards) if cards else "--"


def legal_actions(game: Game, player: Player) -> List[ActionType]:
    to_call = game.bet_to_call - player.current_bet
    legal = [ActionType.FOLD]
    legal.append(ActionType.CALL if to_call > 0 else ActionType.CHECK)
    if player.chips > to_call:
        legal.append(ActionType.RAISE if game.bet_to_call > 0 else ActionType.BET)
    return legal


def parse_action(text: str, game: Game, player: Player) -> PlayerAction:
    """Turn a line of user input into an action.

    Accepted forms: ``f``, ``k``, ``c``, ``b 500``, ``r 1200`` and ``a`` for
    all-in. Raises InvalidActionError for anything else.
    """
    parts = text.strip().lower().split()
    if not parts:
        raise InvalidActionError("Enter an action")

    legal = legal_actions(game, player)
    command = parts[0]
    if command in ("a", "allin", "all-in"):
        to_call = game.bet_to_call - player.current_bet
        if player.chips <= to_call:
            return PlayerAction(ActionType.CALL)
        kind = ActionType.RAISE if game.bet_to_call > 0 else ActionType.BET
        return PlayerAction(kind, player.chips + player.current_bet)

    kind = _ALIASES.get(command)
    if kind is None:
        raise InvalidActionError(f"Unknown action: {command}")
    if kind not in legal:
        raise InvalidActionError(f"{kind.value.title()} is not allowed now ({'/'.join(a.value for a in legal)})")

    if kind in (ActionType.BET, ActionType.RAISE):
        if len(parts) < 2:
            raise InvalidActionError(f"{kind.value.title()} needs an amount")
        try:
            amount = int(parts[1].replace(",", ""))
        except ValueError:
            raise InvalidActionError(f"Invalid amount: {parts[1]}") from None
        return PlayerAction(kind, amount)
    return PlayerAction(kind)


def prompt_for_action(
    game: Game,
    show_outs: bool = False,
    read: Callable[[str], str] = input,
) -> PlayerAction:
    player = game.current_player()
    if show_outs:
        outs = calculate_outs(player.hand, game.community_cards, game.rules)
        if outs:
            print(f"Outs ({len(outs)}): {format_cards(outs)}")

    legal = legal_actions(game, player)
    to_call = game.bet_to_call - player.current_bet
    hints = []
    for kind in legal:
        if kind == ActionType.CALL:
            hints.append(f"(c)all {format_number(min(to_call, player.chips))}")
        elif kind in (ActionType.BET, ActionType.RAISE):
            min_to, max_to = game.betting_bounds(player)
            hints.append(f"({kind.value[0].lower()}){kind.value.lower()} {format_number(min_to)}-{format_number(max_to)}")
        elif kind == ActionType.CHECK:
            hints.append("chec(k)")
        else:
            hints.append("(f)old")
    prompt = f"{player.name}, choose: {', '.join(hints)}, (a)ll-in > "

    while True:
        try:
            return parse_action(read(prompt), game, player)
        except InvalidActionError as exc:
            print(f"Invalid input: {exc}")


def display_game_state(game: Game, reveal_all: bool = False) -> None:
    print()
    print(f"==== Hand #{game.hand_count + 1} | {game.phase.title} | {game.rules.abbreviation} ====")
    print(f"Board: {format_cards(game.community_cards)}   Pot: {format_number(game.pot)}")
    print(f"Blinds: {format_number(game.small_blind)}/{format_number(game.big_blind)}")
    for player in game.players:
        if player.status == PlayerStatus.ELIMINATED:
            continue
        marker = "D" if player.position == game.dealer_pos else " "
        if player.is_cpu and not reveal_all:
            cards = "?? " * len(player.hand)
        else:
            cards = format_cards(player.hand)
        line = f" {marker} {player.name:<6} {format_number(player.chips):>12}  {cards:<16} {player.status.value:<8}"
        if player.last_action_desc:
            line += f" {player.last_action_desc}"
        print(line)
    print()


def format_event(event: ActionEvent) -> str:
    if event.action == ActionType.FOLD:
        return f"{event.player_name} folds."
    if event.action == ActionType.CHECK:
        return f"{event.player_name} checks."
    if event.action == ActionType.CALL:
        return f"{event.player_name} calls {format_number(event.amount)}."
    if event.action == ActionType.BET:
        return f"{event.player_name} bets {format_number(event.amount)}."
    return f"{event.player_name} raises to {format_number(event.amount)}."


def format_showdown_results(game: Game) -> List[str]:
    lines = ["--- SHOWDOWN ---", f"Board: {format_cards(game.community_cards)}"]
    for player in game.players:
        result = game.hand_results.get(player.name)
        if result is None:
            continue
        line = f"{player.name}: {format_cards(player.hand)} -> {result.description}"
        if result.low is not None:
            line += f", {describe_low(result.low)}"
        lines.append(line)
    for pot_result in game.showdown_results:
        lines.append(
            f"{pot_result.player_name} wins {format_number(pot_result.amount_won)} chips with {pot_result.hand_desc}"
        )
    lines.append("----------------")
    return lines


def format_winner(game: Game) -> Optional[str]:
    remaining = [player for player in game.players if player.status != PlayerStatus.ELIMINATED]
    if len(remaining) == 1:
        return f"{remaining[0].name} wins the game with {format_number(remaining[0].chips)} chips!"
    return None
