#!/usr/bin/env python3
"""Play a seeded game between CPU players only.

Useful for checking that a variant runs end to end and that the same seed
always produces the same outcome.

Example:
    python scripts/cpu_sim.py --rule nlh --players 4 --hands 200 --seed 7
"""

from __future__ import annotations

import argparse
import logging
from collections import Counter
from typing import Dict

from engine.game import Game
from engine.models import Difficulty, Phase, PlayerStatus, TableConfig
from engine.rules import load_rules

LOGGER = logging.getLogger("cpu_sim")


def play_hand(game: Game) -> None:
    game.start_new_hand()
    while game.phase not in (Phase.SHOWDOWN, Phase.HAND_OVER):
        if game.count_non_folded_players() <= 1:
            break
        game.prepare_new_betting_round()
        while not game.is_betting_round_over():
            player = game.current_player()
            if player.status != PlayerStatus.PLAYING:
                game.advance_turn()
                continue
            game.process_action(player, game.get_cpu_action(player))
            game.advance_turn()
        game.advance()

    if game.count_non_folded_players() == 1:
        game.award_pot_to_last_player()
    for message in game.cleanup_hand():
        LOGGER.info(message)


def simulate(rule: str, players: int, hands: int, seed: int, difficulty: Difficulty) -> Dict[str, object]:
    config = TableConfig(initial_chips=10_000, small_blind=50, blind_up_interval=10, difficulty=difficulty, seed=seed)
    names = [f"CPU {idx + 1}" for idx in range(players)]
    game = Game(names, load_rules(rule), config, human_seats=())

    winners: Counter = Counter()
    played = 0
    while played < hands and not game.is_game_over():
        play_hand(game)
        for result in game.showdown_results:
            winners[result.player_name] += 1
        played += 1

    return {
        "hands": played,
        "blinds": f"{game.small_blind}/{game.big_blind}",
        "stacks": {player.name: player.chips for player in game.players},
        "pots_won": dict(winners),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Run an all-CPU poker game")
    parser.add_argument("--rule", default="pls7")
    parser.add_argument("--players", type=int, default=6)
    parser.add_argument("--hands", type=int, default=100)
    parser.add_argument("--seed", type=int, default=1)
    parser.add_argument("--difficulty", choices=[d.value for d in Difficulty], default="medium")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    summary = simulate(args.rule, args.players, args.hands, args.seed, Difficulty(args.difficulty))
    print(f"Hands played: {summary['hands']} (blinds now {summary['blinds']})")
    for name, chips in summary["stacks"].items():
        print(f"  {name:<8} {chips:>8} chips, {summary['pots_won'].get(name, 0)} pots won")


if __name__ == "__main__":
    main()
