import argparse
import logging
import sys
import time
from datetime import datetime
from typing import List, Optional

from engine.errors import ConfigurationError, InvalidActionError, SaveFileError
from engine.game import Game
from engine.models import Difficulty, Phase, PlayerStatus, TableConfig
from engine.rules import load_rules
from engine.save_manager import (
    delete_save_file,
    list_save_files,
    load_game_from_file,
    save_game_to_file,
    validate_save_file,
)

from .display import (
    display_game_state,
    format_event,
    format_number,
    format_showdown_results,
    format_winner,
    prompt_for_action,
)

LOGGER = logging.getLogger("pls7.console")

PLAYER_NAMES = ["YOU", "CPU 1", "CPU 2", "CPU 3", "CPU 4", "CPU 5"]


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {number}")
    return number


def parse_difficulty(value: str) -> Difficulty:
    try:
        return Difficulty(value.lower())
    except ValueError:
        LOGGER.warning("Invalid difficulty '%s' specified. Defaulting to medium.", value)
        return Difficulty.MEDIUM


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pls7",
        description="Play poker (PLS7, PLS, NLH, PLO) against 5 CPU opponents",
    )
    parser.add_argument("--rule", "-r", default="pls7", help="Game rule to use (pls7, pls, nlh, plo or a YAML path)")
    parser.add_argument("--difficulty", "-d", default="medium", help="AI difficulty (easy, medium, hard)")
    parser.add_argument("--dev", action="store_true", help="Verbose logging and face-up CPU cards")
    parser.add_argument("--outs", action="store_true", help="Show your outs when drawing")
    parser.add_argument("--blind-up", type=int, default=2, help="Hands between blind increases (0 disables)")
    parser.add_argument("--initial-chips", type=positive_int, default=300_000)
    parser.add_argument("--small-blind", type=positive_int, default=500)
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible game")
    parser.add_argument("--cpu-think-ms", type=int, default=0, help="Pause before each CPU action")
    parser.add_argument("--load", "-l", action="store_true", help="Load the most recent saved game")
    parser.add_argument("--load-file", default="", help="Load a specific saved game file")
    parser.add_argument("--save-dir", default="saves", help="Directory for save files")

    commands = parser.add_subparsers(dest="command")
    saves = commands.add_parser("saves", help="Manage saved games")
    saves.add_argument("--save-dir", default=argparse.SUPPRESS, help="Directory for save files")
    saves_commands = saves.add_subparsers(dest="saves_command", required=True)
    saves_commands.add_parser("list", help="List all saved games")
    validate = saves_commands.add_parser("validate", help="Check that a save file can be loaded")
    validate.add_argument("filename")
    delete = saves_commands.add_parser("delete", help="Delete a save file")
    delete.add_argument("filename")
    delete.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
    return parser


def create_game(args: argparse.Namespace) -> Game:
    if args.load or args.load_file:
        print("Loading saved game...")
        game = load_game_from_file(args.save_dir, args.load_file)
        print(f"Game loaded. Starting new hand with Hand #{game.hand_count + 1}")
        print(f"Players: {len(game.players)}, Total chips in play: {format_number(game.total_initial_chips)}")
        return game

    rules = load_rules(args.rule)
    print(f"======== {rules.name} ========")
    config = TableConfig(
        initial_chips=args.initial_chips,
        small_blind=args.small_blind,
        blind_up_interval=args.blind_up,
        difficulty=parse_difficulty(args.difficulty),
        seed=args.seed,
        cpu_think_ms=args.cpu_think_ms,
    )
    return Game(PLAYER_NAMES, rules, config)


def play_hand(game: Game, show_outs: bool, reveal_all: bool) -> None:
    blind_event = game.start_new_hand()
    if blind_event is not None:
        print(
            f"\n*** Blinds are now {format_number(blind_event.small_blind)}/"
            f"{format_number(blind_event.big_blind)} ***\n"
        )
    display_game_state(game, reveal_all)

    while game.phase not in (Phase.SHOWDOWN, Phase.HAND_OVER):
        if game.count_non_folded_players() <= 1:
            break
        game.prepare_new_betting_round()
        if game.phase != Phase.PRE_FLOP:
            display_game_state(game, reveal_all)

        while not game.is_betting_round_over():
            player = game.current_player()
            if player.status != PlayerStatus.PLAYING:
                game.advance_turn()
                continue

            if player.is_cpu:
                time.sleep(game.cpu_think_time())
                action = game.get_cpu_action(player)
            else:
                action = prompt_for_action(game, show_outs)

            try:
                _, event = game.process_action(player, action)
            except InvalidActionError as exc:
                if player.is_cpu:
                    raise
                print(f"Invalid action: {exc}")
                continue
            print(format_event(event))
            game.advance_turn()
        game.advance()

    if game.count_non_folded_players() > 1:
        for line in format_showdown_results(game):
            print(line)
    else:
        print("--- POT AWARDED ---")
        for result in game.award_pot_to_last_player():
            print(f"{result.player_name} wins {format_number(result.amount_won)} chips with {result.hand_desc}")
        print("-------------------")

    for message in game.cleanup_hand():
        print(message)


def run_game(args: argparse.Namespace) -> int:
    try:
        game = create_game(args)
    except (ConfigurationError, SaveFileError) as exc:
        print(f"Failed to start game: {exc}")
        if args.load or args.load_file:
            print(f"Make sure you have saved games in the '{args.save_dir}' directory.")
        return 1

    while True:
        play_hand(game, show_outs=args.outs or args.dev, reveal_all=args.dev)

        if game.players[0].status == PlayerStatus.ELIMINATED:
            print("You have been eliminated. GAME OVER.")
            return 0
        if game.is_game_over():
            print("--- GAME OVER ---")
            print(format_winner(game) or "")
            return 0

        choice = input("Press ENTER to start the next hand, type 's' to save, or type 'q' to exit > ")
        choice = choice.strip().lower()
        if choice == "q":
            print("Thanks for playing!")
            return 0
        if choice == "s":
            filename = f"save_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
            try:
                path = save_game_to_file(game, args.save_dir, filename)
            except SaveFileError as exc:
                print(f"Failed to save game: {exc}")
            else:
                print(f"Game saved as {path.name}. Resume later with --load.")


def run_saves(args: argparse.Namespace) -> int:
    try:
        if args.saves_command == "list":
            saves = list_save_files(args.save_dir)
            if not saves:
                print(f"No saved games found in directory: {args.save_dir}")
                return 0
            print(f"Saved games in {args.save_dir}:")
            for idx, info in enumerate(saves, start=1):
                print(f"{idx}. {info.filename}")
                print(f"   Created: {info.created_at:%Y-%m-%d %H:%M:%S}")
                print(f"   Size: {info.size} bytes")
                if info.game_metadata:
                    meta = info.game_metadata
                    print(f"   Hand: #{meta.get('hand_count')}")
                    print(
                        f"   Blinds: {format_number(meta.get('small_blind', 0))}/"
                        f"{format_number(meta.get('big_blind', 0))}"
                    )
            return 0

        if args.saves_command == "validate":
            validate_save_file(args.save_dir, args.filename)
            print(f"Save file '{args.filename}' is valid and can be loaded.")
            return 0

        if not args.yes:
            answer = input(f"Are you sure you want to delete '{args.filename}'? (y/N): ").strip().lower()
            if answer not in ("y", "yes"):
                print("Deletion cancelled.")
                return 0
        delete_save_file(args.save_dir, args.filename)
        print(f"Save file '{args.filename}' deleted.")
        return 0
    except SaveFileError as exc:
        print(f"Error: {exc}")
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.dev else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "saves":
        return run_saves(args)
    return run_game(args)


if __name__ == "__main__":
    sys.exit(main())
