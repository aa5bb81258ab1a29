"""Snapshot and restore of a game between hands.

Only what survives a hand boundary is captured: seating, chip counts, blinds,
dealer button, hand count, variant and CPU profiles, plus a fresh seed for the
restored random source. Cards, pot and phase are never saved; a restored game
always sits at HAND_OVER, ready to deal.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .errors import SaveFileError
from .game import Game
from .models import AIProfile, Phase, PlayerStatus, TableConfig
from .rules import GameRules

SAVE_VERSION = "1.0"


def profile_to_dict(profile: Optional[AIProfile]) -> Optional[Dict[str, Any]]:
    return asdict(profile) if profile is not None else None


def profile_from_dict(data: Optional[Dict[str, Any]]) -> Optional[AIProfile]:
    if data is None:
        return None
    return AIProfile(
        name=str(data.get("name", "")),
        play_hand_threshold=float(data["play_hand_threshold"]),
        raise_hand_threshold=float(data["raise_hand_threshold"]),
        bluffing_frequency=float(data["bluffing_frequency"]),
        aggression_factor=float(data["aggression_factor"]),
        min_raise_multiplier=float(data["min_raise_multiplier"]),
        max_raise_multiplier=float(data["max_raise_multiplier"]),
    )


def to_save_data(game: Game) -> Dict[str, Any]:
    if game.phase != Phase.HAND_OVER:
        raise RuntimeError("Games can only be saved between hands")

    return {
        "version": SAVE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "game_metadata": {
            "hand_count": game.hand_count,
            "dealer_pos": game.dealer_pos,
            "small_blind": game.small_blind,
            "big_blind": game.big_blind,
            "blind_up_interval": game.blind_up_interval,
            "total_initial_chips": game.total_initial_chips,
        },
        "players": [
            {
                "name": player.name,
                "chips": player.chips,
                "is_cpu": player.is_cpu,
                "position": player.position,
                "status": player.status.value,
                "profile": profile_to_dict(player.profile),
            }
            for player in game.players
        ],
        "game_rules": game.rules.to_dict(),
        "settings": {
            "difficulty": game.config.difficulty.value,
            "cpu_think_ms": game.config.cpu_think_ms,
        },
        # Drawn from the live source, so saving advances the game's rng: a session
        # that saves deals differently from one that does not.
        "rng_seed": game.rng.getrandbits(63),
    }


def from_save_data(data: Any) -> Game:
    if not isinstance(data, dict):
        raise SaveFileError("Save data must be a JSON object")
    version = data.get("version")
    if version != SAVE_VERSION:
        raise SaveFileError(f"Unsupported save file version: {version}")

    try:
        rules = GameRules.from_dict(data["game_rules"])
        meta = data["game_metadata"]
        players = data["players"]
        settings = data.get("settings") or {}
        if not players:
            raise SaveFileError("Save file contains no players")

        config = TableConfig(
            initial_chips=max(1, max(int(entry["chips"]) for entry in players)),
            small_blind=int(meta["small_blind"]),
            big_blind=int(meta["big_blind"]),
            blind_up_interval=int(meta["blind_up_interval"]),
            difficulty=settings.get("difficulty", "medium"),
            seed=int(data["rng_seed"]),
            cpu_think_ms=int(settings.get("cpu_think_ms", 0)),
        )
        human_seats = [idx for idx, entry in enumerate(players) if not entry["is_cpu"]]
        game = Game([str(entry["name"]) for entry in players], rules, config, human_seats=human_seats)

        for player, entry in zip(game.players, players):
            player.chips = int(entry["chips"])
            if player.chips < 0:
                raise SaveFileError(f"{player.name} has a negative chip count")
            status = PlayerStatus(entry.get("status", PlayerStatus.PLAYING.value))
            player.status = PlayerStatus.ELIMINATED if status == PlayerStatus.ELIMINATED else PlayerStatus.PLAYING
            player.profile = profile_from_dict(entry.get("profile")) if player.is_cpu else None

        game.dealer_pos = int(meta["dealer_pos"])
        game.hand_count = int(meta["hand_count"])
        game.total_initial_chips = int(meta["total_initial_chips"])
    except (KeyError, TypeError, ValueError) as exc:
        raise SaveFileError(f"Malformed save data: {exc}") from exc

    if sum(player.chips for player in game.players) != game.total_initial_chips:
        raise SaveFileError("Chip counts do not add up to the recorded total")
    if not -1 <= game.dealer_pos < len(game.players):
        raise SaveFileError(f"Dealer position {game.dealer_pos} is out of range")

    game.phase = Phase.HAND_OVER
    return game
