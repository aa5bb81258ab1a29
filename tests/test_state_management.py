import json

import pytest

from engine.errors import SaveFileError
from engine.models import PROFILES, Difficulty, Phase, PlayerStatus
from engine.save import SAVE_VERSION, from_save_data, to_save_data

from .helpers import create_game, play_hand


def played_game(hands=3):
    game = create_game(players=3, rule="pls7", blind_up_interval=2, seed=21)
    game.players[1].profile = PROFILES[Difficulty.HARD]
    for _ in range(hands):
        play_hand(game)
    return game


def test_save_data_shape():
    game = played_game()
    data = to_save_data(game)
    assert data["version"] == SAVE_VERSION
    assert data["game_metadata"]["hand_count"] == 3
    assert data["game_metadata"]["small_blind"] == 20
    assert data["game_rules"]["abbreviation"] == "PLS7"
    assert [entry["name"] for entry in data["players"]] == ["Player0", "Player1", "Player2"]
    assert data["players"][1]["profile"]["name"] == "Hard"
    json.dumps(data)


def test_round_trip_restores_table():
    game = played_game()
    restored = from_save_data(json.loads(json.dumps(to_save_data(game))))
    assert restored.phase == Phase.HAND_OVER
    assert restored.rules == game.rules
    assert restored.hand_count == game.hand_count
    assert restored.dealer_pos == game.dealer_pos
    assert (restored.small_blind, restored.big_blind) == (game.small_blind, game.big_blind)
    assert restored.blind_up_interval == game.blind_up_interval
    assert restored.total_initial_chips == game.total_initial_chips
    for original, copy in zip(game.players, restored.players):
        assert copy.name == original.name
        assert copy.chips == original.chips
        assert copy.is_cpu == original.is_cpu
        assert copy.profile == original.profile
        assert copy.hand == []
    assert restored.players[1].profile == PROFILES[Difficulty.HARD]


def test_restored_game_keeps_playing():
    game = played_game()
    restored = from_save_data(to_save_data(game))
    dealer = restored.dealer_pos
    play_hand(restored)
    assert restored.dealer_pos == (dealer + 1) % 3
    assert restored.hand_count == 4
    assert sum(player.chips for player in restored.players) == restored.total_initial_chips


def test_restoring_the_same_save_replays_identically():
    data = to_save_data(played_game())
    first = from_save_data(data)
    second = from_save_data(data)
    play_hand(first)
    play_hand(second)
    assert [player.chips for player in first.players] == [player.chips for player in second.players]
    assert first.community_cards == second.community_cards


def test_eliminated_players_stay_eliminated():
    game = played_game()
    game.players[0].chips += game.players[2].chips
    game.players[2].chips = 0
    game.players[2].status = PlayerStatus.ELIMINATED
    restored = from_save_data(to_save_data(game))
    assert restored.players[2].status == PlayerStatus.ELIMINATED
    assert restored.count_remaining_players() == 2


def test_human_seat_survives_round_trip():
    game = create_game(players=2)
    game.players[0].is_cpu = False
    game.players[0].profile = None
    restored = from_save_data(to_save_data(game))
    assert restored.players[0].is_cpu is False
    assert restored.players[0].profile is None
    assert restored.players[1].is_cpu is True


def test_cannot_save_mid_hand():
    game = create_game()
    game.start_new_hand()
    with pytest.raises(RuntimeError, match="between hands"):
        to_save_data(game)


def test_unsupported_version_rejected():
    data = to_save_data(played_game(1))
    data["version"] = "0.9"
    with pytest.raises(SaveFileError, match="Unsupported save file version"):
        from_save_data(data)


def test_chip_mismatch_rejected():
    data = to_save_data(played_game(1))
    data["players"][0]["chips"] += 5
    with pytest.raises(SaveFileError, match="do not add up"):
        from_save_data(data)


def test_malformed_save_rejected():
    data = to_save_data(played_game(1))
    del data["game_metadata"]["small_blind"]
    with pytest.raises(SaveFileError, match="Malformed"):
        from_save_data(data)


def test_save_without_players_rejected():
    data = to_save_data(played_game(1))
    data["players"] = []
    with pytest.raises(SaveFileError, match="no players"):
        from_save_data(data)


def test_dealer_out_of_range_rejected():
    data = to_save_data(played_game(1))
    data["game_metadata"]["dealer_pos"] = 7
    with pytest.raises(SaveFileError, match="out of range"):
        from_save_data(data)


def test_non_object_rejected():
    with pytest.raises(SaveFileError, match="JSON object"):
        from_save_data(["not", "a", "save"])


def test_saving_draws_from_the_game_rng():
    game = played_game(1)
    state = game.rng.getstate()
    data = to_save_data(game)
    assert game.rng.getstate() != state
    assert from_save_data(data).seed == data["rng_seed"]
