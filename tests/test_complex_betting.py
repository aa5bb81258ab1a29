from engine.models import ActionType, Phase, PlayerAction, PlayerStatus, SidePot

from .helpers import create_game, finish_hand, set_stacks, stack_deck


def act(game, kind, amount=0):
    game.process_action(game.current_player(), PlayerAction(kind, amount))
    game.advance_turn()


def test_multiple_raises_update_min_increment():
    game = create_game(players=3)
    game.start_new_hand()
    game.prepare_new_betting_round()
    act(game, ActionType.RAISE, 60)
    assert game.last_raise_amount == 40
    act(game, ActionType.RAISE, 200)
    assert game.last_raise_amount == 140
    assert game.betting_bounds(game.current_player())[0] == 340


def test_short_all_in_does_not_reopen_min_raise():
    game = create_game(players=3)
    set_stacks(game, [1000, 1000, 150])
    game.start_new_hand()
    game.prepare_new_betting_round()
    act(game, ActionType.RAISE, 100)
    act(game, ActionType.CALL)
    act(game, ActionType.RAISE, 150)
    assert game.players[2].status == PlayerStatus.ALL_IN
    assert game.players[2].last_action_desc == "Raise to 150 (all-in)"
    assert game.bet_to_call == 150
    assert game.last_raise_amount == 80
    assert game.betting_bounds(game.current_player())[0] == 230


def test_three_way_all_in_builds_side_pot(monkeypatch):
    game = create_game(players=3)
    set_stacks(game, [500, 1000, 1000])
    stack_deck(
        monkeypatch,
        game,
        holes=[["As", "Ad"], ["Ks", "Kd"], ["Qs", "Qd"]],
        board=["2c", "7h", "9d", "Jc", "3s"],
    )
    game.start_new_hand()
    game.prepare_new_betting_round()
    act(game, ActionType.RAISE, 500)
    act(game, ActionType.RAISE, 1000)
    act(game, ActionType.CALL)
    assert game.is_betting_round_over()
    assert game.build_side_pots() == [SidePot(1500, [0, 1, 2]), SidePot(1000, [1, 2])]

    game.advance()
    messages = finish_hand(game)
    assert [player.chips for player in game.players] == [1500, 1000, 0]
    assert messages == ["Player2 has been eliminated."]
    won = {result.player_name: result.amount_won for result in game.showdown_results}
    assert won == {"Player0": 1500, "Player1": 1000}


def test_biggest_stack_with_best_hand_takes_every_tier(monkeypatch):
    game = create_game(players=3)
    set_stacks(game, [500, 1000, 1000])
    stack_deck(
        monkeypatch,
        game,
        holes=[["Qs", "Qd"], ["Ks", "Kd"], ["As", "Ad"]],
        board=["2c", "7h", "9d", "Jc", "3s"],
    )
    game.start_new_hand()
    game.prepare_new_betting_round()
    act(game, ActionType.RAISE, 500)
    act(game, ActionType.RAISE, 1000)
    act(game, ActionType.CALL)
    game.advance()
    finish_hand(game)
    assert [player.chips for player in game.players] == [0, 0, 2500]
    assert game.showdown_results[0].amount_won == 2500
    assert game.is_game_over()


def test_equal_all_in_shares_one_tier():
    game = create_game(players=3)
    set_stacks(game, [500, 500, 1000])
    game.start_new_hand()
    game.prepare_new_betting_round()
    act(game, ActionType.RAISE, 500)
    act(game, ActionType.CALL)
    act(game, ActionType.CALL)
    assert game.players[1].status == PlayerStatus.ALL_IN
    assert game.players[2].status == PlayerStatus.PLAYING
    assert game.is_betting_round_over()
    assert game.build_side_pots() == [SidePot(1500, [0, 1, 2])]


def test_folded_chips_stay_in_the_pots():
    game = create_game(players=4)
    contributions = [
        (PlayerStatus.FOLDED, 50),
        (PlayerStatus.ALL_IN, 500),
        (PlayerStatus.PLAYING, 1000),
        (PlayerStatus.PLAYING, 1000),
    ]
    for player, (status, total) in zip(game.players, contributions):
        player.status = status
        player.total_bet_in_hand = total
    assert game.build_side_pots() == [SidePot(1550, [1, 2, 3]), SidePot(1000, [2, 3])]


def test_dead_money_above_live_stacks_joins_the_top_pot():
    game = create_game(players=3)
    contributions = [
        (PlayerStatus.FOLDED, 800),
        (PlayerStatus.ALL_IN, 300),
        (PlayerStatus.ALL_IN, 300),
    ]
    for player, (status, total) in zip(game.players, contributions):
        player.status = status
        player.total_bet_in_hand = total
    assert game.build_side_pots() == [SidePot(1400, [1, 2])]


def test_hi_lo_pot_is_split_between_high_and_low(monkeypatch):
    game = create_game(players=2, rule="pls7")
    stack_deck(
        monkeypatch,
        game,
        holes=[["Kc", "Qh", "Qs"], ["Ah", "3s", "6c"]],
        board=["Ks", "Kd", "2c", "4d", "9h"],
    )
    game.start_new_hand()
    finish_hand(game)
    won = {result.player_name: result for result in game.showdown_results}
    assert won["Player0"].amount_won == 20
    assert won["Player0"].hand_desc == "Full House, Kings full of Queens"
    assert won["Player1"].amount_won == 20
    assert won["Player1"].hand_desc == "6-4-3-2-A low"
    assert game.hand_results["Player0"].low is None
    assert [player.chips for player in game.players] == [1000, 1000]


def test_high_hand_scoops_without_qualifying_low(monkeypatch):
    game = create_game(players=2, rule="pls7")
    stack_deck(
        monkeypatch,
        game,
        holes=[["Kc", "Qh", "Qs"], ["Ah", "8s", "Tc"]],
        board=["Ks", "Kd", "2c", "4d", "9h"],
    )
    game.start_new_hand()
    finish_hand(game)
    assert [player.chips for player in game.players] == [1020, 980]
    assert len(game.showdown_results) == 1


def test_hi_lo_odd_chip_goes_to_high(monkeypatch):
    game = create_game(players=3, rule="pls7", small_blind=5, big_blind=10)
    stack_deck(
        monkeypatch,
        game,
        holes=[["Kc", "Qh", "Qs"], ["8c", "8d", "8h"], ["Ah", "3s", "6c"]],
        board=["Ks", "Kd", "2c", "4d", "9h"],
    )
    game.start_new_hand()
    game.prepare_new_betting_round()
    act(game, ActionType.CALL)
    act(game, ActionType.FOLD)
    act(game, ActionType.CHECK)
    assert game.advance() == Phase.FLOP
    finish_hand(game)
    assert [player.chips for player in game.players] == [1003, 995, 1002]
