import pytest

from engine.errors import ConfigurationError
from engine.game import build_transitions
from engine.models import Phase
from engine.rules import (
    CommunityCardRules,
    GameRules,
    HoleCardRules,
    LowHandRules,
    available_rules,
    load_rules,
)


def test_bundled_rules_are_available():
    assert available_rules() == ["nlh", "plo", "pls", "pls7"]


def test_pls7_rules():
    rules = load_rules("pls7")
    assert rules.abbreviation == "PLS7"
    assert rules.betting_limit == "pot_limit"
    assert rules.hole_cards.count == 3
    assert rules.community_cards.streets == (3, 1, 1)
    assert rules.low_hand.enabled
    assert rules.low_hand.max_rank == 8


def test_rule_names_are_case_insensitive():
    assert load_rules("NLH") == load_rules("nlh")


def test_plo_uses_exactly_two_hole_cards():
    rules = load_rules("plo")
    assert rules.hole_cards.use_constraint == "exactly"
    assert rules.hole_cards.use_count == 2


def test_load_rules_from_path(tmp_path):
    path = tmp_path / "short.yaml"
    path.write_text(
        "name: Short Deck Test\n"
        "betting_limit: no_limit\n"
        "hole_cards:\n"
        "  count: 2\n"
        "community_cards:\n"
        "  count: 5\n",
        encoding="utf-8",
    )
    rules = load_rules(str(path))
    assert rules.abbreviation == "Short Deck Test"
    assert rules.community_cards.streets == (3, 1, 1)
    assert not rules.low_hand.enabled


def test_missing_rules_file():
    with pytest.raises(ConfigurationError, match="not found"):
        load_rules("razz")


def test_no_rule_name():
    with pytest.raises(ConfigurationError, match="No game rule"):
        load_rules("")


def test_malformed_yaml(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("name: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Failed to parse"):
        load_rules(str(path))


def test_missing_required_field():
    with pytest.raises(ConfigurationError, match="hole_cards"):
        GameRules.from_dict({"name": "X", "betting_limit": "no_limit"})


def test_non_integer_count():
    with pytest.raises(ConfigurationError, match="must be an integer"):
        GameRules.from_dict({"name": "X", "betting_limit": "no_limit", "hole_cards": {"count": "two"}})


@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"betting_limit": "fixed_limit"}, "Unknown betting limit"),
        ({"hole_cards": HoleCardRules(2, use_constraint="some")}, "Unknown hole card constraint"),
        ({"community_cards": CommunityCardRules(5, (3, 1))}, "add up"),
        ({"community_cards": CommunityCardRules(4, (1, 1, 1, 1))}, "At most three"),
        ({"hole_cards": HoleCardRules(2), "community_cards": CommunityCardRules(2, (2,))}, "at least five"),
        ({"hole_cards": HoleCardRules(4, "exactly", 5)}, "use_count"),
        ({"low_hand": LowHandRules(True, 4)}, "max_rank"),
    ],
)
def test_invalid_rules_rejected(kwargs, message):
    fields = {
        "name": "Broken",
        "abbreviation": "BRK",
        "betting_limit": "pot_limit",
        "hole_cards": HoleCardRules(2),
    }
    fields.update(kwargs)
    with pytest.raises(ConfigurationError, match=message):
        GameRules(**fields)


def test_rules_round_trip_through_dict():
    for name in available_rules():
        rules = load_rules(name)
        assert GameRules.from_dict(rules.to_dict()) == rules


def test_transitions_follow_streets():
    assert build_transitions(load_rules("nlh")) == {
        Phase.PRE_FLOP: Phase.FLOP,
        Phase.FLOP: Phase.TURN,
        Phase.TURN: Phase.RIVER,
        Phase.RIVER: Phase.SHOWDOWN,
        Phase.SHOWDOWN: Phase.HAND_OVER,
    }


def test_transitions_skip_streets_that_do_not_exist():
    draw = GameRules(
        name="Five Card Stud-ish",
        abbreviation="FCS",
        betting_limit="no_limit",
        hole_cards=HoleCardRules(5),
        community_cards=CommunityCardRules(0, ()),
    )
    assert build_transitions(draw) == {
        Phase.PRE_FLOP: Phase.SHOWDOWN,
        Phase.SHOWDOWN: Phase.HAND_OVER,
    }
