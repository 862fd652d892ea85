"""Unit tests for the pure game rules: win condition, speaking order, night outcome, vote tally."""
import pytest

from nightfall.core.exceptions import InvariantViolation
from nightfall.models.game import NightActionData, Player
from nightfall.schemas.enums import Role, Team
from nightfall.services.night_resolution import (
    apply_witch_poison, apply_witch_save, inspect_player, resolve_night_deaths
)
from nightfall.services.turn_order import next_speaker
from nightfall.services.vote_resolution import tally_votes
from nightfall.services.win_condition import check_winner, team_of


def _players(*specs) -> list[Player]:
    """specs: (id, role, alive)"""
    return [Player(id=pid, role=role, is_alive=alive) for pid, role, alive in specs]


# ============================================================================
# Win condition
# ============================================================================

class TestCheckWinner:

    def test_full_table_has_no_winner(self, make_game):
        game = make_game()
        assert check_winner(game.players.values()) is None

    def test_good_wins_when_all_wolves_dead(self, make_game):
        game = make_game()
        for pid in (1, 2, 3):
            game.kill_player(pid)
        assert check_winner(game.players.values()) == Team.GOOD

    def test_bad_wins_on_parity(self):
        players = _players(
            (1, Role.WEREWOLF, True), (2, Role.WEREWOLF, True),
            (4, Role.VILLAGER, True), (7, Role.SEER, True),
        )
        assert check_winner(players) == Team.BAD

    def test_bad_wins_when_all_gods_dead(self, make_game):
        game = make_game()
        for pid in (7, 8, 9):
            game.kill_player(pid)
        assert check_winner(game.players.values()) == Team.BAD

    def test_bad_wins_when_all_villagers_dead(self, make_game):
        game = make_game()
        for pid in (4, 5, 6):
            game.kill_player(pid)
        assert check_winner(game.players.values()) == Team.BAD

    def test_one_wolf_against_mixed_survivors_continues(self):
        players = _players(
            (1, Role.WEREWOLF, True), (2, Role.WEREWOLF, False),
            (4, Role.VILLAGER, True), (7, Role.SEER, True),
        )
        assert check_winner(players) is None

    def test_team_of(self):
        assert team_of(Role.WEREWOLF) == Team.BAD
        for role in (Role.VILLAGER, Role.SEER, Role.WITCH, Role.HUNTER):
            assert team_of(role) == Team.GOOD


# ============================================================================
# Speaking order
# ============================================================================

class TestNextSpeaker:

    def test_opener_is_lowest_alive(self):
        players = _players((1, Role.WEREWOLF, False), (2, Role.VILLAGER, True), (5, Role.SEER, True))
        assert next_speaker(players, 0) == 2

    def test_skips_dead_players(self):
        players = _players((2, Role.VILLAGER, True), (3, Role.VILLAGER, False), (5, Role.SEER, True))
        assert next_speaker(players, 2) == 5

    def test_no_wrap_around(self):
        players = _players((2, Role.VILLAGER, True), (5, Role.SEER, True))
        assert next_speaker(players, 5) is None


# ============================================================================
# Night resolution
# ============================================================================

class TestResolveNightDeaths:

    def test_victim_dies(self):
        assert resolve_night_deaths(NightActionData(wolves_target=4)) == [4]

    def test_saved_victim_survives(self):
        assert resolve_night_deaths(NightActionData(wolves_target=4, witch_save_used=True)) == []

    def test_poison_and_kill_sorted(self):
        night = NightActionData(wolves_target=6, witch_poison_target=2)
        assert resolve_night_deaths(night) == [2, 6]

    def test_poison_on_victim_not_duplicated(self):
        night = NightActionData(wolves_target=6, witch_poison_target=6)
        assert resolve_night_deaths(night) == [6]

    def test_quiet_night(self):
        assert resolve_night_deaths(NightActionData()) == []


class TestWitchPotions:

    def test_save_consumes_potion_and_ends_turn(self, make_game):
        game = make_game()
        game.night.wolves_target = 4
        assert apply_witch_save(game) is True
        assert game.potions.save is False
        assert game.night.witch_save_used is True
        assert game.night.witch_done is True

    def test_save_without_victim_is_a_violation(self, make_game):
        game = make_game()
        with pytest.raises(InvariantViolation):
            apply_witch_save(game)

    def test_save_twice_is_a_violation(self, make_game):
        game = make_game()
        game.night.wolves_target = 4
        apply_witch_save(game)
        game.reset_night()
        game.night.wolves_target = 5
        with pytest.raises(InvariantViolation):
            apply_witch_save(game)

    def test_poison_after_save_same_night_rejected(self, make_game):
        game = make_game()
        game.night.wolves_target = 4
        apply_witch_save(game)
        with pytest.raises(InvariantViolation):
            apply_witch_poison(game, 1)
        assert game.potions.poison is True

    def test_poison_records_target(self, make_game):
        game = make_game()
        assert apply_witch_poison(game, 1) is True
        assert game.night.witch_poison_target == 1
        assert game.potions.poison is False


def test_inspect_player_records_team(make_game):
    game = make_game()
    seer = game.players[7]
    assert inspect_player(game, seer, 2) == Team.BAD
    assert inspect_player(game, seer, 9) == Team.GOOD
    assert seer.inspections == {2: Team.BAD, 9: Team.GOOD}
    assert game.night.seer_check == 9


# ============================================================================
# Vote tally
# ============================================================================

class TestTallyVotes:

    def test_strict_majority_eliminated(self):
        outcome = tally_votes({4: 1}, {2: 1, 3: 5, 5: None})
        assert outcome.eliminated == 1
        assert outcome.counts == {1: 2, 5: 1}
        assert outcome.tied is False

    def test_tie_eliminates_nobody(self):
        outcome = tally_votes({4: 1}, {1: 4})
        assert outcome.eliminated is None
        assert outcome.tied is True

    def test_all_abstain(self):
        outcome = tally_votes({}, {1: None, 2: None})
        assert outcome.eliminated is None
        assert outcome.counts == {}
        assert outcome.tied is False

    def test_single_ballot(self):
        assert tally_votes({}, {1: 6}).eliminated == 6
