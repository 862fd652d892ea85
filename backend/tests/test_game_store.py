"""Tests for GameStore, the Game model and configuration."""
import time

import pytest

from conftest import FixedRandom
from nightfall.core.config import Settings
from nightfall.models.game import Game, GameStore, WitchPotions
from nightfall.schemas.enums import GamePhase, Role
from nightfall.services.log_manager import game_logs


class TestGameStore:

    def test_create_game_deals_standard_roles(self, store):
        game = store.create_game(human_count=2, seed=11)
        roles = sorted(p.role.value for p in game.get_roster())
        assert roles.count(Role.WEREWOLF.value) == 3
        assert roles.count(Role.VILLAGER.value) == 3
        assert game.get_human_ids() == [1, 2]
        assert game.phase == GamePhase.SETUP

    def test_human_seats_override_count(self, store):
        game = store.create_game(human_count=5, human_seats=[9, 3, 3])
        assert game.get_human_ids() == [3, 9]

    @pytest.mark.parametrize("kwargs", [{"human_count": 10}, {"human_count": -1}, {"human_seats": [0]}])
    def test_invalid_humans(self, store, kwargs):
        with pytest.raises(ValueError):
            store.create_game(**kwargs)

    def test_capacity(self):
        store = GameStore(max_games=1, ttl_seconds=3600)
        store.create_game(human_count=0)
        with pytest.raises(ValueError, match="capacity"):
            store.create_game(human_count=0)

    def test_expired_games_cleaned(self, store):
        game = store.create_game(human_count=0, rng=FixedRandom())
        game_logs[game.id] = []
        store._last_access[game.id] = time.time() - store.GAME_TTL_SECONDS - 1

        assert store._cleanup_old_games() == 1
        assert store.get_game(game.id) is None
        assert game.id not in game_logs

    def test_delete_game(self, store):
        game = store.create_game(human_count=0)
        store.get_lock(game.id)
        assert store.delete_game(game.id) is True
        assert store.delete_game(game.id) is False
        assert store.game_count == 0

    def test_lock_is_per_game(self, store):
        assert store.get_lock("a") is store.get_lock("a")
        assert store.get_lock("a") is not store.get_lock("b")


class TestGameModel:

    def test_kill_player_once(self, make_game):
        game = make_game()
        assert game.kill_player(5) is True
        assert game.kill_player(5) is False
        assert 5 not in game.get_alive_ids()

    def test_announce_logs_and_narrates(self):
        game = Game(id="g")
        game.announce("Night falls.", speech="Night falls, everyone close your eyes.")
        assert game.log[-1].content == "Night falls."
        assert [n.text for n in game.outbox] == ["Night falls, everyone close your eyes."]

    def test_log_ids_increase(self):
        game = Game(id="g")
        first = game.add_log("a")
        second = game.add_log("b")
        assert second.id == first.id + 1

    def test_potions_used_once(self):
        potions = WitchPotions()
        assert potions.consume("poison") is True
        assert potions.consume("poison") is False
        assert potions.save is True


class TestSettings:

    def test_cors_split(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        assert Settings().CORS_ORIGINS == ["http://a.test", "http://b.test"]

    def test_poison_chance_clamped(self, monkeypatch):
        monkeypatch.setenv("AI_WITCH_POISON_CHANCE", "3")
        assert Settings().AI_WITCH_POISON_CHANCE == 1.0

    def test_llm_disabled_in_mock_mode(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("LLM_USE_MOCK", "true")
        assert Settings().llm_enabled is False
