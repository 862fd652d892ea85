"""Pytest configuration and fixtures for backend tests."""
import os
import random
from typing import Callable, Optional

# Set test environment before importing nightfall modules
os.environ["DEBUG"] = "true"
os.environ["LLM_USE_MOCK"] = "true"
os.environ["OPENAI_API_KEY"] = ""
os.environ["PACING_ENABLED"] = "false"
os.environ["STRICT_INVARIANTS"] = "true"

import pytest

from nightfall.models.game import Game, GameStore, Player, STANDARD_ROLES
from nightfall.schemas.enums import DecisionKind, GamePhase, GameStatus
from nightfall.services.game_engine import GameEngine
from nightfall.services.llm import Decision


# ============================================================================
# Collaborator doubles
# ============================================================================

class FixedRandom(random.Random):
    """Random source that deals roles in table order.

    Seats 1-3 are werewolves, 4-6 villagers, 7 Seer, 8 Witch, 9 Hunter.
    """

    def shuffle(self, x, *args, **kwargs):
        pass

    def random(self):
        # Above any poison chance, so computer Witches keep the poison
        return 0.99


class FakeDecisionClient:
    """Decision client returning scripted targets.

    ``targets`` maps a DecisionKind to a target ID (or None). Kinds that are
    not scripted get the first eligible target.
    """

    def __init__(self, targets: Optional[dict] = None, speech: str = "I trust Player 5."):
        self.targets = targets or {}
        self.speech = speech
        self.calls: list[tuple[int, DecisionKind, list[int]]] = []
        self.speeches: list[int] = []

    async def decide(self, context, kind, eligible, rng=None) -> Decision:
        self.calls.append((context.me.id, kind, list(eligible)))
        if kind in self.targets:
            return Decision(target_id=self.targets[kind], reason="scripted")
        return Decision(target_id=eligible[0] if eligible else None, reason="scripted")

    async def speak(self, context, rng=None) -> str:
        self.speeches.append(context.me.id)
        return self.speech


class RecordingNarrator:
    """Narrator that keeps every line it is given."""

    def __init__(self):
        self.lines: list[tuple[str, str]] = []

    def narrate(self, game_id: str, text: str) -> None:
        self.lines.append((game_id, text))

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.lines]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def make_game() -> Callable[..., Game]:
    """Factory for a game in table order, already playing."""

    def _make(
        human_seats: tuple = (),
        phase: GamePhase = GamePhase.NIGHT_WEREWOLF,
        game_id: str = "test-game"
    ) -> Game:
        game = Game(id=game_id, rng=FixedRandom())
        for i, role in enumerate(STANDARD_ROLES):
            seat = i + 1
            game.players[seat] = Player(id=seat, role=role, is_human=seat in human_seats)
        game.status = GameStatus.PLAYING
        game.phase = phase
        return game

    return _make


@pytest.fixture
def fake_client() -> FakeDecisionClient:
    return FakeDecisionClient()


@pytest.fixture
def narrator() -> RecordingNarrator:
    return RecordingNarrator()


@pytest.fixture
def store() -> GameStore:
    return GameStore(max_games=50, ttl_seconds=3600)


@pytest.fixture
def engine(fake_client, narrator, store) -> GameEngine:
    return GameEngine(llm=fake_client, narrator=narrator, store=store)
