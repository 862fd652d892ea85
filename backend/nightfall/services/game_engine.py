"""Game engine - phase state machine and computer player orchestration.

Each ``step`` looks at the current phase, works out who the game is waiting
on (a human, a computer player, or nobody) and dispatches to the matching
handler. Computer turns go through a single system-wide decision gate:
while one decision is in flight, other computer-driven steps are refused.
"""
import asyncio
import dataclasses
import logging
import random
from typing import Awaitable, Callable, Optional, Protocol

from nightfall.core.config import settings
from nightfall.core.exceptions import GameNotFoundError
from nightfall.models.game import Game, GameStore, Player, game_store
from nightfall.schemas.enums import (
    ActionType, ActorKind, DecisionKind, GamePhase, Role
)
from nightfall.services.actors import classify_actor, current_actor
from nightfall.services.invariants import report_violation
from nightfall.services.llm import (
    Decision, DecisionContext, LLMService, fallback_decision, fallback_speech,
    sanitize_text_input,
)
from nightfall.services.phase_transitions import enter_phase
from nightfall.services import phase_handlers as ph
from nightfall.services import action_handlers as ah
from nightfall.i18n import normalize_language, t

logger = logging.getLogger(__name__)

PhaseHandler = Callable[[Game, "GameEngine"], Awaitable[dict]]


class DecisionClient(Protocol):
    """Anything that can answer for a computer player."""

    async def decide(self, context: DecisionContext, kind: DecisionKind,
                     eligible: list[int], rng: Optional[random.Random] = None) -> Decision: ...

    async def speak(self, context: DecisionContext, rng: Optional[random.Random] = None) -> str: ...


class Narrator(Protocol):
    """Receives moderator lines in the order they were produced."""

    def narrate(self, game_id: str, text: str) -> None: ...


class LoggingNarrator:
    """Default narrator: writes narration to the engine log."""

    def narrate(self, game_id: str, text: str) -> None:
        logger.info(f"Narration: {text}", extra={"game_id": game_id})


class DecisionGate:
    """The single "decision in flight" flag. A mutex, not a queue."""

    def __init__(self):
        self._holder: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._holder is not None

    def acquire(self, game_id: str) -> bool:
        if self._holder is not None:
            report_violation(
                f"Decision requested while one is in flight for game {self._holder}", game_id
            )
            return False
        self._holder = game_id
        return True

    def release(self) -> None:
        self._holder = None


async def await_human(game: Game, engine: "GameEngine") -> dict:
    """Nothing to do until the human at the device acts."""
    actor = current_actor(game)
    return {
        "status": "waiting_for_human",
        "new_phase": game.phase,
        "actor": actor.id if actor else None,
    }


# (phase, actor kind) -> handler
PHASE_HANDLERS: dict[tuple[GamePhase, ActorKind], PhaseHandler] = {
    (GamePhase.REVEAL, ActorKind.HUMAN): await_human,
    (GamePhase.REVEAL, ActorKind.NONE): ph.handle_reveal_done,
    (GamePhase.NIGHT_WEREWOLF, ActorKind.HUMAN): await_human,
    (GamePhase.NIGHT_WEREWOLF, ActorKind.COMPUTER): ph.handle_computer_wolves,
    (GamePhase.NIGHT_WEREWOLF, ActorKind.NONE): ph.handle_wolves_done,
    (GamePhase.NIGHT_WITCH, ActorKind.HUMAN): await_human,
    (GamePhase.NIGHT_WITCH, ActorKind.COMPUTER): ph.handle_computer_witch,
    (GamePhase.NIGHT_WITCH, ActorKind.NONE): ph.handle_witch_done,
    (GamePhase.NIGHT_SEER, ActorKind.HUMAN): await_human,
    (GamePhase.NIGHT_SEER, ActorKind.COMPUTER): ph.handle_computer_seer,
    (GamePhase.NIGHT_SEER, ActorKind.NONE): ph.handle_seer_done,
    (GamePhase.DAY_ANNOUNCE, ActorKind.NONE): ph.handle_dawn,
    (GamePhase.DAY_DISCUSS, ActorKind.HUMAN): await_human,
    (GamePhase.DAY_DISCUSS, ActorKind.COMPUTER): ph.handle_computer_speech,
    (GamePhase.DAY_DISCUSS, ActorKind.NONE): ph.handle_silent_speaker,
    (GamePhase.DAY_VOTE, ActorKind.HUMAN): await_human,
    (GamePhase.DAY_VOTE, ActorKind.COMPUTER): ph.handle_computer_vote,
    (GamePhase.DAY_VOTE, ActorKind.NONE): ph.handle_vote_result,
    (GamePhase.HUNTER_ACTION, ActorKind.HUMAN): await_human,
    (GamePhase.HUNTER_ACTION, ActorKind.COMPUTER): ph.handle_computer_hunter,
    (GamePhase.HUNTER_ACTION, ActorKind.NONE): ph.handle_hunter_gone,
    (GamePhase.GAME_OVER, ActorKind.NONE): ph.handle_game_over,
}

# phase -> human action handler
ACTION_HANDLERS = {
    GamePhase.REVEAL: ah.handle_reveal_action,
    GamePhase.NIGHT_WEREWOLF: ah.handle_werewolf_action,
    GamePhase.NIGHT_WITCH: ah.handle_witch_action,
    GamePhase.NIGHT_SEER: ah.handle_seer_action,
    GamePhase.DAY_DISCUSS: ah.handle_speech_action,
    GamePhase.DAY_VOTE: ah.handle_vote_action,
    GamePhase.HUNTER_ACTION: ah.handle_shoot_action,
}


def _night_info(game: Game, player: Player) -> Optional[str]:
    """Role-private briefing for a computer player."""
    if player.role == Role.WEREWOLF:
        mates = [p.id for p in game.get_alive_werewolves() if p.id != player.id]
        if mates:
            return "Your fellow werewolves: " + ", ".join(f"Player {pid}" for pid in mates)
        return "You are the last werewolf."

    if player.role == Role.WITCH and game.phase == GamePhase.NIGHT_WITCH:
        victim = game.night.wolves_target
        attacked = f"Player {victim} was attacked tonight." if victim else "Nobody was attacked tonight."
        return (
            f"{attacked} Save potion: {'available' if game.potions.save else 'used'}. "
            f"Poison potion: {'available' if game.potions.poison else 'used'}."
        )

    if player.role == Role.SEER and player.inspections:
        checks = ", ".join(
            f"Player {pid} is {team.value}" for pid, team in sorted(player.inspections.items())
        )
        return f"Your past checks: {checks}."

    return None


class GameEngine:
    """Core game engine handling state transitions and computer turns."""

    def __init__(
        self,
        llm: Optional[DecisionClient] = None,
        narrator: Optional[Narrator] = None,
        store: Optional[GameStore] = None
    ):
        self.llm = llm or LLMService()
        self.narrator = narrator or LoggingNarrator()
        self.store = store or game_store
        self.gate = DecisionGate()

    # ==================== Lifecycle ====================

    def start_game(
        self,
        human_count: int = 1,
        human_seats: Optional[list[int]] = None,
        language: str = "en",
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None
    ) -> Game:
        """Deal roles and open the reveal round."""
        game = self.store.create_game(
            human_count=human_count,
            human_seats=human_seats,
            language=normalize_language(language),
            seed=seed,
            rng=rng,
        )
        humans = game.get_human_ids()
        enter_phase(game, GamePhase.REVEAL, turn_holder=humans[0] if humans else None)
        self.flush_narration(game)
        logger.info(
            f"Game {game.id} started with human seats {humans}",
            extra={"game_id": game.id}
        )
        return game

    def get_game(self, game_id: str) -> Game:
        game = self.store.get_game(game_id)
        if not game:
            raise GameNotFoundError(game_id)
        return game

    # ==================== Stepping ====================

    async def step(self, game_id: str) -> dict:
        """
        Advance the game by one step.

        Returns:
            dict with ``status`` ("updated", "waiting_for_human", "busy",
            "stale", "game_over"), ``new_phase`` and drained ``narration``
        """
        game = self.get_game(game_id)
        start_phase = game.phase

        kind = classify_actor(game)
        handler = PHASE_HANDLERS.get((game.phase, kind))
        if handler is None:
            logger.error(
                f"No handler for phase={game.phase.value} actor={kind.value}",
                extra={"game_id": game.id}
            )
            return {"status": "error", "new_phase": game.phase,
                    "message": f"Cannot advance from {game.phase.value}", "narration": []}

        if kind == ActorKind.COMPUTER and self.gate.busy:
            return {"status": "busy", "new_phase": game.phase, "narration": []}

        result = await handler(game, self)
        result["narration"] = self.flush_narration(game)
        logger.info(
            f"Step: {start_phase.value} -> {game.phase.value} ({result.get('status')})",
            extra={"game_id": game.id}
        )
        return result

    async def run_until_blocked(self, game_id: str, max_steps: int = 500) -> dict:
        """Step until a human is needed, the game ends, or a step cannot proceed."""
        narration: list[str] = []
        result: dict = {}
        for _ in range(max_steps):
            result = await self.step(game_id)
            narration.extend(result.get("narration", []))
            if result.get("status") != "updated":
                break
        result["narration"] = narration
        return result

    # ==================== Computer turns ====================

    def build_context(self, game: Game, player: Player, history_limit: int) -> DecisionContext:
        """Snapshot of what ``player`` knows, for the decision client."""
        snapshot = [dataclasses.replace(p, inspections=dict(p.inspections)) for p in game.get_roster()]
        me = next(p for p in snapshot if p.id == player.id)
        history = [
            f"{entry.author}: {entry.content}" if entry.author else entry.content
            for entry in game.log[-history_limit:]
        ]
        return DecisionContext(
            me=me,
            players=snapshot,
            phase=game.phase,
            history=history,
            night_info=_night_info(game, player),
            language=game.language,
        )

    def _is_current(self, game: Game, phase: GamePhase, version: int) -> bool:
        if game.phase != phase or game.state_version != version:
            logger.info(
                f"Game {game.id}: state moved on while waiting, dropping result",
                extra={"game_id": game.id}
            )
            return False
        return True

    async def request_decision(
        self,
        game: Game,
        player: Player,
        kind: DecisionKind,
        eligible: list[int]
    ) -> Optional[Decision]:
        """Ask the decision client once, with timeout and fallback.

        Returns None when the gate is taken or the game moved on meanwhile.
        """
        if not self.gate.acquire(game.id):
            return None

        phase, version = game.phase, game.state_version
        context = self.build_context(game, player, settings.ACTION_HISTORY_LIMIT)
        try:
            decision = await asyncio.wait_for(
                self.llm.decide(context, kind, eligible, rng=game.rng),
                timeout=settings.DECISION_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Decision {kind.value} for Player {player.id} timed out",
                extra={"game_id": game.id}
            )
            decision = fallback_decision(context, eligible, game.rng)
        except Exception as e:
            logger.warning(
                f"Decision {kind.value} for Player {player.id} failed: {e}",
                extra={"game_id": game.id}
            )
            decision = fallback_decision(context, eligible, game.rng)
        finally:
            self.gate.release()

        if decision.target_id is not None and decision.target_id not in eligible:
            decision = fallback_decision(context, eligible, game.rng)
        if decision.is_fallback:
            logger.info(
                f"Player {player.id} {kind.value} decided by fallback",
                extra={"game_id": game.id}
            )

        if not self._is_current(game, phase, version):
            return None
        return decision

    async def request_speech(self, game: Game, player: Player) -> Optional[str]:
        """Ask the decision client for one discussion line."""
        if not self.gate.acquire(game.id):
            return None

        phase, version = game.phase, game.state_version
        context = self.build_context(game, player, settings.SPEECH_HISTORY_LIMIT)
        try:
            text = await asyncio.wait_for(
                self.llm.speak(context, rng=game.rng),
                timeout=settings.DECISION_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Speech for Player {player.id} timed out", extra={"game_id": game.id})
            text = fallback_speech(context, game.rng)
        except Exception as e:
            logger.warning(f"Speech for Player {player.id} failed: {e}", extra={"game_id": game.id})
            text = fallback_speech(context, game.rng)
        finally:
            self.gate.release()

        if not self._is_current(game, phase, version):
            return None
        return sanitize_text_input(text, max_length=500) or fallback_speech(context, game.rng)

    async def pace(self, game: Game, seconds: float) -> bool:
        """Sleep for a paced transition.

        Returns False if the phase or state version changed meanwhile, in
        which case the caller must abandon the transition.
        """
        if not settings.PACING_ENABLED or seconds <= 0:
            return True
        phase, version = game.phase, game.state_version
        await asyncio.sleep(seconds)
        return self._is_current(game, phase, version)

    def flush_narration(self, game: Game) -> list[str]:
        """Deliver queued narration to the narrator and return it."""
        texts = [item.text for item in game.outbox]
        game.outbox.clear()
        for text in texts:
            self.narrator.narrate(game.id, text)
        return texts

    # ==================== Human turns ====================

    def process_human_action(
        self,
        game_id: str,
        seat_id: int,
        action_type: ActionType,
        target_id: Optional[int] = None,
        content: Optional[str] = None
    ) -> dict:
        """Apply an action from the human holding the device.

        Invalid actions change nothing and return ``success: False``.
        """
        game = self.get_game(game_id)

        if content:
            content = sanitize_text_input(content, max_length=500)

        player = game.get_player(seat_id)
        if not player or not player.is_human:
            return {"success": False, "message": t("api_responses.invalid_player", language=game.language),
                    "narration": []}

        handler = ACTION_HANDLERS.get(game.phase)
        if handler is None:
            return {"success": False,
                    "message": t("api_responses.invalid_action_for_phase", language=game.language),
                    "narration": []}

        logger.info(
            f"Human action received: seat_id={seat_id} action_type={action_type.value}",
            extra={"game_id": game.id},
        )

        start_version = game.state_version
        result = handler(game, player, action_type, target_id, content)
        if result.get("success") and game.state_version == start_version:
            game.increment_version()

        result["narration"] = self.flush_narration(game)
        return result


# Global engine instance
game_engine = GameEngine()
