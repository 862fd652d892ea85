"""Game data models for in-memory storage."""
import asyncio
import uuid
import random
import time
from typing import Optional
from dataclasses import dataclass, field

from nightfall.core.config import settings
from nightfall.schemas.enums import (
    GameStatus, GamePhase, Role, Team, LogType
)

PLAYER_COUNT = 9

# Role distribution: 3 werewolves, 3 villagers, 1 seer, 1 witch, 1 hunter
STANDARD_ROLES = [
    Role.WEREWOLF, Role.WEREWOLF, Role.WEREWOLF,
    Role.VILLAGER, Role.VILLAGER, Role.VILLAGER,
    Role.SEER, Role.WITCH, Role.HUNTER
]

# Personality labels handed to the decision collaborator
PERSONALITIES = [
    "Aggressive", "Cautious", "Deceptive", "Logical", "Emotional",
    "Chaotic", "Quiet", "Analytical", "Paranoid", "Noble",
]


@dataclass
class Player:
    """Player model."""
    id: int
    role: Role
    personality: str = "Logical"
    is_human: bool = False
    is_alive: bool = True
    # Seer specific: seat -> team seen
    inspections: dict[int, Team] = field(default_factory=dict)


@dataclass
class WitchPotions:
    """Witch potion inventory; each potion can be used once per game."""
    save: bool = True
    poison: bool = True

    def consume(self, potion: str) -> bool:
        """Use a potion. Returns False if it was already spent."""
        if not getattr(self, potion):
            return False
        setattr(self, potion, False)
        return True


@dataclass
class NightActionData:
    """Secret choices made during one night."""
    wolves_target: Optional[int] = None
    witch_save_used: bool = False
    witch_poison_target: Optional[int] = None
    seer_check: Optional[int] = None
    seer_result: Optional[Team] = None
    # Progress flags for the current night
    wolves_decided: bool = False
    witch_save_decided: bool = False
    witch_done: bool = False
    seer_done: bool = False


@dataclass
class GameLogEntry:
    """Game log entry model."""
    id: int
    day: int
    phase: GamePhase
    content: str
    log_type: LogType = LogType.SYSTEM
    author: Optional[str] = None


@dataclass(frozen=True)
class Narration:
    """A line for the moderator voice, drained by the engine."""
    text: str


@dataclass
class Game:
    """Game model."""
    id: str
    status: GameStatus = GameStatus.WAITING
    day: int = 1
    phase: GamePhase = GamePhase.SETUP
    winner: Optional[Team] = None
    language: str = "en"
    players: dict[int, Player] = field(default_factory=dict)
    log: list[GameLogEntry] = field(default_factory=list)
    potions: WitchPotions = field(default_factory=WitchPotions)
    night: NightActionData = field(default_factory=NightActionData)
    # Day vote tracking
    human_votes: dict[int, int] = field(default_factory=dict)  # voter -> target
    computer_votes: dict[int, Optional[int]] = field(default_factory=dict)  # None = abstain
    verdict_announced: bool = False
    current_turn_player_id: Optional[int] = None
    # Where the game continues once a Hunter detour finishes
    resume_phase: Optional[GamePhase] = None
    state_version: int = 0
    outbox: list[Narration] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random, repr=False)
    _log_counter: int = 0

    def get_player(self, player_id: Optional[int]) -> Optional[Player]:
        """Get player by ID."""
        if player_id is None:
            return None
        return self.players.get(player_id)

    def get_roster(self) -> list[Player]:
        """All players in ascending ID order."""
        return [self.players[pid] for pid in sorted(self.players)]

    def get_alive_players(self) -> list[Player]:
        """Get all alive players, sorted by ID."""
        return [p for p in self.get_roster() if p.is_alive]

    def get_alive_ids(self) -> list[int]:
        """Get all alive player IDs, sorted."""
        return [p.id for p in self.get_alive_players()]

    def get_alive_werewolves(self) -> list[Player]:
        """Get alive werewolves."""
        return [p for p in self.get_alive_players() if p.role == Role.WEREWOLF]

    def get_player_by_role(self, role: Role) -> Optional[Player]:
        """Get player by role (for unique roles)."""
        for p in self.get_roster():
            if p.role == role:
                return p
        return None

    def get_human_ids(self) -> list[int]:
        """IDs of the seats played by humans."""
        return [p.id for p in self.get_roster() if p.is_human]

    def add_log(
        self,
        content: str,
        log_type: LogType = LogType.SYSTEM,
        author: Optional[str] = None
    ) -> GameLogEntry:
        """Append an entry to the game log."""
        self._log_counter += 1
        entry = GameLogEntry(
            id=self._log_counter,
            day=self.day,
            phase=self.phase,
            content=content,
            log_type=log_type,
            author=author
        )
        self.log.append(entry)
        return entry

    def narrate(self, text: str) -> None:
        """Queue a moderator line without logging it."""
        self.outbox.append(Narration(text))

    def announce(self, content: str, speech: Optional[str] = None) -> GameLogEntry:
        """Log a system message and queue it (or a spoken variant) for narration."""
        entry = self.add_log(content)
        self.narrate(speech or content)
        return entry

    def kill_player(self, player_id: int) -> bool:
        """Mark a player dead. Returns True if they were alive."""
        player = self.get_player(player_id)
        if player is None or not player.is_alive:
            return False
        player.is_alive = False
        return True

    def increment_version(self) -> int:
        """Bump the state version; pending pauses compare against it."""
        self.state_version += 1
        return self.state_version

    def reset_night(self) -> None:
        """Start a fresh night."""
        self.night = NightActionData()

    def reset_votes(self) -> None:
        self.human_votes.clear()
        self.computer_votes.clear()
        self.verdict_announced = False


def _resolve_human_seats(human_count: int, human_seats: Optional[list[int]]) -> list[int]:
    if human_seats is not None:
        seats = sorted(set(human_seats))
        if any(s < 1 or s > PLAYER_COUNT for s in seats):
            raise ValueError(f"Human seats must be between 1 and {PLAYER_COUNT}")
        return seats
    if human_count < 0 or human_count > PLAYER_COUNT:
        raise ValueError(f"Human count must be between 0 and {PLAYER_COUNT}")
    # Humans take the first seats
    return list(range(1, human_count + 1))


class GameStore:
    """In-memory game storage with LRU/TTL management and per-game locks."""

    def __init__(self, max_games: Optional[int] = None, ttl_seconds: Optional[int] = None):
        self.MAX_GAMES = max_games or settings.MAX_GAMES
        self.GAME_TTL_SECONDS = ttl_seconds or settings.GAME_TTL_SECONDS
        self.games: dict[str, Game] = {}
        self._last_access: dict[str, float] = {}  # game_id -> timestamp
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def game_count(self) -> int:
        return len(self.games)

    def get_lock(self, game_id: str) -> asyncio.Lock:
        """Get or create a lock for the specified game."""
        if game_id not in self._locks:
            self._locks[game_id] = asyncio.Lock()
        return self._locks[game_id]

    def _forget(self, game_id: str) -> None:
        from nightfall.services.log_manager import clear_game_logs

        self.games.pop(game_id, None)
        self._last_access.pop(game_id, None)
        self._locks.pop(game_id, None)
        clear_game_logs(game_id)

    def _cleanup_old_games(self) -> int:
        """Remove games that haven't been accessed within TTL.

        Returns:
            Number of games cleaned up
        """
        now = time.time()
        to_remove = [
            game_id for game_id, last_access in self._last_access.items()
            if now - last_access > self.GAME_TTL_SECONDS
        ]
        for game_id in to_remove:
            self._forget(game_id)
        return len(to_remove)

    def create_game(
        self,
        human_count: int = 1,
        human_seats: Optional[list[int]] = None,
        language: str = "en",
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        game_id: Optional[str] = None
    ) -> Game:
        """Create a new game with shuffled role assignment.

        The game is left in SETUP; the engine moves it on to REVEAL.
        Pass ``rng`` or ``seed`` for a reproducible deal.
        """
        if len(self.games) >= self.MAX_GAMES:
            cleaned = self._cleanup_old_games()
            if len(self.games) >= self.MAX_GAMES:
                raise ValueError(
                    f"Server at capacity ({self.MAX_GAMES} games). "
                    f"Cleaned {cleaned} old games but still full. Try again later."
                )

        seats = _resolve_human_seats(human_count, human_seats)
        if rng is None:
            rng = random.Random(seed)

        if game_id is None:
            game_id = str(uuid.uuid4())[:8]
        game = Game(id=game_id, language=language, rng=rng)

        roles = STANDARD_ROLES.copy()
        rng.shuffle(roles)

        for i, role in enumerate(roles):
            player_id = i + 1
            game.players[player_id] = Player(
                id=player_id,
                role=role,
                personality=rng.choice(PERSONALITIES),
                is_human=player_id in seats
            )

        self.games[game_id] = game
        self._last_access[game_id] = time.time()
        return game

    def get_game(self, game_id: str) -> Optional[Game]:
        """Get game by ID and refresh its TTL."""
        game = self.games.get(game_id)
        if game:
            self._last_access[game_id] = time.time()
        return game

    def delete_game(self, game_id: str) -> bool:
        """Delete a game together with its logs and lock."""
        if game_id in self.games:
            self._forget(game_id)
            return True
        return False


# Global game store instance
game_store = GameStore()
