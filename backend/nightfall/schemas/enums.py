"""Game enums definition."""
from enum import Enum


class GameStatus(str, Enum):
    """Game status enum."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class GamePhase(str, Enum):
    """Game phase enum."""
    SETUP = "SETUP"
    REVEAL = "REVEAL"
    NIGHT_WEREWOLF = "NIGHT_WEREWOLF"
    NIGHT_WITCH = "NIGHT_WITCH"
    NIGHT_SEER = "NIGHT_SEER"
    DAY_ANNOUNCE = "DAY_ANNOUNCE"
    DAY_DISCUSS = "DAY_DISCUSS"
    DAY_VOTE = "DAY_VOTE"
    HUNTER_ACTION = "HUNTER_ACTION"
    GAME_OVER = "GAME_OVER"


class Role(str, Enum):
    """Player role enum."""
    WEREWOLF = "Werewolf"
    VILLAGER = "Villager"
    SEER = "Seer"
    WITCH = "Witch"
    HUNTER = "Hunter"


class Team(str, Enum):
    """Team (and winner) enum."""
    GOOD = "Good"
    BAD = "Bad"


class ActionType(str, Enum):
    """Human action type enum."""
    CONFIRM = "confirm"
    KILL = "kill"
    SAVE = "save"
    POISON = "poison"
    CHECK = "check"
    SPEAK = "speak"
    VOTE = "vote"
    SHOOT = "shoot"
    SKIP = "skip"


class DecisionKind(str, Enum):
    """Decision kinds requested from the decision collaborator."""
    KILL = "KILL"
    SAVE = "SAVE"
    POISON = "POISON"
    VOTE = "VOTE"
    CHECK = "CHECK"
    SPEAK = "SPEAK"


class LogType(str, Enum):
    """Game log entry type enum."""
    SYSTEM = "system"
    CHAT = "chat"
    ACTION = "action"


class ActorKind(str, Enum):
    """Who the orchestrator is waiting on in the current phase."""
    HUMAN = "human"
    COMPUTER = "computer"
    NONE = "none"
