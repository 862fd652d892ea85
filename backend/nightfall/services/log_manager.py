"""Game logging service - captures and filters per-game engine logs."""
import logging
from typing import List, Dict, Optional
from collections import deque

# Store logs per game ID
game_logs: Dict[str, deque] = {}

MAX_LOGS_PER_GAME = 500

# Keywords that would spoil the game for people sharing the screen,
# plus anything that looks like a credential
SENSITIVE_KEYWORDS = [
    # Game spoiler keywords
    'role=',
    'wolves_target',
    'poison_target',
    'seer_result',
    'inspects',
    'potion',
    'leader',
    # Security-sensitive keywords
    'api_key',
    'api-key',
    'apikey',
    'secret',
    'password',
    'token',
    'authorization',
    'bearer',
    'credential',
]


class GameLogHandler(logging.Handler):
    """Logging handler that captures records tagged with a game_id."""

    def emit(self, record):
        try:
            game_id = getattr(record, 'game_id', None)
            if not game_id:
                return

            sanitized = self._sanitize(record)
            if sanitized:
                if game_id not in game_logs:
                    game_logs[game_id] = deque(maxlen=MAX_LOGS_PER_GAME)
                game_logs[game_id].append(sanitized)
        except Exception:
            self.handleError(record)

    def _sanitize(self, record) -> Optional[Dict]:
        """Drop spoilers, secrets and debug noise."""
        if record.levelno < logging.INFO:
            return None

        msg = record.getMessage()
        msg_lower = msg.lower()
        if any(keyword in msg_lower for keyword in SENSITIVE_KEYWORDS):
            return None

        return {
            "timestamp": record.created,
            "level": record.levelname,
            "message": msg,
            "module": record.module,
        }


def get_game_logs(game_id: str, limit: int = 100) -> List[Dict]:
    """
    Get sanitized logs for a specific game.

    Args:
        game_id: The game ID
        limit: Maximum number of logs to return (default: 100)

    Returns:
        List of log entries (most recent first)
    """
    if game_id not in game_logs:
        return []

    logs = list(game_logs[game_id])
    logs.reverse()
    return logs[:limit]


def clear_game_logs(game_id: str):
    """Clear logs for a specific game."""
    game_logs.pop(game_id, None)


def init_game_logging() -> GameLogHandler:
    """Attach the game log handler to the services logger (once)."""
    services_logger = logging.getLogger('nightfall.services')
    for existing in services_logger.handlers:
        if isinstance(existing, GameLogHandler):
            return existing

    handler = GameLogHandler()
    handler.setLevel(logging.INFO)
    services_logger.addHandler(handler)
    if services_logger.level == logging.NOTSET or services_logger.level > logging.INFO:
        services_logger.setLevel(logging.INFO)
    return handler
