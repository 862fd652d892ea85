"""Day discussion speaking order."""
from typing import Iterable, Optional

from nightfall.models.game import Player


def next_speaker(players: Iterable[Player], current_id: int) -> Optional[int]:
    """First alive player with an ID greater than ``current_id``.

    There is no wrap-around: once the highest alive ID has spoken the
    discussion is over and None is returned. Pass 0 to get the opener.
    """
    later = sorted(p.id for p in players if p.is_alive and p.id > current_id)
    return later[0] if later else None
