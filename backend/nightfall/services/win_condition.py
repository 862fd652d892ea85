"""Win condition check.

Standard rules for the nine-player table:
- Good wins once every werewolf is dead.
- Bad wins when alive wolves >= alive non-wolves,
  or when every god (Seer, Witch, Hunter) is dead,
  or when every villager is dead.
"""
from typing import Iterable, Optional

from nightfall.models.game import Player
from nightfall.schemas.enums import Role, Team

GOD_ROLES = (Role.SEER, Role.WITCH, Role.HUNTER)

TEAM_MAP = {
    Role.WEREWOLF: Team.BAD,
    Role.VILLAGER: Team.GOOD,
    Role.SEER: Team.GOOD,
    Role.WITCH: Team.GOOD,
    Role.HUNTER: Team.GOOD,
}


def team_of(role: Role) -> Team:
    """Team a role plays for."""
    return TEAM_MAP[role]


def check_winner(players: Iterable[Player]) -> Optional[Team]:
    """Return the winning team, or None while the game goes on."""
    alive = [p for p in players if p.is_alive]
    wolves = sum(1 for p in alive if p.role == Role.WEREWOLF)
    good = len(alive) - wolves

    if wolves == 0:
        return Team.GOOD
    if wolves >= good:
        return Team.BAD

    gods = sum(1 for p in alive if p.role in GOD_ROLES)
    villagers = sum(1 for p in alive if p.role == Role.VILLAGER)
    if gods == 0 or villagers == 0:
        return Team.BAD

    return None
