"""Night outcome resolution."""
from nightfall.models.game import Game, NightActionData, Player
from nightfall.schemas.enums import Team
from nightfall.services.invariants import report_violation
from nightfall.services.win_condition import team_of


def resolve_night_deaths(night: NightActionData) -> list[int]:
    """Who dies at dawn, in ascending ID order without duplicates.

    The wolves' target dies unless the Witch saved them; the Witch's
    poison target dies regardless.
    """
    dead: set[int] = set()
    if night.wolves_target is not None and not night.witch_save_used:
        dead.add(night.wolves_target)
    if night.witch_poison_target is not None:
        dead.add(night.witch_poison_target)
    return sorted(dead)


def apply_witch_save(game: Game) -> bool:
    """Spend the save potion on tonight's victim.

    Using a potion ends the Witch's turn: one potion per night.
    """
    if game.night.wolves_target is None:
        report_violation("Save potion used with nobody attacked", game.id)
        return False
    if not game.potions.consume("save"):
        report_violation("Save potion already spent", game.id)
        return False
    game.night.witch_save_used = True
    game.night.witch_save_decided = True
    game.night.witch_done = True
    return True


def apply_witch_poison(game: Game, target_id: int) -> bool:
    """Spend the poison potion on ``target_id``."""
    if game.night.witch_save_used:
        report_violation("Poison used on the same night as the save", game.id)
        return False
    if not game.potions.consume("poison"):
        report_violation("Poison potion already spent", game.id)
        return False
    game.night.witch_poison_target = target_id
    game.night.witch_done = True
    return True


def inspect_player(game: Game, seer: Player, target_id: int) -> Team:
    """Record the Seer's check and return the team seen."""
    team = team_of(game.players[target_id].role)
    game.night.seer_check = target_id
    game.night.seer_result = team
    seer.inspections[target_id] = team
    return team
