"""Prompt templates for computer players."""
import json
from typing import TYPE_CHECKING

from nightfall.schemas.enums import DecisionKind, GamePhase, Role, Team
from nightfall.services.win_condition import team_of

if TYPE_CHECKING:
    from nightfall.services.llm import DecisionContext

ROLE_DESCRIPTIONS = {
    Role.WEREWOLF: "You are a Werewolf. Each night, wake up and choose a victim to kill. "
                   "Win when the good guys are outnumbered.",
    Role.VILLAGER: "You are a Villager. You have no special abilities. "
                   "Find the wolves during the day and vote them out.",
    Role.SEER: "You are the Seer. Each night, you can check the identity of one player "
               "to see if they are Good or Bad.",
    Role.WITCH: "You are the Witch. You have two potions: one to save a victim, "
                "one to poison a player. You can use each once.",
    Role.HUNTER: "You are the Hunter. If you die (except by poison), "
                 "you can take one person with you.",
}

# What the acting player is asked to do, by decision kind
ACTION_INSTRUCTIONS = {
    DecisionKind.KILL: "Choose a target ID from the ALIVE players to kill.",
    DecisionKind.SAVE: "Return the attacked player's ID to use your save potion on them, or null to keep it.",
    DecisionKind.POISON: "Choose a target ID from the ALIVE players to poison, "
                         "or null if you don't want to use it yet.",
    DecisionKind.VOTE: "Choose a target ID from the ALIVE players to vote out, or null to abstain.",
    DecisionKind.CHECK: "Choose a target ID from the ALIVE players to inspect. Check unknown people.",
}

HUNTER_INSTRUCTION = "You are dead. Pick someone to take with you, or null to take nobody."


def _goal(role: Role) -> str:
    if team_of(role) == Team.BAD:
        return "Deceive the villagers, pretend to be good, kill them all."
    return "Find the wolves and vote them out."


def build_speech_prompt(context: "DecisionContext") -> str:
    """Prompt for one short statement during the day discussion."""
    me = context.me
    living = ", ".join(f"Player {p.id}" for p in context.players if p.is_alive)
    recent = "\n".join(context.history) or "Nothing yet."

    return "\n".join([
        "You are playing a game of Werewolf (Mafia).",
        f"You are Player {me.id}.",
        f"Role: {me.role.value}",
        f"Personality: {me.personality}",
        "",
        f"Your Goal: {_goal(me.role)}",
        "",
        f"Current Phase: {context.phase.value}",
        f"Alive Players: {living}",
        "",
        "Recent Events:",
        recent,
        "",
        "Instruction: Write a short, single sentence statement to the group.",
        f"Act according to your personality ({me.personality}).",
        "If you are a Werewolf, lie if necessary to blend in.",
        "If you are Good, share your suspicions or defend yourself.",
        "Keep it conversational and under 20 words.",
    ])


def build_board_state(context: "DecisionContext") -> list[dict]:
    """Board as the acting player sees it.

    Roles stay hidden except the player's own, and fellow wolves for a wolf.
    """
    me = context.me
    board = []
    for p in context.players:
        known = p.id == me.id or (me.role == Role.WEREWOLF and p.role == Role.WEREWOLF)
        board.append({
            "id": p.id,
            "status": "ALIVE" if p.is_alive else "DEAD",
            "knownRole": p.role.value if known else "UNKNOWN",
        })
    return board


def build_action_system_prompt(context: "DecisionContext") -> str:
    me = context.me
    return (
        f"You are Player {me.id} ({me.role.value}) in a game of Werewolf. "
        f"Personality: {me.personality}. {ROLE_DESCRIPTIONS[me.role]} "
        "Wolves know each other. Don't kill teammates unless necessary. "
        "Act according to your personality. "
        'Return purely JSON with no markdown: {"targetId": number | null, "reason": "string"}'
    )


def build_action_prompt(context: "DecisionContext", kind: DecisionKind, eligible: list[int]) -> str:
    """Prompt for a targeted decision (kill, save, poison, vote, check)."""
    if context.phase == GamePhase.HUNTER_ACTION:
        instruction = HUNTER_INSTRUCTION
    else:
        instruction = ACTION_INSTRUCTIONS.get(kind, ACTION_INSTRUCTIONS[DecisionKind.VOTE])

    return "\n".join([
        f"Action Required: {kind.value}",
        f"Current Phase: {context.phase.value}",
        f"Board State: {json.dumps(build_board_state(context))}",
        f"Recent History: {' | '.join(context.history) or 'None'}",
        f"Special Info: {context.night_info or 'None'}",
        f"Allowed targets: {eligible}",
        "",
        instruction,
    ])
