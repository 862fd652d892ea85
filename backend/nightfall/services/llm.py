"""LLM Service - decision client for computer players, with one-shot fallback.

Every request is attempted exactly once. Errors, unparseable replies and
illegal targets are replaced by a random legal choice so the game never
stalls on the remote model.
"""
import json
import random
import logging
import re
from typing import Optional
from dataclasses import dataclass, field

from openai import AsyncOpenAI

from nightfall.core.config import settings
from nightfall.core.exceptions import DecisionError
from nightfall.models.game import Player
from nightfall.schemas.enums import DecisionKind, GamePhase, Role
from nightfall.services.prompts import (
    build_speech_prompt,
    build_action_system_prompt,
    build_action_prompt,
)

logger = logging.getLogger(__name__)

FALLBACK_REASON = "Fallback random choice due to error."
MAX_SPEECH_LENGTH = 300


def sanitize_text_input(text: str, max_length: int = 500) -> str:
    """
    Sanitize player-provided text before it reaches the log and the prompts.

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text safe for LLM prompts
    """
    if not text:
        return ""

    text = str(text)[:max_length]

    # Strip instructions aimed at the model
    dangerous_patterns = [
        r"(?i)(ignore|disregard|forget)\s+(previous|above|all|prior|earlier)\s+(instructions?|prompts?|rules?|directives?)",
        r"(?i)system\s*:\s*",
        r"(?i)assistant\s*:\s*",
        r"(?i)\[system\]",
        r"(?i)\[assistant\]",
        r"(?i)you\s+are\s+now\s+",
        r"(?i)act\s+as\s+",
    ]
    for pattern in dangerous_patterns:
        text = re.sub(pattern, "[filtered]", text)

    text = re.sub(r'\n{3,}', '\n\n', text)
    # Zero-width characters
    text = re.sub(r'[\u200B-\u200D\uFEFF]', '', text)
    text = text.replace("```", "'''")

    return text.strip()


@dataclass
class DecisionContext:
    """Everything a computer player is told before deciding."""
    me: Player
    players: list[Player]
    phase: GamePhase
    history: list[str] = field(default_factory=list)
    night_info: Optional[str] = None  # Role-private info, e.g. who was attacked
    language: str = "en"


@dataclass
class Decision:
    """Structured decision from the collaborator."""
    target_id: Optional[int]
    reason: str = ""
    is_fallback: bool = False


FALLBACK_SPEECHES = {
    Role.WEREWOLF: [
        "I have nothing to say right now.",
        "The situation is unclear to me, let me hear everyone's opinions first.",
        "I'm on the village's side, you can trust me.",
        "I think we should consolidate our votes.",
    ],
    Role.VILLAGER: [
        "I have nothing to say right now.",
        "I'm just a regular villager, no special information.",
        "Let's analyze calmly, don't vote randomly.",
        "I'll follow the group on this one.",
    ],
    Role.SEER: [
        "I have nothing to say right now.",
        "Watch the quiet ones carefully today.",
        "I have a feeling about someone, but I need more time.",
    ],
    Role.WITCH: [
        "I have nothing to say right now.",
        "I feel something's wrong, but need to observe more.",
        "Let's not rush the vote.",
    ],
    Role.HUNTER: [
        "I have nothing to say right now.",
        "Whoever comes for me will regret it.",
        "I think the situation needs more observation.",
    ],
}


def fallback_decision(context: DecisionContext, eligible: list[int], rng: random.Random) -> Decision:
    """Uniformly random legal target other than the actor."""
    choices = [pid for pid in eligible if pid != context.me.id]
    target = rng.choice(choices) if choices else None
    return Decision(target_id=target, reason=FALLBACK_REASON, is_fallback=True)


def fallback_speech(context: DecisionContext, rng: random.Random) -> str:
    """Stock line from the speaker's role set."""
    speeches = FALLBACK_SPEECHES.get(context.me.role, FALLBACK_SPEECHES[Role.VILLAGER])
    return rng.choice(speeches)


class LLMService:
    """Decision client backed by an OpenAI-compatible chat completion API."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.use_mock = settings.LLM_USE_MOCK
        self._rng = rng or random.Random()
        self._client: Optional[AsyncOpenAI] = None
        self._closed = False

        if not self.use_mock:
            if settings.OPENAI_API_KEY:
                # The SDK retries by default; decisions get exactly one attempt
                self._client = AsyncOpenAI(
                    api_key=settings.OPENAI_API_KEY,
                    base_url=settings.OPENAI_BASE_URL or None,
                    timeout=settings.DECISION_TIMEOUT_SECONDS,
                    max_retries=0,
                )
                logger.info(f"Initialized LLM client (model: {settings.LLM_MODEL})")
            else:
                logger.warning("No OPENAI_API_KEY configured - using mock mode")
                self.use_mock = True

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._closed:
            return
        self._closed = True
        if self._client is not None:
            await self._client.close()
            self._client = None
            logger.info("LLM client closed")

    async def _call_llm(self, system_prompt: Optional[str], user_prompt: str, json_mode: bool) -> str:
        """Make one chat completion call and return the text content."""
        if self._client is None:
            raise DecisionError("LLM client is not available")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        request_params = {
            "model": settings.LLM_MODEL,
            "messages": messages,
            "temperature": settings.LLM_TEMPERATURE,
        }
        if json_mode:
            request_params["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**request_params)
        if not response.choices:
            raise DecisionError("API returned empty choices")
        content = response.choices[0].message.content
        if content is None:
            raise DecisionError("API returned None content")

        logger.debug(f"LLM raw response: {content}")
        return content

    def _parse_response(self, raw_response: str, kind: DecisionKind) -> Decision:
        """Parse ``{"targetId": int | null, "reason": str}``."""
        cleaned = raw_response.strip()

        # Remove markdown code block wrapper (```json ... ``` or ``` ... ```)
        if cleaned.startswith("```"):
            first_newline = cleaned.find("\n")
            if first_newline != -1:
                cleaned = cleaned[first_newline + 1:]
            if cleaned.endswith("```"):
                cleaned = cleaned[:-3]
            cleaned = cleaned.strip()

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise DecisionError(f"Invalid JSON response: {e}", kind=kind.value)
        if not isinstance(data, dict):
            raise DecisionError("Response is not a JSON object", kind=kind.value)

        target = data.get("targetId")
        if target is not None and (isinstance(target, bool) or not isinstance(target, int)):
            raise DecisionError(f"targetId is not an integer: {target!r}", kind=kind.value)

        return Decision(target_id=target, reason=data.get("reason") or "Strategic decision.")

    async def decide(
        self,
        context: DecisionContext,
        kind: DecisionKind,
        eligible: list[int],
        rng: Optional[random.Random] = None
    ) -> Decision:
        """Ask for a targeted decision; never raises.

        Args:
            context: Acting player, roster snapshot, phase and recent log
            kind: KILL, SAVE, POISON, VOTE or CHECK
            eligible: Legal targets; a null target is always allowed
            rng: Random source for the fallback choice

        Returns:
            Decision with a legal target or None
        """
        rng = rng or self._rng

        if self.use_mock:
            logger.info(f"Using mock decision for player {context.me.id}")
            return fallback_decision(context, eligible, rng)

        try:
            raw_response = await self._call_llm(
                build_action_system_prompt(context),
                build_action_prompt(context, kind, eligible),
                json_mode=True,
            )
            decision = self._parse_response(raw_response, kind)
        except Exception as e:
            logger.warning(f"LLM {kind.value} decision failed for player {context.me.id}: {e}")
            return fallback_decision(context, eligible, rng)

        if decision.target_id is not None and decision.target_id not in eligible:
            logger.warning(
                f"Illegal target {decision.target_id} from player {context.me.id}, expected one of {eligible}"
            )
            return fallback_decision(context, eligible, rng)

        return decision

    async def speak(self, context: DecisionContext, rng: Optional[random.Random] = None) -> str:
        """Generate one discussion line; never raises."""
        rng = rng or self._rng

        if self.use_mock:
            logger.info(f"Using mock speech for player {context.me.id}")
            return fallback_speech(context, rng)

        try:
            raw_response = await self._call_llm(None, build_speech_prompt(context), json_mode=False)
        except Exception as e:
            logger.warning(f"LLM speech failed for player {context.me.id}: {e}")
            return fallback_speech(context, rng)

        speech = sanitize_text_input(raw_response, max_length=MAX_SPEECH_LENGTH)
        return speech or fallback_speech(context, rng)
